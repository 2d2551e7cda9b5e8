import dataclasses as dc
from collections.abc import Mapping
from typing import Any, Self


@dc.dataclass(slots=True, frozen=True)
class ProfilingEntry:
    '''
    Summary of one request outcome. Successful requests carry the status
    and timings, failed ones carry the transport error.
    '''
    url: str
    queue: bool = False
    http_code: int | None = None
    total_time: float | None = None
    pretransfer_time: float | None = None
    error_code: str | None = None
    error: str | None = None

    @property
    def is_error(self) -> bool:
        return self.error_code is not None

    @classmethod
    def from_meta(cls, meta: Mapping[str, Any]) -> Self:
        if 'error_code' in meta:
            return cls(
                url=meta.get('url', ''),
                queue=bool(meta.get('queue')),
                error_code=meta['error_code'],
                error=meta.get('error'),
            )

        return cls(
            url=meta.get('url', ''),
            queue=bool(meta.get('queue')),
            http_code=meta.get('http_code'),
            total_time=meta.get('total_time'),
            pretransfer_time=meta.get('pretransfer_time'),
        )

    def as_dict(self) -> dict[str, Any]:
        if self.is_error:
            keys = ('url', 'error_code', 'error', 'queue')
        else:
            keys = ('url', 'http_code', 'total_time', 'pretransfer_time', 'queue')
        return {key: getattr(self, key) for key in keys}


class ProfilingLog:
    '''
    Bounded, append-only record of recent requests. Once `max_entries`
    entries are held, new ones are dropped.
    '''
    __slots__ = ('max_entries', '_entries')

    def __init__(self, max_entries: int = 20) -> None:
        self.max_entries: int = max_entries
        self._entries: list[ProfilingEntry] = []

    def record(self, meta: Mapping[str, Any]) -> bool:
        '''
        Record the outcome described by a response's meta mapping.

        Returns
        -------
        bool
            False when the log is full and the entry was dropped.
        '''
        if len(self._entries) >= self.max_entries:
            return False

        self._entries.append(ProfilingEntry.from_meta(meta))
        return True

    @property
    def entries(self) -> list[ProfilingEntry]:
        return list(self._entries)

    def as_dicts(self) -> list[dict[str, Any]]:
        return [entry.as_dict() for entry in self._entries]

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
