import asyncio
import dataclasses as dc
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from restorch._profiling import ProfilingLog
from restorch._response import Response

logger = logging.getLogger(__name__)

Callback = Callable[[Response], Any]
RequestHandle = Callable[[], Awaitable[Response]]


async def resolve_callback(callback: Callback, response: Response) -> Any:
    result = callback(response)
    if inspect.isawaitable(result):
        result = await result
    return result


@dc.dataclass(slots=True)
class QueueEntry:
    '''
    A request waiting for the next batch. `handle` performs the send and
    never raises for transport errors, it returns a failed Response instead.
    '''
    url: str
    handle: RequestHandle
    callback: Callback | None = None
    response: Response | None = None

    async def run(self) -> None:
        self.response = await self.handle()


class RequestQueue:
    '''
    Collects requests and runs them together, one task per request, joined
    before any callback runs.
    '''
    __slots__ = ('_profiling', '_entries')

    def __init__(self, profiling: ProfilingLog) -> None:
        self._profiling = profiling
        self._entries: list[QueueEntry] = []

    def add(
        self,
        url: str,
        handle: RequestHandle,
        callback: Callback | None = None,
    ) -> QueueEntry:
        entry = QueueEntry(url=url, handle=handle, callback=callback)
        self._entries.append(entry)
        return entry

    def reset(self) -> None:
        self._entries = []

    async def process(self) -> bool:
        '''
        Run every queued request concurrently, then, in the order they were
        queued, record each outcome in the profiling log and hand its
        Response to its callback.

        Requests queued by a callback wait for the next call.

        Returns
        -------
        bool
            False if the queue was empty.

        Raises
        ------
        Exception
            The first unexpected error raised by a handle, once every other
            entry has completed and had its callback run.
        '''
        if not self._entries:
            return False

        entries, self._entries = self._entries, []
        logger.debug(f'processing {len(entries)} queued requests')

        outcomes = await asyncio.gather(
            *(entry.run() for entry in entries),
            return_exceptions=True,
        )

        first_error: BaseException | None = None
        for entry, outcome in zip(entries, outcomes):
            if isinstance(outcome, BaseException):
                logger.error(f'queued request to {entry.url} raised {outcome!r}')
                first_error = first_error or outcome
                continue
            response = entry.response
            if response is None:
                continue
            self._profiling.record(response.meta)
            if entry.callback is not None:
                await resolve_callback(entry.callback, response)

        if first_error is not None:
            raise first_error
        return True

    @property
    def entries(self) -> list[QueueEntry]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
