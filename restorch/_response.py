'''
**restorch.Response**

The value returned for every request, successful or not. `meta` holds what
the transport reported about the exchange (url, status, timings, success
flag), `header` holds the response headers parsed from the raw header text,
and `data` holds the decoded body.
'''
import json
import logging
from collections.abc import Mapping
from typing import Any, Self

import httpx

logger = logging.getLogger(__name__)


def parse_header(blob: str) -> dict[str, str]:
    '''
    Parse a raw header block into a label -> value mapping.

    Every line is split on its first colon only and nothing is trimmed, so
    `Server: gunicorn` yields `{'Server': ' gunicorn'}`. Lines without a colon
    (the status line, blank lines) are skipped and a repeated label keeps
    its last value.

    Parameters
    ----------
    blob : str

    Returns
    -------
    dict[str, str]
    '''
    headers: dict[str, str] = {}
    for line in blob.splitlines():
        label, sep, value = line.partition(':')
        if sep:
            headers[label] = value
    return headers


def render_header(response: httpx.Response) -> str:
    '''
    Rebuild the raw header block (status line plus `Name: value` lines)
    from an httpx response, as it appeared on the wire.
    '''
    lines = [
        f'{response.http_version} {response.status_code} {response.reason_phrase}'
    ]
    for name, value in response.headers.raw:
        lines.append(f'{name.decode("latin-1")}: {value.decode("latin-1")}')
    return '\r\n'.join(lines)


class Response:
    __slots__ = ('meta', 'header', 'data')

    def __init__(
        self,
        meta: Mapping[str, Any],
        data: str | None = None,
        header: str | None = None,
    ) -> None:
        self.meta: dict[str, Any] = dict(meta)
        self.data: str | None = data
        self.header: dict[str, str] = {}
        if header is not None:
            self.header = parse_header(header)

    def get(self, key: str, default: Any = None) -> Any:
        '''
        Look a field up in `meta`, then in `header`. Unknown keys are logged
        as a warning and return `default`.

        Parameters
        ----------
        key : str
        default : Any, optional

        Returns
        -------
        Any
        '''
        if key in self.meta:
            return self.meta[key]

        if key in self.header:
            return self.header[key]

        logger.warning(f'reference to invalid response key - {key}')
        return default

    def get_meta(self, key: str) -> Any:
        return self.meta.get(key)

    def get_header(self, label: str) -> str | None:
        return self.header.get(label)

    @property
    def is_success(self) -> bool:
        return bool(self.meta.get('is_success'))

    @property
    def http_code(self) -> int | None:
        return self.meta.get('http_code')

    @property
    def url(self) -> str | None:
        return self.meta.get('url')

    @property
    def total_time(self) -> float:
        return self.meta.get('total_time') or 0.0

    @property
    def error(self) -> str | None:
        return self.meta.get('error')

    def json(self) -> Any:
        '''
        Decode the body as JSON. A missing or non-JSON body (an HTML error
        page, say) is logged as a warning and yields None.
        '''
        if self.data is None:
            return None
        try:
            return json.loads(self.data)
        except json.JSONDecodeError as exc:
            logger.warning(f'response body from {self.url} is not JSON: {exc}')
            return None

    @classmethod
    def from_httpx(
        cls,
        response: httpx.Response,
        *,
        total_time: float,
        queued: bool = False,
    ) -> Self:
        '''
        Build a Response from a completed httpx response.

        Parameters
        ----------
        response : httpx.Response
            Must already be read.
        total_time : float
            Seconds from send to the last body byte.
        queued : bool, optional
            Whether the request ran as part of a batch.

        Returns
        -------
        Response
        '''
        meta: dict[str, Any] = {
            'url': str(response.url),
            'http_code': response.status_code,
            'content_type': response.headers.get('content-type'),
            'http_version': response.http_version,
            'redirect_count': len(response.history),
            'size_download': len(response.content),
            'total_time': round(total_time, 6),
            'connect_time': 0.0,
            'appconnect_time': 0.0,
            'pretransfer_time': 0.0,
            'starttransfer_time': 0.0,
        }
        meta.update(response.extensions.get('timings', {}))
        meta['is_success'] = True
        meta['queue'] = queued

        return cls(meta, response.text, render_header(response))

    @classmethod
    def from_error(
        cls,
        url: str,
        exc: BaseException,
        *,
        total_time: float = 0.0,
        queued: bool = False,
    ) -> Self:
        meta = {
            'url': url,
            'is_success': False,
            'error_code': type(exc).__name__,
            'error': str(exc) or repr(exc),
            'total_time': round(total_time, 6),
            'queue': queued,
        }
        return cls(meta)

    def __repr__(self) -> str:
        if self.is_success:
            return f'<Response [{self.http_code}] {self.url}>'
        return f'<Response [failed: {self.meta.get("error_code")}] {self.url}>'
