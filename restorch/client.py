'''
**restorch.client**

The RestClient issues requests through httpx either one at a time, retrying
transport failures, or in batches run concurrently through the request
queue of its ClientContext. Every request resolves to a `Response`, failed
requests included.

    async with RestClient(config=ClientConfig(retries_max=3)) as client:
        response = await client.get('https://httpbin.org/get', {'q': 'x'})
        if response.is_success and response.http_code == 200:
            payload = response.json()
'''
import functools
import logging
import time
from collections.abc import Mapping
from typing import Any, Self

import httpx

from restorch import http
from restorch._context import ClientContext
from restorch._options import (
    RequestOptions,
    append_url_params,
    array_to_url_params,
    check_options,
    default_options,
    merge_options,
    to_request_kwargs,
    to_send_kwargs,
)
from restorch._profiling import ProfilingEntry
from restorch._queue import Callback, QueueEntry, resolve_callback
from restorch._response import Response

logger = logging.getLogger(__name__)


def _with_options(options: Any, **values: Any) -> RequestOptions:
    checked = check_options(options)
    checked.update(values)
    return checked


class RestClient:
    VERSION = 'v1.0'

    array_to_url_params = staticmethod(array_to_url_params)

    def __init__(
        self,
        options: Mapping[str, Any] | None = None,
        *,
        context: ClientContext | None = None,
        config: http.ClientConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        '''
        Parameters
        ----------
        options : Mapping[str, Any] | None, optional
            Options replacing the defaults for every request of this client
        context : ClientContext | None, optional
            Shared service config, profiling log and request queue,
            a private one is created when omitted
        config : http.ClientConfig | None, optional
            Retry, queueing and slow response settings
        transport : httpx.AsyncBaseTransport | None, optional
            Replaces the default `http.RestTransport`
        '''
        self.config: http.ClientConfig = config or http.ClientConfig()
        self.context: ClientContext = context or ClientContext()
        self.request_options: RequestOptions = merge_options(
            default_options(self.VERSION),
            options,
            replace_headers=True,
        )
        self.response: Response | None = None
        self._client: httpx.AsyncClient = http.create_http_client(
            self.config, transport
        )

    def set_auth(self, username: str, password: str, auth_type: str = 'basic') -> None:
        '''
        Authenticate every request of this client.

        Parameters
        ----------
        username : str
        password : str
        auth_type : str, optional
            'basic' or 'digest', by default 'basic'
        '''
        self.request_options['auth'] = (username, password)
        self.request_options['auth_type'] = auth_type

    def set_referer(self, referer: str) -> None:
        self.request_options['referer'] = referer

    def set_headers(self, headers: Mapping[str, str], overwrite: bool = False) -> None:
        if overwrite:
            self.request_options['headers'] = dict(headers)
        else:
            self.request_options['headers'].update(headers)

    async def make_request(
        self,
        url: str,
        options: Mapping[str, Any] | None = None,
        callback: Callback | None = None,
    ) -> Response | Any | None:
        '''
        Build a request from the client options and `options`, then either
        send it or, when queueing is enabled, add it to the context's queue.

        Parameters
        ----------
        url : str
        options : Mapping[str, Any] | None, optional
            Per-call options, these win over the client options except for
            headers, which are merged
        callback : Callback | None, optional
            Called with the Response, may be a coroutine function

        Returns
        -------
        Response | Any | None
            The Response, or what the callback returned. None when the
            request was queued or could not be built.
        '''
        if not url:
            logger.error('no URL passed into make_request')
            return None

        merged = merge_options(self.request_options, options)
        try:
            request = self._client.build_request(url=url, **to_request_kwargs(merged))
        except httpx.InvalidURL as exc:
            logger.error(f'unable to build request for {url!r}: {exc}')
            return None

        send_kwargs = to_send_kwargs(merged)

        if self.config.queue_enabled:
            self.queue_request(request, url, callback, send_kwargs)
            return None

        response = await self.execute_request(request, send_kwargs)
        if callback is not None:
            return await resolve_callback(callback, response)
        return response

    async def _send(
        self,
        request: httpx.Request,
        send_kwargs: Mapping[str, Any],
        queued: bool = False,
    ) -> Response:
        started = time.perf_counter()
        response = await self._client.send(request, **send_kwargs)
        return Response.from_httpx(
            response,
            total_time=time.perf_counter() - started,
            queued=queued,
        )

    def _on_retry(self, url: str, attempt_no: int, exc: BaseException) -> None:
        self.context.profiling.record(Response.from_error(url, exc).meta)
        if self.config.log_retries:
            logger.warning(
                f'retrying request ({attempt_no}/{self.config.retries_max}) - '
                f'({type(exc).__name__}) {exc} :: {url}'
            )

    async def execute_request(
        self,
        request: httpx.Request,
        send_kwargs: Mapping[str, Any] | None = None,
    ) -> Response:
        '''
        Send a request, retrying transport failures up to
        `config.retries_max` attempts in total. Once attempts run out the
        last error is logged and returned as a failed Response.

        Parameters
        ----------
        request : httpx.Request
        send_kwargs : Mapping[str, Any] | None, optional
            auth and redirect settings for `httpx.AsyncClient.send`

        Returns
        -------
        Response
        '''
        url = str(request.url)
        policy = http.RetryPolicy(
            attempts=self.config.retries_max,
            delay=self.config.retry_delay,
            jitter=self.config.retry_jitter,
            on_retry=functools.partial(self._on_retry, url),
        )

        started = time.perf_counter()
        try:
            response = await policy.call_with_retries(
                self._send, request, send_kwargs or {}
            )
        except http.NoAttemptsLeftError as exc:
            error = exc.__cause__ or exc
            logger.error(
                f'max retries ({policy.attempts}) reached - '
                f'({type(error).__name__}) {error} :: {url}'
            )
            response = Response.from_error(
                url, error, total_time=time.perf_counter() - started
            )

        slow_response = self.config.slow_response
        if slow_response and slow_response < response.total_time:
            logger.warning(
                f'slow service response ({response.total_time}s) from {url}'
            )

        self.context.profiling.record(response.meta)
        self.response = response
        return response

    async def _send_queued(
        self,
        request: httpx.Request,
        send_kwargs: Mapping[str, Any],
    ) -> Response:
        started = time.perf_counter()
        try:
            return await self._send(request, send_kwargs, queued=True)
        except http.TRANSPORT_ERRORS as exc:
            logger.warning(
                f'queued request failed - ({type(exc).__name__}) {exc} :: {request.url}'
            )
            return Response.from_error(
                str(request.url),
                exc,
                total_time=time.perf_counter() - started,
                queued=True,
            )

    def queue_request(
        self,
        request: httpx.Request,
        url: str,
        callback: Callback | None = None,
        send_kwargs: Mapping[str, Any] | None = None,
    ) -> QueueEntry:
        handle = functools.partial(self._send_queued, request, send_kwargs or {})
        return self.context.queue.add(url, handle, callback)

    def init_queue(self) -> None:
        self.context.init_queue()

    async def process_queue(self) -> bool:
        return await self.context.process_queue()

    async def get(
        self,
        url: str,
        url_params: Mapping[str, Any] | str | None = None,
        callback: Callback | None = None,
        options: Mapping[str, Any] | None = None,
    ) -> Response | Any | None:
        '''
        GET request, `url_params` is appended to the url, a mapping is
        encoded with repeating keys for list values.
        '''
        url = append_url_params(url, url_params)
        return await self.make_request(
            url, _with_options(options, method='GET'), callback
        )

    async def post(
        self,
        url: str,
        data: Any = None,
        callback: Callback | None = None,
        options: Mapping[str, Any] | None = None,
    ) -> Response | Any | None:
        '''
        POST request, a mapping `data` is form encoded, `str` or `bytes`
        is sent as is. Use the `json` option for a JSON body.
        '''
        return await self.custom('POST', url, data, callback, options)

    async def put(
        self,
        url: str,
        data: Any = None,
        callback: Callback | None = None,
        options: Mapping[str, Any] | None = None,
    ) -> Response | Any | None:
        return await self.custom('PUT', url, data, callback, options)

    async def delete(
        self,
        url: str,
        data: Any = None,
        callback: Callback | None = None,
        options: Mapping[str, Any] | None = None,
    ) -> Response | Any | None:
        return await self.custom('DELETE', url, data, callback, options)

    async def head(
        self,
        url: str,
        callback: Callback | None = None,
        options: Mapping[str, Any] | None = None,
    ) -> Response | Any | None:
        return await self.make_request(
            url, _with_options(options, nobody=True), callback
        )

    async def options(
        self,
        url: str,
        callback: Callback | None = None,
        options: Mapping[str, Any] | None = None,
    ) -> Response | Any | None:
        return await self.custom('OPTIONS', url, None, callback, options)

    async def custom(
        self,
        method: str,
        url: str,
        data: Any = None,
        callback: Callback | None = None,
        options: Mapping[str, Any] | None = None,
    ) -> Response | Any | None:
        '''
        Request with any method. `data` is sent as the body whenever it is
        given, including for methods that usually carry none.
        '''
        values: dict[str, Any] = {'method': method}
        if data is not None:
            values['data'] = data
        return await self.make_request(
            url, _with_options(options, **values), callback
        )

    def get_service_config(self, service_name: str) -> Any | None:
        return self.context.get_service_config(service_name)

    def get_profiling(self) -> list[ProfilingEntry]:
        return self.context.get_profiling()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *args) -> None:
        await self.aclose()
