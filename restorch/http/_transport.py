import logging
import socket
import time

import httpx

logger = logging.getLogger(__name__)


def default_socket_options() -> list[tuple]:
    '''
    cross platform socket options for TCP connections

    Returns
    -------
    list[SockOpt]
    '''
    opts = []

    if hasattr(socket, "TCP_NODELAY"):
        opts.append((socket.IPPROTO_TCP, socket.TCP_NODELAY, 1))

    if hasattr(socket, "SO_KEEPALIVE"):
        opts.append((socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1))

    if hasattr(socket, "TCP_KEEPIDLE"):
        opts.append((socket.IPPROTO_TCP, socket.TCP_KEEPIDLE, 60))

    if hasattr(socket, "TCP_KEEPINTVL"):
        opts.append((socket.IPPROTO_TCP, socket.TCP_KEEPINTVL, 10))

    return opts


class RequestTimer:
    '''
    httpcore trace hook that turns connection events into phase timings,
    in seconds since the request was handed to the transport.

    The keys follow the names curl uses for the same phases so profiling
    output stays familiar.
    '''
    _PHASES = {
        'connect_tcp.complete': 'connect_time',
        'start_tls.complete': 'appconnect_time',
        'send_request_headers.started': 'pretransfer_time',
        'receive_response_headers.complete': 'starttransfer_time',
    }

    def __init__(self) -> None:
        self._started = time.perf_counter()
        self.timings: dict[str, float] = dict.fromkeys(
            self._PHASES.values(), 0.0
        )

    async def __call__(self, event_name: str, info: dict) -> None:
        for suffix, key in self._PHASES.items():
            if event_name.endswith(suffix):
                self.timings[key] = round(time.perf_counter() - self._started, 6)
                return


class RestTransport(httpx.AsyncBaseTransport):
    '''
    Wraps an httpx transport and attaches a `RequestTimer` to every request,
    the collected timings are exposed as `response.extensions['timings']`.

    Pass `inner` to swap the network transport, e.g. `httpx.MockTransport`.
    '''
    def __init__(
        self,
        *,
        http2: bool = False,
        trust_env: bool = False,
        verify: bool = True,
        inner: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._inner: httpx.AsyncBaseTransport = inner or httpx.AsyncHTTPTransport(
            http2=http2,
            socket_options=default_socket_options(),
            verify=verify,
            trust_env=trust_env,
        )

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        timer = RequestTimer()
        request.extensions = {**request.extensions, 'trace': timer}
        logger.debug(f'Sending request: {request.method} {request.url}')
        response = await self._inner.handle_async_request(request)
        response.extensions['timings'] = timer.timings
        return response

    async def aclose(self) -> None:
        await self._inner.aclose()
