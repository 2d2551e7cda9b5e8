'''
**restorch.http**
---------

The transport side of restorch: an httpx transport that records phase
timings, the retry policy for transport-level failures, and the settings
used to build the underlying `httpx.AsyncClient`.
'''
from restorch.http._client import ClientConfig, create_http_client
from restorch.http._retry import (
    TRANSPORT_ERRORS,
    NoAttemptsLeftError,
    RetryPolicy,
)
from restorch.http._transport import (
    RequestTimer,
    RestTransport,
    default_socket_options,
)

__all__ = [
    'ClientConfig',
    'create_http_client',
    'TRANSPORT_ERRORS',
    'NoAttemptsLeftError',
    'RetryPolicy',
    'RequestTimer',
    'RestTransport',
    'default_socket_options',
]
