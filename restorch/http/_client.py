import dataclasses as dc

import httpx

from restorch.http._transport import RestTransport


def _base_limits() -> httpx.Limits:
    return httpx.Limits(
        max_connections=100,
        max_keepalive_connections=20,
        keepalive_expiry=15,
    )


@dc.dataclass(slots=True)
class ClientConfig:
    '''
    Behaviour settings for a RestClient. Per-request transport settings
    (timeouts, headers, auth) live in the options map instead.

    `retry_delay` and `slow_response` are in seconds, `slow_response=None`
    disables slow response logging.
    '''
    retries_max: int = 1
    retry_delay: float = 0.2
    retry_jitter: float = 0.0
    log_retries: bool = False
    slow_response: float | None = None
    queue_enabled: bool = False
    limits: httpx.Limits = dc.field(default_factory=_base_limits)
    http2: bool = False
    trust_env: bool = False
    verify: bool = True


def create_http_client(
    config: ClientConfig,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    '''
    Create the httpx client a RestClient sends through. Everything else
    (headers, timeouts, redirects, auth) is set per request.

    Parameters
    ----------
    config : ClientConfig
    transport : httpx.AsyncBaseTransport | None, optional
        Replaces the default `RestTransport`

    Returns
    -------
    httpx.AsyncClient
    '''
    if transport is None:
        transport = RestTransport(
            http2=config.http2,
            trust_env=config.trust_env,
            verify=config.verify,
        )

    return httpx.AsyncClient(
        transport=transport,
        limits=config.limits,
        trust_env=config.trust_env,
    )
