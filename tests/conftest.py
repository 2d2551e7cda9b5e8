"""
Pytest configuration and shared fixtures for the test suite.
"""

from collections.abc import Callable

import httpx
import pytest

from restorch import ClientConfig, ClientContext, RestClient
from restorch.http import RestTransport


# ============================================================================
# Transport Fixtures
# ============================================================================

def status_from_path(request: httpx.Request) -> httpx.Response:
    """Answer with the status code found in a `/status/<code>` path, 200 otherwise."""
    parts = request.url.path.strip("/").split("/")
    status = 200
    if len(parts) == 2 and parts[0] == "status":
        status = int(parts[1])
    return httpx.Response(
        status,
        headers={"Server": "mock/1.0", "X-Request-Method": request.method},
        text="ok",
    )


def undecodable_body(request: httpx.Request) -> httpx.Response:
    """Claim gzip encoding over a body that is not gzip."""
    return httpx.Response(
        200,
        headers={"Content-Encoding": "gzip"},
        stream=httpx.ByteStream(b"not gzip"),
    )


def redirect_to_self(request: httpx.Request) -> httpx.Response:
    return httpx.Response(302, headers={"Location": str(request.url)})


class RecordingHandler:
    """
    MockTransport handler that records every request it receives and
    delegates the answer to `respond`.
    """

    def __init__(
        self,
        respond: Callable[[httpx.Request], httpx.Response] = status_from_path,
    ) -> None:
        self.requests: list[httpx.Request] = []
        self.respond = respond

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.respond(request)

    @property
    def count(self) -> int:
        return len(self.requests)


@pytest.fixture
def handler() -> RecordingHandler:
    """Create a recording handler for the mock transport."""
    return RecordingHandler()


@pytest.fixture
def undecodable_handler() -> RecordingHandler:
    """Recording handler whose response bodies fail to decode."""
    return RecordingHandler(undecodable_body)


@pytest.fixture
def redirect_loop_handler() -> RecordingHandler:
    """Recording handler that redirects every request back to itself."""
    return RecordingHandler(redirect_to_self)


@pytest.fixture
def fast_config() -> ClientConfig:
    """Client configuration with no delay between retries."""
    return ClientConfig(retries_max=3, retry_delay=0.0)


@pytest.fixture
def make_client() -> Callable[..., RestClient]:
    """Factory building RestClients that talk to a MockTransport handler."""

    def factory(
        handler: Callable,
        *,
        config: ClientConfig | None = None,
        context: ClientContext | None = None,
        options: dict | None = None,
    ) -> RestClient:
        transport = RestTransport(inner=httpx.MockTransport(handler))
        return RestClient(
            options,
            context=context,
            config=config,
            transport=transport,
        )

    return factory
