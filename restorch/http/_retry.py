'''
retry policy for transport-level failures

Raises
------
NoAttemptsLeftError
    _raised from the last transport error when all attempts are exhausted_
'''

import asyncio
import inspect
import random
from collections.abc import Awaitable, Callable
from typing import ParamSpec, TypeVar

import httpcore
import httpx

P = ParamSpec("P")
R = TypeVar("R")

RetryHook = Callable[[int, BaseException], object]


class NoAttemptsLeftError(Exception):
    ...


# httpx.RequestError covers transport errors plus undecodable bodies
# (DecodingError) and redirect loops (TooManyRedirects)
TRANSPORT_ERRORS = (
    ConnectionError,
    asyncio.TimeoutError,
    httpx.RequestError,
    httpcore.ConnectError,
)


class RetryPolicy:

    def __init__(
        self,
        *,
        attempts: int = 1,
        delay: float = 0.2,
        jitter: float = 0.0,
        on_retry: RetryHook | None = None,
    ) -> None:
        '''
        Parameters
        ----------
        attempts : int, optional
            The maximum number of attempts, by default 1 (no retries).
            Values below 1 are treated as 1.
        delay : float, optional
            Seconds to wait between attempts, by default 0.2
        jitter : float, optional
            The jitter factor to apply to the delay, by default 0.0
        on_retry : RetryHook | None, optional
            Called with the attempt number and the error before every
            retry, may be a coroutine function.
        '''
        self.attempts: int = max(1, attempts)
        self.delay: float = delay
        self.jitter: float = jitter
        self.on_retry: RetryHook | None = on_retry

    def get_timeout(self) -> float:
        base = self.delay

        if self.jitter:
            j = base * self.jitter
            base += random.uniform(-j, j)

        return max(0.0, base)

    async def call_with_retries(
        self,
        func: Callable[P, Awaitable[R]],
        *args,
        **kwargs
    ) -> R:
        last_exc: BaseException | None = None
        for attempt_no in range(1, self.attempts + 1):
            try:
                return await func(*args, **kwargs)
            except TRANSPORT_ERRORS as exc:
                if attempt_no == self.attempts:
                    raise NoAttemptsLeftError(
                        f"Failed after {self.attempts} attempts: {exc}"
                    ) from exc
                last_exc = exc
                if self.on_retry is not None:
                    result = self.on_retry(attempt_no, exc)
                    if inspect.isawaitable(result):
                        await result
                await asyncio.sleep(self.get_timeout())

        raise NoAttemptsLeftError(
            f"Failed after {self.attempts} attempts: {last_exc}"
        ) from last_exc
