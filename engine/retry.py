"""Retry policy for transient engine failures."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TypeVar

import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
)

logger = structlog.get_logger(__name__)

T = TypeVar("T")


def fixed_backoff(delay_seconds: float) -> Callable[[int], float]:
    """Same delay after every failed attempt."""
    return lambda attempt: delay_seconds


@dataclass
class RetryPolicy:
    """Fixed-attempt retry with a pluggable backoff.

    ``backoff`` maps the number of the attempt that just failed (1-based)
    to the delay in seconds before the next one.
    """

    max_attempts: int = 3
    backoff: Callable[[int], float] = field(default_factory=lambda: fixed_backoff(2.0))
    retry_on: tuple[type[BaseException], ...] = (Exception,)

    @classmethod
    def fixed(cls, max_attempts: int = 3, delay_seconds: float = 2.0) -> RetryPolicy:
        return cls(max_attempts=max_attempts, backoff=fixed_backoff(delay_seconds))

    def _wait(self, state: RetryCallState) -> float:
        return self.backoff(state.attempt_number)

    def _log_retry(self, state: RetryCallState) -> None:
        exc = state.outcome.exception() if state.outcome else None
        logger.warning(
            "Attempt failed, retrying",
            attempt=state.attempt_number,
            max_attempts=self.max_attempts,
            error=str(exc),
        )

    async def call(self, fn: Callable[..., Awaitable[T]], *args: object, **kwargs: object) -> T:
        """Await ``fn(*args, **kwargs)``, retrying per policy. Re-raises the last error."""
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=self._wait,
            retry=retry_if_exception_type(self.retry_on),
            before_sleep=self._log_retry,
            reraise=True,
        ):
            with attempt:
                result = await fn(*args, **kwargs)
        return result
