"""Bounded retry execution with linear backoff."""

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, TypeVar

from loguru import logger
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_incrementing,
)

from ..constants import Retries
from .exceptions import OperationCancelledError, RetryExhaustedError
from .result import OperationOutcome, fail, ok

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """
    Retry policy for one operation.

    The delay after failed attempt ``i`` (1-based) is
    ``base_delay * (1 + backoff_factor * (i - 1))``; with the default factor
    of 1.0 that is ``base_delay * i``.
    """

    max_attempts: int = Retries.MAX_ATTEMPTS
    base_delay: float = Retries.BASE_DELAY_SECONDS
    backoff_factor: float = Retries.BACKOFF_FACTOR

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1 (got {self.max_attempts})")
        if self.base_delay < 0:
            raise ValueError(f"base_delay must be >= 0 (got {self.base_delay})")
        if self.backoff_factor <= 0:
            raise ValueError(f"backoff_factor must be > 0 (got {self.backoff_factor})")

    def delay_after(self, attempt: int) -> float:
        """Delay in seconds that follows failed attempt ``attempt`` (1-based)."""
        return self.base_delay * (1 + self.backoff_factor * (attempt - 1))

    def wait_strategy(self) -> wait_incrementing:
        """Tenacity wait strategy equivalent to :meth:`delay_after`."""
        return wait_incrementing(start=self.base_delay, increment=self.base_delay * self.backoff_factor)

    def with_attempts(self, max_attempts: int) -> "RetryPolicy":
        """Copy of this policy with a different attempt ceiling."""
        return RetryPolicy(max_attempts, self.base_delay, self.backoff_factor)


def navigation_policy(max_attempts: int = Retries.MAX_ATTEMPTS) -> RetryPolicy:
    """Policy for page navigation (longer settle time)."""
    return RetryPolicy(max_attempts, Retries.NAVIGATION_DELAY_SECONDS)


def upload_policy(max_attempts: int = Retries.MAX_ATTEMPTS) -> RetryPolicy:
    """Policy for file upload."""
    return RetryPolicy(max_attempts, Retries.UPLOAD_DELAY_SECONDS)


class RetryExecutor:
    """Runs a fallible async operation under a :class:`RetryPolicy`."""

    def __init__(
        self,
        stop_event: Optional[asyncio.Event] = None,
        sleep: Optional[Callable[[float], Awaitable[Any]]] = None,
    ):
        """
        Initialize retry executor.

        Args:
            stop_event: Optional stop signal checked at attempt boundaries
            sleep: Optional sleep override (defaults to an interruptible sleep)
        """
        self.stop_event = stop_event
        self._sleep = sleep or self._interruptible_sleep

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        policy: RetryPolicy,
        label: str = "operation",
    ) -> OperationOutcome:
        """
        Attempt ``operation`` up to ``policy.max_attempts`` times.

        Args:
            operation: Zero-argument coroutine factory
            policy: Retry policy
            label: Operation label for logs and errors

        Returns:
            Success with the value, or Failure(RETRY_EXHAUSTED)

        Raises:
            OperationCancelledError: If the stop event is set between attempts
        """
        started = time.monotonic()
        retrying = AsyncRetrying(
            stop=stop_after_attempt(policy.max_attempts),
            wait=policy.wait_strategy(),
            retry=retry_if_exception_type(Exception),
            before_sleep=self._before_sleep(label),
            sleep=self._sleep,
            reraise=False,
        )

        value: Any = None
        attempt_number = 0
        try:
            async for attempt in retrying:
                self._raise_if_cancelled(label)
                attempt_number = attempt.retry_state.attempt_number
                with attempt:
                    value = await self._run_attempt(
                        operation, label, attempt_number, policy.max_attempts
                    )
        except RetryError as e:
            last_error = e.last_attempt.exception()
            attempts = e.last_attempt.attempt_number
            self._raise_if_cancelled(label)
            logger.error(f"💥 {label} exhausted {attempts} attempts: {last_error}")
            return fail(RetryExhaustedError(label, last_error, attempts), attempts)

        return ok(value, attempt_number, time.monotonic() - started)

    async def _run_attempt(
        self,
        operation: Callable[[], Awaitable[T]],
        label: str,
        attempt_number: int,
        max_attempts: int,
    ) -> T:
        attempt_started = time.monotonic()
        try:
            result = await operation()
        except Exception as e:
            duration_ms = (time.monotonic() - attempt_started) * 1000
            logger.warning(
                f"❌ {label} failed on attempt {attempt_number}/{max_attempts} "
                f"({duration_ms:.0f}ms): {e}"
            )
            raise
        duration_ms = (time.monotonic() - attempt_started) * 1000
        logger.info(f"✅ {label} completed in {duration_ms:.0f}ms (attempt {attempt_number})")
        return result

    @staticmethod
    def _before_sleep(label: str) -> Callable[[RetryCallState], None]:
        def log_wait(retry_state: RetryCallState) -> None:
            delay = retry_state.next_action.sleep if retry_state.next_action else 0
            logger.info(f"⏳ Waiting {delay:.2f}s before retrying {label}...")

        return log_wait

    def _raise_if_cancelled(self, label: str) -> None:
        if self.stop_event is not None and self.stop_event.is_set():
            raise OperationCancelledError(f"{label} cancelled", context={"label": label})

    async def _interruptible_sleep(self, seconds: float) -> None:
        if self.stop_event is None:
            await asyncio.sleep(seconds)
            return
        try:
            await asyncio.wait_for(self.stop_event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass
