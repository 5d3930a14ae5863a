"""Human-in-the-loop waits with a hard deadline."""

import asyncio
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Awaitable, Callable, Optional, Sequence
from urllib.parse import urlparse

from loguru import logger

from ..constants import AUTHENTICATED_URL_PATTERNS, Intervals, Timeouts
from ..core.enums import InterventionState
from ..core.exceptions import InterventionCancelledError, InterventionTimeoutError
from .diagnostics import DiagnosticCapture

if TYPE_CHECKING:
    from ..browser.session import BrowserSession
    from ..selector.models import SelectorSpec
    from ..selector.resolver import SelectorResolver

SuccessCondition = Callable[[], Awaitable[bool]]

BANNER_WIDTH = 80


@dataclass
class InterventionSession:
    """One manual step; created per wait and discarded after resolution."""

    instruction: str
    max_wait_time: float
    check_interval: float
    success_condition: SuccessCondition
    started_at: float = field(default_factory=time.monotonic)
    state: InterventionState = InterventionState.WAITING
    checks: int = 0

    @property
    def deadline(self) -> float:
        return self.started_at + self.max_wait_time

    def remaining(self) -> float:
        return max(0.0, self.deadline - time.monotonic())

    def elapsed(self) -> float:
        return time.monotonic() - self.started_at


class InterventionCoordinator:
    """
    Suspend automation until an operator satisfies a condition.

    At most one session is active at a time. The success condition is polled
    every ``check_interval`` seconds on the controlling flow; a stop event set
    by a signal handler ends the wait within one interval.
    """

    def __init__(
        self,
        diagnostics: Optional[DiagnosticCapture] = None,
        stop_event: Optional[asyncio.Event] = None,
    ):
        """
        Initialize intervention coordinator.

        Args:
            diagnostics: Screenshot capture for start/success/timeout states
            stop_event: Optional stop signal
        """
        self.diagnostics = diagnostics
        self.stop_event = stop_event
        self.active: Optional[InterventionSession] = None

    async def await_manual_completion(
        self,
        instruction: str,
        success_condition: SuccessCondition,
        max_wait_time: float = Timeouts.MANUAL_STEP / 1000,
        check_interval: float = Intervals.INTERVENTION_CHECK,
    ) -> InterventionSession:
        """
        Wait for ``success_condition`` to hold.

        Args:
            instruction: What the operator must do
            success_condition: Async predicate against live browser state
            max_wait_time: Window in seconds
            check_interval: Seconds between checks

        Returns:
            The session in state SATISFIED

        Raises:
            InterventionTimeoutError: If the window passes without satisfaction
            InterventionCancelledError: If the stop event is set while waiting
        """
        if max_wait_time <= 0 or check_interval <= 0:
            raise ValueError("max_wait_time and check_interval must be positive")

        session = InterventionSession(instruction, max_wait_time, check_interval, success_condition)
        self.active = session
        try:
            self._announce(session)
            await self._capture("manual-intervention-start")
            logger.info("🔄 Automation paused - browser window stays interactive")

            while True:
                self._raise_if_cancelled(session)

                if session.checks % Intervals.INTERVENTION_PROGRESS_EVERY == 0:
                    self._log_remaining(session.remaining())
                session.checks += 1

                if await self._evaluate(session):
                    session.state = InterventionState.SATISFIED
                    logger.info(
                        f"✅ Manual intervention completed after {session.elapsed():.1f}s"
                    )
                    await self._capture("manual-intervention-success")
                    return session

                remaining = session.remaining()
                if remaining <= 0:
                    break
                await self._pause(min(check_interval, remaining))

            session.state = InterventionState.TIMED_OUT
            logger.error(f"❌ Manual intervention timed out: {instruction}")
            await self._capture("manual-intervention-timeout")
            raise InterventionTimeoutError(instruction, max_wait_time, session.checks)
        finally:
            self.active = None

    async def wait_for_authentication(
        self,
        session: "BrowserSession",
        patterns: Sequence[str] = AUTHENTICATED_URL_PATTERNS,
        max_wait_time: float = Timeouts.AUTHENTICATION / 1000,
        check_interval: float = Intervals.INTERVENTION_CHECK,
        resolver: Optional["SelectorResolver"] = None,
        marker: Optional["SelectorSpec"] = None,
    ) -> InterventionSession:
        """
        Wait for the operator to finish signing in.

        Satisfied when the current location contains one of ``patterns`` or,
        if given, when ``marker`` resolves on the page.
        """

        async def authenticated() -> bool:
            url = await session.current_location()
            if is_authenticated_url(url, patterns):
                return True
            if resolver is not None and marker is not None:
                outcome = await resolver.resolve(marker, timeout=min(1.0, check_interval))
                return outcome.is_success()
            return False

        return await self.await_manual_completion(
            "Please complete the sign-in process manually in the browser window",
            authenticated,
            max_wait_time=max_wait_time,
            check_interval=check_interval,
        )

    async def _evaluate(self, session: InterventionSession) -> bool:
        # A hanging predicate is cut off after one interval and counts as "not yet".
        budget = max(min(session.check_interval, session.remaining()), 0.001)
        try:
            return bool(await asyncio.wait_for(session.success_condition(), timeout=budget))
        except asyncio.TimeoutError:
            logger.debug("Success condition check timed out")
        except Exception as e:
            logger.debug(f"Success condition check failed: {e}")
        return False

    async def _pause(self, seconds: float) -> None:
        if self.stop_event is None:
            await asyncio.sleep(seconds)
            return
        try:
            await asyncio.wait_for(self.stop_event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass

    def _raise_if_cancelled(self, session: InterventionSession) -> None:
        if self.stop_event is not None and self.stop_event.is_set():
            logger.warning(f"🛑 Manual intervention cancelled: {session.instruction}")
            raise InterventionCancelledError(session.instruction)

    async def _capture(self, label: str) -> None:
        if self.diagnostics is not None:
            await self.diagnostics.capture(label)

    @staticmethod
    def _announce(session: InterventionSession) -> None:
        minutes, seconds = divmod(int(session.max_wait_time), 60)
        logger.warning("=" * BANNER_WIDTH)
        logger.warning("🤚 MANUAL INTERVENTION REQUIRED")
        logger.warning("=" * BANNER_WIDTH)
        logger.warning(f"📋 INSTRUCTION: {session.instruction}")
        logger.warning(f"⏰ TIME LIMIT: {minutes}:{seconds:02d}")
        logger.warning("📸 SCREENSHOT: check the screenshots folder for the current state")
        logger.warning("=" * BANNER_WIDTH)

    @staticmethod
    def _log_remaining(remaining: float) -> None:
        minutes, seconds = divmod(int(remaining), 60)
        logger.info(f"⏳ Time remaining: {minutes}:{seconds:02d}")


def is_authenticated_url(url: str, patterns: Sequence[str] = AUTHENTICATED_URL_PATTERNS) -> bool:
    """True if the path of ``url`` contains any authenticated-area pattern."""
    path = urlparse(url).path or ""
    return any(pattern in path for pattern in patterns)
