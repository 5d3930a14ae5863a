"""Resolve a selector spec to an element handle within a bounded budget."""

import asyncio
import time
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Set

from loguru import logger

from ..constants import Timeouts
from ..core.enums import ErrorKind
from ..core.exceptions import ElementTimeoutError
from ..core.result import OperationOutcome, fail, ok
from .models import SelectorSpec

if TYPE_CHECKING:
    from ..browser.dom_snapshot import DomSnapshotter
    from ..browser.session import BrowserSession


class SelectorResolver:
    """
    Try each candidate of a spec in order until one resolves.

    The total budget is split evenly across candidates and every wait is
    hard-bounded by its slice and by the overall deadline, so resolution
    never exceeds the budget by more than scheduling jitter.
    """

    def __init__(
        self,
        session: "BrowserSession",
        snapshotter: Optional["DomSnapshotter"] = None,
    ):
        """
        Initialize selector resolver.

        Args:
            session: Browser collaborator used to query candidates
            snapshotter: Optional DOM snapshotter (debug mode)
        """
        self.session = session
        self.snapshotter = snapshotter
        self._pending: Set[asyncio.Task] = set()

    async def resolve(
        self,
        spec: SelectorSpec,
        timeout: float = Timeouts.SELECTOR_WAIT / 1000,
        visible: bool = True,
    ) -> OperationOutcome:
        """
        Resolve ``spec`` to the first candidate that matches.

        Args:
            spec: Ordered candidates for one UI target
            timeout: Total budget in seconds
            visible: Require visibility instead of mere presence

        Returns:
            Success(handle) or Failure(ELEMENT_TIMEOUT / ELEMENT_NOT_FOUND)
        """
        started = time.monotonic()
        deadline = started + timeout
        slice_budget = timeout / len(spec)
        tried: List[str] = []
        query_errors = 0

        self._schedule_snapshot(f"before-{spec.name}", spec, {"timeout": timeout})

        for candidate in spec.candidates:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            budget = min(slice_budget, remaining)
            tried.append(candidate.describe())
            try:
                handle = await asyncio.wait_for(
                    self.session.find_candidate(candidate, budget, visible), timeout=budget
                )
            except asyncio.TimeoutError:
                logger.debug(f"Selector candidate timed out: {candidate.describe()}")
                continue
            except Exception as e:
                query_errors += 1
                logger.debug(f"Selector candidate failed: {candidate.describe()}: {e}")
                continue

            if handle is not None:
                elapsed = time.monotonic() - started
                if len(tried) > 1:
                    logger.info(f"Using fallback selector for '{spec.name}': {candidate.describe()}")
                self._schedule_snapshot(
                    f"after-{spec.name}", spec, {"matched": candidate.describe()}
                )
                return ok(handle, 1, elapsed)

        kind = (
            ErrorKind.ELEMENT_NOT_FOUND
            if tried and query_errors == len(tried)
            else ErrorKind.ELEMENT_TIMEOUT
        )
        logger.warning(f"⚠️ Element '{spec.name}' not resolved within {timeout:.1f}s")
        self._schedule_snapshot(f"failed-{spec.name}", spec, {"tried": tried})
        return fail(ElementTimeoutError(spec.name, tried, timeout, kind=kind))

    def _schedule_snapshot(self, step: str, spec: SelectorSpec, context: Dict[str, Any]) -> None:
        if self.snapshotter is None:
            return
        task = asyncio.ensure_future(self.snapshotter.capture(self.session, step, spec, context))
        self._pending.add(task)
        task.add_done_callback(self._snapshot_done)

    def _snapshot_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.warning(f"DOM snapshot failed: {error}")

    @property
    def pending_snapshots(self) -> int:
        return len(self._pending)

    async def drain(self, timeout: float = Timeouts.SNAPSHOT_DRAIN_SECONDS) -> None:
        """Wait for background snapshots, cancelling any still running after ``timeout``."""
        if not self._pending:
            return
        pending = list(self._pending)
        done, not_done = await asyncio.wait(pending, timeout=timeout)
        for task in not_done:
            task.cancel()
        if not_done:
            logger.warning(f"Cancelled {len(not_done)} unfinished DOM snapshots")
            await asyncio.gather(*not_done, return_exceptions=True)
        logger.debug(f"Drained {len(done)} DOM snapshots")
