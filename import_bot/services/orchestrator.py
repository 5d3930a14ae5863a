"""Sequential execution of import tasks with per-task failure isolation."""

import asyncio
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Protocol

from loguru import logger

from ..core.enums import TaskStatus
from ..core.exceptions import AutomationError, OperationCancelledError
from .import_pipeline import PipelineStage
from .tasks import ImportTask

if TYPE_CHECKING:
    from ..resilience.diagnostics import DiagnosticCapture
    from .history_verifier import HistoryVerifier


class Authenticator(Protocol):
    async def authenticate(self) -> None: ...


class StageRunner(Protocol):
    async def run_stage(self, stage: PipelineStage, task: ImportTask) -> None: ...


@dataclass
class RunSummary:
    """Advisory end-of-run summary."""

    tasks: List[ImportTask] = field(default_factory=list)
    started_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    finished_at: Optional[str] = None
    fatal_error: Optional[Dict[str, Any]] = None

    @property
    def completed(self) -> int:
        return sum(1 for t in self.tasks if t.status is TaskStatus.COMPLETED)

    @property
    def failed(self) -> int:
        return sum(1 for t in self.tasks if t.status is TaskStatus.FAILED)

    @property
    def total(self) -> int:
        return len(self.tasks)

    def finish(self) -> None:
        self.finished_at = datetime.now(timezone.utc).isoformat()

    def render_table(self) -> str:
        """Plain-text summary table for the console."""
        header = f"{'#':<4}{'TYPE':<12}{'STATUS':<11}{'STAGE':<18}{'CHECK':<9}DETAIL"
        lines = ["=" * 72, "IMPORT SUMMARY", "=" * 72, header, "-" * 72]
        for task in self.tasks:
            check = task.verification.get("status", "-") if task.verification else "-"
            detail = ""
            if task.error:
                detail = str(task.error.get("message", ""))[:40]
            elif task.verification.get("issues"):
                detail = "; ".join(task.verification["issues"])[:40]
            lines.append(
                f"{task.index:<4}{task.import_type.value:<12}{task.status.value:<11}"
                f"{(task.stage or '-'):<18}{check:<9}{detail}"
            )
        lines.append("-" * 72)
        lines.append(f"Completed: {self.completed}  Failed: {self.failed}  Total: {self.total}")
        if self.fatal_error:
            lines.append(f"Fatal: {self.fatal_error.get('message')}")
        lines.append("=" * 72)
        return "\n".join(lines)


class TaskOrchestrator:
    """
    Authenticate once, then run each task through every pipeline stage in turn.

    Tasks share one browser session, so they never run concurrently. A failure
    inside a task marks that task FAILED and the run moves on; failures to
    authenticate and cancellation end the run.
    """

    def __init__(
        self,
        authenticator: Authenticator,
        pipeline: StageRunner,
        diagnostics: Optional["DiagnosticCapture"] = None,
        verifier: Optional["HistoryVerifier"] = None,
        stop_event: Optional[asyncio.Event] = None,
    ):
        """
        Initialize task orchestrator.

        Args:
            authenticator: Performs the one-off sign-in
            pipeline: Runs a single stage for a task
            diagnostics: Error screenshot capture
            verifier: Optional post-import history check
            stop_event: Optional stop signal checked between stages
        """
        self.authenticator = authenticator
        self.pipeline = pipeline
        self.diagnostics = diagnostics
        self.verifier = verifier
        self.stop_event = stop_event
        self.summary = RunSummary()

    async def run(self, tasks: List[ImportTask]) -> RunSummary:
        """
        Run ``tasks`` in order.

        Raises:
            AutomationError: If authentication fails (fatal)
            OperationCancelledError: If a stop signal arrives
        """
        self.summary = RunSummary(tasks=list(tasks))
        try:
            await self.authenticator.authenticate()
        except AutomationError as e:
            logger.error(f"❌ Authentication failed: {e.message}")
            self.summary.fatal_error = e.to_dict()
            self.summary.finish()
            raise

        total = len(tasks)
        try:
            for task in tasks:
                self._raise_if_cancelled()
                logger.info(f"📂 Starting import {task.index}/{total}: {task.import_type.value}")
                logger.info(f"📄 File: {task.file_path}")
                await self._run_task(task)
        except OperationCancelledError as e:
            logger.warning(f"🛑 {e.message}")
            self.summary.fatal_error = e.to_dict()
            self.summary.finish()
            raise

        self.summary.finish()
        logger.info(
            f"🎉 Finished {total} imports: {self.summary.completed} completed, "
            f"{self.summary.failed} failed"
        )
        return self.summary

    async def _run_task(self, task: ImportTask) -> None:
        task.transition(TaskStatus.RUNNING)
        task.started_at = time.time()
        started = time.monotonic()
        try:
            for stage in PipelineStage:
                self._raise_if_cancelled()
                task.stage = stage.value
                await self.pipeline.run_stage(stage, task)
        except OperationCancelledError as e:
            task.duration = time.monotonic() - started
            task.error = e.to_dict()
            task.transition(TaskStatus.FAILED)
            raise
        except Exception as e:
            task.duration = time.monotonic() - started
            task.error = e.to_dict() if isinstance(e, AutomationError) else {
                "error": type(e).__name__,
                "message": str(e),
            }
            task.transition(TaskStatus.FAILED)
            logger.error(
                f"❌ Failed import {task.index}: {task.import_type.value} "
                f"at {task.stage} - {e}"
            )
            if self.diagnostics is not None:
                await self.diagnostics.capture_error(
                    f"error-import-{task.label}", e, {"stage": task.stage}
                )
            logger.warning("⏭️ Continuing with next import...")
            return

        task.duration = time.monotonic() - started
        task.transition(TaskStatus.COMPLETED)
        logger.info(f"✅ Completed import {task.index}: {task.import_type.value}")

        if self.verifier is not None:
            check = await self.verifier.verify(task)
            task.verification = check.to_dict()

    def _raise_if_cancelled(self) -> None:
        if self.stop_event is not None and self.stop_event.is_set():
            raise OperationCancelledError("Import run cancelled by operator")
