"""The five-stage page flow every import task passes through."""

import asyncio
from enum import Enum
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, Optional

from loguru import logger

from ..constants import IMPORT_PAGE_PATH, Delays
from ..core.exceptions import (
    ImportCompletionTimeoutError,
    InterventionTimeoutError,
    OperationCancelledError,
    PreviewValidationError,
)
from ..core.retry import RetryExecutor, RetryPolicy, navigation_policy, upload_policy
from ..selector.catalog import SelectorCatalog
from ..selector.resolver import SelectorResolver

if TYPE_CHECKING:
    from ..browser.session import BrowserSession
    from ..core.config.settings import ImportSettings
    from ..resilience.diagnostics import DiagnosticCapture
    from ..resilience.intervention import InterventionCoordinator
    from .tasks import ImportTask


class PipelineStage(str, Enum):
    """Pipeline stages, in execution order."""

    LOCATE_TARGET = "locate_target"
    SUBMIT_INPUT = "submit_input"
    VERIFY_READINESS = "verify_readiness"
    CONFIRM = "confirm"
    AWAIT_COMPLETION = "await_completion"

    @property
    def number(self) -> int:
        return list(PipelineStage).index(self) + 1

    @property
    def screenshot_suffix(self) -> str:
        return _SCREENSHOT_SUFFIXES[self]

    @classmethod
    def values(cls) -> list:
        """Return list of all enum values."""
        return [e.value for e in cls]


_SCREENSHOT_SUFFIXES = {
    PipelineStage.LOCATE_TARGET: "type-selected",
    PipelineStage.SUBMIT_INPUT: "file-uploaded",
    PipelineStage.VERIFY_READINESS: "data-validated",
    PipelineStage.CONFIRM: "import-initiated",
    PipelineStage.AWAIT_COMPLETION: "import-completed",
}


class ImportPipeline:
    """Drives one import task through the page flow using resolver and retries."""

    def __init__(
        self,
        session: "BrowserSession",
        resolver: SelectorResolver,
        executor: RetryExecutor,
        catalog: SelectorCatalog,
        settings: "ImportSettings",
        interventions: Optional["InterventionCoordinator"] = None,
        diagnostics: Optional["DiagnosticCapture"] = None,
        settle: Optional[Callable[[float], Awaitable[Any]]] = None,
    ):
        """
        Initialize import pipeline.

        Args:
            session: Shared browser session
            resolver: Selector resolver bound to ``session``
            executor: Retry executor
            catalog: Selector catalog
            settings: Import settings (timeouts, retry policy, base URL)
            interventions: Coordinator used when readiness is inconclusive
            diagnostics: Stage screenshot capture
            settle: Sleep used for UI settle delays
        """
        self.session = session
        self.resolver = resolver
        self.executor = executor
        self.catalog = catalog
        self.settings = settings
        self.interventions = interventions
        self.diagnostics = diagnostics
        self._settle = settle or asyncio.sleep
        self.policy: RetryPolicy = settings.retry_policy()
        self._location_before_confirm: Optional[str] = None
        self._handlers: Dict[PipelineStage, Callable[["ImportTask"], Awaitable[None]]] = {
            PipelineStage.LOCATE_TARGET: self.locate_target,
            PipelineStage.SUBMIT_INPUT: self.submit_input,
            PipelineStage.VERIFY_READINESS: self.verify_readiness,
            PipelineStage.CONFIRM: self.confirm,
            PipelineStage.AWAIT_COMPLETION: self.await_completion,
        }

    @property
    def import_url(self) -> str:
        return f"{self.settings.base_url}{IMPORT_PAGE_PATH}"

    async def run_stage(self, stage: PipelineStage, task: "ImportTask") -> None:
        """Run one stage for ``task`` and capture its stage screenshot."""
        logger.info(f"▶️ [{task.label}] {stage.value}")
        await self._handlers[stage](task)
        if self.diagnostics is not None:
            await self.diagnostics.capture(
                f"{task.label}-{stage.number:02d}-{stage.screenshot_suffix}"
            )

    # Stages

    async def locate_target(self, task: "ImportTask") -> None:
        """Open the import page and pick the import type."""
        url = self.import_url

        async def open_import_page() -> None:
            await self.session.navigate(url, self.settings.navigation_timeout / 1000)

        outcome = await self.executor.execute(
            open_import_page,
            navigation_policy(self.settings.max_retries),
            "navigate to import page",
        )
        outcome.unwrap()
        await self._settle(Delays.AFTER_NAVIGATION)

        await self._click("import.import_button", "click Import")
        await self._wait_for("import.type_modal", self.settings.validation_timeout / 1000)
        await self._click(
            "import.type_radio",
            f"select {task.import_type.value}",
            import_type=task.import_type.value,
        )
        await self._click("import.next_button", "confirm import type")
        logger.info(f"Selected import type: {task.import_type.value}")

    async def submit_input(self, task: "ImportTask") -> None:
        """Upload the task file and move on to the preview."""
        upload_timeout = self.settings.file_upload_timeout / 1000
        await self._wait_for("upload.drop_zone", upload_timeout)

        file_input = self.catalog.get("upload.file_input")

        async def upload() -> None:
            found = await self.resolver.resolve(file_input, upload_timeout, visible=False)
            handle = found.unwrap()
            await self.session.upload(handle, task.file_path)

        outcome = await self.executor.execute(
            upload, upload_policy(self.settings.max_retries), "file upload"
        )
        outcome.unwrap()
        await self._settle(Delays.AFTER_UPLOAD)

        await self._wait_for("upload.remove_file", upload_timeout)
        logger.info(f"📤 File uploaded: {task.file_path}")
        await self._click("import.next_button", "proceed to preview")

    async def verify_readiness(self, task: "ImportTask") -> None:
        """
        Wait for the preview to report valid data.

        Raises:
            PreviewValidationError: If error indicators are shown, or readiness
                stays inconclusive and no operator confirms it
        """
        import_type = task.import_type.value
        validation_timeout = self.settings.validation_timeout / 1000
        success = self.catalog.get("preview.validation_success")

        outcome = await self.resolver.resolve(success, validation_timeout)
        if outcome.is_failure():
            logger.warning("❌ Data validation indicator not shown")
            errors = await self.resolver.resolve(
                self.catalog.get("preview.error_indicators"), 2.0, visible=False
            )
            if errors.is_success():
                raise PreviewValidationError(import_type)

            if not (self.settings.manual_fallback and self.interventions is not None):
                raise PreviewValidationError(import_type, "validation check timed out")

            async def preview_valid() -> bool:
                return (await self.resolver.resolve(success, 1.0)).is_success()

            try:
                await self.interventions.await_manual_completion(
                    f"Review the {import_type} preview until it reports all data valid",
                    preview_valid,
                    max_wait_time=self.settings.auth_timeout / 1000,
                    check_interval=self.settings.auth_check_interval / 1000,
                )
            except InterventionTimeoutError as e:
                raise PreviewValidationError(import_type, "no operator confirmation") from e

        logger.info("✅ Data validation successful - ready to import")
        await self._click("import.next_button", "proceed to final step")

    async def confirm(self, task: "ImportTask") -> None:
        """Start the import."""
        await self._wait_for("confirmation.ready_text", self.settings.validation_timeout / 1000)
        self._location_before_confirm = await self.session.current_location()
        await self._click("confirmation.import_file_button", "click Import File")
        logger.info(f"🚀 Import initiated for {task.import_type.value}")

    async def await_completion(self, task: "ImportTask") -> None:
        """
        Wait for a completion indicator or a location change.

        Raises:
            ImportCompletionTimeoutError: If neither shows up in time
            OperationCancelledError: If the stop signal arrives while waiting
        """
        timeout = self.settings.import_completion_timeout / 1000
        indicators = self.catalog.get("confirmation.completion_indicators")
        before = self._location_before_confirm
        stop_event = self.executor.stop_event

        async def completed() -> bool:
            if before is not None and await self.session.current_location() != before:
                return True
            return (await self.resolver.resolve(indicators, 1.0)).is_success()

        if not await self.session.wait_for_condition(completed, timeout, stop_event=stop_event):
            if stop_event is not None and stop_event.is_set():
                logger.warning(f"🛑 Stopped waiting for {task.import_type.value} import to finish")
                raise OperationCancelledError(
                    f"Import completion wait cancelled for {task.import_type.value}",
                    context={"import_type": task.import_type.value},
                )
            raise ImportCompletionTimeoutError(task.import_type.value, timeout)
        logger.info(f"✅ Import completed: {task.import_type.value}")

    # Helpers

    async def _wait_for(self, path: str, timeout: float, **params: Any) -> Any:
        spec = self.catalog.get(path, **params)
        return (await self.resolver.resolve(spec, timeout)).unwrap()

    async def _click(self, path: str, label: str, **params: Any) -> None:
        spec = self.catalog.get(path, **params)
        timeout = self.settings.browser_timeout / 1000

        async def click() -> None:
            handle = (await self.resolver.resolve(spec, timeout)).unwrap()
            await self.session.click(handle)

        (await self.executor.execute(click, self.policy, label)).unwrap()
        await self._settle(Delays.AFTER_CLICK)
