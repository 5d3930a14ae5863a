#!/usr/bin/env python3
"""
Import-Bot - Resilient CSV import automation.

Main entry point for the application.
"""

import argparse
import asyncio
import logging
import signal
import sys
from typing import List, Optional

from dotenv import load_dotenv

from import_bot.browser import BrowserManager, DomSnapshotter, InteractionRecorder
from import_bot.core.config import ImportSettings, load_settings
from import_bot.core.exceptions import (
    AutomationError,
    ConfigurationError,
    NoValidTasksError,
    OperationCancelledError,
)
from import_bot.core.logger import setup_structured_logging
from import_bot.core.retry import RetryExecutor
from import_bot.resilience import DiagnosticCapture, InterventionCoordinator
from import_bot.selector import SelectorCatalog, SelectorResolver
from import_bot.services import (
    AuthService,
    HistoryVerifier,
    ImportPipeline,
    RunSummary,
    TaskOrchestrator,
    build_report,
    prepare_tasks,
    write_report,
)

EXIT_OK = 0
EXIT_FATAL = 1


def setup_signal_handlers(loop: asyncio.AbstractEventLoop, stop_event: asyncio.Event) -> None:
    """
    Setup graceful shutdown handlers.

    The first signal sets the stop event so waits end at the next poll or
    retry boundary; a second signal exits immediately.
    """
    logger = logging.getLogger(__name__)

    def handle_signal(signum: int) -> None:
        if not stop_event.is_set():
            logger.info(f"Received signal {signum}, stopping after the current step...")
            stop_event.set()
        else:
            logger.warning("Second signal received, exiting immediately")
            sys.exit(EXIT_FATAL)

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, handle_signal, sig)
        except NotImplementedError:
            # Event loops without signal support (Windows)
            signal.signal(
                sig, lambda signum, frame: loop.call_soon_threadsafe(handle_signal, signum)
            )


def run_dry(settings: ImportSettings) -> int:
    """Validate CSV contracts only; no browser is started."""
    logger = logging.getLogger(__name__)
    logger.info("Dry run mode - validating CSV contracts only")
    try:
        tasks = prepare_tasks(settings.csv_file_path, settings.import_type_list)
    except NoValidTasksError as e:
        logger.error(f"❌ {e.message}")
        for import_type, reason in e.context.get("skipped", {}).items():
            logger.error(f"   {import_type}: {reason}")
        return EXIT_FATAL

    for task in tasks:
        logger.info(f"   {task.label}: {task.file_path}")
    logger.info("Configuration valid ✅")
    return EXIT_OK


async def run_import(settings: ImportSettings) -> int:
    """
    Run the full import.

    Returns:
        0 when the task loop ran to the end (whatever the per-task outcome),
        1 on a fatal error or cancellation
    """
    logger = logging.getLogger(__name__)
    logger.info("🚀 Starting CSV Import Automation")
    logger.info(f"Configuration: {settings.masked()}")

    stop_event = asyncio.Event()
    setup_signal_handlers(asyncio.get_running_loop(), stop_event)

    summary = RunSummary()
    skipped: dict = {}
    diagnostics = DiagnosticCapture(
        screenshots_dir=settings.screenshots_dir, enabled=settings.screenshot_on_error
    )
    exit_code = EXIT_FATAL

    try:
        tasks = prepare_tasks(settings.csv_file_path, settings.import_type_list)
        summary = RunSummary(tasks=tasks)
        settings.credentials()

        async with BrowserManager(settings) as browser:
            session = await browser.new_session()
            diagnostics.attach(session)

            recorder: Optional[InteractionRecorder] = None
            if settings.record_interactions and browser.page is not None:
                recorder = InteractionRecorder(settings.debug_dir)
                await recorder.start(browser.page)

            snapshotter = DomSnapshotter(settings.debug_dir) if settings.debug_capture else None
            resolver = SelectorResolver(session, snapshotter)
            executor = RetryExecutor(stop_event)
            catalog = SelectorCatalog(settings.selectors_file)
            interventions = InterventionCoordinator(diagnostics, stop_event)

            auth = AuthService(
                session, resolver, executor, catalog, interventions, settings, diagnostics
            )
            pipeline = ImportPipeline(
                session, resolver, executor, catalog, settings, interventions, diagnostics
            )
            verifier = (
                HistoryVerifier(session, settings.base_url) if settings.verify_history else None
            )

            orchestrator = TaskOrchestrator(
                auth,
                pipeline,
                diagnostics=diagnostics,
                verifier=verifier,
                stop_event=stop_event,
            )
            try:
                summary = await orchestrator.run(tasks)
            finally:
                summary = orchestrator.summary
                if recorder is not None:
                    await recorder.stop()
                await resolver.drain()

        exit_code = EXIT_OK
        logger.info("✅ CSV Import Automation finished")

    except NoValidTasksError as e:
        logger.error(f"❌ {e.message}")
        skipped = e.context.get("skipped", {})
        summary.fatal_error = e.to_dict()
    except OperationCancelledError as e:
        logger.warning(f"🛑 Run cancelled: {e.message}")
        summary.fatal_error = summary.fatal_error or e.to_dict()
    except AutomationError as e:
        logger.error(f"❌ CSV Import Automation failed: {e}")
        summary.fatal_error = summary.fatal_error or e.to_dict()
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        summary.fatal_error = summary.fatal_error or {"error": type(e).__name__, "message": str(e)}
    finally:
        if summary.finished_at is None:
            summary.finish()
        for line in summary.render_table().splitlines():
            logger.info(line)
        report = build_report(summary, settings.masked(), diagnostics.captures, skipped)
        write_report(report, settings.logs_dir)

    return exit_code


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Import-Bot - Resilient CSV import automation")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate CSV files against their contracts and exit without opening a browser",
    )
    parser.add_argument("--data", help="CSV file or directory (overrides CSV_FILE_PATH)")
    parser.add_argument("--types", help="Comma-separated import types (overrides IMPORT_TYPES)")
    parser.add_argument(
        "--headless", action="store_true", default=None, help="Run the browser headless"
    )
    parser.add_argument(
        "--debug", action="store_true", help="Capture DOM snapshots and debug logs"
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (overrides LOG_LEVEL)",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    load_dotenv()

    try:
        settings = load_settings(
            csv_file_path=args.data,
            import_types=args.types,
            headless=args.headless,
            debug_capture=True if args.debug else None,
            log_level="DEBUG" if args.debug else args.log_level,
        )
    except ConfigurationError as e:
        setup_structured_logging("INFO")
        logging.getLogger(__name__).error(f"❌ {e.message}")
        return EXIT_FATAL

    setup_structured_logging(
        settings.log_level,
        json_format=settings.log_format == "json",
        logs_dir=settings.logs_dir,
        debug=args.debug,
    )

    if args.dry_run:
        return run_dry(settings)

    try:
        return asyncio.run(run_import(settings))
    except KeyboardInterrupt:
        logging.getLogger(__name__).warning("Interrupted")
        return EXIT_FATAL


if __name__ == "__main__":
    sys.exit(main())
