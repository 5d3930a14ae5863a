"""End-of-run JSON report."""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Union

from loguru import logger

from ..browser.session import timestamp_slug
from .orchestrator import RunSummary
from .tasks import ImportTask


def task_entry(task: ImportTask) -> Dict[str, Any]:
    """Report entry for one task: ``{status, expected, found, accuracy, issues[]}`` plus details."""
    verification = task.verification or {}
    issues = list(verification.get("issues", []))
    if task.error:
        issues.insert(0, str(task.error.get("message", "")))
    return {
        "status": task.status.value,
        "expected": task.validation.data_rows if task.validation else None,
        "found": verification.get("found"),
        "accuracy": verification.get("accuracy"),
        "issues": issues,
        "verification": verification.get("status"),
        "index": task.index,
        "file": task.file_path,
        "stage": task.stage,
        "error": task.error,
        "duration": round(task.duration, 3) if task.duration is not None else None,
    }


def build_report(
    summary: RunSummary,
    settings: Optional[Dict[str, Any]] = None,
    screenshots: Iterable[str] = (),
    skipped: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    return {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "started_at": summary.started_at,
        "finished_at": summary.finished_at,
        "settings": settings or {},
        "summary": {
            "total": summary.total,
            "completed": summary.completed,
            "failed": summary.failed,
        },
        "fatal_error": summary.fatal_error,
        "skipped": skipped or {},
        "tasks": {task.import_type.value: task_entry(task) for task in summary.tasks},
        "screenshots": list(screenshots),
    }


def write_report(report: Dict[str, Any], logs_dir: Union[str, Path] = "logs") -> Optional[Path]:
    """
    Write ``report`` to ``{logs_dir}/import-report-{timestamp}.json``.

    Returns:
        Report path, or None if it could not be written
    """
    path = Path(logs_dir) / f"import-report-{timestamp_slug()}.json"
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(report, indent=2, default=str), encoding="utf-8")
    except OSError as e:
        logger.error(f"Failed to write run report: {e}")
        return None
    logger.info(f"📝 Report saved: {path}")
    return path
