"""Post-import check of the import-history table."""

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Sequence

from loguru import logger

from ..constants import IMPORT_PAGE_PATH
from ..core.enums import VerificationStatus

if TYPE_CHECKING:
    from ..browser.session import BrowserSession
    from .tasks import ImportTask

TYPE_COLUMN = "Type"
STATUS_COLUMN = "Status"
ROWS_COLUMN = "Total Rows processed"
FILE_COLUMN = "File Name"


@dataclass
class HistoryCheck:
    """Advisory comparison of one import against its source file."""

    status: VerificationStatus
    expected: int
    found: int = 0
    accuracy: int = 0
    issues: List[str] = field(default_factory=list)
    import_status: Optional[str] = None
    file_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        return data


def _parse_count(value: str) -> int:
    digits = "".join(ch for ch in value if ch.isdigit())
    return int(digits) if digits else 0


def evaluate_history(
    rows: Sequence[Mapping[str, str]],
    import_type: str,
    expected_rows: int,
    file_name: Optional[str] = None,
) -> HistoryCheck:
    """
    Compare the latest history record for ``import_type`` with the expected row count.

    The first matching row is treated as the most recent. A FAIL (not
    completed, or row count mismatch) takes precedence over a WARNING
    (file name mismatch).
    """
    matches = [r for r in rows if r.get(TYPE_COLUMN, "").strip().lower() == import_type.lower()]
    if not matches:
        return HistoryCheck(
            VerificationStatus.MISSING,
            expected=expected_rows,
            issues=[f"No {import_type} import found in history"],
        )

    latest = matches[0]
    found = _parse_count(latest.get(ROWS_COLUMN, ""))
    import_status = latest.get(STATUS_COLUMN, "")
    recorded_name = latest.get(FILE_COLUMN, "")
    issues: List[str] = []
    status = VerificationStatus.PASS

    if "completed" not in import_status.lower():
        status = VerificationStatus.FAIL
        issues.append(f"Status: {import_status or 'unknown'}")

    if found != expected_rows:
        status = VerificationStatus.FAIL
        issues.append(f"Row count mismatch: expected {expected_rows}, processed {found}")

    if file_name and file_name not in recorded_name:
        if status is VerificationStatus.PASS:
            status = VerificationStatus.WARNING
        issues.append(f"File name mismatch: {recorded_name}")

    if found == expected_rows:
        accuracy = 100
    elif expected_rows > 0:
        accuracy = round(found / expected_rows * 100)
    else:
        accuracy = 0

    return HistoryCheck(
        status,
        expected=expected_rows,
        found=found,
        accuracy=accuracy,
        issues=issues,
        import_status=import_status,
        file_name=recorded_name,
    )


class HistoryVerifier:
    """Reads the import-history table after each completed import."""

    def __init__(self, session: "BrowserSession", base_url: str):
        self.session = session
        self.history_url = f"{base_url}{IMPORT_PAGE_PATH}"

    async def verify(self, task: "ImportTask") -> HistoryCheck:
        """
        Check ``task`` against the history table.

        Never raises: a failure to read the table is reported as SKIPPED.
        """
        expected = task.validation.data_rows if task.validation else 0
        try:
            await self.session.navigate(self.history_url)
            rows = await self.session.table_rows()
        except Exception as e:
            logger.warning(f"Could not read import history for {task.label}: {e}")
            return HistoryCheck(
                VerificationStatus.SKIPPED, expected=expected, issues=[f"History unavailable: {e}"]
            )

        check = evaluate_history(rows, task.import_type.value, expected, Path(task.file_path).name)
        icon = "✅" if check.status is VerificationStatus.PASS else "⚠️"
        logger.info(
            f"{icon} History check {task.label}: {check.status.value} "
            f"({check.found}/{check.expected} rows, {check.accuracy}%)"
        )
        return check
