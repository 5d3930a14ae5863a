"""Import task records and run preparation."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, FrozenSet, List, Optional, Sequence, Union

from loguru import logger

from ..constants import HEADER_CONTRACTS
from ..core.enums import ImportType, TaskStatus
from ..core.exceptions import CsvContractError, InvalidTransitionError, NoValidTasksError
from .csv_validator import CsvContractValidator, CsvValidationResult

_ALLOWED = {
    TaskStatus.PENDING: {TaskStatus.RUNNING},
    TaskStatus.RUNNING: {TaskStatus.COMPLETED, TaskStatus.FAILED},
    TaskStatus.COMPLETED: set(),
    TaskStatus.FAILED: set(),
}


@dataclass
class ImportTask:
    """One file to import; status only moves Pending → Running → Completed/Failed."""

    index: int
    import_type: ImportType
    file_path: str
    header_contract: FrozenSet[str]
    validation: Optional[CsvValidationResult] = None
    status: TaskStatus = TaskStatus.PENDING
    stage: Optional[str] = None
    error: Optional[Dict] = None
    verification: Dict = field(default_factory=dict)
    started_at: Optional[float] = None
    duration: Optional[float] = None

    @property
    def label(self) -> str:
        """``{NN}-{type}`` prefix used for screenshots and logs."""
        return f"{self.index:02d}-{self.import_type.value}"

    def transition(self, target: TaskStatus) -> None:
        """
        Move to ``target``.

        Raises:
            InvalidTransitionError: If the move is backwards or leaves a terminal state
        """
        if target not in _ALLOWED[self.status]:
            raise InvalidTransitionError(self.label, self.status.value, target.value)
        self.status = target

    def to_dict(self) -> Dict:
        return {
            "index": self.index,
            "type": self.import_type.value,
            "file": self.file_path,
            "status": self.status.value,
            "stage": self.stage,
            "error": self.error,
            "line_count": self.validation.line_count if self.validation else None,
            "duration": round(self.duration, 3) if self.duration is not None else None,
        }


def prepare_tasks(
    source: Union[str, Path],
    import_types: Sequence[ImportType],
    validator: Optional[CsvContractValidator] = None,
    contracts: Optional[Dict[str, FrozenSet[str]]] = None,
) -> List[ImportTask]:
    """
    Build one task per import type whose file passes its contract.

    Invalid files are skipped with a warning.

    Raises:
        NoValidTasksError: If no file passes
    """
    validator = validator or CsvContractValidator()
    contracts = contracts or HEADER_CONTRACTS
    tasks: List[ImportTask] = []
    skipped: Dict[str, str] = {}

    for import_type in import_types:
        contract = frozenset(contracts[import_type.value])
        try:
            result = validator.validate(source, contract, import_type.value)
        except CsvContractError as e:
            skipped[import_type.value] = e.message
            logger.warning(f"⚠️ Skipping {import_type.value}: {e.message}")
            continue

        tasks.append(
            ImportTask(
                index=len(tasks) + 1,
                import_type=import_type,
                file_path=result.path,
                header_contract=contract,
                validation=result,
            )
        )
        logger.info(
            f"✅ {import_type.value}: {result.line_count} lines, headers: {', '.join(result.headers)}"
        )

    if not tasks:
        raise NoValidTasksError(str(source), skipped)

    logger.info(
        f"📋 Prepared {len(tasks)} import tasks: {', '.join(t.import_type.value for t in tasks)}"
    )
    return tasks
