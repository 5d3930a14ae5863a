"""Import services: contract validation, sign-in, pipeline and orchestration."""

from .auth_service import AuthService
from .csv_validator import CsvContractValidator, CsvValidationResult
from .history_verifier import HistoryCheck, HistoryVerifier, evaluate_history
from .import_pipeline import ImportPipeline, PipelineStage
from .orchestrator import RunSummary, TaskOrchestrator
from .report import build_report, write_report
from .tasks import ImportTask, prepare_tasks

__all__ = [
    "AuthService",
    "CsvContractValidator",
    "CsvValidationResult",
    "HistoryCheck",
    "HistoryVerifier",
    "ImportPipeline",
    "ImportTask",
    "PipelineStage",
    "RunSummary",
    "TaskOrchestrator",
    "build_report",
    "evaluate_history",
    "prepare_tasks",
    "write_report",
]
