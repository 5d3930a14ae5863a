"""Core building blocks: errors, outcomes, retries, configuration, logging."""

from .enums import ErrorKind, ImportType, InterventionState, TaskStatus, VerificationStatus
from .exceptions import (
    AuthenticationError,
    AutomationError,
    ConfigurationError,
    CsvContractError,
    CsvFileNotFoundError,
    ElementNotFoundError,
    ElementTimeoutError,
    EmptyInputError,
    ImportCompletionTimeoutError,
    ImportStageError,
    InsufficientRowsError,
    InterventionCancelledError,
    InterventionTimeoutError,
    InvalidTransitionError,
    MissingHeadersError,
    NoValidTasksError,
    OperationCancelledError,
    PreviewValidationError,
    RetryExhaustedError,
)
from .result import Failure, OperationOutcome, Success, fail, ok
from .retry import RetryExecutor, RetryPolicy

__all__ = [
    "AuthenticationError",
    "AutomationError",
    "ConfigurationError",
    "CsvContractError",
    "CsvFileNotFoundError",
    "ElementNotFoundError",
    "ElementTimeoutError",
    "EmptyInputError",
    "ErrorKind",
    "Failure",
    "ImportCompletionTimeoutError",
    "ImportStageError",
    "ImportType",
    "InsufficientRowsError",
    "InterventionCancelledError",
    "InterventionState",
    "InterventionTimeoutError",
    "InvalidTransitionError",
    "MissingHeadersError",
    "NoValidTasksError",
    "OperationCancelledError",
    "OperationOutcome",
    "PreviewValidationError",
    "RetryExecutor",
    "RetryExhaustedError",
    "RetryPolicy",
    "Success",
    "TaskStatus",
    "VerificationStatus",
    "fail",
    "ok",
]
