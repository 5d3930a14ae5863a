"""Custom exception classes for Import-Bot."""

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from .enums import ErrorKind


class AutomationError(Exception):
    """Base exception for Import-Bot.

    Every error carries a kind, a human message and a context map so callers
    branch on ``kind`` instead of matching message text.
    """

    default_kind: ErrorKind = ErrorKind.IMPORT_STAGE

    def __init__(
        self,
        message: str,
        kind: Optional[ErrorKind] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize automation error.

        Args:
            message: Error message
            kind: Error kind (defaults to the class default)
            context: Additional error context (selectors, paths, timeouts...)
        """
        self.message = message
        self.kind = kind or self.default_kind
        self.context = context or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary."""
        return {
            "error": self.__class__.__name__,
            "kind": self.kind.value,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp,
        }

    def __str__(self) -> str:
        return f"{self.__class__.__name__} [{self.kind.value}]: {self.message}"


# Resolution errors
class ElementNotFoundError(AutomationError):
    """No candidate selector produced an element."""

    default_kind = ErrorKind.ELEMENT_NOT_FOUND

    def __init__(
        self,
        selector_name: str,
        tried_selectors: Optional[List[str]] = None,
        timeout: Optional[float] = None,
        kind: Optional[ErrorKind] = None,
    ):
        """
        Initialize element not found error.

        Args:
            selector_name: Logical name of the target
            tried_selectors: Candidate expressions that were attempted
            timeout: Total budget in seconds
            kind: Error kind override
        """
        self.selector_name = selector_name
        self.tried_selectors = tried_selectors or []
        message = f"Element '{selector_name}' not found."
        if self.tried_selectors:
            message += f" Tried: {', '.join(self.tried_selectors)}"
        super().__init__(
            message,
            kind=kind,
            context={
                "selector": selector_name,
                "tried_selectors": self.tried_selectors,
                "timeout": timeout,
            },
        )


class ElementTimeoutError(ElementNotFoundError):
    """Timeout budget exhausted before any candidate resolved."""

    default_kind = ErrorKind.ELEMENT_TIMEOUT


class RetryExhaustedError(AutomationError):
    """Operation kept failing until the retry policy ran out."""

    default_kind = ErrorKind.RETRY_EXHAUSTED

    def __init__(self, label: str, last_error: Optional[BaseException], attempts: int):
        """
        Initialize retry exhausted error.

        Args:
            label: Operation label
            last_error: Exception raised by the final attempt
            attempts: Number of attempts used
        """
        self.label = label
        self.last_error = last_error
        self.attempts = attempts
        super().__init__(
            f"{label} failed after {attempts} attempts: {last_error}",
            context={
                "label": label,
                "attempts": attempts,
                "last_error": str(last_error) if last_error else None,
                "last_error_type": type(last_error).__name__ if last_error else None,
            },
        )


# Intervention / cancellation errors
class InterventionTimeoutError(AutomationError):
    """Human step was not completed within its window."""

    default_kind = ErrorKind.INTERVENTION_TIMEOUT

    def __init__(self, instruction: str, max_wait_time: float, checks: int = 0):
        self.instruction = instruction
        self.max_wait_time = max_wait_time
        super().__init__(
            f"Manual intervention timed out after {max_wait_time:.0f}s: {instruction}",
            context={"instruction": instruction, "timeout": max_wait_time, "checks": checks},
        )


class OperationCancelledError(AutomationError):
    """An external stop signal interrupted the run."""

    default_kind = ErrorKind.CANCELLED

    def __init__(self, message: str = "Operation cancelled", context: Optional[Dict] = None):
        super().__init__(message, context=context)


class InterventionCancelledError(OperationCancelledError):
    """Stop signal received while waiting for the operator."""

    def __init__(self, instruction: str):
        self.instruction = instruction
        super().__init__(
            f"Manual intervention cancelled: {instruction}",
            context={"instruction": instruction},
        )


# Contract validation errors
class CsvContractError(AutomationError):
    """Base class for CSV contract violations."""

    def __init__(self, message: str, path: Optional[str], import_type: Optional[str], **extra):
        self.path = path
        self.import_type = import_type
        context = {"path": path, "import_type": import_type}
        context.update(extra)
        super().__init__(message, context=context)


class CsvFileNotFoundError(CsvContractError):
    """No candidate file exists for the import type."""

    default_kind = ErrorKind.FILE_NOT_FOUND

    def __init__(self, path: str, import_type: Optional[str] = None):
        super().__init__(f"CSV file not found: {path}", path, import_type)


class EmptyInputError(CsvContractError):
    """Candidate file has zero bytes."""

    default_kind = ErrorKind.EMPTY_INPUT

    def __init__(self, path: str, import_type: Optional[str] = None):
        super().__init__(f"CSV file is empty: {path}", path, import_type, byte_size=0)


class InsufficientRowsError(CsvContractError):
    """File lacks a header plus at least one data row."""

    default_kind = ErrorKind.INSUFFICIENT_ROWS

    def __init__(self, path: str, line_count: int, import_type: Optional[str] = None):
        self.line_count = line_count
        super().__init__(
            f"CSV file needs a header and at least one data row ({line_count} lines): {path}",
            path,
            import_type,
            line_count=line_count,
        )


class MissingHeadersError(CsvContractError):
    """Required header tokens are not contained in any observed header."""

    default_kind = ErrorKind.MISSING_HEADERS

    def __init__(
        self,
        path: str,
        missing: Iterable[str],
        observed: Iterable[str],
        import_type: Optional[str] = None,
    ):
        self.missing = sorted(missing)
        self.observed = list(observed)
        super().__init__(
            f"CSV file is missing required headers {self.missing} "
            f"(found: {', '.join(self.observed)}): {path}",
            path,
            import_type,
            missing=self.missing,
            observed=self.observed,
        )


# Pipeline errors
class ImportStageError(AutomationError):
    """A pipeline stage could not complete."""

    default_kind = ErrorKind.IMPORT_STAGE

    def __init__(self, message: str, stage: Optional[str] = None, context: Optional[Dict] = None):
        self.stage = stage
        merged = {"stage": stage}
        merged.update(context or {})
        super().__init__(message, context=merged)


class PreviewValidationError(ImportStageError):
    """Preview step reported invalid data."""

    def __init__(self, import_type: str, reason: str = "validation errors found on preview"):
        super().__init__(
            f"Data validation failed for {import_type}: {reason}",
            stage="verify_readiness",
            context={"import_type": import_type},
        )


class ImportCompletionTimeoutError(ImportStageError):
    """No completion indicator appeared within the completion window."""

    def __init__(self, import_type: str, timeout: float):
        super().__init__(
            f"Import completion timeout for {import_type}",
            stage="await_completion",
            context={"import_type": import_type, "timeout": timeout},
        )


# Run-level errors
class AuthenticationError(AutomationError):
    """Sign-in did not complete - fatal for the whole run."""

    default_kind = ErrorKind.AUTHENTICATION

    def __init__(self, message: str = "Authentication failed", context: Optional[Dict] = None):
        super().__init__(message, context=context)


class ConfigurationError(AutomationError):
    """Configuration error occurred."""

    default_kind = ErrorKind.CONFIGURATION

    def __init__(self, message: str = "Configuration error", context: Optional[Dict] = None):
        super().__init__(message, context=context)


class NoValidTasksError(AutomationError):
    """Contract validation left nothing to import."""

    default_kind = ErrorKind.NO_VALID_TASKS

    def __init__(self, source: str, skipped: Optional[Dict[str, str]] = None):
        super().__init__(
            f"No valid CSV files found for import in {source}",
            context={"source": source, "skipped": skipped or {}},
        )


class InvalidTransitionError(AutomationError):
    """Task status would move backwards or leave a terminal state."""

    default_kind = ErrorKind.INVALID_TRANSITION

    def __init__(self, task_label: str, current: str, target: str):
        super().__init__(
            f"Invalid status transition for {task_label}: {current} -> {target}",
            context={"task": task_label, "from": current, "to": target},
        )
