"""Centralized enum definitions for Import-Bot."""

from enum import Enum


class ImportType(str, Enum):
    """Kinds of data the target application can import."""
    SCHEMES = "schemes"
    PROJECTS = "projects"
    INSPECTORS = "inspectors"

    @classmethod
    def values(cls) -> list:
        """Return list of all enum values."""
        return [e.value for e in cls]


class TaskStatus(str, Enum):
    """Lifecycle of a single import task."""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        """Completed and Failed are never re-entered."""
        return self in (TaskStatus.COMPLETED, TaskStatus.FAILED)

    @classmethod
    def values(cls) -> list:
        """Return list of all enum values."""
        return [e.value for e in cls]


class InterventionState(str, Enum):
    """States of a manual intervention session."""
    WAITING = "waiting"
    SATISFIED = "satisfied"
    TIMED_OUT = "timed_out"


class ErrorKind(str, Enum):
    """Discriminator carried by every automation error."""
    ELEMENT_NOT_FOUND = "element_not_found"
    ELEMENT_TIMEOUT = "element_timeout"
    RETRY_EXHAUSTED = "retry_exhausted"
    INTERVENTION_TIMEOUT = "intervention_timeout"
    CANCELLED = "cancelled"
    FILE_NOT_FOUND = "file_not_found"
    EMPTY_INPUT = "empty_input"
    INSUFFICIENT_ROWS = "insufficient_rows"
    MISSING_HEADERS = "missing_headers"
    IMPORT_STAGE = "import_stage"
    AUTHENTICATION = "authentication"
    CONFIGURATION = "configuration"
    NO_VALID_TASKS = "no_valid_tasks"
    INVALID_TRANSITION = "invalid_transition"


class VerificationStatus(str, Enum):
    """Outcome of the post-import history check."""
    PASS = "PASS"
    WARNING = "WARNING"
    FAIL = "FAIL"
    MISSING = "MISSING"
    SKIPPED = "SKIPPED"
