"""Operation outcomes for resolution and retry layers.

Provides a typed way to hand back success or failure without letting the
failure escape as an exception until the caller decides to ``unwrap`` it.
"""

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from .enums import ErrorKind
from .exceptions import AutomationError

T = TypeVar("T")


@dataclass(frozen=True)
class Success(Generic[T]):
    """Represents a successful operation."""

    value: T
    attempts: int = 1
    elapsed: float = 0.0

    def is_success(self) -> bool:
        """Check if result is successful."""
        return True

    def is_failure(self) -> bool:
        """Check if result is a failure."""
        return False

    def unwrap(self) -> T:
        """Get the success value."""
        return self.value

    def unwrap_or(self, default: T) -> T:
        """Get the success value or a default."""
        return self.value

    def __repr__(self) -> str:
        return f"Success({self.value!r}, attempts={self.attempts}, elapsed={self.elapsed:.3f}s)"


@dataclass(frozen=True)
class Failure:
    """Represents a failed operation."""

    kind: ErrorKind
    error: AutomationError
    attempts: int = 1

    def is_success(self) -> bool:
        """Check if result is successful."""
        return False

    def is_failure(self) -> bool:
        """Check if result is a failure."""
        return True

    def unwrap(self):
        """
        Raise the carried error.

        Raises:
            AutomationError: Always, as this is a failure
        """
        raise self.error

    def unwrap_or(self, default: T) -> T:
        """
        Get the default value (success value is not available).

        Args:
            default: Default value to return

        Returns:
            The default value
        """
        return default

    def __repr__(self) -> str:
        return f"Failure(kind={self.kind.value}, attempts={self.attempts}, error={self.error.message!r})"


# Type alias for outcomes
OperationOutcome = Union[Success[T], Failure]


def ok(value: T, attempts: int = 1, elapsed: float = 0.0) -> Success[T]:
    """Create a successful outcome."""
    return Success(value, attempts, elapsed)


def fail(error: AutomationError, attempts: int = 1) -> Failure:
    """Create a failed outcome from a typed error."""
    return Failure(error.kind, error, attempts)
