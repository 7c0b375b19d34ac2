"""
Error kinds and the result type returned by engine operations.

Every public engine operation reports its outcome as a Result instead of
printing or raising, so a presentation layer can decide how to render it.
The error classes are still real exceptions: value constructors raise
them, and Result.unwrap() re-raises the carried error.
"""

from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar

T = TypeVar('T')


class CalendarError(Exception):
    """Base exception for calendar engine failures."""

    kind = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(CalendarError):
    """Malformed or missing field, start after end, unknown property."""

    kind = "validation"


class ConflictError(CalendarError):
    """An insert or edit would create an overlapping interval."""

    kind = "conflict"

    def __init__(self, message: str, conflicting: Any = None):
        super().__init__(message)
        self.conflicting = conflicting


class NotFoundError(CalendarError):
    """Unknown calendar name or unmatched event lookup."""

    kind = "not_found"


class DuplicateError(CalendarError):
    """Calendar name taken, or the target event already exists."""

    kind = "duplicate"


@dataclass(frozen=True)
class Result(Generic[T]):
    """
    Outcome of an engine operation.

    Either ``value`` is set and ``error`` is None, or ``error`` carries a
    CalendarError describing why nothing was changed.
    """
    value: Optional[T] = None
    error: Optional[CalendarError] = None

    @classmethod
    def success(cls, value: Optional[T] = None) -> 'Result[T]':
        return cls(value=value)

    @classmethod
    def failure(cls, error: CalendarError) -> 'Result[T]':
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def kind(self) -> Optional[str]:
        return self.error.kind if self.error else None

    @property
    def message(self) -> str:
        return self.error.message if self.error else ""

    def unwrap(self) -> T:
        """Return the value, or raise the carried error."""
        if self.error is not None:
            raise self.error
        return self.value

    def __bool__(self) -> bool:
        return self.ok
