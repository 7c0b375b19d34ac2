"""
Event value type for Wallclock Calendar.

An Event is an immutable description of one occurrence. Its timestamps are
naive wall-clock values whose meaning depends on the timezone of the
calendar that owns it. Editing produces a new Event; the store swaps the
old value for the new one.
"""

from dataclasses import dataclass, replace
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Optional, Union

from .errors import ValidationError


ALL_DAY_START = time(0, 0)
ALL_DAY_END = time(23, 59)


class Visibility(str, Enum):
    """Who may see an event. Unset visibility is represented by None."""
    PUBLIC = "public"
    PRIVATE = "private"

    @classmethod
    def parse(cls, value: Union[str, 'Visibility', None]) -> Optional['Visibility']:
        """
        Convert a user-supplied value to a Visibility.

        Args:
            value: "public", "private" (any case), a Visibility, or None.

        Returns:
            The matching Visibility, or None for an unset value.

        Raises:
            ValidationError: if the value names no visibility.
        """
        if value is None or isinstance(value, Visibility):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValidationError(
                f"Invalid event type: {value!r} (expected 'public' or 'private')"
            ) from None


class EventProperty(Enum):
    """Editable event properties."""
    SUBJECT = "subject"
    DESCRIPTION = "description"
    LOCATION = "location"
    EVENT_TYPE = "event_type"
    START = "start"
    END = "end"

    @property
    def is_time(self) -> bool:
        return self in (EventProperty.START, EventProperty.END)

    @classmethod
    def parse(cls, name: Union[str, 'EventProperty', None]) -> 'EventProperty':
        if isinstance(name, EventProperty):
            return name
        if not name or not str(name).strip():
            raise ValidationError("Property name cannot be empty")
        key = str(name).strip().upper()
        try:
            return cls[key]
        except KeyError:
            raise ValidationError(f"Invalid property name: {name}") from None


@dataclass(frozen=True)
class Event:
    """
    One calendar occurrence.

    Attributes:
        subject: Non-empty title.
        start: Naive wall-clock start.
        end: Naive wall-clock end, never before start.
        description: Free text, empty when unset.
        location: Free text, empty when unset.
        visibility: Visibility.PUBLIC, Visibility.PRIVATE or None.
        is_recurring: True only for occurrences generated from a series.
    """
    subject: str
    start: datetime
    end: datetime
    description: str = ""
    location: str = ""
    visibility: Optional[Visibility] = None
    is_recurring: bool = False

    def __post_init__(self):
        if not isinstance(self.subject, str) or not self.subject.strip():
            raise ValidationError("Event subject must not be empty.")
        for label, value in (("start", self.start), ("end", self.end)):
            if not isinstance(value, datetime):
                raise ValidationError(f"Event {label} must be a date/time, got {value!r}.")
            if value.tzinfo is not None:
                raise ValidationError(f"Event {label} must be a local wall-clock time.")
        if self.start > self.end:
            raise ValidationError(
                f"Start date/time ({self.start:%Y-%m-%dT%H:%M}) must not be after "
                f"end date/time ({self.end:%Y-%m-%dT%H:%M})."
            )
        # Normalise loose string input for visibility.
        object.__setattr__(self, 'visibility', Visibility.parse(self.visibility))
        object.__setattr__(self, 'description', self.description or "")
        object.__setattr__(self, 'location', self.location or "")

    @classmethod
    def all_day(cls, subject: str, day: date, **fields) -> 'Event':
        """Create an event running from 00:00 to 23:59 on ``day``."""
        return cls(
            subject,
            datetime.combine(day, ALL_DAY_START),
            datetime.combine(day, ALL_DAY_END),
            **fields,
        )

    # ==================== Derived Properties ====================

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @property
    def start_date(self) -> date:
        return self.start.date()

    @property
    def is_all_day(self) -> bool:
        """True iff the event starts at midnight and ends at 23:59 the same day."""
        return (
            self.start.time() == ALL_DAY_START
            and self.end.time() == ALL_DAY_END
            and self.start.date() == self.end.date()
        )

    @property
    def is_private(self) -> bool:
        return self.visibility is Visibility.PRIVATE

    def overlaps(self, other: 'Event') -> bool:
        """
        Strict open-interval overlap test.

        Events that merely touch at a boundary do not overlap.
        """
        return self.start < other.end and self.end > other.start

    def with_changes(self, **fields) -> 'Event':
        """Return a validated copy of this event with ``fields`` replaced."""
        return replace(self, **fields)

    def __str__(self):
        return f"Event: {self.subject}, Start: {self.start:%Y-%m-%dT%H:%M}, End: {self.end:%Y-%m-%dT%H:%M}"
