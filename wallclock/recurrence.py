"""
Recurrence expansion for Wallclock Calendar.

A RecurrenceSeries is never stored. It is expanded eagerly into concrete
occurrences, and commit_series() feeds them into an EventStore either all
together or not at all.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, Optional, Union

from .errors import ConflictError, NotFoundError, Result, ValidationError
from .event import Event
from .event_store import EventStore


logger = logging.getLogger(__name__)

# Weekday letters used by the command language (R = Thursday, U = Sunday).
WEEKDAY_CODES = {'M': 0, 'T': 1, 'W': 2, 'R': 3, 'F': 4, 'S': 5, 'U': 6}


def parse_weekdays(codes: str) -> frozenset[int]:
    """
    Parse weekday letters such as "MWF" into weekday numbers (Monday=0).

    Raises:
        ValidationError: on an empty string or an unknown letter.
    """
    if not codes or not codes.strip():
        raise ValidationError("Weekday list must not be empty")
    days = set()
    for letter in codes.strip().upper():
        if letter not in WEEKDAY_CODES:
            raise ValidationError(f"Invalid weekday code: {letter!r}")
        days.add(WEEKDAY_CODES[letter])
    return frozenset(days)


@dataclass(frozen=True)
class RecurrenceSeries:
    """
    Template event plus the rule that repeats it.

    Attributes:
        template: Supplies subject, details, start time-of-day and duration.
        weekdays: Weekday numbers (Monday=0) on which occurrences fall.
        count: Stop after this many occurrences.
        until: Exclusive end boundary, a date or a date/time.
    """
    template: Event
    weekdays: frozenset[int]
    count: Optional[int] = None
    until: Optional[Union[date, datetime]] = None

    def __post_init__(self):
        days = frozenset(self.weekdays)
        if not days:
            raise ValidationError("A recurring event needs at least one weekday.")
        if any(not isinstance(day, int) or not 0 <= day <= 6 for day in days):
            raise ValidationError(f"Weekdays must be numbers 0-6, got {sorted(days)!r}")
        object.__setattr__(self, 'weekdays', days)

        if (self.count is None) == (self.until is None):
            raise ValidationError("Give exactly one of an occurrence count or an end boundary.")
        if self.count is not None and self.count <= 0:
            raise ValidationError(f"Occurrence count must be positive, got {self.count}")

    def before_boundary(self, day: date) -> bool:
        if self.until is None:
            return True
        if isinstance(self.until, datetime):
            return datetime.combine(day, self.template.end.time()) < self.until
        return day < self.until


def expand_occurrences(series: RecurrenceSeries) -> list[Event]:
    """
    Step one day at a time from the template's start date and emit an
    occurrence on every matching weekday until the rule is exhausted.
    """
    template = series.template
    start_time = template.start.time()
    duration = template.duration
    occurrences: list[Event] = []
    day = template.start.date()

    while True:
        if series.count is not None and len(occurrences) >= series.count:
            break
        if not series.before_boundary(day):
            break
        if day.weekday() in series.weekdays:
            start = datetime.combine(day, start_time)
            occurrences.append(template.with_changes(
                start=start,
                end=start + duration,
                is_recurring=True,
            ))
        day += timedelta(days=1)

    return occurrences


def commit_series(store: EventStore, series: RecurrenceSeries,
                  auto_decline: bool = True) -> Result[list[Event]]:
    """
    Expand ``series`` and insert its occurrences into ``store``.

    With ``auto_decline`` every occurrence is checked first and the whole
    series is dropped if any one of them overlaps a stored event or another
    occurrence (templates longer than the weekday spacing).

    Returns:
        Result carrying the inserted occurrences.
    """
    occurrences = expand_occurrences(series)
    if not occurrences:
        return Result.failure(NotFoundError("No occurrences found."))

    if auto_decline:
        for index, occurrence in enumerate(occurrences):
            conflicts = store.find_conflicts(occurrence)
            conflicts += [other for other in occurrences[index + 1:] if occurrence.overlaps(other)]
            if conflicts:
                logger.info(f"Recurring event declined due to conflict: {occurrence}")
                return Result.failure(ConflictError(
                    f"Recurring event declined due to conflict: {occurrence}",
                    conflicting=conflicts[0],
                ))

    for occurrence in occurrences:
        store.add_event(occurrence)
    logger.info(f"Added {len(occurrences)} occurrences of '{series.template.subject}'")
    return Result.success(occurrences)


def add_recurring_event(store: EventStore, template: Event, weekdays: Iterable[int], *,
                        count: Optional[int] = None,
                        until: Optional[Union[date, datetime]] = None,
                        auto_decline: bool = True) -> Result[list[Event]]:
    """Build a series from loose arguments and commit it, reporting bad rules as failures."""
    try:
        series = RecurrenceSeries(template, frozenset(weekdays), count=count, until=until)
    except ValidationError as e:
        return Result.failure(e)
    return commit_series(store, series, auto_decline)
