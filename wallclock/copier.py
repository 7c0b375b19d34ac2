"""
Cross-calendar copying for Wallclock Calendar.

Single-event copies take the requested target start literally. Date and
range copies keep each event's instant by converting from the source
calendar's zone to the target's, then shift everything by whole days.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

from .errors import DuplicateError, NotFoundError, Result, ValidationError
from .event import Event
from .registry import Calendar, CalendarRegistry, convert_event_timezone


logger = logging.getLogger(__name__)


@dataclass
class CopyReport:
    """Outcome of a multi-event copy: what landed and what was declined."""
    copied: list[Event] = field(default_factory=list)
    declined: list[Event] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.copied) + len(self.declined)


def _day_start(day: date) -> datetime:
    if isinstance(day, datetime):
        day = day.date()
    return datetime.combine(day, datetime.min.time())


class EventCopier:
    """Copies events from the registry's current calendar into another one."""

    def __init__(self, registry: CalendarRegistry):
        self.registry = registry

    def _resolve(self, target_calendar_name: str) -> Result[tuple[Calendar, Calendar]]:
        source = self.registry.current
        if source is None:
            return Result.failure(NotFoundError("No calendar selected."))
        target = self.registry.get_calendar(target_calendar_name)
        if target is None:
            return Result.failure(NotFoundError(f"Target calendar '{target_calendar_name}' not found."))
        return Result.success((source, target))

    def copy_event(self, name: str, source_start: datetime,
                   target_calendar_name: str, target_start: datetime) -> Result[Event]:
        """
        Copy one event to ``target_start`` in another calendar.

        ``target_start`` is read as a wall time in the target calendar; it is
        not converted. The copy keeps the source event's duration.

        Returns:
            Result carrying the new event.
        """
        resolved = self._resolve(target_calendar_name)
        if not resolved.ok:
            return Result.failure(resolved.error)
        source, target = resolved.value

        event = self.registry.get_store(source.name).find_event(name, source_start)
        if event is None:
            return Result.failure(NotFoundError(
                f"Event '{name}' at {source_start:%Y-%m-%dT%H:%M} not found in '{source.name}'."
            ))

        target_store = self.registry.get_store(target.name)
        if target_store.find_event(name, target_start) is not None:
            return Result.failure(DuplicateError(
                f"Event '{name}' already exists at {target_start:%Y-%m-%dT%H:%M} in '{target.name}'."
            ))

        copy = event.with_changes(
            start=target_start,
            end=target_start + event.duration,
            is_recurring=False,
        )
        result = target_store.add_event(copy, auto_decline=True)
        if result.ok:
            logger.info(f"Copied '{event.subject}' to '{target.name}' at {target_start:%Y-%m-%dT%H:%M}")
        return result

    def copy_events_on_date(self, day: date, target_calendar_name: str,
                            target_date: date) -> Result[CopyReport]:
        """Copy every event of ``day`` to ``target_date`` in another calendar."""
        return self._copy_range(day, day, target_calendar_name, target_date, anchor=day)

    def copy_events_between(self, start_date: date, end_date: date,
                            target_calendar_name: str, target_date: date) -> Result[CopyReport]:
        """
        Copy every event between two dates (both inclusive).

        The earliest copied event's date lands on ``target_date`` and the
        rest keep their distance from it.
        """
        if end_date < start_date:
            return Result.failure(ValidationError(
                f"End date {end_date} is before start date {start_date}."
            ))
        return self._copy_range(start_date, end_date, target_calendar_name, target_date, anchor=None)

    def _copy_range(self, start_date: date, end_date: date, target_calendar_name: str,
                    target_date: date, anchor) -> Result[CopyReport]:
        resolved = self._resolve(target_calendar_name)
        if not resolved.ok:
            return Result.failure(resolved.error)
        source, target = resolved.value

        range_start = _day_start(start_date)
        range_end = _day_start(end_date) + timedelta(days=1)
        events = self.registry.get_store(source.name).get_events_overlapping(range_start, range_end)
        if not events:
            return Result.failure(NotFoundError(
                f"No events found between {range_start:%Y-%m-%d} and {end_date:%Y-%m-%d}."
            ))

        if anchor is None:
            anchor = min(event.start_date for event in events)
        offset = _day_start(target_date) - _day_start(anchor)

        target_store = self.registry.get_store(target.name)
        report = CopyReport()
        for event in events:
            converted = convert_event_timezone(event, source.timezone, target.timezone)
            copy = converted.with_changes(
                start=converted.start + offset,
                end=converted.end + offset,
                is_recurring=False,
            )
            if target_store.add_event(copy, auto_decline=True).ok:
                report.copied.append(copy)
            else:
                report.declined.append(copy)

        logger.info(f"Copied {len(report.copied)} of {report.total} events from '{source.name}' "
                    f"to '{target.name}'")
        return Result.success(report)
