"""
Per-calendar event store for Wallclock Calendar.

Events live in buckets keyed by their exact start time (insertion order is
kept inside a bucket). An interval tree indexes the same events so the
overlap, containment and point queries don't have to scan every bucket.
"""

import bisect
import logging
from datetime import date, datetime, timedelta
from typing import Iterator, Optional

from .errors import ConflictError, DuplicateError, NotFoundError, Result
from .event import Event
from .interval_tree import IntervalHandle, IntervalTree


logger = logging.getLogger(__name__)


class EventStore:
    """
    Ordered collection of Events for one calendar.

    The store owns the single definition of "conflict": two events conflict
    when their open intervals overlap (see Event.overlaps).
    """

    def __init__(self):
        # start -> events sharing that exact start, in insertion order
        self._buckets: dict[datetime, list[Event]] = {}
        self._starts: list[datetime] = []
        self._tree = IntervalTree()
        # id(event) -> tree handle for that stored event
        self._handles: dict[int, IntervalHandle] = {}

    def __len__(self) -> int:
        return len(self._handles)

    def __iter__(self) -> Iterator[Event]:
        return iter(self.all_events())

    def __contains__(self, event: Event) -> bool:
        return id(event) in self._handles

    # ==================== Internal Bookkeeping ====================

    def _insert(self, event: Event) -> None:
        bucket = self._buckets.get(event.start)
        if bucket is None:
            bucket = self._buckets[event.start] = []
            bisect.insort(self._starts, event.start)
        bucket.append(event)
        self._handles[id(event)] = self._tree.insert(event.start, event.end, event)

    def _detach(self, event: Event) -> bool:
        handle = self._handles.pop(id(event), None)
        if handle is None:
            return False

        moved = self._tree.delete(handle)
        if moved is not None:
            self._handles[id(moved.data)] = moved

        bucket = self._buckets[event.start]
        for index, stored in enumerate(bucket):
            if stored is event:
                del bucket[index]
                break
        if not bucket:
            del self._buckets[event.start]
            del self._starts[bisect.bisect_left(self._starts, event.start)]
        return True

    def _collect_conflicts(self, event: Event, ignore: Optional[Event] = None) -> list[Event]:
        found: list[Event] = []

        def _check(node: IntervalHandle) -> None:
            other = node.data
            if other is event or other is ignore:
                return
            found.append(other)

        self._tree.find_intersecting(event.start, event.end, _check, strict=True)
        return found

    # ==================== Mutation ====================

    def add_event(self, event: Event, auto_decline: bool = False) -> Result[Event]:
        """
        Store ``event``.

        Args:
            event: The event to insert.
            auto_decline: Reject the event if it overlaps a stored one.

        Returns:
            Result carrying the stored event, or a ConflictError when the
            event was declined.
        """
        if event in self:
            return Result.failure(DuplicateError(f"{event} is already stored."))
        if auto_decline:
            conflicts = self._collect_conflicts(event)
            if conflicts:
                logger.debug(f"Declined {event}: overlaps {conflicts[0]}")
                return Result.failure(ConflictError(
                    "Event conflicts with another event and is declined.",
                    conflicting=conflicts[0],
                ))
        self._insert(event)
        logger.debug(f"Stored {event}")
        return Result.success(event)

    def remove_event(self, event: Event) -> bool:
        """Remove ``event`` by identity. Returns False if it was not stored."""
        removed = self._detach(event)
        if removed:
            logger.debug(f"Removed {event}")
        return removed

    def replace_event(self, old: Event, new: Event) -> Result[Event]:
        """
        Swap a stored event for its edited value in one step.

        No conflict checking is performed here; EventEditor validates first.
        """
        if not self._detach(old):
            return Result.failure(NotFoundError(f"Event not stored: {old}"))
        self._insert(new)
        logger.debug(f"Replaced {old} with {new}")
        return Result.success(new)

    def update_event_start_time(self, old_start: datetime, new_start: datetime,
                                event: Event) -> Result[Event]:
        """
        Relocate ``event`` from its ``old_start`` bucket to ``new_start``.

        The event keeps its end time. Callers are responsible for conflict
        checking and for keeping start <= end.

        Returns:
            Result carrying the relocated event value.
        """
        bucket = self._buckets.get(old_start, [])
        if not any(stored is event for stored in bucket):
            return Result.failure(NotFoundError(
                f"Event '{event.subject}' is not stored at {old_start:%Y-%m-%dT%H:%M}."
            ))
        return self.replace_event(event, event.with_changes(start=new_start))

    def clear(self) -> list[Event]:
        """Remove and return every stored event."""
        events = self.all_events()
        self._buckets.clear()
        self._starts.clear()
        self._handles.clear()
        self._tree = IntervalTree()
        return events

    # ==================== Queries ====================

    def has_conflict(self, event: Event, ignore: Optional[Event] = None) -> bool:
        """
        Check whether ``event`` overlaps any stored event.

        The event itself (when already stored) and ``ignore`` are excluded.
        """
        return bool(self._collect_conflicts(event, ignore))

    def find_conflicts(self, event: Event, ignore: Optional[Event] = None) -> list[Event]:
        conflicts = self._collect_conflicts(event, ignore)
        conflicts.sort(key=lambda e: e.start)
        return conflicts

    def find_event(self, subject: str, start: datetime) -> Optional[Event]:
        """Case-insensitive subject match inside the exact-start bucket."""
        wanted = subject.casefold()
        for event in self._buckets.get(start, ()):
            if event.subject.casefold() == wanted:
                return event
        return None

    def find_events(self, subject: str, since: Optional[datetime] = None) -> list[Event]:
        """All events with a matching subject, optionally starting at or after ``since``."""
        wanted = subject.casefold()
        return [
            event for event in self._iter_from(since)
            if event.subject.casefold() == wanted
        ]

    def get_events_on_date(self, day: date) -> list[Event]:
        """Events whose start date is ``day``, however long they run."""
        if isinstance(day, datetime):
            day = day.date()
        midnight = datetime.combine(day, datetime.min.time())
        next_midnight = midnight + timedelta(days=1)
        events = []
        for start in self._starts[bisect.bisect_left(self._starts, midnight):]:
            if start >= next_midnight:
                break
            events.extend(self._buckets[start])
        return events

    def get_events_in_range(self, start: datetime, end: datetime) -> list[Event]:
        """
        Events fully contained in the range.

        An event qualifies when its start lies in [start, end) and its end
        lies in (start, end]. Events that only touch or cross the range are
        not returned; use get_events_overlapping for that.
        """
        found: list[Event] = []

        def _check(node: IntervalHandle) -> None:
            if node.start < end and node.end > start:
                found.append(node.data)

        self._tree.find_contained(start, end, _check)
        return self._ordered(found)

    def get_events_overlapping(self, start: datetime, end: datetime) -> list[Event]:
        """Events whose open interval overlaps [start, end)."""
        found: list[Event] = []
        self._tree.find_intersecting(start, end, lambda node: found.append(node.data), strict=True)
        return self._ordered(found)

    def is_busy(self, at: datetime) -> bool:
        """True if some event has start <= at < end."""
        busy = False

        def _check(node: IntervalHandle) -> None:
            nonlocal busy
            if node.start <= at < node.end:
                busy = True

        self._tree.find_overlapping(at, _check)
        return busy

    def all_events(self) -> list[Event]:
        """Every stored event, ordered by start then insertion."""
        return list(self._iter_from(None))

    def _iter_from(self, since: Optional[datetime]) -> Iterator[Event]:
        first = 0 if since is None else bisect.bisect_left(self._starts, since)
        for start in self._starts[first:]:
            yield from self._buckets[start]

    def _ordered(self, events: list[Event]) -> list[Event]:
        def _position(event: Event) -> tuple[datetime, int]:
            bucket = self._buckets[event.start]
            return event.start, next(i for i, stored in enumerate(bucket) if stored is event)
        return sorted(events, key=_position)
