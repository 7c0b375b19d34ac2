"""
Calendar registry for Wallclock Calendar.

The registry is the only component that knows about several calendars at
once. It maps calendar names to Calendar values and to their EventStores,
tracks which calendar is in use, and performs the wall-clock rewrite when a
calendar's timezone changes.
"""

import logging
from dataclasses import dataclass, replace
from typing import Optional

from .errors import DuplicateError, NotFoundError, Result, ValidationError
from .event import Event
from .event_store import EventStore
from .timezone_utils import (
    DEFAULT_TIMEZONE, convert_wall_clock, same_timezone, timezone_name
)


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Calendar:
    """A named calendar and the timezone its wall-clock times are read in."""
    name: str
    timezone: str

    def __str__(self):
        return f"{self.name} ({self.timezone})"


def convert_event_timezone(event: Event, from_timezone: str, to_timezone: str) -> Event:
    """
    Return ``event`` with start and end re-expressed in ``to_timezone``.

    A start inside a skipped DST hour is pushed forward by the conversion and
    can pass the converted end; the event then keeps its wall-clock duration.
    """
    start = convert_wall_clock(event.start, from_timezone, to_timezone)
    end = convert_wall_clock(event.end, from_timezone, to_timezone)
    if end < start:
        end = start + event.duration
    return event.with_changes(start=start, end=end)


class CalendarRegistry:
    """
    Owns every calendar of a session.

    Pass one instance explicitly to the components that need it
    (EventCopier, the launcher); it is not a process-wide singleton.
    """

    EDITABLE_PROPERTIES = ('name', 'timezone')

    def __init__(self, reference_timezone: str = DEFAULT_TIMEZONE):
        self._calendars: dict[str, Calendar] = {}
        self._stores: dict[str, EventStore] = {}
        self._current: Optional[str] = None
        self.reference_timezone = timezone_name(reference_timezone)

    @classmethod
    def from_config(cls, config) -> 'CalendarRegistry':
        """Create a registry with the calendars listed in a Config."""
        registry = cls(reference_timezone=config.reference_timezone)
        for calendar_config in config.calendars:
            timezone = calendar_config.timezone or config.default_timezone
            result = registry.create_calendar(calendar_config.name, timezone)
            if not result.ok:
                logger.warning(f"Skipping configured calendar '{calendar_config.name}': {result.message}")
        names = registry.calendar_names()
        if names:
            registry.use_calendar(names[0])
        return registry

    # ==================== Lookup ====================

    @property
    def current(self) -> Optional[Calendar]:
        """The calendar selected with use_calendar(), if any."""
        if self._current is None:
            return None
        return self._calendars.get(self._current)

    def get_calendar(self, name: Optional[str]) -> Optional[Calendar]:
        if name is None:
            return None
        return self._calendars.get(name)

    def calendar_names(self) -> list[str]:
        return list(self._calendars)

    def get_store(self, name: str) -> Optional[EventStore]:
        """The EventStore of calendar ``name``, created on first access."""
        if name not in self._calendars:
            return None
        store = self._stores.get(name)
        if store is None:
            store = self._stores[name] = EventStore()
        return store

    def current_store(self) -> Optional[EventStore]:
        if self._current is None:
            return None
        return self.get_store(self._current)

    # ==================== Calendar Operations ====================

    def create_calendar(self, name: str, timezone: str) -> Result[Calendar]:
        """
        Register a new calendar.

        Fails with ValidationError for an empty name or unknown timezone,
        and with DuplicateError if the name is taken.
        """
        if not name or not name.strip():
            return Result.failure(ValidationError("Calendar name cannot be empty."))
        if name in self._calendars:
            return Result.failure(DuplicateError(f"A calendar with the name '{name}' already exists."))
        try:
            zone = timezone_name(timezone)
        except ValidationError as e:
            return Result.failure(e)

        calendar = Calendar(name, zone)
        self._calendars[name] = calendar
        logger.info(f"Created calendar {calendar}")
        return Result.success(calendar)

    def use_calendar(self, name: str) -> Result[Calendar]:
        if not name or not name.strip():
            return Result.failure(ValidationError("Calendar name cannot be empty."))
        calendar = self._calendars.get(name)
        if calendar is None:
            return Result.failure(NotFoundError(f"Calendar '{name}' does not exist."))
        self._current = name
        logger.debug(f"Using calendar {calendar}")
        return Result.success(calendar)

    def edit_calendar(self, name: str, property_name: str, new_value: str) -> Result[Calendar]:
        """
        Rename a calendar or change its timezone.

        Args:
            name: Existing calendar name.
            property_name: "name" or "timezone".
            new_value: The new name or IANA timezone identifier.

        Returns:
            Result carrying the updated Calendar.
        """
        calendar = self._calendars.get(name)
        if calendar is None:
            return Result.failure(NotFoundError(f"Calendar with name {name} does not exist."))
        prop = (property_name or "").strip().lower()
        if prop not in self.EDITABLE_PROPERTIES:
            return Result.failure(ValidationError(f"Invalid property: {property_name}"))
        if prop == 'name':
            return self._rename(calendar, new_value)
        return self._retimezone(calendar, new_value)

    def _rename(self, calendar: Calendar, new_name: str) -> Result[Calendar]:
        if not new_name or not new_name.strip():
            return Result.failure(ValidationError("Calendar name cannot be empty."))
        if new_name in self._calendars:
            return Result.failure(DuplicateError(f"Calendar with name {new_name} already exists."))

        store = self.get_store(calendar.name)
        del self._calendars[calendar.name]
        del self._stores[calendar.name]

        renamed = replace(calendar, name=new_name)
        self._calendars[new_name] = renamed
        self._stores[new_name] = store
        if self._current == calendar.name:
            self._current = new_name

        logger.info(f"Renamed calendar '{calendar.name}' to '{new_name}'")
        return Result.success(renamed)

    def _retimezone(self, calendar: Calendar, new_timezone: str) -> Result[Calendar]:
        try:
            zone = timezone_name(new_timezone)
        except ValidationError as e:
            return Result.failure(e)

        store = self.get_store(calendar.name)
        converted = [convert_event_timezone(event, calendar.timezone, zone) for event in store]
        store.clear()
        for adjusted in converted:
            if store.has_conflict(adjusted):
                logger.warning(f"{adjusted} overlaps another event after moving to {zone}")
            store.add_event(adjusted)

        updated = replace(calendar, timezone=zone)
        self._calendars[calendar.name] = updated
        logger.info(f"Calendar '{calendar.name}' moved from {calendar.timezone} to {zone}, "
                    f"{len(converted)} events rewritten")
        return Result.success(updated)

    def transfer_events_from_storage(self, source: EventStore, auto_decline: bool = True) -> Result[int]:
        """
        Merge an external store into the current calendar.

        The source store is taken to be written in the reference timezone;
        events are converted when the current calendar uses another zone and
        inserted with auto-decline unless it is switched off.

        Returns:
            Result carrying the number of events added.
        """
        calendar = self.current
        if source is None:
            return Result.failure(ValidationError("No source storage given."))
        if calendar is None:
            return Result.failure(NotFoundError("No calendar selected."))

        store = self.get_store(calendar.name)
        convert = not same_timezone(self.reference_timezone, calendar.timezone)
        added = 0
        for event in source.all_events():
            if convert:
                event = convert_event_timezone(event, self.reference_timezone, calendar.timezone)
            else:
                event = event.with_changes()
            if store.add_event(event, auto_decline=auto_decline).ok:
                added += 1
        logger.info(f"Transferred {added} of {len(source)} events into '{calendar.name}'")
        return Result.success(added)
