"""
Validated, conflict-checked event editing for Wallclock Calendar.

Every edit first builds the candidate event with the change applied and
checks it against the store (ignoring the event being edited). Only a
candidate that passes both checks replaces the stored event.
"""

import logging
from datetime import datetime
from typing import Iterable, Union

from .errors import CalendarError, ConflictError, Result, ValidationError
from .event import Event, EventProperty, Visibility
from .event_store import EventStore


logger = logging.getLogger(__name__)

# Date/time format of the command language.
EVENT_DATETIME_FORMAT = "%Y-%m-%dT%H:%M"

EditValue = Union[str, datetime, Visibility]


def parse_datetime(value: Union[str, datetime]) -> datetime:
    """Parse ``YYYY-MM-DDTHH:MM`` (or any ISO-8601 date/time) into a naive datetime."""
    if isinstance(value, datetime):
        return value
    text = str(value).strip()
    try:
        return datetime.strptime(text, EVENT_DATETIME_FORMAT)
    except ValueError:
        pass
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise ValidationError(
            f"Invalid date format: {value!r}. Expected: yyyy-MM-dd'T'HH:mm"
        ) from None
    if parsed.tzinfo is not None:
        raise ValidationError(f"Expected a local wall-clock time, got {value!r}")
    return parsed


def apply_property(event: Event, prop: EventProperty, value: EditValue) -> Event:
    """
    Build the candidate event with one property changed.

    Raises:
        ValidationError: if the value is missing or would break start <= end.
    """
    if value is None or (isinstance(value, str) and (not value.strip() or value == "null")):
        raise ValidationError("Invalid property value")

    if prop is EventProperty.SUBJECT:
        return event.with_changes(subject=str(value))
    if prop is EventProperty.DESCRIPTION:
        return event.with_changes(description=str(value))
    if prop is EventProperty.LOCATION:
        return event.with_changes(location=str(value))
    if prop is EventProperty.EVENT_TYPE:
        return event.with_changes(visibility=Visibility.parse(value))

    moment = parse_datetime(value)
    if prop is EventProperty.START:
        if moment > event.end:
            raise ValidationError(
                f"Start time ({moment:{EVENT_DATETIME_FORMAT}}) cannot be after "
                f"end time ({event.end:{EVENT_DATETIME_FORMAT}})"
            )
        return event.with_changes(start=moment)
    if moment < event.start:
        raise ValidationError(
            f"End time ({moment:{EVENT_DATETIME_FORMAT}}) cannot be before "
            f"start time ({event.start:{EVENT_DATETIME_FORMAT}})"
        )
    return event.with_changes(end=moment)


class EventEditor:
    """Edits events held by one EventStore."""

    def __init__(self, store: EventStore):
        self.store = store

    def update_property(self, event: Event, property_name: Union[str, EventProperty],
                        value: EditValue) -> Result[Event]:
        """
        Change one property of a stored event.

        Returns:
            Result carrying the new stored event value. On failure the
            stored event is left untouched.
        """
        try:
            prop = EventProperty.parse(property_name)
            candidate = apply_property(event, prop, value)
        except CalendarError as e:
            logger.debug(f"Rejected edit of {event}: {e.message}")
            return Result.failure(e)

        conflicts = self.store.find_conflicts(candidate, ignore=event)
        if conflicts:
            logger.debug(f"Rejected edit of {event}: would overlap {conflicts[0]}")
            return Result.failure(ConflictError(
                "Edit would cause scheduling conflict", conflicting=conflicts[0]
            ))

        result = self._commit(event, candidate, prop)
        if result.ok:
            logger.info(f"Edited event: {event.subject} - Changed: {prop.value} to {value}")
        return result

    def _commit(self, event: Event, candidate: Event, prop: EventProperty) -> Result[Event]:
        if prop is EventProperty.START:
            return self.store.update_event_start_time(event.start, candidate.start, event)
        return self.store.replace_event(event, candidate)

    def execute_multiple_edits(self, events: Iterable[Event], property_name: Union[str, EventProperty],
                               value: EditValue) -> Result[int]:
        """
        Apply one property change to a matched set of events.

        Start/end edits are all-or-nothing: if any candidate would overlap a
        stored event (or another candidate) nothing is changed. Other
        properties are applied per event and failures are skipped.

        Returns:
            Result carrying the number of events actually changed.
        """
        events = list(events)
        try:
            prop = EventProperty.parse(property_name)
        except ValidationError as e:
            return Result.failure(e)

        if prop.is_time:
            return self._edit_times(events, prop, value)

        edited = 0
        for event in events:
            if self.update_property(event, prop, value).ok:
                edited += 1
        return self._report(edited, prop)

    def _edit_times(self, events: list[Event], prop: EventProperty, value: EditValue) -> Result[int]:
        plans: list[tuple[Event, Event]] = []
        for event in events:
            try:
                plans.append((event, apply_property(event, prop, value)))
            except CalendarError as e:
                logger.debug(f"Skipping {event}: {e.message}")

        batch = {id(event) for event, _ in plans}
        for index, (event, candidate) in enumerate(plans):
            outside = [other for other in self.store.find_conflicts(candidate, ignore=event)
                       if id(other) not in batch]
            inside = [other for _, other in plans[index + 1:] if candidate.overlaps(other)]
            clash = outside or inside
            if clash:
                logger.info(f"Edit would cause scheduling conflict for event: "
                            f"{event.subject} at {candidate.start:{EVENT_DATETIME_FORMAT}}")
                return Result.failure(ConflictError(
                    f"Edit would cause scheduling conflict for event: {event.subject} "
                    f"at {candidate.start:{EVENT_DATETIME_FORMAT}}",
                    conflicting=clash[0],
                ))

        edited = 0
        for event, candidate in plans:
            if self._commit(event, candidate, prop).ok:
                edited += 1
        return self._report(edited, prop)

    def _report(self, edited: int, prop: EventProperty) -> Result[int]:
        if not edited:
            return Result.failure(ValidationError(
                f"Failed to update any events with the property: {prop.value}"
            ))
        logger.info(f"Successfully edited {edited} events.")
        return Result.success(edited)
