"""
iCalendar (RFC 5545) export and import for Wallclock Calendar.

Wall-clock times are written with the calendar's TZID so other clients see
the same instants. All-day events use DATE values, the iCalendar convention,
and come back as 00:00-23:59 events.
"""

import logging
import uuid
from datetime import date, datetime, timedelta
from typing import Iterable, Optional

import pytz
from icalendar import Calendar as ICalCalendar, Event as ICalEvent

from .errors import ValidationError
from .event import Event, Visibility
from .registry import Calendar
from .timezone_utils import TimezoneLike, get_timezone, localize


logger = logging.getLogger(__name__)

PRODID = '-//Wallclock Calendar//wallclock//'
DEFAULT_DURATION = timedelta(hours=1)


def _to_ical_event(event: Event, timezone: TimezoneLike) -> ICalEvent:
    component = ICalEvent()
    component.add('uid', str(uuid.uuid4()))
    component.add('summary', event.subject)
    component.add('dtstamp', datetime.now(pytz.UTC))

    if event.description:
        component.add('description', event.description)
    if event.location:
        component.add('location', event.location)
    if event.visibility is not None:
        component.add('class', event.visibility.value.upper())

    if event.is_all_day:
        component.add('dtstart', event.start.date())
        component.add('dtend', event.start.date() + timedelta(days=1))
    else:
        component.add('dtstart', localize(event.start, timezone))
        component.add('dtend', localize(event.end, timezone))
    return component


def events_to_ical(calendar: Calendar, events: Iterable[Event]) -> str:
    """
    Serialise ``events`` of ``calendar`` as VCALENDAR text.

    Args:
        calendar: Supplies the calendar name and the zone of the wall times.
        events: Events stored in that calendar.

    Returns:
        The iCalendar document as a string.
    """
    vcal = ICalCalendar()
    vcal.add('prodid', PRODID)
    vcal.add('version', '2.0')
    vcal.add('x-wr-calname', calendar.name)
    vcal.add('x-wr-timezone', calendar.timezone)
    for event in events:
        vcal.add_component(_to_ical_event(event, calendar.timezone))
    return vcal.to_ical().decode('utf-8')


def _wall_clock(value, tz) -> datetime:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value
        return value.astimezone(tz).replace(tzinfo=None)
    return datetime.combine(value, datetime.min.time())


def _from_ical_event(component, tz) -> Event:
    dtstart = component.get('DTSTART')
    if dtstart is None:
        raise ValidationError("VEVENT has no DTSTART")
    start_value = dtstart.dt
    dtend = component.get('DTEND')
    end_value: Optional[object] = dtend.dt if dtend is not None else None

    summary = str(component.get('SUMMARY') or '').strip() or 'Untitled'
    fields = {
        'description': str(component.get('DESCRIPTION') or ''),
        'location': str(component.get('LOCATION') or ''),
    }
    klass = str(component.get('CLASS') or '').strip().lower()
    if klass in ('public', 'private'):
        fields['visibility'] = Visibility(klass)

    if isinstance(start_value, date) and not isinstance(start_value, datetime):
        # Single-day DATE events map onto the 00:00-23:59 convention.
        last_day = start_value
        if isinstance(end_value, date) and not isinstance(end_value, datetime):
            last_day = max(start_value, end_value - timedelta(days=1))
        if last_day == start_value:
            return Event.all_day(summary, start_value, **fields)
        return Event(
            summary,
            datetime.combine(start_value, datetime.min.time()),
            datetime.combine(last_day, datetime.min.time()).replace(hour=23, minute=59),
            **fields,
        )

    start = _wall_clock(start_value, tz)
    end = _wall_clock(end_value, tz) if end_value is not None else start + DEFAULT_DURATION
    return Event(summary, start, end, **fields)


def events_from_ical(ical_text: str, timezone: TimezoneLike) -> list[Event]:
    """
    Read every VEVENT from ``ical_text`` as wall-clock times in ``timezone``.

    Components that cannot be turned into a valid Event are logged and skipped.
    """
    tz = get_timezone(timezone)
    vcal = ICalCalendar.from_ical(ical_text)
    events = []
    for component in vcal.walk():
        if component.name != 'VEVENT':
            continue
        try:
            events.append(_from_ical_event(component, tz))
        except ValidationError as e:
            logger.warning(f"Skipping VEVENT {component.get('UID')}: {e.message}")
    return events
