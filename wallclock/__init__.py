"""
Wallclock Calendar engine

This package provides the core calendar functionality:
- Event values (event.py)
- Per-calendar event storage and conflict detection (event_store.py)
- Recurrence expansion (recurrence.py)
- Calendar registry and timezone rewrites (registry.py)
- Cross-calendar copying (copier.py)
- Validated editing (editor.py)
- CSV and iCalendar exchange (csv_format.py, ical_format.py)
- Configuration parsing (config.py)
"""

from .config import Config, CalendarConfig
from .copier import CopyReport, EventCopier
from .editor import EventEditor
from .errors import (
    CalendarError, ConflictError, DuplicateError, NotFoundError, Result, ValidationError
)
from .event import Event, EventProperty, Visibility
from .event_store import EventStore
from .recurrence import RecurrenceSeries, commit_series, expand_occurrences, parse_weekdays
from .registry import Calendar, CalendarRegistry

__all__ = [
    'Config',
    'CalendarConfig',
    'CopyReport',
    'EventCopier',
    'EventEditor',
    'CalendarError',
    'ConflictError',
    'DuplicateError',
    'NotFoundError',
    'Result',
    'ValidationError',
    'Event',
    'EventProperty',
    'Visibility',
    'EventStore',
    'RecurrenceSeries',
    'commit_series',
    'expand_occurrences',
    'parse_weekdays',
    'Calendar',
    'CalendarRegistry',
]
