"""Shared fixtures for Wallclock Calendar tests.

Usage:
    def test_something(store, at):
        store.add_event(Event("Standup", at(9), at(10)))
"""

from datetime import datetime

import pytest

from wallclock.event import Event
from wallclock.event_store import EventStore
from wallclock.registry import CalendarRegistry


@pytest.fixture
def store() -> EventStore:
    return EventStore()


@pytest.fixture
def at():
    """Build naive datetimes on 2025-06-12 (a Thursday) by default."""
    def _at(hour: int, minute: int = 0, day: int = 12, month: int = 6, year: int = 2025) -> datetime:
        return datetime(year, month, day, hour, minute)
    return _at


@pytest.fixture
def make_event(at):
    def _make(subject: str, start_hour: int, end_hour: int, day: int = 12, **fields) -> Event:
        return Event(subject, at(start_hour, day=day), at(end_hour, day=day), **fields)
    return _make


@pytest.fixture
def registry() -> CalendarRegistry:
    """Registry with 'Home' (New York, in use) and 'Work' (London)."""
    reg = CalendarRegistry()
    reg.create_calendar("Home", "America/New_York").unwrap()
    reg.create_calendar("Work", "Europe/London").unwrap()
    reg.use_calendar("Home").unwrap()
    return reg
