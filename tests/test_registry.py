from datetime import datetime

import pytest

from wallclock.config import CalendarConfig, Config
from wallclock.event import Event
from wallclock.event_store import EventStore
from wallclock.registry import CalendarRegistry, convert_event_timezone


def test_create_calendar_validation(registry):
    assert registry.create_calendar("", "UTC").kind == "validation"
    assert registry.create_calendar("Travel", "Mars/Olympus").kind == "validation"
    assert registry.create_calendar("Home", "UTC").kind == "duplicate"
    created = registry.create_calendar("Travel", "Asia/Tokyo")
    assert created.ok
    assert created.value.timezone == "Asia/Tokyo"
    assert registry.calendar_names() == ["Home", "Work", "Travel"]


def test_use_calendar(registry):
    assert registry.current.name == "Home"
    assert registry.use_calendar("Missing").kind == "not_found"
    assert registry.current.name == "Home"
    assert registry.use_calendar("Work").ok
    assert registry.current.name == "Work"


def test_unknown_calendar_has_no_store(registry):
    assert registry.get_store("Missing") is None
    assert registry.get_calendar(None) is None


def test_rename_preserves_contents(registry, make_event):
    event = make_event("Standup", 9, 10)
    registry.get_store("Home").add_event(event)
    result = registry.edit_calendar("Home", "name", "Personal")
    assert result.ok
    assert registry.get_calendar("Home") is None
    assert registry.get_store("Personal").all_events() == [event]
    assert registry.current.name == "Personal"


def test_rename_to_taken_name(registry):
    assert registry.edit_calendar("Home", "name", "Work").kind == "duplicate"
    assert registry.edit_calendar("Home", "name", " ").kind == "validation"


def test_edit_unknown_calendar_or_property(registry):
    assert registry.edit_calendar("Missing", "name", "X").kind == "not_found"
    assert registry.edit_calendar("Home", "colour", "red").kind == "validation"


def test_timezone_change_rewrites_wall_clock(registry, at):
    event = Event("Planning", at(10), at(12, 59))
    registry.get_store("Home").add_event(event)
    result = registry.edit_calendar("Home", "timezone", "Europe/London")
    assert result.ok
    assert registry.get_calendar("Home").timezone == "Europe/London"
    [moved] = registry.get_store("Home").all_events()
    assert moved.start == at(15)
    assert moved.end == at(17, 59)
    assert moved.subject == "Planning"


def test_timezone_change_keeps_events_that_now_touch_or_overlap(registry, at):
    store = registry.get_store("Home")
    store.add_event(Event("A", at(9), at(10)))
    store.add_event(Event("B", at(9, 30), at(11)))
    assert registry.edit_calendar("Home", "timezone", "UTC").ok
    assert len(store) == 2


def test_timezone_change_rejects_unknown_zone(registry):
    result = registry.edit_calendar("Home", "timezone", "Nowhere/Special")
    assert result.kind == "validation"
    assert registry.get_calendar("Home").timezone == "America/New_York"


def test_convert_event_timezone_round_trip_in_winter():
    event = Event("Call", datetime(2025, 1, 15, 9), datetime(2025, 1, 15, 10))
    tokyo = convert_event_timezone(event, "America/New_York", "Asia/Tokyo")
    assert tokyo.start == datetime(2025, 1, 15, 23)
    back = convert_event_timezone(tokyo, "Asia/Tokyo", "America/New_York")
    assert back.start == event.start
    assert back.end == event.end


def test_transfer_converts_from_reference_timezone(registry, make_event, at):
    staging = EventStore()
    staging.add_event(make_event("Imported", 10, 11))
    registry.use_calendar("Work")
    result = registry.transfer_events_from_storage(staging)
    assert result.value == 1
    [event] = registry.get_store("Work").all_events()
    assert event.start == at(15)
    assert len(staging) == 1


def test_transfer_into_same_zone_copies_values(registry, make_event):
    original = make_event("Imported", 10, 11)
    staging = EventStore()
    staging.add_event(original)
    assert registry.transfer_events_from_storage(staging).value == 1
    [stored] = registry.get_store("Home").all_events()
    assert stored == original
    assert stored is not original


def test_transfer_skips_conflicts_with_auto_decline(registry, make_event):
    registry.get_store("Home").add_event(make_event("Existing", 10, 12))
    staging = EventStore()
    staging.add_event(make_event("Clash", 11, 13))
    staging.add_event(make_event("Free", 13, 14))
    assert registry.transfer_events_from_storage(staging).value == 1
    assert registry.transfer_events_from_storage(staging, auto_decline=False).value == 2


def test_transfer_without_current_calendar():
    registry = CalendarRegistry()
    assert registry.transfer_events_from_storage(EventStore()).kind == "not_found"
    assert registry.transfer_events_from_storage(None).kind == "validation"


def test_from_config_creates_calendars():
    config = Config(
        default_timezone="Europe/Berlin",
        reference_timezone="UTC",
        calendars=[CalendarConfig("Work", "Asia/Tokyo"), CalendarConfig("Home")],
    )
    registry = CalendarRegistry.from_config(config)
    assert registry.reference_timezone == "UTC"
    assert registry.get_calendar("Work").timezone == "Asia/Tokyo"
    assert registry.get_calendar("Home").timezone == "Europe/Berlin"
    assert registry.current.name == "Work"


@pytest.mark.parametrize("zone", ["America/New_York", "Europe/London", "UTC"])
def test_from_config_without_calendars(zone):
    registry = CalendarRegistry.from_config(Config(reference_timezone=zone))
    assert registry.current is None
    assert registry.reference_timezone == zone


def test_timezone_change_with_event_in_skipped_hour(registry):
    store = registry.get_store("Home")
    # 02:30 does not exist in New York on 2025-03-09
    store.add_event(Event("Gap", datetime(2025, 3, 9, 2, 30), datetime(2025, 3, 9, 3, 10)))
    store.add_event(Event("Other", datetime(2025, 3, 10, 9), datetime(2025, 3, 10, 10)))

    result = registry.edit_calendar("Home", "timezone", "Europe/London")
    assert result.ok
    assert registry.get_calendar("Home").timezone == "Europe/London"
    gap, other = store.all_events()
    assert gap.start == datetime(2025, 3, 9, 7, 30)
    assert gap.end == datetime(2025, 3, 9, 8, 10)
    assert other.start == datetime(2025, 3, 10, 13)


def test_convert_event_timezone_keeps_duration_across_gap():
    event = Event("Gap", datetime(2025, 3, 9, 2, 30), datetime(2025, 3, 9, 3, 10))
    converted = convert_event_timezone(event, "America/New_York", "UTC")
    assert converted.start == datetime(2025, 3, 9, 7, 30)
    assert converted.duration == event.duration
