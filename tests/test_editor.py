from datetime import datetime

import pytest

from wallclock.editor import EventEditor, apply_property, parse_datetime
from wallclock.errors import ValidationError
from wallclock.event import Event, EventProperty, Visibility


@pytest.fixture
def editor(store):
    return EventEditor(store)


def test_parse_datetime_formats():
    assert parse_datetime("2025-06-12T09:30") == datetime(2025, 6, 12, 9, 30)
    assert parse_datetime("2025-06-12 09:30:15") == datetime(2025, 6, 12, 9, 30, 15)
    with pytest.raises(ValidationError):
        parse_datetime("12/06/2025 9am")
    with pytest.raises(ValidationError):
        parse_datetime("2025-06-12T09:30+02:00")


@pytest.mark.parametrize("value", [None, "", "   ", "null"])
def test_apply_property_rejects_missing_values(make_event, value):
    with pytest.raises(ValidationError):
        apply_property(make_event("Talk", 9, 10), EventProperty.SUBJECT, value)


def test_apply_property_enforces_ordering(make_event):
    event = make_event("Talk", 9, 10)
    with pytest.raises(ValidationError):
        apply_property(event, EventProperty.START, "2025-06-12T11:00")
    with pytest.raises(ValidationError):
        apply_property(event, EventProperty.END, "2025-06-12T08:00")
    assert apply_property(event, EventProperty.END, "2025-06-12T09:00").duration.total_seconds() == 0


def test_update_text_properties(editor, store, make_event):
    event = make_event("Talk", 9, 10)
    store.add_event(event)
    renamed = editor.update_property(event, "subject", "Keynote").unwrap()
    located = editor.update_property(renamed, "location", "Hall A").unwrap()
    private = editor.update_property(located, "event_type", "private").unwrap()
    assert store.all_events() == [private]
    assert private.subject == "Keynote"
    assert private.location == "Hall A"
    assert private.visibility is Visibility.PRIVATE
    assert event.subject == "Talk"


def test_update_with_invalid_visibility(editor, store, make_event):
    event = make_event("Talk", 9, 10)
    store.add_event(event)
    assert editor.update_property(event, "event_type", "secret").kind == "validation"
    assert editor.update_property(event, "colour", "red").kind == "validation"
    assert store.all_events() == [event]


def test_update_start_moves_event(editor, store, make_event, at):
    event = make_event("Talk", 9, 12)
    store.add_event(event)
    moved = editor.update_property(event, EventProperty.START, "2025-06-12T10:30").unwrap()
    assert moved.start == at(10, 30)
    assert store.find_event("Talk", at(10, 30)) is moved
    assert store.find_event("Talk", at(9)) is None


def test_conflicting_start_edit_leaves_event_unchanged(editor, store, make_event, at):
    first = make_event("First", 9, 10)
    second = make_event("Second", 11, 12)
    store.add_event(first)
    store.add_event(second)
    result = editor.update_property(second, "start", "2025-06-12T09:30")
    assert result.kind == "conflict"
    assert result.error.conflicting is first
    assert store.all_events() == [first, second]
    assert second.start == at(11)


def test_edit_may_overlap_its_own_old_interval(editor, store, make_event, at):
    event = make_event("Talk", 9, 11)
    store.add_event(event)
    result = editor.update_property(event, "end", "2025-06-12T10:00")
    assert result.ok
    assert result.value.end == at(10)


def test_edit_touching_neighbour_is_accepted(editor, store, make_event):
    store.add_event(make_event("Before", 8, 9))
    event = make_event("Talk", 10, 11)
    store.add_event(event)
    assert editor.update_property(event, "start", "2025-06-12T09:00").ok


def test_bulk_edit_counts_every_event(editor, store, at):
    events = [Event("Gym", at(7, day=day), at(8, day=day)) for day in (9, 10, 11)]
    for event in events:
        store.add_event(event)
    result = editor.execute_multiple_edits(events, "location", "Downtown")
    assert result.value == 3
    assert {event.location for event in store.all_events()} == {"Downtown"}


def test_bulk_edit_with_nothing_to_edit(editor):
    assert editor.execute_multiple_edits([], "subject", "New").kind == "validation"


def test_bulk_time_edit_moves_all_events(editor, store, at):
    events = [Event("Gym", at(7, day=day), at(8, day=day)) for day in (9, 10)]
    for event in events:
        store.add_event(event)
    # the second event shrinks to zero length and only touches the first
    result = editor.execute_multiple_edits(events, "end", "2025-06-10T07:00")
    assert result.value == 2
    assert [event.end for event in store.all_events()] == [at(7, day=10)] * 2


def test_bulk_time_edit_aborts_on_outside_conflict(editor, store, at):
    events = [Event("Gym", at(7, day=day), at(8, day=day)) for day in (9, 10, 11)]
    for event in events:
        store.add_event(event)
    blocker = Event("Doctor", at(9, day=13), at(10, day=13))
    store.add_event(blocker)

    result = editor.execute_multiple_edits(events[2:], "end", "2025-06-13T09:30")
    assert result.kind == "conflict"
    assert store.all_events() == events + [blocker]


def test_bulk_time_edit_aborts_when_candidates_collide(editor, store, at):
    events = [Event("Gym", at(7, day=day), at(8, day=day)) for day in (11, 12)]
    for event in events:
        store.add_event(event)
    result = editor.execute_multiple_edits(events, "end", "2025-06-12T09:00")
    assert result.kind == "conflict"
    assert store.all_events() == events


def test_bulk_time_edit_skips_events_that_fail_validation(editor, store, at):
    early = Event("Gym", at(7, day=9), at(8, day=9))
    late = Event("Gym", at(7, day=20), at(8, day=20))
    store.add_event(early)
    store.add_event(late)
    result = editor.execute_multiple_edits([early, late], "end", "2025-06-15T07:00")
    assert result.value == 1
    assert store.all_events()[0].end == at(7, day=15)
    assert store.all_events()[1] is late


def test_bulk_start_edit_moves_valid_events(editor, store, at):
    early = Event("Gym", at(7, day=9), at(8, day=9))
    late = Event("Gym", at(7, day=10), at(8, day=10))
    store.add_event(early)
    store.add_event(late)
    result = editor.execute_multiple_edits([early, late], "start", "2025-06-10T07:30")
    # the first event would start after its own end and is skipped
    assert result.value == 1
    assert store.find_event("Gym", at(7, day=10)) is None
    moved = store.find_event("Gym", at(7, 30, day=10))
    assert moved.end == at(8, day=10)
    assert store.all_events() == [early, moved]


def test_bulk_start_edit_aborts_on_conflict(editor, store, at):
    events = [Event("Gym", at(7, day=day), at(8, day=day)) for day in (11, 12, 13)]
    blocker = Event("Breakfast", at(6, day=12), at(7, day=12))
    for event in events + [blocker]:
        store.add_event(event)
    result = editor.execute_multiple_edits(events, "start", "2025-06-12T06:30")
    assert result.kind == "conflict"
    assert result.error.conflicting is blocker
    assert store.all_events() == [events[0], blocker, events[1], events[2]]
