#!/usr/bin/env python3
"""
Wallclock Calendar - multi-calendar event engine with timezone-correct copies.

This is the main entry point: it loads the configuration, builds the
calendar registry, optionally imports events, and prints an agenda.
"""

import sys
import argparse
import logging
import tomllib
from datetime import date, datetime
from pathlib import Path

from wallclock.config import Config
from wallclock.csv_format import export_csv, import_csv
from wallclock.errors import CalendarError
from wallclock.event_store import EventStore
from wallclock.ical_format import events_from_ical, events_to_ical
from wallclock.log import setup_logging
from wallclock.registry import CalendarRegistry


logger = logging.getLogger('wallclock.cli')


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Wallclock Calendar - calendars with timezone-correct event handling"
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        help="Path to configuration file (default: built-in defaults)"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug output"
    )
    parser.add_argument(
        "--calendar",
        help="Calendar to use (created with the default timezone if missing)"
    )
    parser.add_argument(
        "--import",
        dest="import_paths",
        action="append",
        type=Path,
        default=[],
        help="CSV or ICS file to import into the calendar (repeatable)"
    )
    parser.add_argument(
        "--export",
        type=Path,
        help="Write the calendar to a .csv or .ics file"
    )
    parser.add_argument(
        "--on",
        type=date.fromisoformat,
        help="Print the events starting on this date (YYYY-MM-DD)"
    )
    parser.add_argument(
        "--status",
        type=datetime.fromisoformat,
        help="Report busy/available at this date/time (YYYY-MM-DDTHH:MM)"
    )
    return parser.parse_args(argv)


def load_config(path):
    if path is None:
        default_path = Config.get_default_config_path()
        return Config.load(default_path) if default_path.exists() else Config.default()
    return Config.load(path)


def import_file(registry: CalendarRegistry, path: Path, auto_decline: bool = True) -> int:
    """Import a CSV or ICS file into the current calendar. Returns events added."""
    calendar = registry.current
    staging = EventStore()
    if path.suffix.lower() == '.ics':
        events = events_from_ical(path.read_text(encoding='utf-8'), registry.reference_timezone)
    else:
        events = import_csv(path)
    for event in events:
        staging.add_event(event)
    result = registry.transfer_events_from_storage(staging, auto_decline=auto_decline)
    added = result.unwrap()
    print(f"Imported {added} of {len(events)} events from {path} into '{calendar.name}'")
    return added


def export_file(registry: CalendarRegistry, path: Path) -> None:
    calendar = registry.current
    events = registry.current_store().all_events()
    if path.suffix.lower() == '.ics':
        path.write_text(events_to_ical(calendar, events), encoding='utf-8')
    else:
        export_csv(events, path)
    print(f"Exported {len(events)} events to {path}")


def print_events_on(registry: CalendarRegistry, day: date) -> None:
    events = registry.current_store().get_events_on_date(day)
    if not events:
        print(f"No events found on {day}")
        return
    print(f"Events on {day}:")
    for event in events:
        location = f" | Location: {event.location}" if event.location else ""
        print(f"- {event.subject} | {event.start:%Y-%m-%d %H:%M} - {event.end:%Y-%m-%d %H:%M}{location}")


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)

    # Load configuration
    try:
        config = load_config(args.config)
    except FileNotFoundError as e:
        print(f"Error: {e}")
        print("\nExample configuration:")
        print("""
[General]
default_timezone = "America/New_York"
auto_decline = true

[Calendar.Work]
timezone = "Europe/London"
""")
        return 1
    except (tomllib.TOMLDecodeError, CalendarError) as e:
        print(f"Error loading configuration: {e}")
        return 1

    setup_logging(config.log_level, debug=args.debug)
    if args.debug:
        logger.debug(f"Loaded configuration from: {config.source_path or 'defaults'}")
        logger.debug(f"  Calendars: {len(config.calendars)}")

    registry = CalendarRegistry.from_config(config)

    name = args.calendar or (registry.current.name if registry.current else "Default")
    if registry.get_calendar(name) is None:
        created = registry.create_calendar(name, config.default_timezone)
        if not created.ok:
            print(f"Error: {created.message}")
            return 1
    selected = registry.use_calendar(name)
    if not selected.ok:
        print(f"Error: {selected.message}")
        return 1

    try:
        for path in args.import_paths:
            import_file(registry, path, auto_decline=config.auto_decline)
    except (OSError, CalendarError, ValueError) as e:
        print(f"Error importing: {e}")
        return 1

    if args.on:
        print_events_on(registry, args.on)
    if args.status:
        busy = registry.current_store().is_busy(args.status)
        print(f"User is {'busy' if busy else 'available'} on {args.status:%Y-%m-%dT%H:%M}")
    if args.export:
        try:
            export_file(registry, args.export)
        except OSError as e:
            print(f"Error exporting: {e}")
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
