"""
CSV row mapping for calendar import/export.

One row per event, in the column layout Google Calendar imports:
Subject, Start Date (MM/DD/YYYY), Start Time (hh:mm AM/PM), End Date,
End Time, All Day Event, Description, Location, Private.
"""

import csv
import logging
from datetime import datetime
from pathlib import Path
from typing import Iterable, Union

from .errors import ValidationError
from .event import Event, Visibility


logger = logging.getLogger(__name__)

CSV_HEADER = [
    "Subject", "Start Date", "Start Time", "End Date", "End Time",
    "All Day Event", "Description", "Location", "Private",
]

DATE_FORMAT = "%m/%d/%Y"
TIME_FORMAT = "%I:%M %p"


def _flatten(value: str) -> str:
    return " ".join(value.replace("\r", " ").replace("\t", " ").split("\n")) if value else ""


def _truthy(value: str) -> bool:
    return str(value).strip().lower() == "true"


def event_to_row(event: Event) -> list[str]:
    return [
        _flatten(event.subject),
        event.start.strftime(DATE_FORMAT),
        event.start.strftime(TIME_FORMAT),
        event.end.strftime(DATE_FORMAT),
        event.end.strftime(TIME_FORMAT),
        "True" if event.is_all_day else "False",
        _flatten(event.description),
        _flatten(event.location),
        "True" if event.is_private else "False",
    ]


def event_from_row(row: list[str]) -> Event:
    """
    Build an Event from one CSV row.

    Raises:
        ValidationError: if required columns are missing or malformed.
    """
    if len(row) < 5:
        raise ValidationError(f"Expected at least 5 columns, got {len(row)}")
    try:
        start = datetime.strptime(f"{row[1].strip()} {row[2].strip()}", f"{DATE_FORMAT} {TIME_FORMAT}")
        end = datetime.strptime(f"{row[3].strip()} {row[4].strip()}", f"{DATE_FORMAT} {TIME_FORMAT}")
    except ValueError as e:
        raise ValidationError(f"Invalid date/time in row: {e}") from None

    private = len(row) > 8 and _truthy(row[8])
    return Event(
        row[0],
        start,
        end,
        description=row[6] if len(row) > 6 else "",
        location=row[7] if len(row) > 7 else "",
        visibility=Visibility.PRIVATE if private else None,
    )


def export_csv(events: Iterable[Event], path: Union[str, Path]) -> int:
    """Write ``events`` to ``path``. Returns the number of rows written."""
    path = Path(path)
    written = 0
    with open(path, 'w', newline='', encoding='utf-8') as f:
        writer = csv.writer(f, quoting=csv.QUOTE_MINIMAL)
        writer.writerow(CSV_HEADER)
        for event in events:
            writer.writerow(event_to_row(event))
            written += 1
    logger.info(f"CSV generated successfully at: {path} ({written} events)")
    return written


def import_csv(path: Union[str, Path]) -> list[Event]:
    """Read events from ``path``, skipping the header and invalid rows."""
    path = Path(path)
    events = []
    with open(path, newline='', encoding='utf-8') as f:
        reader = csv.reader(f)
        next(reader, None)
        for line_number, row in enumerate(reader, start=2):
            if not any(cell.strip() for cell in row):
                continue
            try:
                events.append(event_from_row(row))
            except ValidationError as e:
                logger.warning(f"Skipping invalid line {line_number} in {path}: {e.message}")
    return events
