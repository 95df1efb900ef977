"""File-based JSON event storage adapter."""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from plantrack.core.errors import InvalidFormatError, StoreError
from plantrack.core.events import Event

logger = logging.getLogger(__name__)


def event_to_dict(event: Event) -> dict:
    """Serialize an event with epoch-second timestamps."""
    return {
        "id": event.id,
        "start_time": int(event.start.timestamp()),
        "end_time": int(event.end.timestamp()),
        "summary": event.summary,
        "note": event.note,
        "location": event.location,
        "booked": event.booked,
    }


def event_from_dict(data: dict) -> Event:
    """Deserialize an event written by event_to_dict."""
    return Event(
        id=str(data["id"]),
        start=datetime.fromtimestamp(int(data["start_time"]), tz=timezone.utc),
        end=datetime.fromtimestamp(int(data["end_time"]), tz=timezone.utc),
        summary=str(data["summary"]),
        note=data.get("note"),
        location=data.get("location"),
        booked=bool(data.get("booked", False)),
    )


class JsonEventStore:
    """
    JSON file event storage.

    Implements EventStore protocol. The whole collection is one JSON array.
    """

    def __init__(self, schedule_file: Path | str):
        self.schedule_file = Path(schedule_file).expanduser()

    def load(self) -> list[Event]:
        """Load all events. A missing file is an empty schedule."""
        if not self.schedule_file.exists():
            logger.debug(f"No schedule file at {self.schedule_file}, starting empty")
            return []

        try:
            data = json.loads(self.schedule_file.read_text())
            events = [event_from_dict(item) for item in data]
        except (json.JSONDecodeError, KeyError, TypeError, ValueError, InvalidFormatError) as e:
            raise StoreError(f"Failed to parse schedule file {self.schedule_file}: {e}") from e
        except OSError as e:
            raise StoreError(f"Failed to read schedule file {self.schedule_file}: {e}") from e

        logger.debug(f"Loaded {len(events)} events from {self.schedule_file}")
        return events

    def save(self, events: list[Event]) -> None:
        """Overwrite the schedule file with `events`."""
        try:
            self.schedule_file.parent.mkdir(parents=True, exist_ok=True)
            self.schedule_file.write_text(json.dumps([event_to_dict(e) for e in events]))
        except OSError as e:
            raise StoreError(f"Failed to write schedule file {self.schedule_file}: {e}") from e
        logger.debug(f"Saved {len(events)} events to {self.schedule_file}")
