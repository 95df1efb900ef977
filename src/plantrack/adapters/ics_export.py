"""iCalendar export adapter."""

import logging
from datetime import datetime, timedelta
from pathlib import Path

from icalendar import Calendar
from icalendar import Event as ICalEvent

from plantrack.core.errors import StoreError
from plantrack.core.events import Event

logger = logging.getLogger(__name__)

PRODID = "-//plantrack//plantrack version 1.0//EN"


class IcsExporter:
    """
    Writes the schedule to an .ics file.

    Implements CalendarExporter protocol. Only the project half of each
    label is published as the summary; notes are optional.
    """

    def __init__(self, ics_file: Path | str, export_notes: bool = True, past_days: int = 7):
        self.ics_file = Path(ics_file).expanduser()
        self.export_notes = export_notes
        self.past_days = past_days

    def build_calendar(self, events: list[Event], now: datetime) -> Calendar:
        """Build the calendar for events starting within the past window or later."""
        cutoff = now - timedelta(days=self.past_days)

        cal = Calendar()
        cal.add("prodid", PRODID)
        cal.add("version", "2.0")

        for event in events:
            if event.start < cutoff:
                continue
            item = ICalEvent()
            item.add("uid", event.id)
            item.add("summary", event.project)
            item.add("dtstart", event.start)
            item.add("dtend", event.end)
            item.add("dtstamp", now)
            item.add("status", "CONFIRMED" if event.booked else "TENTATIVE")
            if self.export_notes and event.note:
                item.add("description", event.note)
            if event.location:
                item.add("location", event.location)
            cal.add_component(item)

        return cal

    def export(self, events: list[Event], now: datetime) -> int:
        """Write the .ics file. Returns the number of exported events."""
        cal = self.build_calendar(events, now)
        count = len(cal.walk("VEVENT"))
        try:
            self.ics_file.parent.mkdir(parents=True, exist_ok=True)
            self.ics_file.write_bytes(cal.to_ical())
        except OSError as e:
            raise StoreError(f"Failed to write calendar file {self.ics_file}: {e}") from e

        logger.info(f"{count} events exported to {self.ics_file}")
        return count
