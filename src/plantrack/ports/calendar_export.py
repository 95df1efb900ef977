"""Calendar export interface."""

from datetime import datetime
from typing import Protocol

from plantrack.core.events import Event


class CalendarExporter(Protocol):
    """Interface for publishing events to a calendar file or service."""

    def export(self, events: list[Event], now: datetime) -> int:
        """Export events relative to `now`. Returns the number exported."""
        ...
