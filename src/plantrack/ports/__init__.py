"""Ports - interfaces/protocols for external dependencies."""

from .event_store import EventStore
from .calendar_export import CalendarExporter

__all__ = [
    "EventStore",
    "CalendarExporter",
]
