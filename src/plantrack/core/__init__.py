"""Functional core - pure scheduling logic with no I/O."""

from .errors import InvalidFormatError, NotFoundError, PlantrackError
from .events import Event, make_summary, new_event_id, parse_label
from .timeparse import parse_range, resolve_timezone, round_instant, round_time
from .schedule import (
    Resolution,
    SlotCheck,
    SlotStatus,
    check_slot,
    compact,
    delete_event,
    insert_event,
    resolve,
    update_event,
)
from .diff import EventDiff, FieldChange, diff_events
from .slots import TimeSlot, find_next, find_slot
from .report import Report, Variance, aggregate

__all__ = [
    # Errors
    "PlantrackError",
    "InvalidFormatError",
    "NotFoundError",
    # Events
    "Event",
    "make_summary",
    "new_event_id",
    "parse_label",
    # Time parsing
    "parse_range",
    "resolve_timezone",
    "round_instant",
    "round_time",
    # Resolution
    "Resolution",
    "SlotCheck",
    "SlotStatus",
    "check_slot",
    "compact",
    "delete_event",
    "insert_event",
    "resolve",
    "update_event",
    # Diff
    "EventDiff",
    "FieldChange",
    "diff_events",
    # Slots
    "TimeSlot",
    "find_next",
    "find_slot",
    # Reports
    "Report",
    "Variance",
    "aggregate",
]
