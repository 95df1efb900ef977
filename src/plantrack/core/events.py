"""Pure event domain model - no I/O dependencies."""

import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timedelta

from .errors import InvalidFormatError


def new_event_id() -> str:
    """Mint a fresh opaque event identifier."""
    return str(uuid.uuid4())


def parse_label(label: str) -> tuple[str, str]:
    """
    Split a ``project:task`` label on the first colon.

    Both parts are trimmed. Raises InvalidFormatError if the colon is
    missing or either side is empty.
    """
    project, sep, task = label.partition(":")
    project, task = project.strip(), task.strip()
    if not sep or not project or not task:
        raise InvalidFormatError(f"Invalid project:task format: {label!r}")
    return project, task


def make_summary(label: str) -> str:
    """Normalize a label to the canonical ``project:task`` summary."""
    project, task = parse_label(label)
    return f"{project}:{task}"


def _clean(value: str | None) -> str | None:
    """Blank text means absent; anything else is kept verbatim."""
    if value is None or not value.strip():
        return None
    return value


@dataclass(frozen=True)
class Event:
    """A scheduled time interval with a project:task label."""

    id: str
    start: datetime
    end: datetime
    summary: str
    note: str | None = None
    location: str | None = None
    booked: bool = False

    def __post_init__(self):
        if self.end <= self.start:
            raise InvalidFormatError(
                f"Event end {self.end.isoformat()} must be after start {self.start.isoformat()}"
            )
        object.__setattr__(self, "note", _clean(self.note))
        object.__setattr__(self, "location", _clean(self.location))

    @classmethod
    def create(
        cls,
        label: str,
        start: datetime,
        end: datetime,
        note: str | None = None,
        location: str | None = None,
        booked: bool = False,
    ) -> "Event":
        """Create a new event with a fresh id from a raw ``project:task`` label."""
        return cls(
            id=new_event_id(),
            start=start,
            end=end,
            summary=make_summary(label),
            note=note,
            location=location,
            booked=booked,
        )

    @property
    def project(self) -> str:
        return self.summary.partition(":")[0]

    @property
    def task(self) -> str:
        return self.summary.partition(":")[2]

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def duration_minutes(self) -> int:
        return int(self.duration.total_seconds() // 60)

    def overlaps(self, start: datetime, end: datetime) -> bool:
        """Strict half-open overlap test; touching ranges do not overlap."""
        return start < self.end and end > self.start

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant < self.end

    def attribute_key(self) -> tuple:
        """Non-temporal attributes that must match for two events to merge."""
        return (self.summary, self.note, self.location, self.booked)

    def with_range(self, start: datetime, end: datetime, event_id: str | None = None) -> "Event":
        """Copy with a new range, optionally under a new id."""
        return replace(self, start=start, end=end, id=event_id or self.id)

    def format_for_diff(self) -> str:
        """One-line rendering used in change listings."""
        return (
            f"{self.start.strftime('%Y-%m-%d %H:%M')} - {self.end.strftime('%H:%M')} "
            f"{self.summary} ({self.id})"
        )


def sort_events_by_start(events: list[Event]) -> list[Event]:
    """Stable sort by start time; ties keep their input order."""
    return sorted(events, key=lambda e: e.start)


def find_event(events: list[Event], event_id: str) -> Event | None:
    """Look up an event by id."""
    for event in events:
        if event.id == event_id:
            return event
    return None
