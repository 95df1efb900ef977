"""Overlap resolution, compaction and event mutations.

Every function here is pure: it takes a list of events and returns a new
one, leaving the input untouched. After insert_event, delete_event and
update_event the returned set holds no two strictly overlapping events.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta, tzinfo
from enum import Enum

from .diff import EventDiff, diff_events
from .errors import InvalidFormatError, NotFoundError
from .events import Event, find_event, new_event_id, sort_events_by_start

logger = logging.getLogger(__name__)


def overlapping(events: list[Event], start: datetime, end: datetime) -> list[Event]:
    """Events whose range strictly overlaps [start, end)."""
    return [e for e in events if e.overlaps(start, end)]


def _split_around(
    event: Event,
    start: datetime,
    end: datetime,
    id_factory: Callable[[], str],
) -> list[Event]:
    """Remainders of `event` outside [start, end), each under a fresh id."""
    fragments = []
    if event.start < start:
        fragments.append(event.with_range(event.start, start, id_factory()))
    if event.end > end:
        fragments.append(event.with_range(end, event.end, id_factory()))
    return fragments


def resolve(
    existing: list[Event],
    incoming: Event,
    id_factory: Callable[[], str] = new_event_id,
) -> list[Event]:
    """
    Insert `incoming`, splitting any existing event it overlaps.

    The new event always wins: overlapping events keep only their
    non-overlapping left/right remainders (with fresh ids). Events that do
    not overlap pass through unchanged.
    """
    result = []
    for event in existing:
        if event.overlaps(incoming.start, incoming.end):
            fragments = _split_around(event, incoming.start, incoming.end, id_factory)
            logger.debug(f"Split {event.id} around {incoming.id} into {len(fragments)} fragment(s)")
            result.extend(fragments)
        else:
            result.append(event)

    result.append(incoming)
    return sort_events_by_start(result)


def compact(events: list[Event]) -> list[Event]:
    """
    Merge chronologically adjacent events that share every non-temporal attribute.

    Two events fold when one ends exactly where the next starts. The
    earliest id in a fold is kept. Idempotent.
    """
    groups: dict[tuple, list[Event]] = {}
    for event in events:
        groups.setdefault(event.attribute_key(), []).append(event)

    merged: list[Event] = []
    for group in groups.values():
        current = None
        for event in sort_events_by_start(group):
            if current is not None and current.end == event.start:
                current = replace(current, end=event.end)
                continue
            if current is not None:
                merged.append(current)
            current = event
        if current is not None:
            merged.append(current)

    return sort_events_by_start(merged)


@dataclass
class Resolution:
    """Outcome of a mutation: the new set plus what happened to the old one."""

    events: list[Event]
    diff: EventDiff = field(default_factory=EventDiff)
    overlapped: bool = False
    event: Event | None = None  # Where the inserted or updated event ended up


def insert_event(
    events: list[Event],
    incoming: Event,
    id_factory: Callable[[], str] = new_event_id,
) -> Resolution:
    """Resolve overlaps for `incoming`, compact, and diff against the input."""
    conflicts = overlapping(events, incoming.start, incoming.end)
    resolved = compact(resolve(events, incoming, id_factory))
    diff = diff_events(events, resolved)
    if conflicts:
        logger.info(f"Inserting {incoming.summary} displaced {len(conflicts)} event(s)")
    # Compaction may fold the incoming event into a neighbour and drop its id
    placed = current_event(resolved, incoming.start)
    return Resolution(events=resolved, diff=diff, overlapped=bool(conflicts), event=placed)


def _require(events: list[Event], event_id: str) -> Event:
    event = find_event(events, event_id)
    if event is None:
        raise NotFoundError(f"Event with ID {event_id} not found")
    return event


def delete_event(
    events: list[Event],
    event_id: str,
    span: tuple[datetime, datetime] | None = None,
    id_factory: Callable[[], str] = new_event_id,
) -> Resolution:
    """
    Delete an event, or carve [start, end) out of it.

    Carving leaves the remainder(s) under fresh ids, exactly as if a new
    event had been inserted over the span and then removed.
    """
    target = _require(events, event_id)
    remaining = [e for e in events if e.id != event_id]

    if span is not None:
        start, end = span
        if not target.overlaps(start, end):
            raise InvalidFormatError(
                f"Range {start.isoformat()} - {end.isoformat()} does not intersect event {event_id}"
            )
        remaining.extend(_split_around(target, start, end, id_factory))

    result = compact(sort_events_by_start(remaining))
    return Resolution(events=result, diff=diff_events(events, result))


def update_event(
    events: list[Event],
    event_id: str,
    *,
    note: str | None = None,
    location: str | None = None,
    booked: bool | None = None,
    span: tuple[datetime, datetime] | None = None,
    id_factory: Callable[[], str] = new_event_id,
) -> Resolution:
    """
    Change an event's attributes and optionally its range.

    Attribute-only changes keep the id and are not compacted. A range
    change mints a new id and re-enters resolution and compaction. An
    empty string clears note or location.
    """
    target = _require(events, event_id)

    changes = {}
    if note is not None:
        changes["note"] = note
    if location is not None:
        changes["location"] = location
    if booked is not None:
        changes["booked"] = booked

    if span is None:
        updated = replace(target, **changes)
        result = [updated if e.id == event_id else e for e in events]
        return Resolution(events=result, diff=diff_events(events, result), event=updated)

    start, end = span
    moved = replace(target, id=id_factory(), start=start, end=end, **changes)
    others = [e for e in events if e.id != event_id]
    resolution = insert_event(others, moved, id_factory)
    resolution.diff = diff_events(events, resolution.events)
    return resolution


def cleanup(events: list[Event], days: int, now: datetime) -> list[Event]:
    """Drop events that ended more than `days` days before `now`."""
    cutoff = now - timedelta(days=days)
    return [e for e in events if e.end > cutoff]


def current_event(events: list[Event], now: datetime) -> Event | None:
    """The event running at `now`, if any."""
    for event in events:
        if event.contains(now):
            return event
    return None


class SlotStatus(Enum):
    """Availability of a requested span."""

    FREE = "free"
    PLANNED = "planned"  # Only tentative events conflict
    BOOKED = "booked"  # At least one confirmed event conflicts


@dataclass
class SlotCheck:
    status: SlotStatus
    conflicts: list[Event] = field(default_factory=list)


def check_slot(events: list[Event], start: datetime, end: datetime) -> SlotCheck:
    """Report whether [start, end) is free, planned over, or booked."""
    conflicts = sort_events_by_start(overlapping(events, start, end))
    if not conflicts:
        return SlotCheck(status=SlotStatus.FREE)
    if any(e.booked for e in conflicts):
        return SlotCheck(status=SlotStatus.BOOKED, conflicts=conflicts)
    return SlotCheck(status=SlotStatus.PLANNED, conflicts=conflicts)


def events_on_day(events: list[Event], day: date, tz: tzinfo) -> list[Event]:
    """Events whose start falls on `day` in the given timezone."""
    return sort_events_by_start([e for e in events if e.start.astimezone(tz).date() == day])


def free_gaps(day_events: list[Event]) -> list[tuple[Event, timedelta]]:
    """
    Positive gaps between consecutive events.

    Returns (following_event, gap) pairs: the gap ends where
    following_event starts.
    """
    gaps = []
    ordered = sort_events_by_start(day_events)
    for previous, following in zip(ordered, ordered[1:]):
        gap = following.start - previous.end
        if gap > timedelta(0):
            gaps.append((following, gap))
    return gaps


def travel_chain(day_events: list[Event]) -> list[str]:
    """Distinct consecutive locations visited over the day, in order."""
    chain: list[str] = []
    for event in sort_events_by_start(day_events):
        if event.location and (not chain or chain[-1] != event.location):
            chain.append(event.location)
    return chain
