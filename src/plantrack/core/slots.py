"""Free-slot and next-match search - pure, `now` is always passed in."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, tzinfo

from .errors import NotFoundError
from .events import Event
from .timeparse import round_instant

logger = logging.getLogger(__name__)


@dataclass
class TimeSlot:
    """A candidate time slot."""

    start: datetime
    end: datetime

    def duration_minutes(self) -> int:
        return int((self.end - self.start).total_seconds() / 60)

    def format(self) -> str:
        return f"{self.start.strftime('%H:%M')}-{self.end.strftime('%H:%M')} ({self.duration_minutes()} min)"

    def is_free(self, events: list[Event]) -> bool:
        """True if no event strictly overlaps this slot."""
        return not any(e.overlaps(self.start, self.end) for e in events)


def find_slot(
    window_start: datetime,
    window_end: datetime,
    duration: timedelta,
    events: list[Event],
    *,
    now: datetime,
    interval: int,
    tz: tzinfo | None = None,
) -> TimeSlot:
    """
    Find the first free slot of `duration` inside a window.

    The scan starts at the later of window_start and `now` rounded up to
    the interval, then advances by exactly `duration` per step (not by a
    fixed grid) while the candidate still fits in the window. `now` is
    rounded on the wall clock of `tz`, or of its own zone if tz is None.

    Raises NotFoundError if the window is exhausted.
    """
    if duration <= timedelta(0):
        raise ValueError("duration must be positive")

    local_now = now.astimezone(tz) if tz is not None else now
    earliest = round_instant(local_now, interval, round_up=True).astimezone(window_start.tzinfo)
    cursor = max(window_start, earliest)
    steps = 0
    while cursor + duration <= window_end:
        candidate = TimeSlot(start=cursor, end=cursor + duration)
        if candidate.is_free(events):
            logger.debug(f"Found free slot {candidate.start.isoformat()} after {steps} step(s)")
            return candidate
        cursor += duration
        steps += 1

    raise NotFoundError(
        f"No free {int(duration.total_seconds() // 60)} min slot between "
        f"{window_start.isoformat()} and {window_end.isoformat()}"
    )


def find_next(
    events: list[Event],
    label: str,
    duration: timedelta,
    now: datetime,
) -> TimeSlot:
    """
    Carve a slot out of the earliest upcoming event labelled `label`.

    Qualifying events have a summary equal to `label`, start at or after
    `now`, and span strictly longer than `duration`. The slot is
    [event.start, event.start + duration).

    Raises NotFoundError if no event qualifies.
    """
    candidates = [
        e for e in events
        if e.summary == label and e.start >= now and e.duration > duration
    ]
    if not candidates:
        raise NotFoundError(f"No upcoming {label} event longer than {int(duration.total_seconds() // 60)} min")

    target = min(candidates, key=lambda e: e.start)
    return TimeSlot(start=target.start, end=target.start + duration)
