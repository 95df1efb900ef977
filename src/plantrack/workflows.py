"""Shared workflow layer between the CLI and the scheduling core.

A Session wires configuration to the storage and export adapters. The
plan_* functions turn a user request into a Resolution without touching
storage, so the caller can show the diff and ask before committing.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from pathlib import Path
from zoneinfo import ZoneInfo

from .adapters.ics_export import IcsExporter
from .adapters.json_store import JsonEventStore
from .adapters.push_command import ShellPushCommand
from .config import Config, load_config, resolve_rounding, resolve_timezone_name
from .core.events import Event, make_summary
from .core.report import Report, aggregate
from .core.schedule import Resolution, insert_event
from .core.slots import TimeSlot, find_next, find_slot
from .core.timeparse import local_today, parse_date, parse_range, resolve_timezone, round_instant

logger = logging.getLogger(__name__)


@dataclass
class Session:
    """Everything a command needs: config, adapters, timezone and rounding."""

    config: Config
    store: JsonEventStore
    exporter: IcsExporter
    tz: ZoneInfo
    rounding: int

    def load(self) -> list[Event]:
        return self.store.load()

    def commit(self, events: list[Event], now: datetime | None = None) -> int:
        """Persist events and regenerate the calendar export. Returns exported count."""
        now = now or datetime.now(timezone.utc)
        self.store.save(events)
        return self.exporter.export(events, now)

    def push(self, events: list[Event], now: datetime | None = None) -> int:
        """Export, then run the configured push command if there is one."""
        count = self.exporter.export(events, now or datetime.now(timezone.utc))
        if self.config.push_command:
            ShellPushCommand(self.config.push_command).run()
        else:
            logger.info("No PUSH_COMMAND configured, export only")
        return count

    def span(self, span: str, target_date: str | None, now: datetime | None = None) -> tuple[datetime, datetime]:
        """Parse an HH:MM-HH:MM span in this session's timezone and rounding."""
        return parse_range(span, target_date, interval=self.rounding, tz=self.tz, now=now)


def open_session(
    config: Config | None = None,
    timezone_name: str | None = None,
    rounding: int | None = None,
    config_file: Path | None = None,
) -> Session:
    """Build a Session, applying CLI overrides on top of the config file."""
    config = config or load_config(config_file)
    tz = resolve_timezone(resolve_timezone_name(timezone_name, config))
    interval = resolve_rounding(rounding, config)
    return Session(
        config=config,
        store=JsonEventStore(config.schedule_path),
        exporter=IcsExporter(
            config.ics_path,
            export_notes=config.export_notes,
            past_days=config.export_past_days,
        ),
        tz=tz,
        rounding=interval,
    )


# ============== Mutation planning ==============


def plan_add(
    session: Session,
    events: list[Event],
    label: str,
    span: str,
    target_date: str | None = None,
    note: str | None = None,
    location: str | None = None,
    booked: bool = False,
    now: datetime | None = None,
) -> tuple[Event, Resolution]:
    """Build a new event from a span and resolve it against the schedule."""
    start, end = session.span(span, target_date, now)
    event = Event.create(label, start, end, note=note, location=location, booked=booked)
    return event, insert_event(events, event)


def plan_quickadd(
    session: Session,
    events: list[Event],
    label: str,
    minutes: int | None = None,
    note: str | None = None,
    location: str | None = None,
    now: datetime | None = None,
) -> tuple[Event, Resolution]:
    """Book an event starting now (rounded down), lasting `minutes` or one interval."""
    now = now or datetime.now(timezone.utc)
    start = round_instant(now.astimezone(session.tz), session.rounding, round_up=False)
    end = start + timedelta(minutes=minutes or session.rounding)
    event = Event.create(
        label,
        start.astimezone(timezone.utc),
        end.astimezone(timezone.utc),
        note=note,
        location=location,
        booked=True,
    )
    return event, insert_event(events, event)


def day_window(session: Session, target_date: str | date | None, now: datetime | None = None) -> tuple[datetime, datetime]:
    """The whole local day as a UTC window."""
    if target_date is None:
        day = local_today(session.tz, now)
    elif isinstance(target_date, date):
        day = target_date
    else:
        day = parse_date(target_date)
    start = datetime.combine(day, time(0, 0), tzinfo=session.tz)
    end = datetime.combine(day + timedelta(days=1), time(0, 0), tzinfo=session.tz)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def plan_todo(
    session: Session,
    events: list[Event],
    label: str,
    minutes: int,
    target_date: str | None = None,
    window: str | None = None,
    note: str | None = None,
    location: str | None = None,
    now: datetime | None = None,
) -> tuple[Event, Resolution]:
    """Plan a tentative event in the first free slot of the window (default: the whole day)."""
    now = now or datetime.now(timezone.utc)
    make_summary(label)  # reject a bad label before searching

    if window:
        window_start, window_end = session.span(window, target_date, now)
    else:
        window_start, window_end = day_window(session, target_date, now)

    slot = find_slot(
        window_start,
        window_end,
        timedelta(minutes=minutes),
        events,
        now=now,
        interval=session.rounding,
        tz=session.tz,
    )
    event = Event.create(label, slot.start, slot.end, note=note, location=location, booked=False)
    return event, insert_event(events, event)


def plan_booking(
    session: Session,
    events: list[Event],
    label: str,
    minutes: int,
    note: str | None = None,
    now: datetime | None = None,
) -> tuple[Event, Resolution]:
    """
    Book time inside the next upcoming planned (not yet booked) event with the same label.

    The booked event takes over the start of the matched event, which keeps
    its remainder.
    """
    now = now or datetime.now(timezone.utc)
    summary = make_summary(label)
    planned = [e for e in events if not e.booked]
    slot: TimeSlot = find_next(planned, summary, timedelta(minutes=minutes), now)
    matched = next(e for e in planned if e.summary == summary and e.start == slot.start)
    event = Event.create(
        summary,
        slot.start,
        slot.end,
        note=note if note is not None else matched.note,
        location=matched.location,
        booked=True,
    )
    return event, insert_event(events, event)


def build_report(
    session: Session,
    events: list[Event],
    project: str,
    month: int | None = None,
    year: int | None = None,
    target_hours: float | None = None,
    now: datetime | None = None,
) -> Report:
    """Aggregate a project's month, defaulting to the current local month."""
    local_now = (now or datetime.now(timezone.utc)).astimezone(session.tz)
    return aggregate(
        events,
        project,
        year or local_now.year,
        month or local_now.month,
        tz=session.tz,
        target_hours=target_hours,
    )
