"""plantrack CLI - plan and track time across projects."""

import logging
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import click

from .config import CONFIG_FILE, ensure_config, load_config
from .core.errors import PlantrackError
from .core.events import Event
from .core.diff import EventDiff
from .core.report import Report, format_duration, format_hm
from .core.schedule import (
    Resolution,
    SlotStatus,
    check_slot,
    cleanup as cleanup_events,
    current_event,
    delete_event,
    events_on_day,
    free_gaps,
    travel_chain,
    update_event,
)
from .core.timeparse import local_today, parse_date
from .workflows import (
    Session,
    build_report,
    open_session,
    plan_add,
    plan_booking,
    plan_quickadd,
    plan_todo,
)

logger = logging.getLogger(__name__)

INDENT = " " * 31


def _fail(error: Exception) -> None:
    click.echo(f"Error: {error}", err=True)
    sys.exit(1)


def _session(ctx: click.Context) -> Session:
    """Open the session lazily so --help never touches the filesystem."""
    opts = ctx.obj
    if "session" not in opts:
        config_file = opts["config_file"]
        if config_file is None:
            config_file = CONFIG_FILE
        elif not config_file.is_absolute():
            config_file = Path.cwd() / config_file

        if not config_file.exists():
            ensure_config(config_file)
            click.echo(f"Created default config file at: {config_file}")

        try:
            opts["session"] = open_session(
                config=load_config(config_file),
                timezone_name=opts["timezone"],
                rounding=opts["rounding"],
            )
        except PlantrackError as e:
            _fail(e)
    return opts["session"]


def _load(session: Session) -> list[Event]:
    try:
        return session.load()
    except PlantrackError as e:
        _fail(e)


# ============== Rendering ==============


def _print_diff(diff: EventDiff) -> None:
    colors = {"-": "red", "+": "green", "~": "yellow"}
    click.echo(click.style("Changes to existing events:", fg="yellow", bold=True))
    for marker, text in diff.format_lines():
        click.echo(click.style(f"{marker} {text}", fg=colors[marker]))
    click.echo()


def _status_mark(event: Event, now: datetime) -> str:
    if event.booked:
        return click.style("✔", fg="green")
    if event.end < now:
        return click.style("✗", fg="red")
    return click.style("≈", fg="blue")


def _print_event(event: Event, session: Session, now: datetime) -> None:
    start = event.start.astimezone(session.tz)
    end = event.end.astimezone(session.tz)
    line = (
        f"{start.strftime('%H:%M')} - {end.strftime('%H:%M')} "
        f"({format_duration(event.duration)}) [{_status_mark(event, now)}] "
        f"{click.style(event.project, fg='blue', bold=True)}:{event.task} "
        f"({click.style(event.id, dim=True)})"
    )
    if event.contains(now):
        click.echo("  " + click.style(f"› {line}", fg="yellow"))
    else:
        click.echo(f"    {line}")

    if event.note:
        click.echo(INDENT + click.style(f"↳ ✎: {event.note}", fg="bright_blue"))
    if event.location:
        click.echo(INDENT + click.style(f"↳ ⌂: {event.location}", fg="bright_blue"))


def _print_day(day_events: list[Event], session: Session, now: datetime) -> None:
    """Print a day's events with travel and free time between them."""
    chain = travel_chain(day_events)
    if chain:
        click.echo("           " + click.style(f"↳ ✈: {' → '.join(chain)}", fg="bright_blue", italic=True))

    gaps = {following.id: gap for following, gap in free_gaps(day_events)}
    for event in day_events:
        gap = gaps.get(event.id)
        if gap:
            click.echo(INDENT + click.style("⋮", fg="bright_green"))
            click.echo(INDENT + click.style(f"{format_duration(gap)} free", fg="bright_green"))
            click.echo(INDENT + click.style("⋮", fg="bright_green"))
        _print_event(event, session, now)


def _print_report(report: Report, session: Session, now: datetime) -> None:
    click.echo("+------------------------")
    click.echo("|" + click.style(f"Report for Project: {report.project}", fg="bright_blue", bold=True))
    click.echo("|" + click.style(f"Month/Year: {report.month}/{report.year}", fg="bright_yellow", bold=True))
    click.echo("|" + click.style(f"Timezone: {session.tz.key}", fg="yellow"))
    click.echo(click.style("+---------------", dim=True) + "\n")

    if report.is_empty:
        click.echo(click.style(
            f"No events found for project {report.project} in {report.month}/{report.year}", fg="yellow"
        ))
        return

    for task in report.tasks:
        click.echo(click.style(f"Task: {task.task}", fg="green", bold=True))
        click.echo(f"  Total Time: {format_hm(task.total)}")
        for event in task.events:
            start = event.start.astimezone(session.tz)
            end = event.end.astimezone(session.tz)
            click.echo(
                f"    {start.strftime('%Y-%m-%d %H:%M')} - {end.strftime('%H:%M')} "
                f"[{_status_mark(event, now)}] {event.note or ''} ({click.style(event.id, dim=True)})"
            )
        click.echo()

    click.echo(click.style("Summary", fg="yellow", bold=True))
    click.echo("  " + click.style(f"Total Time  : {format_hm(report.total)}", bold=True))
    click.echo("  " + click.style(f"Planned Time: {format_hm(report.planned)}", fg="bright_blue"))
    click.echo("  " + click.style(f"Booked Time : {format_hm(report.booked)}", fg="bright_green"))

    if report.variance is not None:
        v = report.variance
        color = "green" if v.is_overrun else "red"
        click.echo("  " + click.style(f"Target time : {format_hm(v.target)}", fg="bright_cyan"))
        label = f"{v.label():<12}: {format_hm(abs(v.diff))}"
        click.echo("  " + click.style(label, fg=color) + f" ({v.percentage:+.2f}%)")
    click.echo()


def _confirm_and_commit(
    session: Session,
    event: Event,
    resolution: Resolution,
    yes: bool,
    success: str = "Event added",
) -> None:
    if resolution.overlapped:
        _print_diff(resolution.diff)
        prompt = "Overlapping events found. Add anyway?"
    else:
        click.echo(click.style("New event:", fg="yellow", bold=True))
        click.echo(click.style(f"+ {event.format_for_diff()}", fg="green"))
        prompt = "Add this event?"

    if not yes and not click.confirm(prompt, default=False):
        click.echo(click.style("Event not added", fg="yellow"))
        return

    try:
        session.commit(resolution.events)
    except PlantrackError as e:
        _fail(e)
    click.echo(click.style(success, fg="green"))


def _confirm_changes(session: Session, resolution: Resolution, yes: bool, prompt: str) -> bool:
    """Show the diff and commit on confirmation. Returns True if committed."""
    _print_diff(resolution.diff)
    if not yes and not click.confirm(prompt, default=False):
        return False
    try:
        session.commit(resolution.events)
    except PlantrackError as e:
        _fail(e)
    return True


# ============== Commands ==============


@click.group()
@click.version_option(package_name="plantrack")
@click.option("--config-file", "-c", type=click.Path(path_type=Path), default=None,
              help="Path to the config file.")
@click.option("--rounding", "-r", type=click.IntRange(min=1), default=None,
              help="Rounding interval in minutes.")
@click.option("--timezone", "-t", "timezone_name", default=None,
              help='Timezone for displaying events (e.g., "America/New_York").')
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx, config_file: Path | None, rounding: int | None, timezone_name: str | None, debug: bool):
    """plantrack - plan and track multiple activities."""
    if debug:
        logging.basicConfig(
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            level=logging.DEBUG,
        )
    ctx.ensure_object(dict)
    ctx.obj.update(config_file=config_file, rounding=rounding, timezone=timezone_name)


@main.command()
@click.argument("project_task")
@click.argument("timespan")
@click.option("--date", "-d", "target_date", default=None, help="Date (YYYY-MM-DD), defaults to today")
@click.option("--note", "-n", default=None, help="Optional note for the event.")
@click.option("--location", "-l", default=None, help="Optional location for the event.")
@click.option("--booked", "-b", is_flag=True, help="Mark event as booked.")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation.")
@click.pass_context
def add(ctx, project_task, timespan, target_date, note, location, booked, yes):
    """Add a new event, e.g. 'ProjectA:TaskB 14:30-15:00'."""
    session = _session(ctx)
    events = _load(session)
    try:
        event, resolution = plan_add(
            session, events, project_task, timespan, target_date,
            note=note, location=location, booked=booked,
        )
    except PlantrackError as e:
        _fail(e)
    _confirm_and_commit(session, event, resolution, yes)


@main.command()
@click.argument("project_task")
@click.option("--minutes", "-m", type=click.IntRange(min=1), default=None,
              help="Duration in minutes. Defaults to the rounding interval.")
@click.option("--note", "-n", default=None, help="Optional note for the event.")
@click.option("--location", "-l", default=None, help="Optional location for the event.")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation.")
@click.pass_context
def quickadd(ctx, project_task, minutes, note, location, yes):
    """Quickly add a booked event starting now."""
    session = _session(ctx)
    events = _load(session)
    try:
        event, resolution = plan_quickadd(
            session, events, project_task, minutes, note=note, location=location
        )
    except PlantrackError as e:
        _fail(e)
    _confirm_and_commit(session, event, resolution, yes)


@main.command()
@click.argument("project_task")
@click.option("--minutes", "-m", type=click.IntRange(min=1), required=True, help="Duration in minutes.")
@click.option("--date", "-d", "target_date", default=None, help="Date (YYYY-MM-DD), defaults to today")
@click.option("--window", "-w", default=None, help="Search window HH:MM-HH:MM, defaults to the whole day")
@click.option("--note", "-n", default=None, help="Optional note for the event.")
@click.option("--location", "-l", default=None, help="Optional location for the event.")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation.")
@click.pass_context
def todo(ctx, project_task, minutes, target_date, window, note, location, yes):
    """Plan a tentative event in the first free slot."""
    session = _session(ctx)
    events = _load(session)
    try:
        event, resolution = plan_todo(
            session, events, project_task, minutes, target_date, window,
            note=note, location=location,
        )
    except PlantrackError as e:
        _fail(e)
    _confirm_and_commit(session, event, resolution, yes, success="Event planned")


@main.command()
@click.argument("project_task")
@click.option("--minutes", "-m", type=click.IntRange(min=1), required=True, help="Duration in minutes.")
@click.option("--note", "-n", default=None, help="Optional note for the booked part.")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation.")
@click.pass_context
def book(ctx, project_task, minutes, note, yes):
    """Book time at the start of the next planned event with this label."""
    session = _session(ctx)
    events = _load(session)
    try:
        event, resolution = plan_booking(session, events, project_task, minutes, note=note)
    except PlantrackError as e:
        _fail(e)
    _confirm_and_commit(session, event, resolution, yes, success="Event booked")


@main.command("list")
@click.option("--days", type=click.IntRange(min=0), default=4, show_default=True,
              help="Number of days to look back and forward.")
@click.option("--date", "target_date", default=None, help="Centre date (YYYY-MM-DD), defaults to today")
@click.pass_context
def list_cmd(ctx, days, target_date):
    """List scheduled events around a date."""
    session = _session(ctx)
    events = _load(session)
    now = datetime.now(timezone.utc)
    today = local_today(session.tz, now)

    if not events:
        click.echo(click.style("No events found", fg="yellow"))
        return

    centre = today
    if target_date:
        try:
            centre = parse_date(target_date)
        except PlantrackError:
            click.echo(click.style("Invalid date format. Using today.", fg="yellow"))

    click.echo(
        f"Showing events within +/- {click.style(f'{days} days', fg='yellow', bold=True)} "
        f"from {centre} in timezone: {click.style(session.tz.key, fg='green', bold=True)}"
    )

    for offset in range(-days, days + 1):
        day = centre + timedelta(days=offset)
        header = day.strftime("%Y-%m-%d - %a")
        color = "green" if day == today else "bright_blue"
        click.echo(click.style(header, fg=color, bold=True))

        day_events = events_on_day(events, day, session.tz)
        if day_events:
            _print_day(day_events, session, now)
        else:
            click.echo("    " + click.style("No events", italic=True))
        click.echo()


@main.command()
@click.argument("project")
@click.option("--month", "-m", type=click.IntRange(1, 12), default=None, help="Reporting month. Defaults to current month")
@click.option("--year", "-y", type=int, default=None, help="Reporting year. Defaults to current year")
@click.option("--target", "-t", type=float, default=None, metavar="HOURS",
              help="Target time in hours for the period (e.g., 10.5).")
@click.pass_context
def report(ctx, project, month, year, target):
    """Generate a monthly report for a project."""
    session = _session(ctx)
    events = _load(session)
    now = datetime.now(timezone.utc)
    result = build_report(session, events, project, month, year, target, now=now)
    _print_report(result, session, now)


@main.command()
@click.argument("timespan")
@click.option("--date", "-d", "target_date", default=None, help="Date (YYYY-MM-DD), defaults to today")
@click.pass_context
def free(ctx, timespan, target_date):
    """Check if a time slot is free."""
    session = _session(ctx)
    events = _load(session)
    now = datetime.now(timezone.utc)
    try:
        start, end = session.span(timespan, target_date, now)
    except PlantrackError as e:
        _fail(e)

    local_start = start.astimezone(session.tz)
    local_end = end.astimezone(session.tz)
    where = f"Slot {local_start.strftime('%H:%M')} - {local_end.strftime('%H:%M')} on {local_start.strftime('%Y-%m-%d')}"

    result = check_slot(events, start, end)
    if result.status is SlotStatus.FREE:
        click.echo(click.style(f"\n{where} is free", fg="green"))
    else:
        color = "red" if result.status is SlotStatus.BOOKED else "yellow"
        click.echo("\n" + click.style(f"{where} is already {result.status.value}", fg=color))
        click.echo(click.style("Conflicting event:", fg="bright_red"))
        for event in result.conflicts:
            _print_event(event, session, now)

    day = local_start.date()
    day_events = events_on_day(events, day, session.tz)
    if not day_events:
        click.echo("\n" + click.style(f"No events on {day}", fg="bright_green"))
        return
    click.echo("\n" + click.style(f"All events on {day}:", fg="blue", bold=True))
    _print_day(day_events, session, now)


@main.command()
@click.pass_context
def current(ctx):
    """Show the current project:task."""
    session = _session(ctx)
    event = current_event(_load(session), datetime.now(timezone.utc))
    if event is None:
        click.echo("🗓 No event")
    else:
        click.echo(f"🗓 {event.summary}")


@main.command()
@click.pass_context
def push(ctx):
    """Export the calendar and run the configured push command."""
    session = _session(ctx)
    events = _load(session)
    try:
        count = session.push(events)
    except PlantrackError as e:
        _fail(e)
    click.echo(f"{count} events exported to {session.exporter.ics_file}")


@main.command()
@click.argument("days", type=click.IntRange(min=0))
@click.pass_context
def cleanup(ctx, days):
    """Remove events that ended more than DAYS days ago."""
    session = _session(ctx)
    events = _load(session)
    now = datetime.now(timezone.utc)
    kept = cleanup_events(events, days, now)
    try:
        session.commit(kept, now)
    except PlantrackError as e:
        _fail(e)
    click.echo(f"Cleaned up {len(events) - len(kept)} events older than {days} days.")


@main.command("set")
@click.argument("event_id")
@click.option("--location", "-l", default=None, help="New location ('' clears it).")
@click.option("--note", "-n", default=None, help="New note ('' clears it).")
@click.option("--booked/--tentative", default=None, help="Mark event as booked or tentative.")
@click.option("--span", "-s", default=None, help="New time span HH:MM-HH:MM (assigns a new ID).")
@click.option("--date", "-d", "target_date", default=None, help="Date for --span (YYYY-MM-DD)")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation.")
@click.pass_context
def set_cmd(ctx, event_id, location, note, booked, span, target_date, yes):
    """Modify an existing event."""
    session = _session(ctx)
    events = _load(session)
    try:
        new_span = session.span(span, target_date) if span else None
        resolution = update_event(
            events, event_id, note=note, location=location, booked=booked, span=new_span
        )
    except PlantrackError as e:
        _fail(e)

    if new_span is not None:
        if not _confirm_changes(session, resolution, yes, "Apply these changes?"):
            click.echo(click.style("Event not modified", fg="yellow"))
            return
    else:
        if not resolution.diff.is_empty:
            _print_diff(resolution.diff)
        try:
            session.commit(resolution.events)
        except PlantrackError as e:
            _fail(e)

    new_id = resolution.event.id if resolution.event else event_id
    click.echo(f"Event with ID {click.style(new_id, fg='green', bold=True)} modified")


@main.command()
@click.argument("event_id")
@click.option("--span", "-s", default=None, help="Only remove this HH:MM-HH:MM part of the event.")
@click.option("--date", "-d", "target_date", default=None, help="Date for --span (YYYY-MM-DD)")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation.")
@click.pass_context
def delete(ctx, event_id, span, target_date, yes):
    """Delete an event by ID."""
    session = _session(ctx)
    events = _load(session)
    try:
        carve = session.span(span, target_date) if span else None
        resolution = delete_event(events, event_id, carve)
    except PlantrackError as e:
        _fail(e)

    if carve is not None:
        if not _confirm_changes(session, resolution, yes, "Remove this part of the event?"):
            click.echo(click.style("Event not modified", fg="yellow"))
            return
    else:
        try:
            session.commit(resolution.events)
        except PlantrackError as e:
            _fail(e)
    click.echo(f"Event with ID {click.style(event_id, fg='green', bold=True)} deleted")


if __name__ == "__main__":
    main()
