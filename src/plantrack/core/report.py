"""Monthly per-project time reports - pure aggregation, no I/O."""

from dataclasses import dataclass, field
from datetime import timedelta, tzinfo

from .events import Event, sort_events_by_start


def format_duration(duration: timedelta) -> str:
    """Compact clock form, e.g. '01:30h'."""
    total_minutes = int(duration.total_seconds() // 60)
    hours, minutes = divmod(total_minutes, 60)
    return f"{hours:02}:{minutes:02}h"


def format_hm(duration: timedelta) -> str:
    """Report form, e.g. '5h 30m'. Negative durations keep their sign."""
    total_minutes = int(duration.total_seconds() // 60)
    sign = "-" if total_minutes < 0 else ""
    hours, minutes = divmod(abs(total_minutes), 60)
    return f"{sign}{hours}h {minutes}m"


@dataclass
class TaskTotal:
    """All of a project's events for one task."""

    task: str
    events: list[Event] = field(default_factory=list)

    @property
    def total(self) -> timedelta:
        return sum((e.duration for e in self.events), timedelta(0))


@dataclass
class Variance:
    """Logged time against a target."""

    target: timedelta
    diff: timedelta
    percentage: float

    @property
    def is_overrun(self) -> bool:
        return self.diff > timedelta(0)

    @property
    def is_underrun(self) -> bool:
        return self.diff < timedelta(0)

    def label(self) -> str:
        return "Overrun" if self.is_overrun else "Underrun"


@dataclass
class Report:
    """Aggregated time for a project over one calendar month."""

    project: str
    year: int
    month: int
    tasks: list[TaskTotal] = field(default_factory=list)
    total: timedelta = timedelta(0)
    booked: timedelta = timedelta(0)
    planned: timedelta = timedelta(0)
    variance: Variance | None = None

    @property
    def is_empty(self) -> bool:
        return not self.tasks


def compute_variance(total: timedelta, target_hours: float) -> Variance:
    """
    Compare a total against a target given in fractional hours.

    The target is truncated to whole minutes. Percentage is
    diff / target * 100 rounded to 2 decimals, and 0 for a zero target.
    """
    target = timedelta(minutes=int(target_hours * 60))
    diff = total - target
    if target == timedelta(0):
        percentage = 0.0
    else:
        percentage = round(diff / target * 100, 2)
    return Variance(target=target, diff=diff, percentage=percentage)


def aggregate(
    events: list[Event],
    project: str,
    year: int,
    month: int,
    *,
    tz: tzinfo,
    target_hours: float | None = None,
) -> Report:
    """
    Build a report for `project` over year/month.

    Events are selected by a "<project>:" summary prefix and by their start
    month as seen in `tz`, then grouped by task (sorted by name).
    """
    prefix = f"{project}:"
    selected = [
        e for e in sort_events_by_start(events)
        if e.summary.startswith(prefix)
        and e.start.astimezone(tz).year == year
        and e.start.astimezone(tz).month == month
    ]

    report = Report(project=project, year=year, month=month)

    by_task: dict[str, TaskTotal] = {}
    for event in selected:
        by_task.setdefault(event.task, TaskTotal(task=event.task)).events.append(event)
        report.total += event.duration
        if event.booked:
            report.booked += event.duration
        else:
            report.planned += event.duration

    report.tasks = [by_task[name] for name in sorted(by_task)]

    if target_hours is not None:
        report.variance = compute_variance(report.total, target_hours)

    return report
