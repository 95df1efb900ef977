"""Identity-keyed structural diff between two event snapshots."""

from dataclasses import dataclass, field
from typing import Any

from .events import Event

DIFF_FIELDS = ("start", "end", "summary", "note", "location", "booked")
OPTIONAL_TEXT_FIELDS = ("note", "location")


@dataclass(frozen=True)
class FieldChange:
    """A single field difference on an event present in both snapshots."""

    field: str
    old: Any
    new: Any
    kind: str = "changed"  # "changed", "added" or "removed"

    def format(self) -> str:
        if self.kind == "added":
            return f"{self.field}: + {_render(self.new)}"
        if self.kind == "removed":
            return f"{self.field}: - {_render(self.old)}"
        return f"{self.field}: {_render(self.old)} -> {_render(self.new)}"


@dataclass(frozen=True)
class EventChange:
    """An event whose id survived but whose fields differ."""

    before: Event
    after: Event
    changes: list[FieldChange]


@dataclass
class EventDiff:
    """Added, removed and modified events between two snapshots."""

    added: list[Event] = field(default_factory=list)
    removed: list[Event] = field(default_factory=list)
    modified: list[EventChange] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.removed or self.modified)

    def format_lines(self) -> list[tuple[str, str]]:
        """
        Render as (marker, text) pairs.

        Markers are '-' for removed, '+' for added and '~' for modified,
        so callers can colour them without re-deriving the diff.
        """
        lines = [("-", e.format_for_diff()) for e in self.removed]
        lines.extend(("+", e.format_for_diff()) for e in self.added)
        for change in self.modified:
            detail = "; ".join(c.format() for c in change.changes)
            lines.append(("~", f"{change.after.format_for_diff()} [{detail}]"))
        return lines


def _render(value: Any) -> str:
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


def compare_fields(before: Event, after: Event) -> list[FieldChange]:
    """Per-field differences between two versions of the same event."""
    changes = []
    for name in DIFF_FIELDS:
        old = getattr(before, name)
        new = getattr(after, name)
        if old == new:
            continue
        kind = "changed"
        if name in OPTIONAL_TEXT_FIELDS:
            if not old:
                kind = "added"
            elif not new:
                kind = "removed"
        changes.append(FieldChange(field=name, old=old, new=new, kind=kind))
    return changes


def diff_events(before: list[Event], after: list[Event]) -> EventDiff:
    """
    Compute an id-keyed diff.

    Ordering follows the input: removed in `before` order, added and
    modified in `after` order.
    """
    before_by_id = {e.id: e for e in before}
    after_ids = {e.id for e in after}

    result = EventDiff()
    result.removed = [e for e in before if e.id not in after_ids]

    for event in after:
        previous = before_by_id.get(event.id)
        if previous is None:
            result.added.append(event)
            continue
        changes = compare_fields(previous, event)
        if changes:
            result.modified.append(EventChange(before=previous, after=event, changes=changes))

    return result
