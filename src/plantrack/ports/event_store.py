"""Event storage interface."""

from typing import Protocol

from plantrack.core.events import Event


class EventStore(Protocol):
    """Interface for loading and saving the full event collection."""

    def load(self) -> list[Event]:
        """Load all events. Returns an empty list if nothing is stored yet."""
        ...

    def save(self, events: list[Event]) -> None:
        """Replace the stored collection with `events`."""
        ...
