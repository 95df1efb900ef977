"""Adapters - I/O implementations of ports."""

from .json_store import JsonEventStore
from .ics_export import IcsExporter
from .push_command import ShellPushCommand

__all__ = [
    "JsonEventStore",
    "IcsExporter",
    "ShellPushCommand",
]
