"""Domain-specific exception types."""


class PlantrackError(Exception):
    """Base application error."""


class InvalidFormatError(PlantrackError):
    """Raised when a time, date, range, label or timezone cannot be parsed."""


class NotFoundError(PlantrackError):
    """Raised when a referenced event, free slot or matching event does not exist."""


class StoreError(PlantrackError):
    """Raised when the schedule file cannot be read or written."""


class PushError(PlantrackError):
    """Raised when the configured push command fails."""
