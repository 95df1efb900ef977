"""Time rounding and range parsing - pure, clock and timezone are explicit inputs."""

import logging
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .errors import InvalidFormatError

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60


def _check_interval(interval: int) -> None:
    if interval <= 0:
        raise InvalidFormatError(f"Rounding interval must be a positive number of minutes, got {interval}")


def round_time(t: time, interval: int, round_up: bool) -> time:
    """
    Round a time of day to the nearest interval boundary.

    The remainder is taken over minutes since midnight. Seconds are always
    zeroed, and rounding up past midnight wraps the hour modulo 24. Day
    carry is the caller's concern (see round_instant).

    Examples (interval=15):
        14:07 down -> 14:00
        14:07 up   -> 14:15
        23:55 up   -> 00:00
    """
    _check_interval(interval)
    minutes = t.hour * 60 + t.minute
    remainder = minutes % interval

    if remainder == 0:
        new_minutes = minutes
    elif round_up:
        new_minutes = minutes + (interval - remainder)
    else:
        new_minutes = minutes - remainder

    new_minutes %= MINUTES_PER_DAY
    return time(new_minutes // 60, new_minutes % 60, tzinfo=t.tzinfo)


def round_instant(dt: datetime, interval: int, round_up: bool) -> datetime:
    """
    Round a datetime to the interval in its own wall-clock.

    Same rule as round_time, but done with instant arithmetic so that
    rounding 23:55 up rolls over into the next calendar day.
    """
    _check_interval(interval)
    base = dt.replace(second=0, microsecond=0)
    remainder = (base.hour * 60 + base.minute) % interval

    if remainder == 0:
        return base
    if round_up:
        return base + timedelta(minutes=interval - remainder)
    return base - timedelta(minutes=remainder)


def resolve_timezone(name: str) -> ZoneInfo:
    """Resolve an IANA timezone name like 'America/New_York'."""
    if not name or not name.strip():
        raise InvalidFormatError("Timezone name is empty")
    try:
        return ZoneInfo(name.strip())
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise InvalidFormatError(
            f"Invalid timezone {name!r}. Use IANA format (e.g., America/New_York)."
        ) from e


def parse_date(value: str) -> date:
    """Parse a YYYY-MM-DD calendar date."""
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except ValueError as e:
        raise InvalidFormatError(f"Invalid date format: {value!r} (expected YYYY-MM-DD)") from e


def parse_clock(value: str) -> time:
    """Parse an HH:MM time of day."""
    try:
        return datetime.strptime(value.strip(), "%H:%M").time()
    except ValueError as e:
        raise InvalidFormatError(f"Invalid time format: {value!r} (expected HH:MM)") from e


def local_today(tz: ZoneInfo, now: datetime | None = None) -> date:
    """Today's date as seen in the given timezone."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(tz).date()


def parse_range(
    span: str,
    target_date: str | date | None = None,
    *,
    interval: int,
    tz: ZoneInfo,
    now: datetime | None = None,
) -> tuple[datetime, datetime]:
    """
    Parse an "HH:MM-HH:MM" span into a pair of UTC instants.

    Args:
        span: Local time range, split on the last '-'
        target_date: Calendar date (YYYY-MM-DD string or date). Defaults to today in tz
        interval: Rounding interval in minutes (start rounds down, end rounds up)
        tz: Timezone the span is expressed in
        now: Reference instant used to resolve "today"

    Returns:
        (start_utc, end_utc)

    An end before the start is taken to span past midnight.
    """
    start_str, sep, end_str = span.rpartition("-")
    if not sep or not start_str.strip() or not end_str.strip():
        raise InvalidFormatError(f"Invalid timespan format: {span!r} (expected HH:MM-HH:MM)")

    if target_date is None:
        day = local_today(tz, now)
    elif isinstance(target_date, date):
        day = target_date
    else:
        day = parse_date(target_date)

    start_local = datetime.combine(day, parse_clock(start_str), tzinfo=tz)
    end_local = datetime.combine(day, parse_clock(end_str), tzinfo=tz)

    # Overnight span
    if end_local < start_local:
        end_local = end_local + timedelta(days=1)

    start_local = round_instant(start_local, interval, round_up=False)
    end_local = round_instant(end_local, interval, round_up=True)

    if end_local <= start_local:
        raise InvalidFormatError(f"Timespan {span!r} is empty")

    start_utc = start_local.astimezone(timezone.utc)
    end_utc = end_local.astimezone(timezone.utc)
    logger.debug(f"Parsed {span!r} on {day} ({tz.key}) as {start_utc.isoformat()} - {end_utc.isoformat()}")
    return start_utc, end_utc
