"""Configuration management for plantrack."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from .core.errors import InvalidFormatError
from .core.timeparse import resolve_timezone

logger = logging.getLogger(__name__)

PLANTRACK_HOME = Path(os.environ.get("PLANTRACK_HOME", Path.home() / ".plantrack"))
CONFIG_FILE = PLANTRACK_HOME / "plantrack.conf"
DATA_DIR = PLANTRACK_HOME / "data"

DEFAULT_ROUNDING = 15
DEFAULT_TIMEZONE = "UTC"

DEFAULT_CONFIG_TEMPLATE = """\
# plantrack configuration
SCHEDULE_FILE="{schedule_file}"
ICS_FILE="{ics_file}"
# IANA timezone, e.g. "Europe/Berlin". Falls back to $TZ, then UTC.
TIMEZONE=""
EXPORT_NOTES=true
EXPORT_PAST_DAYS=7
ROUNDING=15
# Shell command run by 'plantrack push' after the ICS export
PUSH_COMMAND=""
"""


@dataclass
class Config:
    """plantrack configuration."""

    schedule_file: str = str(DATA_DIR / "schedule.json")
    ics_file: str = str(DATA_DIR / "schedule.ics")
    timezone: str = ""
    export_notes: bool = True
    export_past_days: int = 7
    rounding: int = DEFAULT_ROUNDING
    push_command: str = ""

    @property
    def schedule_path(self) -> Path:
        return Path(self.schedule_file).expanduser()

    @property
    def ics_path(self) -> Path:
        return Path(self.ics_file).expanduser()


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _unquote(value: str) -> str:
    """Strip quotes, or an inline comment from an unquoted value."""
    if value.startswith('"') or value.startswith("'"):
        quote = value[0]
        end_quote = value.find(quote, 1)
        if end_quote != -1:
            return value[1:end_quote]
        return value[1:]
    if "#" in value:
        return value.split("#")[0].strip()
    return value


def load_config(config_file: Path | None = None) -> Config:
    """Load configuration from plantrack.conf, or defaults if it is missing."""
    config = Config()
    config_file = config_file or CONFIG_FILE

    if not config_file.exists():
        return config

    base_dir = config_file.parent

    for line in config_file.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        if "=" not in line:
            continue

        key, _, value = line.partition("=")
        key = key.strip().lower()
        value = _unquote(value.strip())

        match key:
            case "schedule_file":
                if value:
                    config.schedule_file = str(base_dir / Path(value).expanduser())
            case "ics_file":
                if value:
                    config.ics_file = str(base_dir / Path(value).expanduser())
            case "timezone":
                config.timezone = value
            case "export_notes":
                config.export_notes = _parse_bool(value)
            case "export_past_days":
                try:
                    config.export_past_days = int(value)
                except ValueError:
                    logger.warning(f"Ignoring invalid EXPORT_PAST_DAYS: {value!r}")
            case "rounding":
                try:
                    config.rounding = int(value)
                except ValueError:
                    logger.warning(f"Ignoring invalid ROUNDING: {value!r}")
            case "push_command":
                config.push_command = value
            case _:
                logger.debug(f"Unknown config key: {key}")

    return config


def ensure_config(config_file: Path | None = None) -> Path:
    """Write a default config file if none exists. Returns its path."""
    config_file = config_file or CONFIG_FILE
    if config_file.exists():
        return config_file

    data_dir = config_file.parent / "data"
    config_file.parent.mkdir(parents=True, exist_ok=True)
    data_dir.mkdir(parents=True, exist_ok=True)
    config_file.write_text(
        DEFAULT_CONFIG_TEMPLATE.format(
            schedule_file=data_dir / "schedule.json",
            ics_file=data_dir / "schedule.ics",
        )
    )
    logger.info(f"Created default config file at {config_file}")
    return config_file


def resolve_timezone_name(cli_value: str | None, config: Config) -> str:
    """
    Pick the timezone: CLI flag, then $TZ, then config, then UTC.

    An unparseable $TZ (e.g. POSIX rules like "EST5EDT,M3.2.0") is skipped;
    an invalid CLI value is left for the caller to reject.
    """
    if cli_value and cli_value.strip():
        return cli_value.strip()

    env_tz = os.environ.get("TZ", "").strip()
    if env_tz:
        try:
            resolve_timezone(env_tz)
            return env_tz
        except InvalidFormatError:
            logger.debug(f"Ignoring unusable TZ environment value: {env_tz!r}")

    if config.timezone.strip():
        return config.timezone.strip()
    return DEFAULT_TIMEZONE


def resolve_rounding(cli_value: int | None, config: Config) -> int:
    """Pick the rounding interval: CLI flag, then config, then 15 minutes."""
    if cli_value is not None:
        return cli_value
    return config.rounding or DEFAULT_ROUNDING
