"""Tests for configuration loading."""

import os
from unittest.mock import patch

from plantrack.config import (
    Config,
    ensure_config,
    load_config,
    resolve_rounding,
    resolve_timezone_name,
)


class TestLoadConfig:
    def test_missing_file_gives_defaults(self, tmp_path):
        config = load_config(tmp_path / "nope.conf")
        assert config.rounding == 15
        assert config.export_notes is True
        assert config.export_past_days == 7
        assert config.push_command == ""

    def test_parses_values(self, tmp_path):
        config_file = tmp_path / "plantrack.conf"
        config_file.write_text(
            "# comment\n"
            'SCHEDULE_FILE="/data/schedule.json"\n'
            "ICS_FILE='/www/cal.ics'\n"
            "TIMEZONE=Europe/Berlin  # local\n"
            "EXPORT_NOTES=false\n"
            "EXPORT_PAST_DAYS=30\n"
            "ROUNDING=5\n"
            'PUSH_COMMAND="rsync /www/cal.ics host:/srv/"\n'
            "not a setting\n"
        )

        config = load_config(config_file)

        assert config.schedule_file == "/data/schedule.json"
        assert config.ics_file == "/www/cal.ics"
        assert config.timezone == "Europe/Berlin"
        assert config.export_notes is False
        assert config.export_past_days == 30
        assert config.rounding == 5
        assert config.push_command == "rsync /www/cal.ics host:/srv/"

    def test_relative_paths_resolve_against_config_dir(self, tmp_path):
        config_file = tmp_path / "plantrack.conf"
        config_file.write_text("SCHEDULE_FILE=data/s.json\n")
        config = load_config(config_file)
        assert config.schedule_path == tmp_path / "data" / "s.json"

    def test_invalid_integer_is_ignored(self, tmp_path):
        config_file = tmp_path / "plantrack.conf"
        config_file.write_text("ROUNDING=quarter\nEXPORT_PAST_DAYS=week\n")
        config = load_config(config_file)
        assert config.rounding == 15
        assert config.export_past_days == 7


class TestEnsureConfig:
    def test_creates_loadable_default(self, tmp_path):
        config_file = tmp_path / "home" / "plantrack.conf"

        assert ensure_config(config_file) == config_file
        config = load_config(config_file)

        assert config.schedule_path == tmp_path / "home" / "data" / "schedule.json"
        assert config.ics_path == tmp_path / "home" / "data" / "schedule.ics"
        assert (tmp_path / "home" / "data").is_dir()

    def test_does_not_overwrite(self, tmp_path):
        config_file = tmp_path / "plantrack.conf"
        config_file.write_text("ROUNDING=30\n")
        ensure_config(config_file)
        assert config_file.read_text() == "ROUNDING=30\n"


class TestResolveTimezoneName:
    def test_cli_wins(self):
        with patch.dict(os.environ, {"TZ": "Asia/Tokyo"}):
            assert resolve_timezone_name("Europe/Paris", Config(timezone="Europe/Berlin")) == "Europe/Paris"

    def test_env_before_config(self):
        with patch.dict(os.environ, {"TZ": "Asia/Tokyo"}):
            assert resolve_timezone_name(None, Config(timezone="Europe/Berlin")) == "Asia/Tokyo"

    def test_unusable_env_is_skipped(self):
        with patch.dict(os.environ, {"TZ": "EST5EDT,M3.2.0,M11.1.0"}):
            assert resolve_timezone_name(None, Config(timezone="Europe/Berlin")) == "Europe/Berlin"

    def test_falls_back_to_utc(self):
        with patch.dict(os.environ, {}, clear=True):
            assert resolve_timezone_name(None, Config()) == "UTC"


class TestResolveRounding:
    def test_precedence(self):
        assert resolve_rounding(5, Config(rounding=30)) == 5
        assert resolve_rounding(None, Config(rounding=30)) == 30
        assert resolve_rounding(None, Config(rounding=0)) == 15
