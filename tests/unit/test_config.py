"""Unit tests for configuration (farmfocus/config.py)"""
import pytest
from zoneinfo import ZoneInfo

from farmfocus import config
from farmfocus.exceptions import ConfigurationError


class TestParseTimeOfDay:
    """Tests for HH:MM trigger parsing"""

    @pytest.mark.parametrize("value,expected", [("00:05", (0, 5)), ("23:59", (23, 59)), ("09:30", (9, 30))])
    def test_valid(self, value, expected):
        assert config.parse_time_of_day(value) == expected

    @pytest.mark.parametrize("value", ["24:00", "9:30", "12:60", "noon", "", None])
    def test_invalid(self, value):
        with pytest.raises(ConfigurationError) as exc_info:
            config.parse_time_of_day(value, "HABIT_RESET_TIME")

        assert exc_info.value.config_key == "HABIT_RESET_TIME"


class TestTimezone:
    """Tests for APP_TIMEZONE resolution"""

    def test_known_timezone(self, monkeypatch):
        monkeypatch.setattr(config, "APP_TIMEZONE", "Europe/Berlin")

        assert config.get_timezone() == ZoneInfo("Europe/Berlin")

    def test_unknown_timezone(self, monkeypatch):
        monkeypatch.setattr(config, "APP_TIMEZONE", "Mars/Olympus_Mons")

        with pytest.raises(ConfigurationError):
            config.get_timezone()


class TestConfigValidation:
    """Tests for validate_config"""

    def test_defaults_are_valid(self, monkeypatch):
        monkeypatch.setattr(config, "STORE_BACKEND", "memory")

        config.validate_config()

    def test_unknown_backend(self, monkeypatch):
        monkeypatch.setattr(config, "STORE_BACKEND", "sqlite")

        with pytest.raises(ConfigurationError) as exc_info:
            config.validate_config()

        assert exc_info.value.config_key == "STORE_BACKEND"

    def test_postgres_requires_database_url(self, monkeypatch):
        monkeypatch.setattr(config, "STORE_BACKEND", "postgres")
        monkeypatch.setattr(config, "DATABASE_URL", "")

        with pytest.raises(ConfigurationError, match="DATABASE_URL"):
            config.validate_config()

    def test_bad_trigger_time(self, monkeypatch):
        monkeypatch.setattr(config, "STORE_BACKEND", "memory")
        monkeypatch.setattr(config, "SHOP_RESTOCK_TIME", "midnight")

        with pytest.raises(ConfigurationError) as exc_info:
            config.validate_config()

        assert exc_info.value.config_key == "SHOP_RESTOCK_TIME"

    def test_bed_count_must_be_positive(self, monkeypatch):
        monkeypatch.setattr(config, "STORE_BACKEND", "memory")
        monkeypatch.setattr(config, "INITIAL_BED_COUNT", 0)

        with pytest.raises(ConfigurationError):
            config.validate_config()
