"""Tests for engine settings."""

from datetime import timedelta
from pathlib import Path

import pytest

from swellstrike import config
from swellstrike.config import ConfigurationError, EngineSettings


class TestFromEnv:
    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("SWELLSTRIKE_REFRESH_MINUTES", "10")
        monkeypatch.setenv("SWELLSTRIKE_MAX_WORKERS", "8")
        monkeypatch.setenv("SWELLSTRIKE_CALL_TIMEOUT", "3")
        monkeypatch.setenv("SWELLSTRIKE_CYCLE_DEADLINE", "45")
        monkeypatch.setenv("SWELLSTRIKE_MAX_SILENCE_MINUTES", "90")
        monkeypatch.setenv("SWELLSTRIKE_DB_PATH", "/tmp/strikes.duckdb")
        monkeypatch.setenv("OPENWEATHER_API_KEY", "abc123")

        settings = EngineSettings.from_env()

        assert settings.refresh_interval == timedelta(minutes=10)
        assert settings.max_workers == 8
        assert settings.call_timeout == 3.0
        assert settings.cycle_deadline == 45.0
        assert settings.max_silence == timedelta(minutes=90)
        assert settings.db_path == Path("/tmp/strikes.duckdb")
        assert settings.openweather_api_key == "abc123"

    def test_blank_api_key_is_none(self, monkeypatch):
        monkeypatch.setenv("OPENWEATHER_API_KEY", "")
        assert EngineSettings.from_env().openweather_api_key is None


class TestValidate:
    def test_defaults_are_valid(self):
        settings = EngineSettings(cycle_deadline=120.0, call_timeout=15.0)
        assert settings.validate() is settings

    @pytest.mark.parametrize(
        "overrides,message",
        [
            ({"refresh_interval": timedelta(0)}, "refresh_interval"),
            ({"max_workers": 0}, "max_workers"),
            ({"call_timeout": 0}, "call_timeout"),
            ({"call_timeout": 30.0, "cycle_deadline": 10.0}, "shorter than"),
            ({"max_silence": timedelta(minutes=-1)}, "max_silence"),
        ],
    )
    def test_rejects(self, overrides, message):
        base = {"call_timeout": 15.0, "cycle_deadline": 120.0}
        base.update(overrides)
        with pytest.raises(ConfigurationError, match=message):
            EngineSettings(**base).validate()

    def test_configuration_error_is_value_error(self):
        assert issubclass(ConfigurationError, ValueError)


class TestAnnotations:
    def test_api_key_annotations_agree(self):
        """The module default and the settings field share one Optional spelling."""
        assert config.__annotations__["OPENWEATHER_API_KEY"] == "Optional[str]"
        assert EngineSettings.__annotations__["openweather_api_key"] == "Optional[str]"
