from datetime import timedelta

import pytest

from backend.educore.config import ConfigError, Settings, parse_duration

SECRET = "x" * 32


def test_parse_duration_units():
    assert parse_duration("8h") == timedelta(hours=8)
    assert parse_duration("30m") == timedelta(minutes=30)
    assert parse_duration("7d") == timedelta(days=7)
    assert parse_duration("3600") == timedelta(seconds=3600)
    with pytest.raises(ValueError):
        parse_duration("eight hours")


def test_from_env_defaults():
    settings = Settings.from_env({"JWT_SECRET": SECRET})
    assert settings.port == 5000
    assert settings.jwt_expires_in == timedelta(hours=8)
    assert settings.rate_limit == "200 per 900 seconds"
    assert settings.seed_default_data is True
    assert not settings.is_production


def test_from_env_reads_overrides():
    settings = Settings.from_env(
        {
            "JWT_SECRET": SECRET,
            "PORT": "8080",
            "ENVIRONMENT": "Production",
            "JWT_EXPIRES_IN": "30m",
            "SEED_DEFAULT_DATA": "false",
            "RATE_LIMIT_MAX": "5",
            "RATE_LIMIT_WINDOW_SECONDS": "60",
        }
    )
    assert settings.port == 8080
    assert settings.is_production
    assert settings.jwt_expires_in == timedelta(minutes=30)
    assert settings.seed_default_data is False
    assert settings.rate_limit == "5 per 60 seconds"


def test_short_secret_and_bad_environment_are_reported_together():
    with pytest.raises(ConfigError) as excinfo:
        Settings.from_env({"JWT_SECRET": "short", "ENVIRONMENT": "staging"})
    assert len(excinfo.value.problems) == 2


def test_non_numeric_values_are_reported():
    with pytest.raises(ConfigError) as excinfo:
        Settings.from_env({"JWT_SECRET": SECRET, "PORT": "http", "JWT_EXPIRES_IN": "soon"})
    assert any("PORT" in problem for problem in excinfo.value.problems)
    assert any("JWT_EXPIRES_IN" in problem for problem in excinfo.value.problems)
