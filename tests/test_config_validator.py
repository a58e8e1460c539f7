"""Tests for configuration validation."""

from __future__ import annotations

import pytest

from nasdaq_rmc.core import config_validator
from nasdaq_rmc.core.config_validator import (
    load_settings_from_env,
    validate_base_url,
    validate_environment,
    validate_media_type,
    validate_timeout,
)
from nasdaq_rmc.core.exceptions import ConfigError

ENV_VARS = [
    "NASDAQ_RMC_USERNAME",
    "NASDAQ_RMC_PASSWORD",
    "NASDAQ_RMC_URL",
    "NASDAQ_RMC_TIMEOUT_MS",
    "NASDAQ_RMC_MEDIA_TYPE",
    "NASDAQ_RMC_DEBUG",
]


@pytest.fixture()
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_validate_base_url_strips_trailing_slash() -> None:
    assert validate_base_url(" https://rmc.example.com/ ") == "https://rmc.example.com"
    assert validate_base_url("http://localhost:8080/base") == "http://localhost:8080/base"


@pytest.mark.parametrize("url", [None, "", "rmc.example.com", "https://", "file:///tmp/x"])
def test_validate_base_url_rejects(url: str | None) -> None:
    with pytest.raises(ConfigError):
        validate_base_url(url)


def test_validate_timeout() -> None:
    assert validate_timeout(None) == 200
    assert validate_timeout(1000) == 1000
    assert validate_timeout(12.5) == 12.5
    for bad in (0, -5, "100", True, float("nan"), float("inf"), float("-inf")):
        with pytest.raises(ConfigError):
            validate_timeout(bad)  # type: ignore[arg-type]


def test_validate_media_type() -> None:
    assert validate_media_type(None) == "application/json; charset=UTF-8"
    assert validate_media_type("multipart/form-data") == "multipart/form-data"
    assert validate_media_type("text/csv;charset=utf-8") == "text/csv;charset=utf-8"
    with pytest.raises(ConfigError):
        validate_media_type("json")


def test_validate_environment_reports_missing(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("NASDAQ_RMC_USERNAME", "alice")

    assert validate_environment() is False


def test_load_settings_from_env(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("NASDAQ_RMC_USERNAME", "alice")
    clean_env.setenv("NASDAQ_RMC_PASSWORD", "s3cret")
    clean_env.setenv("NASDAQ_RMC_URL", "https://rmc.example.com/")
    clean_env.setenv("NASDAQ_RMC_DEBUG", "yes")

    settings = load_settings_from_env()

    assert settings.url == "https://rmc.example.com"
    assert settings.timeout == 200
    assert settings.media_type == "application/json; charset=UTF-8"
    assert settings.debug is True
    assert "s3cret" not in repr(settings)


def test_load_settings_missing_raises(clean_env: pytest.MonkeyPatch) -> None:
    with pytest.raises(ConfigError):
        load_settings_from_env()


@pytest.mark.parametrize("raw", ["fast", "nan", "inf"])
def test_load_settings_bad_timeout(clean_env: pytest.MonkeyPatch, raw: str) -> None:
    clean_env.setenv("NASDAQ_RMC_USERNAME", "alice")
    clean_env.setenv("NASDAQ_RMC_PASSWORD", "s3cret")
    clean_env.setenv("NASDAQ_RMC_URL", "https://rmc.example.com")
    clean_env.setenv("NASDAQ_RMC_TIMEOUT_MS", raw)

    with pytest.raises(ConfigError):
        config_validator.load_settings_from_env()
