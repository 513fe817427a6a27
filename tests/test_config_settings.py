"""Tests for runtime settings validation and loading."""

from __future__ import annotations

import logging

import pytest
from pydantic import ValidationError

from pdr1_ledger.config import (
    AppSettings,
    SettingsLoadError,
    config_configure_logging,
    config_load_database_url,
    config_load_settings,
)


def test_config_settings_normalize_log_level_and_institution_code() -> None:
    """Upper-case log levels and trim the institution label.

    Returns:
        None: Assertions validate normalized values.

    Raises:
        AssertionError: Raised when values are not normalized.
    """

    settings = AppSettings(log_level=" debug ", institution_code="  TEST_PD ")

    assert settings.log_level == "DEBUG"
    assert settings.institution_code == "TEST_PD"
    assert settings.header_scan_row_limit == 20
    assert (settings.api_default_limit, settings.api_max_limit) == (50, 200)


@pytest.mark.parametrize(
    "overrides",
    [
        {"log_level": "verbose"},
        {"institution_code": "   "},
        {"api_default_limit": 100, "api_max_limit": 10},
        {"header_scan_row_limit": 0},
        {"application_port": 70000},
    ],
)
def test_config_settings_reject_invalid_values(overrides: dict[str, object]) -> None:
    """Reject invalid log levels, blank labels and inconsistent limits."""

    with pytest.raises(ValidationError):
        AppSettings(**overrides)


def test_config_load_settings_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Load settings from upper-cased environment variables."""

    monkeypatch.setenv("INSTITUTION_CODE", "PD_FROM_ENV")
    monkeypatch.setenv("HEADER_SCAN_ROW_LIMIT", "30")

    settings = config_load_settings()

    assert settings.institution_code == "PD_FROM_ENV"
    assert settings.header_scan_row_limit == 30


def test_config_load_settings_wraps_validation_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    """Raise a startup error that chains the underlying validation error.

    Returns:
        None: Assertions validate error wrapping.

    Raises:
        AssertionError: Raised when the wrong error type is raised.
    """

    monkeypatch.setenv("INSTITUTION_CODE", "  ")

    with pytest.raises(SettingsLoadError) as error_info:
        config_load_settings()

    assert isinstance(error_info.value.__cause__, ValidationError)


def test_config_load_database_url_rejects_blank_value(monkeypatch: pytest.MonkeyPatch) -> None:
    """Reject a blank DATABASE_URL for migration tooling."""

    monkeypatch.setenv("DATABASE_URL", "sqlite://")
    assert config_load_database_url() == "sqlite://"

    monkeypatch.setenv("DATABASE_URL", "   ")
    with pytest.raises(SettingsLoadError):
        config_load_database_url()


def test_config_configure_logging_applies_level(monkeypatch: pytest.MonkeyPatch) -> None:
    """Configure the root logger from the validated log level."""

    captured_arguments: dict[str, object] = {}
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: captured_arguments.update(kwargs))

    config_configure_logging(AppSettings(log_level="warning"))

    assert captured_arguments["level"] == logging.WARNING
