"""Tests for settings loading and soft validation."""

from __future__ import annotations

import logging

import pytest

from bodylog.config import Settings, resolve_timezone


@pytest.mark.parametrize("value", ["gmt", "UTC", " utc ", ""])
def test_utc_aliases_become_default(value):
    assert Settings(date_time_format=value).date_time_format == ""


@pytest.mark.parametrize("value, expected", [("ISO", "iso"), (" clf", "clf")])
def test_date_time_format_is_normalized(value, expected):
    assert Settings(date_time_format=value).date_time_format == expected


def test_unknown_date_time_format_warns_and_uses_default(caplog):
    with caplog.at_level(logging.WARNING, logger="bodylog.config"):
        settings = Settings(date_time_format="weird")
    assert settings.date_time_format == ""
    assert "date_time_format must be one of" in caplog.text


def test_local_with_known_timezone():
    settings = Settings(date_time_format="local", timezone="Asia/Kolkata")
    assert settings.timezone == "Asia/Kolkata"
    assert settings.date_token_format == "local,Asia/Kolkata"


def test_local_with_unknown_timezone_falls_back(caplog):
    with caplog.at_level(logging.WARNING, logger="bodylog.config"):
        settings = Settings(date_time_format="local", timezone="Mars/Olympus")
    assert settings.timezone == ""
    assert settings.date_token_format == "local,"
    assert "Unknown timezone 'Mars/Olympus'" in caplog.text


def test_date_format_without_date_time_warns(caplog):
    with caplog.at_level(logging.WARNING, logger="bodylog.config"):
        Settings(log_req_date_time=False, date_time_format="iso")
    assert "log_req_date_time is false" in caplog.text


def test_invalid_log_level_warns_and_uses_info(caplog):
    with caplog.at_level(logging.WARNING, logger="bodylog.config"):
        settings = Settings(log_level="LOUD")
    assert settings.log_level == "INFO"
    assert "log_level must be one of" in caplog.text


def test_log_level_is_normalized():
    assert Settings(log_level=" debug").log_level == "DEBUG"


def test_invalid_log_format_warns_and_uses_text(caplog):
    with caplog.at_level(logging.WARNING, logger="bodylog.config"):
        settings = Settings(log_format="xml")
    assert settings.log_format == "text"
    assert "log_format must be 'json' or 'text'" in caplog.text


def test_negative_max_body_length_uses_default(caplog):
    with caplog.at_level(logging.WARNING, logger="bodylog.config"):
        settings = Settings(max_body_length=-1)
    assert settings.max_body_length == 1000
    assert "max_body_length must not be negative" in caplog.text


def test_negative_buffer_ms_disables_buffering(caplog):
    with caplog.at_level(logging.WARNING, logger="bodylog.config"):
        settings = Settings(buffer_ms=-5)
    assert settings.buffer_ms == 0
    assert "buffer_ms must not be negative" in caplog.text


def test_bad_environment_values_never_raise(monkeypatch, caplog):
    monkeypatch.setenv("BODYLOG_LOG_LEVEL", "verbose")
    monkeypatch.setenv("BODYLOG_LOG_FORMAT", "yaml")
    monkeypatch.setenv("BODYLOG_BUFFER_MS", "soon")
    monkeypatch.setenv("BODYLOG_MAX_BODY_LENGTH", "-20")
    with caplog.at_level(logging.WARNING, logger="bodylog.config"):
        settings = Settings()
    assert settings.log_level == "INFO"
    assert settings.log_format == "text"
    assert settings.buffer_ms == 0
    assert settings.max_body_length == 1000
    assert "buffer_ms must be an integer" in caplog.text


def test_settings_read_from_environment(monkeypatch):
    monkeypatch.setenv("BODYLOG_MAX_BODY_LENGTH", "50")
    monkeypatch.setenv("BODYLOG_LOG_RESPONSE_BODY", "false")
    monkeypatch.setenv("BODYLOG_DATE_TIME_FORMAT", "CLF")
    settings = Settings()
    assert settings.max_body_length == 50
    assert settings.log_response_body is False
    assert settings.date_token_format == "clf"


def test_resolve_timezone():
    assert resolve_timezone("Europe/Paris") is not None
    assert resolve_timezone("") is None
    assert resolve_timezone("Nowhere/Special") is None
