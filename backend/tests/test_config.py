"""Settings, logging and telemetry bootstrap tests."""

from __future__ import annotations

import logging
from datetime import date

from fastapi import FastAPI

from app.config import AppSettings
from app.core.logging import setup_logging
from app.core.telemetry import setup_telemetry
from premium_desk.screening import ScreeningThresholds


def test_defaults_match_screening_thresholds():
    settings = AppSettings(_env_file=None)

    assert settings.screening_thresholds() == ScreeningThresholds(30.0, 15.0, 3.0, 10)
    assert settings.account_history_start == date(2024, 11, 1)
    assert settings.quote_chunk_size == 50
    assert settings.database_url.startswith("sqlite+aiosqlite")


def test_tastytrade_configuration_requires_all_credentials():
    partial = AppSettings(_env_file=None, tastytrade_account_number="5WT00001", tastytrade_client_secret="s")
    full = AppSettings(
        _env_file=None,
        tastytrade_account_number="5WT00001",
        tastytrade_client_secret="s",
        tastytrade_refresh_token="r",
    )

    assert partial.tastytrade_configured is False
    assert full.tastytrade_configured is True


def test_secrets_are_masked_for_logging():
    settings = AppSettings(_env_file=None, tastytrade_refresh_token="r", openai_api_key="sk-test")
    logged = settings.dict_for_logging()

    assert logged["tastytrade_refresh_token"] == "***"
    assert logged["openai_api_key"] == "***"
    assert logged["tastytrade_client_secret"] is None


def test_setup_logging_is_idempotent():
    root = logging.getLogger()
    setup_logging()
    count = len(root.handlers)
    setup_logging("debug")

    assert len(root.handlers) == count
    assert root.level == logging.DEBUG
    assert logging.getLogger("httpx").level == logging.WARNING
    setup_logging("not-a-level")
    assert root.level == logging.INFO


def test_telemetry_disabled_by_default():
    assert setup_telemetry(FastAPI(), AppSettings(_env_file=None, telemetry_enabled=False)) is False
