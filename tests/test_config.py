"""Tests for Settings — env coercion and validation."""

import pytest
from pydantic import ValidationError

from education_lifecycle.config import Settings


def test_postgres_url_gets_async_driver():
    settings = Settings(database_url="postgresql://u:p@db:5432/lifecycle")
    assert settings.database_url == "postgresql+asyncpg://u:p@db:5432/lifecycle"


def test_sweep_defaults():
    settings = Settings()
    assert settings.sweep_batch_size == 50
    assert settings.sweep_batch_delay_seconds == 1.0
    assert settings.sweep_eligibility_months == [1, 6, 12]
    assert settings.daily_sweep_cron == "0 2 * * *"
    assert settings.annual_sweep_cron == "0 3 1 1 *"
    assert settings.scheduler_timezone == "America/Toronto"


def test_batch_size_must_be_positive():
    with pytest.raises(ValidationError):
        Settings(sweep_batch_size=0)


def test_eligibility_months_must_be_calendar_months():
    with pytest.raises(ValidationError):
        Settings(sweep_eligibility_months=[0, 13])


def test_months_from_env(monkeypatch):
    monkeypatch.setenv("SWEEP_ELIGIBILITY_MONTHS", "[9, 10]")
    assert Settings().sweep_eligibility_months == [9, 10]
