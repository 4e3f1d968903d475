"""Tests for the category rules — pure derivation, explicit today, no IO."""

from datetime import date, timedelta

import pytest

from education_lifecycle.core.category_rules import determine_category, evaluate_category
from education_lifecycle.core.domain_types import EducationCategory
from education_lifecycle.core.graduation_year import (
    DECADE_1960_1969, DECADE_1970_1979, PRE_1960, encode_graduation_year,
)

TODAY = date(2026, 10, 18)
EXPIRES_LATER = TODAY + timedelta(days=30)
EXPIRED = TODAY - timedelta(days=1)


def code(year: int) -> int:
    return encode_graduation_year(year)


# ─── Rule order ──────────────────────────────────────────────────

@pytest.mark.parametrize("expires_on", [None, EXPIRED, EXPIRES_LATER])
def test_future_graduation_is_student_regardless_of_expiry(expires_on):
    assert evaluate_category(code(2027), expires_on, TODAY) == EducationCategory.STUDENT


def test_current_year_graduate_before_expiry_is_new_graduated():
    assert evaluate_category(code(2026), EXPIRES_LATER, TODAY) == EducationCategory.NEW_GRADUATED


def test_last_year_graduate_before_expiry_is_new_graduated():
    assert evaluate_category(code(2025), EXPIRES_LATER, TODAY) == EducationCategory.NEW_GRADUATED


def test_expiry_day_itself_still_counts_as_before_expiry():
    assert evaluate_category(code(2026), TODAY, TODAY) == EducationCategory.NEW_GRADUATED


def test_current_year_graduate_after_expiry_is_graduated():
    assert evaluate_category(code(2026), EXPIRED, TODAY) == EducationCategory.GRADUATED


def test_recent_graduate_without_expiry_date_is_graduated():
    assert evaluate_category(code(2026), None, TODAY) == EducationCategory.GRADUATED


def test_old_graduate_is_graduated_even_before_expiry():
    assert evaluate_category(code(2023), EXPIRES_LATER, TODAY) == EducationCategory.GRADUATED


@pytest.mark.parametrize("bucket", [PRE_1960, DECADE_1960_1969, DECADE_1970_1979])
def test_decade_buckets_are_always_graduated(bucket):
    assert evaluate_category(bucket, EXPIRES_LATER, TODAY) == EducationCategory.GRADUATED


# ─── Determinism ─────────────────────────────────────────────────

def test_same_inputs_give_same_category():
    results = {
        evaluate_category(code(2026), EXPIRES_LATER, TODAY) for _ in range(5)
    }
    assert results == {EducationCategory.NEW_GRADUATED}


def test_current_year_can_be_pinned_independently_of_today():
    # Jan 1 run that should still evaluate against the closing year
    verdict = determine_category(
        code(2026), date(2027, 1, 31), today=date(2027, 1, 1), current_year=2026,
    )
    assert verdict.category == EducationCategory.NEW_GRADUATED


# ─── Unrecognized codes ──────────────────────────────────────────

@pytest.mark.parametrize("bad_code", [None, 0, -4, "2026", True])
def test_unrecognized_code_falls_back_to_current_year(bad_code):
    verdict = determine_category(bad_code, EXPIRES_LATER, TODAY)
    assert verdict.year_recognized is False
    assert verdict.graduation_year == 2026
    assert verdict.category == EducationCategory.NEW_GRADUATED


def test_far_future_code_is_unrecognized():
    verdict = determine_category(code(2040), None, TODAY)
    assert verdict.year_recognized is False
    assert verdict.category == EducationCategory.GRADUATED


def test_recognized_code_reports_decoded_year():
    verdict = determine_category(code(1994), None, TODAY)
    assert verdict.year_recognized is True
    assert verdict.graduation_year == 1994


# ─── Non-regression over time ────────────────────────────────────

@pytest.mark.parametrize("year", [2024, 2025, 2026, 2027, 2028])
def test_once_graduated_never_returns_as_time_advances(year):
    expires_on = date(2026, 12, 31)
    day = date(2026, 1, 1)
    seen_graduated = False
    while day <= date(2030, 12, 31):
        category = evaluate_category(code(year), expires_on, day)
        if seen_graduated:
            assert category == EducationCategory.GRADUATED, day
        seen_graduated = category == EducationCategory.GRADUATED
        day += timedelta(days=7)
