"""Tests for domain types — enum values are persisted, so they are pinned here."""

import dataclasses

import pytest

from education_lifecycle.core.domain_types import (
    CANDIDATE_CATEGORIES, EducationCategory, EducationProgram, EducationRecord,
    RecordId, RunStatus, SubjectBusinessId, SweepTrigger,
)


def test_category_values():
    assert [c.value for c in EducationCategory] == ["student", "new_graduated", "graduated"]


def test_graduated_is_not_a_candidate():
    assert EducationCategory.GRADUATED not in CANDIDATE_CATEGORIES
    assert set(CANDIDATE_CATEGORIES) == {
        EducationCategory.STUDENT, EducationCategory.NEW_GRADUATED,
    }


def test_ledger_enum_values():
    assert SweepTrigger("manual") is SweepTrigger.MANUAL
    assert RunStatus("truncated") is RunStatus.TRUNCATED


def test_record_defaults_to_ot_program():
    record = EducationRecord(
        RecordId("e1"), SubjectBusinessId("u1"), 50, EducationCategory.STUDENT,
    )
    assert record.program == EducationProgram.OT


def test_record_is_immutable():
    record = EducationRecord(
        RecordId("e1"), SubjectBusinessId("u1"), 50, EducationCategory.STUDENT,
    )
    with pytest.raises(dataclasses.FrozenInstanceError):
        record.category = EducationCategory.GRADUATED
