"""Tests for sweep policy — batching, eligibility window, transition guard."""

from datetime import date

import pytest

from education_lifecycle.core.domain_types import EducationCategory
from education_lifecycle.core.sweep_policy import (
    batch_count, is_in_eligibility_window, is_transition_allowed,
    partition_batches,
)


def test_120_items_in_batches_of_50():
    batches = list(partition_batches(list(range(120)), 50))
    assert [len(b) for b in batches] == [50, 50, 20]
    assert batch_count(120, 50) == 3


def test_batches_preserve_order():
    batches = list(partition_batches(["a", "b", "c", "d", "e"], 2))
    assert batches == [["a", "b"], ["c", "d"], ["e"]]


def test_exact_multiple_has_no_empty_tail():
    assert [len(b) for b in partition_batches(list(range(100)), 50)] == [50, 50]


def test_empty_input_yields_nothing():
    assert list(partition_batches([], 50)) == []
    assert batch_count(0, 50) == 0


def test_batch_size_must_be_positive():
    with pytest.raises(ValueError):
        list(partition_batches([1, 2], 0))


@pytest.mark.parametrize("month,expected", [(1, True), (6, True), (12, True), (3, False), (9, False)])
def test_default_eligibility_window(month, expected):
    assert is_in_eligibility_window(date(2026, month, 15)) is expected


def test_custom_eligibility_window():
    assert is_in_eligibility_window(date(2026, 9, 1), (9,))


def test_unchanged_category_is_not_a_transition():
    assert not is_transition_allowed(EducationCategory.STUDENT, EducationCategory.STUDENT)


def test_forward_transitions_allowed():
    assert is_transition_allowed(EducationCategory.STUDENT, EducationCategory.NEW_GRADUATED)
    assert is_transition_allowed(EducationCategory.NEW_GRADUATED, EducationCategory.GRADUATED)
    assert is_transition_allowed(EducationCategory.STUDENT, EducationCategory.GRADUATED)


def test_correction_back_to_student_allowed():
    assert is_transition_allowed(EducationCategory.NEW_GRADUATED, EducationCategory.STUDENT)


def test_graduated_never_regresses():
    assert not is_transition_allowed(EducationCategory.GRADUATED, EducationCategory.STUDENT)
    assert not is_transition_allowed(EducationCategory.GRADUATED, EducationCategory.NEW_GRADUATED)
