"""Tests for sweep statistics — pure aggregation, no IO."""

from education_lifecycle.core.domain_types import (
    EducationCategory, EducationProgram, RecordId, RecordOutcome,
    SubjectBusinessId,
)
from education_lifecycle.core.sweep_stats import (
    RecordResult, aggregate_results, compute_distribution,
)

S = EducationCategory.STUDENT
N = EducationCategory.NEW_GRADUATED
G = EducationCategory.GRADUATED


def result(old, new, outcome, recognized=True):
    return RecordResult(
        record_id=RecordId("r"), subject_business_id=SubjectBusinessId("u"),
        program=EducationProgram.OT, graduation_year=50,
        old_category=old, new_category=new, outcome=outcome,
        year_recognized=recognized,
    )


def test_empty_results_give_zeroed_stats():
    stats = aggregate_results([])
    assert stats.total_processed == 0
    assert stats.changed == 0
    assert stats.truncated is False


def test_each_transition_has_its_counter():
    stats = aggregate_results([
        result(S, N, RecordOutcome.CHANGED),
        result(N, G, RecordOutcome.CHANGED),
        result(S, G, RecordOutcome.CHANGED),
        result(N, S, RecordOutcome.CHANGED),
    ])
    assert stats.students_to_new_grad == 1
    assert stats.new_grad_to_graduated == 1
    assert stats.graduated_remaining == 1
    assert stats.other_transitions == 1
    assert stats.changed == 4


def test_totals_add_up():
    stats = aggregate_results([
        result(S, S, RecordOutcome.UNCHANGED),
        result(S, N, RecordOutcome.FAILED),
        result(S, N, RecordOutcome.CHANGED, recognized=False),
    ])
    assert stats.total_processed == 3
    assert stats.skipped == 1
    assert stats.errors == 1
    assert stats.students_to_new_grad == 1
    assert stats.unrecognized_years == 1
    assert stats.total_processed == stats.skipped + stats.errors + stats.changed


def test_distribution_sums_programs():
    dist = compute_distribution({
        EducationProgram.OT: {S: 2, N: 1, G: 5},
        EducationProgram.OTA: {S: 1, G: 3},
    })
    assert (dist.students, dist.new_graduated, dist.graduated) == (3, 1, 8)
    assert dist.total == 12
    assert dist.by_program["ota"] == {"students": 1, "new_graduated": 0, "graduated": 3}


def test_percentages_rounded_to_two_decimals():
    dist = compute_distribution({EducationProgram.OT: {S: 1, N: 1, G: 1}})
    assert dist.percentages() == {
        "students": 33.33, "new_graduated": 33.33, "graduated": 33.33,
    }


def test_percentages_zero_when_empty():
    dist = compute_distribution({})
    assert dist.percentages() == {"students": 0.0, "new_graduated": 0.0, "graduated": 0.0}
