"""Sweep Stats — pure aggregation of per-record results and category distributions.

Invariants:
    - All inputs are plain values (no IO, no DB)
    - total_processed == skipped + errors + every transition counter
    - Percentages are rounded to 2 decimals and are all 0 when total is 0
    - Never raises — empty inputs produce zeroed stats

Design Decisions:
    - Pure functions, not methods on the sweep service: the service does IO,
      the stats are presentation
    - graduated_remaining counts STUDENT -> GRADUATED arrivals within the run;
      records that were already GRADUATED are never fetched, so never counted
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from education_lifecycle.core.domain_types import (
    EducationCategory, EducationProgram, GraduationYearCode, RecordId,
    RecordOutcome, SubjectBusinessId,
)


@dataclass(frozen=True)
class RecordResult:
    """What happened to one candidate record during a sweep."""
    record_id: RecordId
    subject_business_id: SubjectBusinessId
    program: EducationProgram
    graduation_year: GraduationYearCode | None
    old_category: EducationCategory
    new_category: EducationCategory
    outcome: RecordOutcome
    year_recognized: bool = True
    error: str | None = None


@dataclass
class SweepStats:
    total_processed: int = 0
    students_to_new_grad: int = 0
    new_grad_to_graduated: int = 0
    graduated_remaining: int = 0
    other_transitions: int = 0
    errors: int = 0
    skipped: int = 0
    unrecognized_years: int = 0
    batches: int = 0
    truncated: bool = False
    processing_time_ms: int = 0

    @property
    def changed(self) -> int:
        return (
            self.students_to_new_grad + self.new_grad_to_graduated
            + self.graduated_remaining + self.other_transitions
        )


def aggregate_results(results: Iterable[RecordResult]) -> SweepStats:
    """Fold per-record results into run statistics. Pure, no IO."""
    stats = SweepStats()
    for result in results:
        stats.total_processed += 1
        if not result.year_recognized:
            stats.unrecognized_years += 1

        if result.outcome is RecordOutcome.FAILED:
            stats.errors += 1
        elif result.outcome is RecordOutcome.UNCHANGED:
            stats.skipped += 1
        else:
            _count_transition(stats, result.old_category, result.new_category)
    return stats


def _count_transition(
    stats: SweepStats, old: EducationCategory, new: EducationCategory,
) -> None:
    if old == EducationCategory.STUDENT and new == EducationCategory.NEW_GRADUATED:
        stats.students_to_new_grad += 1
    elif old == EducationCategory.NEW_GRADUATED and new == EducationCategory.GRADUATED:
        stats.new_grad_to_graduated += 1
    elif new == EducationCategory.GRADUATED:
        stats.graduated_remaining += 1
    else:
        stats.other_transitions += 1


# ─── Category Distribution ───────────────────────────────────────

@dataclass
class CategoryDistribution:
    """Current number of records per category (informational only)."""
    students: int = 0
    new_graduated: int = 0
    graduated: int = 0
    by_program: dict[str, dict[str, int]] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return self.students + self.new_graduated + self.graduated

    def percentages(self) -> dict[str, float]:
        return {
            "students": _percent(self.students, self.total),
            "new_graduated": _percent(self.new_graduated, self.total),
            "graduated": _percent(self.graduated, self.total),
        }


def compute_distribution(
    counts: Mapping[EducationProgram, Mapping[EducationCategory, int]],
) -> CategoryDistribution:
    """Sum per-program category counts into one distribution."""
    dist = CategoryDistribution()
    for program, per_category in counts.items():
        students = per_category.get(EducationCategory.STUDENT, 0)
        new_grads = per_category.get(EducationCategory.NEW_GRADUATED, 0)
        graduated = per_category.get(EducationCategory.GRADUATED, 0)
        dist.students += students
        dist.new_graduated += new_grads
        dist.graduated += graduated
        dist.by_program[program.value] = {
            "students": students,
            "new_graduated": new_grads,
            "graduated": graduated,
        }
    return dist


def _percent(part: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return round(part / total * 100, 2)
