"""Sweep Policy — pure decisions the convergence run makes around the category rules.

Invariants:
    - partition_batches() preserves order and never yields an empty batch
    - Every batch except possibly the last has exactly batch_size records
    - A GRADUATED record is never moved to another category

Design Decisions:
    - Eligibility window is a cost-control heuristic for the daily trigger only;
      annual and manual runs never consult it
"""

from collections.abc import Iterator, Sequence
from datetime import date
from typing import TypeVar

from education_lifecycle.core.domain_types import EducationCategory

T = TypeVar("T")

DEFAULT_BATCH_SIZE = 50
DEFAULT_ELIGIBILITY_MONTHS: tuple[int, ...] = (1, 6, 12)


def partition_batches(items: Sequence[T], batch_size: int) -> Iterator[list[T]]:
    """Yield consecutive fixed-size slices of items."""
    if batch_size < 1:
        raise ValueError("batch_size must be >= 1")
    for start in range(0, len(items), batch_size):
        yield list(items[start:start + batch_size])


def batch_count(total: int, batch_size: int) -> int:
    """Number of batches partition_batches() will yield for total items."""
    return -(-total // batch_size) if total > 0 else 0


def is_in_eligibility_window(
    today: date, months: Sequence[int] = DEFAULT_ELIGIBILITY_MONTHS,
) -> bool:
    """Daily sweeps only do work in membership-year transition months."""
    return today.month in months


def is_transition_allowed(
    current: EducationCategory, proposed: EducationCategory,
) -> bool:
    """A change is applied only if it differs and does not leave GRADUATED."""
    if current == proposed:
        return False
    return current != EducationCategory.GRADUATED
