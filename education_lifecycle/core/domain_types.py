"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - RecordId and SubjectBusinessId are distinct NewTypes — never mix them
    - EducationRecord is immutable; the sweep never mutates fetched records
    - All valid states encoded as Enums — no raw string matching

Design Decisions:
    - str Enums: serialize to JSON without custom encoders and log readably
    - Store choice codes (integers) live in infrastructure, not here: the core
      only knows category names
"""

from dataclasses import dataclass
from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

RecordId = NewType("RecordId", str)
SubjectBusinessId = NewType("SubjectBusinessId", str)
OperationId = NewType("OperationId", str)

# Integer choice code as persisted by the record store (see graduation_year.py)
GraduationYearCode = NewType("GraduationYearCode", int)


# ─── Enums ───────────────────────────────────────────────────────

class EducationCategory(str, Enum):
    """Derived standing of an education record. Only ever computed, never user-set."""
    STUDENT = "student"
    NEW_GRADUATED = "new_graduated"
    GRADUATED = "graduated"


# Candidates for re-evaluation. GRADUATED is terminal and never fetched.
CANDIDATE_CATEGORIES: tuple[EducationCategory, ...] = (
    EducationCategory.STUDENT,
    EducationCategory.NEW_GRADUATED,
)


class EducationProgram(str, Enum):
    """Education tables kept by the record store, one gateway each."""
    OT = "ot"
    OTA = "ota"


class SweepTrigger(str, Enum):
    """What started a convergence run — recorded on every ledger entry."""
    DAILY = "daily"
    ANNUAL = "annual"
    MANUAL = "manual"


class RunStatus(str, Enum):
    """Run ledger states."""
    RUNNING = "running"
    COMPLETED = "completed"
    TRUNCATED = "truncated"
    FAILED = "failed"
    SKIPPED = "skipped"


class RecordOutcome(str, Enum):
    """Per-record result of one evaluation inside a batch."""
    UNCHANGED = "unchanged"
    CHANGED = "changed"
    FAILED = "failed"


# ─── Entities ────────────────────────────────────────────────────

@dataclass(frozen=True)
class EducationRecord:
    """One person's education credential, as fetched from the record store."""
    record_id: RecordId
    subject_business_id: SubjectBusinessId
    graduation_year: GraduationYearCode | None
    category: EducationCategory
    program: EducationProgram = EducationProgram.OT
