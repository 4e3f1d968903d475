"""In-memory stand-ins for the record store, membership settings and run ledger.

Invariants:
    - Fakes satisfy the core Protocols structurally (no inheritance)
    - Updates are applied to the fake's own records, so a second sweep sees
      the result of the first
"""

import dataclasses
from datetime import date, datetime
from typing import Any

from education_lifecycle.core.domain_types import (
    EducationCategory, EducationProgram, EducationRecord, GraduationYearCode,
    RecordId, RunStatus, SubjectBusinessId, SweepTrigger,
)
from education_lifecycle.core.errors import RecordUpdateError
from education_lifecycle.core.graduation_year import encode_graduation_year


def make_record(
    n: int | str,
    year: int | None,
    category: EducationCategory = EducationCategory.STUDENT,
    program: EducationProgram = EducationProgram.OT,
) -> EducationRecord:
    return EducationRecord(
        record_id=RecordId(f"{program.value}-{n}"),
        subject_business_id=SubjectBusinessId(f"user-{n}"),
        graduation_year=(
            GraduationYearCode(encode_graduation_year(year)) if year else None
        ),
        category=category,
        program=program,
    )


class FakeGateway:
    def __init__(self, records=(), program: EducationProgram = EducationProgram.OT):
        self.program = program
        self.records: dict[RecordId, EducationRecord] = {r.record_id: r for r in records}
        self.updates: list[tuple[RecordId, EducationCategory]] = []
        self.fetches: list[EducationCategory] = []
        self.failing_ids: set[str] = set()
        self.fetch_error: Exception | None = None
        self.healthy = True

    async def find_records_by_category(self, category):
        self.fetches.append(category)
        if self.fetch_error is not None:
            raise self.fetch_error
        return [r for r in self.records.values() if r.category == category]

    async def update_record_category(self, record_id, new_category):
        if record_id in self.failing_ids:
            raise RecordUpdateError(record_id, "HTTP 400: invalid value")
        self.updates.append((record_id, new_category))
        self.records[record_id] = dataclasses.replace(
            self.records[record_id], category=new_category,
        )

    async def health_check(self):
        return self.healthy


class FakeSettingsSource:
    def __init__(self, expires_on: date | None = None, error: Exception | None = None):
        self.expires_on = expires_on
        self.error = error
        self.calls = 0

    async def get_current_membership_expiry_date(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.expires_on


class InMemoryRunLedger:
    def __init__(self, broken: bool = False):
        self.runs: dict[str, dict[str, Any]] = {}
        self.events: list[tuple[str, str]] = []
        self.broken = broken
        self.purges = 0

    def _check(self):
        if self.broken:
            raise RuntimeError("ledger offline")

    async def start_run(self, operation_id, trigger: SweepTrigger, reason, started_at: datetime):
        self._check()
        self.events.append(("start", operation_id))
        self.runs[operation_id] = {
            "operation_id": operation_id, "trigger": trigger.value,
            "reason": reason, "status": RunStatus.RUNNING.value,
            "stats": None, "error": None,
            "started_at": started_at.isoformat(), "finished_at": None,
            "expires_at": None,
        }

    async def finish_run(self, operation_id, status: RunStatus, finished_at, stats=None, error=None):
        self._check()
        self.events.append(("finish", operation_id))
        run = self.runs.get(operation_id)
        if run is None:
            return
        run.update(
            status=status.value, stats=stats, error=error,
            finished_at=finished_at.isoformat(),
        )

    async def get_run(self, operation_id):
        return self.runs.get(operation_id)

    async def list_recent_runs(self, limit=20):
        return list(reversed(list(self.runs.values())))[:limit]

    async def purge_expired(self, now):
        self._check()
        self.purges += 1
        return 0

    async def health_check(self):
        return not self.broken


class RecordingSleep:
    """Zero-cost asyncio.sleep replacement that remembers requested delays."""

    def __init__(self, clock: "FakeClock | None" = None):
        self.delays: list[float] = []
        self._clock = clock

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        if self._clock is not None:
            self._clock.now += delay


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now
