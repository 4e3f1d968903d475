"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Implementations provided by shell via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, test fakes need no inheritance
    - Async in Protocol: boundary methods are async because implementations do IO,
      but the category rules that consume their data are never async themselves
"""

from collections.abc import Callable
from datetime import date, datetime
from typing import Any, Protocol

from education_lifecycle.core.domain_types import (
    EducationCategory, EducationRecord, OperationId, RecordId, RunStatus,
    SweepTrigger,
)


class RecordStoreGateway(Protocol):
    """Education record read/update contract — one instance per program."""
    async def find_records_by_category(
        self, category: EducationCategory,
    ) -> list[EducationRecord]: ...
    async def update_record_category(
        self, record_id: RecordId, new_category: EducationCategory,
    ) -> None: ...
    async def health_check(self) -> bool: ...


class MembershipSettingsSource(Protocol):
    """Admin-controlled membership settings — read-only from this service."""
    async def get_current_membership_expiry_date(self) -> date | None: ...


class RunLedger(Protocol):
    """Store-backed record of sweep runs, keyed by operation id, with TTL."""
    async def start_run(
        self, operation_id: OperationId, trigger: SweepTrigger, reason: str,
        started_at: datetime,
    ) -> None: ...
    async def finish_run(
        self, operation_id: OperationId, status: RunStatus,
        finished_at: datetime, stats: dict[str, Any] | None = None,
        error: str | None = None,
    ) -> None: ...
    async def get_run(self, operation_id: str) -> dict[str, Any] | None: ...
    async def list_recent_runs(self, limit: int = 20) -> list[dict[str, Any]]: ...
    async def purge_expired(self, now: datetime) -> int: ...
    async def health_check(self) -> bool: ...


# Invoked once per applied transition: (record_id, old_category, new_category)
CategoryChangedHook = Callable[
    [RecordId, EducationCategory, EducationCategory], None,
]
