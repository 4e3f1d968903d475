"""Run Ledger — SQLAlchemy-backed history of sweep runs keyed by operation id.

Invariants:
    - One row per operation_id; finish_run() on an unknown id is a no-op (logged)
    - Rows expire ttl after start; purge_expired() deletes them
    - Returned rows are plain dicts (SweepRun.to_dict), never ORM objects

Design Decisions:
    - Takes the DatabaseSessionManager, not a session: each call is its own
      short transaction, so a long sweep never holds a DB connection
"""

import logging
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import delete, select, text

from education_lifecycle.core.domain_types import OperationId, RunStatus, SweepTrigger
from education_lifecycle.infrastructure.database import DatabaseSessionManager
from education_lifecycle.models.sweep_run import SweepRun

logger = logging.getLogger(__name__)


class SqlRunLedger:
    """RunLedger implementation over the service database."""

    def __init__(self, db: DatabaseSessionManager, ttl: timedelta):
        self._db = db
        self._ttl = ttl

    async def start_run(
        self, operation_id: OperationId, trigger: SweepTrigger, reason: str,
        started_at: datetime,
    ) -> None:
        async with self._db.session() as session:
            session.add(SweepRun(
                operation_id=operation_id,
                trigger=trigger.value,
                reason=reason,
                status=RunStatus.RUNNING.value,
                started_at=started_at,
                expires_at=started_at + self._ttl,
            ))
            await session.commit()

    async def finish_run(
        self, operation_id: OperationId, status: RunStatus,
        finished_at: datetime, stats: dict[str, Any] | None = None,
        error: str | None = None,
    ) -> None:
        async with self._db.session() as session:
            run = await session.get(SweepRun, operation_id)
            if run is None:
                logger.warning(
                    f"finish_run for unknown operation {operation_id}",
                    extra={"operation_id": operation_id},
                )
                return
            run.status = status.value
            run.finished_at = finished_at
            run.stats = stats
            run.error = error
            await session.commit()

    async def get_run(self, operation_id: str) -> dict[str, Any] | None:
        async with self._db.session() as session:
            run = await session.get(SweepRun, operation_id)
            return run.to_dict() if run else None

    async def list_recent_runs(self, limit: int = 20) -> list[dict[str, Any]]:
        async with self._db.session() as session:
            result = await session.execute(
                select(SweepRun)
                .order_by(SweepRun.started_at.desc())
                .limit(limit),
            )
            return [run.to_dict() for run in result.scalars().all()]

    async def purge_expired(self, now: datetime) -> int:
        async with self._db.session() as session:
            result = await session.execute(
                delete(SweepRun).where(SweepRun.expires_at < now),
            )
            await session.commit()
            return result.rowcount or 0

    async def health_check(self) -> bool:
        try:
            async with self._db.session() as session:
                await session.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"Run ledger health check failed: {e}")
            return False
