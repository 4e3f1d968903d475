"""SweepRun ORM — run ledger row, one per convergence run.

Invariants:
    - operation_id is the primary key (generated by the trigger host)
    - status transitions: running -> completed | truncated | failed;
      skipped rows are written already finished
    - expires_at = started_at + ledger TTL; expired rows are purged

Design Decisions:
    - Ledger in the database instead of process memory: every instance behind
      the load balancer sees the same run history
    - stats as JSON column: the statistics shape evolves with the sweep, the
      ledger stores it as-is
"""

from datetime import datetime

from sqlalchemy import String, Text, DateTime, JSON, Index
from sqlalchemy.orm import Mapped, mapped_column

from education_lifecycle.db.base import Base


class SweepRun(Base):
    __tablename__ = "sweep_runs"
    __table_args__ = (
        Index("ix_sweep_runs_started_at", "started_at"),
        Index("ix_sweep_runs_expires_at", "expires_at"),
    )

    operation_id: Mapped[str] = mapped_column(String(80), primary_key=True)
    trigger: Mapped[str] = mapped_column(String(20), nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False, default="")
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="running",
    )
    stats: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
    started_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )
    finished_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )

    def to_dict(self) -> dict:
        return {
            "operation_id": self.operation_id,
            "trigger": self.trigger,
            "reason": self.reason,
            "status": self.status,
            "stats": self.stats,
            "error": self.error,
            "started_at": _iso(self.started_at),
            "finished_at": _iso(self.finished_at),
            "expires_at": _iso(self.expires_at),
        }


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None
