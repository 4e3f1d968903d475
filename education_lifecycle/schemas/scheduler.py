"""Scheduler Schemas — Pydantic models for the category scheduler control surface.

Invariants:
    - Field names are snake_case in Python, camelCase on the wire
    - Trigger responses always carry operationId, success or not
    - Percentages rounded to 2 decimals, all 0 when there are no records

Design Decisions:
    - from_* constructors convert core dataclasses here, routes stay thin
"""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from education_lifecycle.core.sweep_stats import CategoryDistribution, SweepStats
from education_lifecycle.services.sweep_triggers import ScheduleDescription


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SweepStatsPayload(CamelModel):
    """Statistics of one convergence run."""
    total_processed: int
    students_to_new_grad: int
    new_grad_to_graduated: int
    graduated_remaining: int
    other_transitions: int = 0
    errors: int
    skipped: int
    unrecognized_years: int = 0
    batches: int = 0
    truncated: bool = False
    processing_time_ms: int = 0

    @classmethod
    def from_stats(cls, stats: SweepStats) -> "SweepStatsPayload":
        return cls(
            total_processed=stats.total_processed,
            students_to_new_grad=stats.students_to_new_grad,
            new_grad_to_graduated=stats.new_grad_to_graduated,
            graduated_remaining=stats.graduated_remaining,
            other_transitions=stats.other_transitions,
            errors=stats.errors,
            skipped=stats.skipped,
            unrecognized_years=stats.unrecognized_years,
            batches=stats.batches,
            truncated=stats.truncated,
            processing_time_ms=stats.processing_time_ms,
        )


class TriggerUpdateResponse(CamelModel):
    success: bool
    message: str
    operation_id: str
    stats: SweepStatsPayload | None = None
    error: str | None = None


class CategoryCounts(CamelModel):
    students: int = 0
    new_graduated: int = 0
    graduated: int = 0


class CategoryPercentages(CamelModel):
    students: float = 0.0
    new_graduated: float = 0.0
    graduated: float = 0.0


class CategoryStatsResponse(CamelModel):
    """Current category distribution. note is set only on the fallback payload."""
    students: int = 0
    new_graduated: int = 0
    graduated: int = 0
    total: int = 0
    percentages: CategoryPercentages = CategoryPercentages()
    by_program: dict[str, CategoryCounts] = {}
    last_updated: datetime
    note: str | None = None

    @classmethod
    def from_distribution(
        cls, dist: CategoryDistribution, now: datetime,
    ) -> "CategoryStatsResponse":
        return cls(
            students=dist.students,
            new_graduated=dist.new_graduated,
            graduated=dist.graduated,
            total=dist.total,
            percentages=CategoryPercentages(**dist.percentages()),
            by_program={
                program: CategoryCounts(**counts)
                for program, counts in dist.by_program.items()
            },
            last_updated=now,
        )


class ScheduleInfo(CamelModel):
    cron_expression: str
    timezone: str
    description: str
    next_run_time: datetime | None = None

    @classmethod
    def from_description(cls, desc: ScheduleDescription) -> "ScheduleInfo":
        return cls(
            cron_expression=desc.cron_expression,
            timezone=desc.timezone,
            description=desc.description,
            next_run_time=desc.next_run_time,
        )


class RunEntry(CamelModel):
    """One run ledger row."""
    operation_id: str
    trigger: str
    reason: str | None = None
    status: str
    stats: dict[str, Any] | None = None
    error: str | None = None
    started_at: datetime
    finished_at: datetime | None = None
    expires_at: datetime | None = None


class SchedulerStatusResponse(CamelModel):
    is_enabled: bool
    is_running: bool
    daily_schedule: ScheduleInfo
    annual_schedule: ScheduleInfo
    eligibility_months: list[int]
    last_execution: RunEntry | None = None
    last_checked: datetime


class HealthChecks(CamelModel):
    scheduler: bool
    record_store: bool
    run_ledger: bool


class SchedulerHealthResponse(CamelModel):
    status: Literal["healthy", "unhealthy", "error"]
    checks: HealthChecks | None = None
    error: str | None = None
    timestamp: datetime
    operation_id: str
