"""Category Scheduler Routes — operator control surface for the education category sweep.

Invariants:
    - trigger-update always answers 200: run-level failures come back as
      success=false with the error text and the operation id
    - stats never fails: a store outage yields a zeroed payload with a note
    - health reports per-dependency booleans, never raises
    - Routes hold no sweep logic; everything delegates to SweepTriggerHost /
      CategorySweepService

Design Decisions:
    - Manual trigger runs inline (the caller waits for the statistics) and
      waits for any in-flight periodic run instead of being rejected
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query

from education_lifecycle.api.dependencies import get_sweep_service, get_trigger_host
from education_lifecycle.core.domain_types import SweepTrigger
from education_lifecycle.core.errors import (
    ErrorContext, LifecycleError, ResourceNotFoundError,
)
from education_lifecycle.schemas.scheduler import (
    CategoryStatsResponse, HealthChecks, RunEntry, ScheduleInfo,
    SchedulerHealthResponse, SchedulerStatusResponse, SweepStatsPayload,
    TriggerUpdateResponse,
)
from education_lifecycle.services.category_sweep import CategorySweepService
from education_lifecycle.services.sweep_triggers import (
    DEFAULT_MANUAL_REASON, OPERATION_PREFIXES, SweepTriggerHost, new_operation_id,
)

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/api/v1/admin/education/scheduler", tags=["education-scheduler"],
)

FALLBACK_STATS_NOTE = "Fallback statistics - record store unavailable"


def _now() -> datetime:
    return datetime.now(timezone.utc)


@router.post("/trigger-update", response_model=TriggerUpdateResponse)
async def trigger_update(
    reason: str | None = Query(None, max_length=500),
    host: SweepTriggerHost = Depends(get_trigger_host),
):
    """Run a full category sweep now and return its statistics."""
    operation_id = new_operation_id(OPERATION_PREFIXES[SweepTrigger.MANUAL])
    try:
        report = await host.trigger_manual(
            reason or DEFAULT_MANUAL_REASON, operation_id=operation_id,
        )
    except LifecycleError as e:
        logger.error(
            f"Error in manual education category update - Operation: {operation_id}",
            extra={"operation_id": operation_id, "error_code": e.code},
        )
        return TriggerUpdateResponse(
            success=False,
            message="Education category update failed",
            error=e.message,
            operation_id=operation_id,
        )
    except Exception as e:
        logger.error(
            f"Unexpected error in manual education category update - Operation: {operation_id}",
            extra={"operation_id": operation_id},
            exc_info=True,
        )
        return TriggerUpdateResponse(
            success=False,
            message="Education category update failed",
            error=str(e) or type(e).__name__,
            operation_id=operation_id,
        )

    message = (
        "Education category update stopped early (deadline reached)"
        if report.stats.truncated
        else "Education category update completed successfully"
    )
    return TriggerUpdateResponse(
        success=True,
        message=message,
        stats=SweepStatsPayload.from_stats(report.stats),
        operation_id=operation_id,
    )


@router.get("/stats", response_model=CategoryStatsResponse)
async def get_category_stats(
    sweep: CategorySweepService = Depends(get_sweep_service),
):
    """Current distribution of education categories across all programs."""
    try:
        dist = await sweep.get_category_distribution()
    except Exception as e:
        logger.warning(f"Category statistics unavailable, returning fallback: {e}")
        return CategoryStatsResponse(last_updated=_now(), note=FALLBACK_STATS_NOTE)
    return CategoryStatsResponse.from_distribution(dist, _now())


@router.get("/status", response_model=SchedulerStatusResponse)
async def get_scheduler_status(
    host: SweepTriggerHost = Depends(get_trigger_host),
):
    """Schedule configuration, next run times and the latest ledger entry."""
    schedules = host.describe_schedules()
    try:
        last_run = await host.sweep.latest_run()
    except Exception as e:
        logger.warning(f"Run ledger unavailable for status: {e}")
        last_run = None
    return SchedulerStatusResponse(
        is_enabled=host.enabled,
        is_running=host.sweep.is_running,
        daily_schedule=ScheduleInfo.from_description(schedules["daily"]),
        annual_schedule=ScheduleInfo.from_description(schedules["annual"]),
        eligibility_months=list(host.eligibility_months),
        last_execution=RunEntry(**last_run) if last_run else None,
        last_checked=_now(),
    )


@router.get("/health", response_model=SchedulerHealthResponse)
async def scheduler_health(
    host: SweepTriggerHost = Depends(get_trigger_host),
):
    """Per-dependency health of the sweep machinery."""
    operation_id = new_operation_id("health-check")
    try:
        checks = HealthChecks(
            scheduler=host.running or not host.enabled,
            record_store=await host.sweep.check_record_store(),
            run_ledger=await host.sweep.check_ledger(),
        )
    except Exception as e:
        logger.error(
            f"Error in scheduler health check - Operation: {operation_id}: {e}",
            extra={"operation_id": operation_id},
        )
        return SchedulerHealthResponse(
            status="error", error=str(e), timestamp=_now(),
            operation_id=operation_id,
        )
    healthy = checks.scheduler and checks.record_store and checks.run_ledger
    return SchedulerHealthResponse(
        status="healthy" if healthy else "unhealthy",
        checks=checks,
        timestamp=_now(),
        operation_id=operation_id,
    )


@router.get("/runs", response_model=list[RunEntry])
async def list_runs(
    limit: int = Query(20, ge=1, le=200),
    sweep: CategorySweepService = Depends(get_sweep_service),
):
    """Most recent sweep runs, newest first."""
    if sweep.ledger is None:
        return []
    return [RunEntry(**row) for row in await sweep.ledger.list_recent_runs(limit)]


@router.get("/runs/{operation_id}", response_model=RunEntry)
async def get_run(
    operation_id: str,
    sweep: CategorySweepService = Depends(get_sweep_service),
):
    row = await sweep.ledger.get_run(operation_id) if sweep.ledger else None
    if row is None:
        raise ResourceNotFoundError(
            "Sweep run", operation_id, ErrorContext(operation_id=operation_id),
        )
    return RunEntry(**row)
