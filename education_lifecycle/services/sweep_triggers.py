"""Sweep Triggers — daily, annual, and on-demand entry points into the category sweep.

Invariants:
    - All triggers call the same CategorySweepService.run_sweep(); they differ
      only in trigger kind, reason tag, and operation id prefix
    - Daily trigger runs only inside the eligibility window; outside it the
      run is skipped with a log line and a SKIPPED ledger entry
    - Periodic handlers never raise: failures are logged with the operation id
    - A periodic trigger that fires while a sweep is in flight is skipped;
      the manual trigger waits for the lock instead
    - Manual trigger propagates run-level failures to its caller

Design Decisions:
    - APScheduler AsyncIOScheduler: jobs run on the app's event loop, so the
      sweep's asyncio.Lock is shared with the manual trigger
    - Cron expressions parsed with CronTrigger.from_crontab in the
      organization's timezone, never the server's
    - Scheduler optional (scheduler_enabled=False): manual trigger still works
"""

import logging
import secrets
import time
from dataclasses import dataclass
from datetime import date, datetime

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from education_lifecycle.core.domain_types import OperationId, SweepTrigger
from education_lifecycle.core.errors import LifecycleError, SweepConfigurationError
from education_lifecycle.core.sweep_policy import (
    DEFAULT_ELIGIBILITY_MONTHS, is_in_eligibility_window,
)
from education_lifecycle.services.category_sweep import (
    CategorySweepService, SweepReport,
)

logger = logging.getLogger(__name__)

DAILY_JOB_ID = "daily-education-category-check"
ANNUAL_JOB_ID = "annual-education-category-update"

OPERATION_PREFIXES: dict[SweepTrigger, str] = {
    SweepTrigger.DAILY: "daily-category-check",
    SweepTrigger.ANNUAL: "annual-category-update",
    SweepTrigger.MANUAL: "manual-category-update",
}

DEFAULT_MANUAL_REASON = "manual-admin-trigger"


def new_operation_id(prefix: str) -> OperationId:
    """<prefix>-<epoch-ms>-<random hex>"""
    return OperationId(f"{prefix}-{int(time.time() * 1000)}-{secrets.token_hex(4)}")


@dataclass(frozen=True)
class ScheduleDescription:
    cron_expression: str
    timezone: str
    description: str
    next_run_time: datetime | None = None


class SweepTriggerHost:
    """Owns the recurring jobs and the on-demand entry point."""

    def __init__(
        self,
        sweep: CategorySweepService,
        *,
        timezone: str = "America/Toronto",
        daily_cron: str = "0 2 * * *",
        annual_cron: str = "0 3 1 1 *",
        eligibility_months: tuple[int, ...] = DEFAULT_ELIGIBILITY_MONTHS,
        enabled: bool = True,
        timeout_seconds: float | None = None,
    ):
        self.sweep = sweep
        self.timezone = timezone
        self.daily_cron = daily_cron
        self.annual_cron = annual_cron
        self.eligibility_months = tuple(eligibility_months)
        self.enabled = enabled
        self.timeout_seconds = timeout_seconds
        # Parse eagerly: a bad expression fails at startup, not at 2 AM
        self._daily_trigger = _cron_trigger(daily_cron, timezone, "daily_sweep_cron")
        self._annual_trigger = _cron_trigger(annual_cron, timezone, "annual_sweep_cron")
        self.scheduler = AsyncIOScheduler(timezone=timezone)

    # ─── Lifecycle ───────────────────────────────────────────────

    def start(self) -> None:
        if not self.enabled:
            logger.info("Education category scheduler disabled")
            return
        self.scheduler.add_job(
            self.run_daily,
            self._daily_trigger,
            id=DAILY_JOB_ID,
            name="Daily education category check",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self.scheduler.add_job(
            self.run_annual,
            self._annual_trigger,
            id=ANNUAL_JOB_ID,
            name="Annual education category update",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self.scheduler.start()
        logger.info(
            f"Education category scheduler started "
            f"(daily '{self.daily_cron}', annual '{self.annual_cron}', {self.timezone})",
        )

    def shutdown(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Education category scheduler stopped")

    @property
    def running(self) -> bool:
        return self.enabled and self.scheduler.running

    # ─── Handlers ────────────────────────────────────────────────

    async def run_daily(self) -> SweepReport | None:
        operation_id = new_operation_id(OPERATION_PREFIXES[SweepTrigger.DAILY])
        today = self.sweep_today()
        if not is_in_eligibility_window(today, self.eligibility_months):
            logger.info(
                f"Outside eligibility window (month {today.month}), "
                f"skipping daily category check - Operation: {operation_id}",
                extra={"operation_id": operation_id, "trigger": SweepTrigger.DAILY.value},
            )
            await self.sweep.record_skipped_run(
                operation_id, SweepTrigger.DAILY, "outside-eligibility-window",
            )
            return None
        return await self._run_periodic(
            operation_id, SweepTrigger.DAILY, "daily-scheduled-check",
        )

    async def run_annual(self) -> SweepReport | None:
        operation_id = new_operation_id(OPERATION_PREFIXES[SweepTrigger.ANNUAL])
        return await self._run_periodic(
            operation_id, SweepTrigger.ANNUAL, "annual-scheduled-update",
        )

    async def trigger_manual(
        self, reason: str | None = None, operation_id: OperationId | None = None,
    ) -> SweepReport:
        """On-demand sweep. Waits for any in-flight run; raises run-level failures."""
        operation_id = operation_id or new_operation_id(
            OPERATION_PREFIXES[SweepTrigger.MANUAL],
        )
        reason = reason or DEFAULT_MANUAL_REASON
        logger.info(
            f"Manual education category update triggered - Operation: {operation_id}",
            extra={"operation_id": operation_id, "trigger": SweepTrigger.MANUAL.value, "reason": reason},
        )
        return await self.sweep.run_sweep(
            operation_id, SweepTrigger.MANUAL, reason,
            timeout_seconds=self.timeout_seconds,
        )

    async def _run_periodic(
        self, operation_id: OperationId, trigger: SweepTrigger, reason: str,
    ) -> SweepReport | None:
        extra = {"operation_id": operation_id, "trigger": trigger.value, "reason": reason}
        if self.sweep.is_running:
            logger.warning(
                f"Sweep already in progress, skipping {trigger.value} run - Operation: {operation_id}",
                extra=extra,
            )
            await self.sweep.record_skipped_run(operation_id, trigger, "sweep-in-progress")
            return None
        try:
            return await self.sweep.run_sweep(
                operation_id, trigger, reason, timeout_seconds=self.timeout_seconds,
            )
        except LifecycleError as e:
            logger.error(
                f"Scheduled {trigger.value} category update failed - Operation: {operation_id}: {e.message}",
                extra={**extra, "error_code": e.code},
            )
        except Exception as e:
            logger.error(
                f"Scheduled {trigger.value} category update crashed - Operation: {operation_id}: {e}",
                extra=extra,
                exc_info=True,
            )
        return None

    def sweep_today(self) -> date:
        return self.sweep.today()

    # ─── Introspection ───────────────────────────────────────────

    def describe_schedules(self) -> dict[str, ScheduleDescription]:
        return {
            "daily": ScheduleDescription(
                cron_expression=self.daily_cron,
                timezone=self.timezone,
                description=(
                    "Daily education category check during eligibility months "
                    f"{', '.join(str(m) for m in self.eligibility_months)}"
                ),
                next_run_time=self._next_run(DAILY_JOB_ID),
            ),
            "annual": ScheduleDescription(
                cron_expression=self.annual_cron,
                timezone=self.timezone,
                description="Annual education category update at the membership year boundary",
                next_run_time=self._next_run(ANNUAL_JOB_ID),
            ),
        }

    def _next_run(self, job_id: str) -> datetime | None:
        if not self.running:
            return None
        job = self.scheduler.get_job(job_id)
        return job.next_run_time if job else None


def _cron_trigger(expression: str, timezone: str, setting: str) -> CronTrigger:
    try:
        return CronTrigger.from_crontab(expression, timezone=timezone)
    except (ValueError, KeyError) as e:
        raise SweepConfigurationError(
            f"Invalid cron expression '{expression}': {e}", setting,
        ) from e
