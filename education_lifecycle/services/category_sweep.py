"""Category Sweep — bring every candidate education record in line with the category rules.

Invariants:
    - Candidate set = STUDENT + NEW_GRADUATED records of every program; GRADUATED
      records are never fetched and never moved
    - Membership expiry date is read once per run, at run start, never cached
      across runs
    - Batches of batch_size processed strictly one after another, with
      batch_delay_seconds between consecutive batches (n batches -> n-1 delays)
    - Only records whose category changes are written; one PATCH per change
    - A failing record is counted in stats.errors and the run continues;
      only candidate/expiry fetch failures abort the run (raised to caller)
    - One run at a time per process (asyncio.Lock)
    - Deadline/cancel checked right before each batch is dispatched (after the
      inter-batch delay): the in-flight batch always finishes, later batches
      are not dispatched, stats.truncated is set
    - Ledger writes are best-effort: a ledger failure never fails a sweep

Design Decisions:
    - Sequential on purpose: the record store is shared and rate-limited,
      throughput is bounded by the batch delay, not by fan-out
    - on_category_changed hook per applied transition: host decides whether it
      feeds logging, messaging, or nothing
    - today/now/monotonic/sleep injected: tests run with a frozen date and
      zero-cost delays
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import asdict, dataclass
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from education_lifecycle.core.category_rules import determine_category
from education_lifecycle.core.domain_types import (
    CANDIDATE_CATEGORIES, EducationCategory, EducationProgram, EducationRecord,
    OperationId, RecordId, RecordOutcome, RunStatus, SweepTrigger,
)
from education_lifecycle.core.errors import (
    CandidateFetchError, ErrorContext, LifecycleError, MembershipSettingsError,
    RecordUpdateError,
)
from education_lifecycle.core.repository_protocols import (
    CategoryChangedHook, MembershipSettingsSource, RecordStoreGateway, RunLedger,
)
from education_lifecycle.core.sweep_policy import (
    DEFAULT_BATCH_SIZE, batch_count, is_transition_allowed, partition_batches,
)
from education_lifecycle.core.sweep_stats import (
    CategoryDistribution, RecordResult, SweepStats, aggregate_results,
    compute_distribution,
)

logger = logging.getLogger(__name__)


def log_category_change(
    record_id: RecordId, old: EducationCategory, new: EducationCategory,
) -> None:
    """Default on_category_changed hook — one structured log line per transition."""
    logger.info(
        "Education category changed",
        extra={
            "record_id": record_id,
            "old_category": old.value,
            "new_category": new.value,
        },
    )


def make_local_today(timezone_name: str) -> Callable[[], date]:
    """Today's date in the organization's timezone (not the server's)."""
    tz = ZoneInfo(timezone_name)
    return lambda: datetime.now(tz).date()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SweepReport:
    """Outcome of one convergence run."""
    operation_id: OperationId
    trigger: SweepTrigger
    reason: str
    stats: SweepStats
    membership_expires_on: date | None
    started_at: datetime
    finished_at: datetime

    @property
    def status(self) -> RunStatus:
        return RunStatus.TRUNCATED if self.stats.truncated else RunStatus.COMPLETED


class CategorySweepService:
    """Batch convergence of education categories against the external record store."""

    def __init__(
        self,
        gateways: Mapping[EducationProgram, RecordStoreGateway],
        settings_source: MembershipSettingsSource,
        ledger: RunLedger | None = None,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        batch_delay_seconds: float = 1.0,
        on_category_changed: CategoryChangedHook | None = log_category_change,
        today: Callable[[], date] = date.today,
        now: Callable[[], datetime] = _utcnow,
        monotonic: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self._gateways = dict(gateways)
        self._settings_source = settings_source
        self._ledger = ledger
        self._batch_size = batch_size
        self._batch_delay = batch_delay_seconds
        self._on_changed = on_category_changed
        self._today = today
        self._now = now
        self._monotonic = monotonic
        self._sleep = sleep
        self._lock = asyncio.Lock()

    @property
    def is_running(self) -> bool:
        return self._lock.locked()

    @property
    def programs(self) -> list[EducationProgram]:
        return list(self._gateways)

    def today(self) -> date:
        return self._today()

    # ─── Sweep ───────────────────────────────────────────────────

    async def run_sweep(
        self,
        operation_id: OperationId,
        trigger: SweepTrigger,
        reason: str,
        *,
        timeout_seconds: float | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> SweepReport:
        """Run one full convergence pass. Waits if another pass is in flight.

        Raises CandidateFetchError / MembershipSettingsError when the run
        cannot start; never raises for per-record failures.
        """
        async with self._lock:
            return await self._run_locked(
                operation_id, trigger, reason, timeout_seconds, cancel_event,
            )

    async def _run_locked(
        self,
        operation_id: OperationId,
        trigger: SweepTrigger,
        reason: str,
        timeout_seconds: float | None,
        cancel_event: asyncio.Event | None,
    ) -> SweepReport:
        started_at = self._now()
        t0 = self._monotonic()
        deadline = t0 + timeout_seconds if timeout_seconds else None
        log_extra = {
            "operation_id": operation_id, "trigger": trigger.value, "reason": reason,
        }

        await self._ledger_start(operation_id, trigger, reason, started_at)
        await self._ledger_purge(started_at)

        try:
            expires_on = await self._fetch_membership_expiry(operation_id)
            candidates = await self._fetch_candidates(operation_id)
        except LifecycleError as e:
            logger.error(
                f"Bulk education category update failed - Operation: {operation_id}",
                extra={**log_extra, "error_code": e.code},
            )
            await self._ledger_finish(
                operation_id, RunStatus.FAILED, error=e.message,
            )
            raise

        total_batches = batch_count(len(candidates), self._batch_size)
        logger.info(
            f"Found {len(candidates)} education records to evaluate "
            f"in {total_batches} batches - Operation: {operation_id}",
            extra=log_extra,
        )

        today = self._today()
        results: list[RecordResult] = []
        dispatched = 0
        truncated = False

        for index, batch in enumerate(
            partition_batches(candidates, self._batch_size), start=1,
        ):
            if index > 1:
                await self._sleep(self._batch_delay)
            if self._should_stop(deadline, cancel_event):
                truncated = True
                logger.warning(
                    f"Deadline reached or run cancelled, stopping before batch {index}/{total_batches}"
                    f" - Operation: {operation_id}",
                    extra={**log_extra, "batch_number": index},
                )
                break

            logger.info(
                f"Processing batch {index}/{total_batches} - Operation: {operation_id}",
                extra={**log_extra, "batch_number": index},
            )
            results.extend(
                await self._process_batch(batch, expires_on, today, operation_id),
            )
            dispatched += 1

        stats = aggregate_results(results)
        stats.batches = dispatched
        stats.truncated = truncated
        stats.processing_time_ms = int((self._monotonic() - t0) * 1000)

        report = SweepReport(
            operation_id=operation_id, trigger=trigger, reason=reason,
            stats=stats, membership_expires_on=expires_on,
            started_at=started_at, finished_at=self._now(),
        )
        logger.info(
            f"Bulk education category update completed - Operation: {operation_id}",
            extra={**log_extra, "stats": asdict(stats)},
        )
        await self._ledger_finish(operation_id, report.status, stats=asdict(stats))
        return report

    async def record_skipped_run(
        self, operation_id: OperationId, trigger: SweepTrigger, reason: str,
    ) -> None:
        """Ledger entry for a trigger that decided not to sweep."""
        now = self._now()
        await self._ledger_start(operation_id, trigger, reason, now)
        await self._ledger_finish(operation_id, RunStatus.SKIPPED)

    def _should_stop(
        self, deadline: float | None, cancel_event: asyncio.Event | None,
    ) -> bool:
        if cancel_event is not None and cancel_event.is_set():
            return True
        return deadline is not None and self._monotonic() >= deadline

    # ─── Fetch ───────────────────────────────────────────────────

    async def _fetch_membership_expiry(self, operation_id: OperationId) -> date | None:
        try:
            expires_on = await self._settings_source.get_current_membership_expiry_date()
        except Exception as e:
            raise MembershipSettingsError(
                str(e), ErrorContext(operation_id=operation_id),
            ) from e
        if expires_on is None:
            logger.warning(
                "No active membership expiry date — recent graduates resolve to GRADUATED",
                extra={"operation_id": operation_id},
            )
        return expires_on

    async def _fetch_candidates(self, operation_id: OperationId) -> list[EducationRecord]:
        candidates: list[EducationRecord] = []
        for program, gateway in self._gateways.items():
            for category in CANDIDATE_CATEGORIES:
                try:
                    records = await gateway.find_records_by_category(category)
                except Exception as e:
                    raise CandidateFetchError(
                        str(e),
                        ErrorContext(operation_id=operation_id, program=program.value),
                    ) from e
                candidates.extend(records)
        return candidates

    # ─── Per-batch / per-record ──────────────────────────────────

    async def _process_batch(
        self,
        batch: list[EducationRecord],
        expires_on: date | None,
        today: date,
        operation_id: OperationId,
    ) -> list[RecordResult]:
        results = []
        for record in batch:
            results.append(
                await self._process_record(record, expires_on, today, operation_id),
            )
        return results

    async def _process_record(
        self,
        record: EducationRecord,
        expires_on: date | None,
        today: date,
        operation_id: OperationId,
    ) -> RecordResult:
        verdict = determine_category(record.graduation_year, expires_on, today)
        if not verdict.year_recognized:
            logger.warning(
                f"Unrecognized graduation year code {record.graduation_year!r}, "
                f"evaluated as {verdict.graduation_year}",
                extra={"operation_id": operation_id, "record_id": record.record_id},
            )

        if not is_transition_allowed(record.category, verdict.category):
            return _result(record, record.category, RecordOutcome.UNCHANGED, verdict.year_recognized)

        log_extra = {
            "operation_id": operation_id, "record_id": record.record_id,
            "program": record.program.value,
        }
        try:
            await self._gateway_for(record).update_record_category(
                record.record_id, verdict.category,
            )
        except RecordUpdateError as e:
            logger.error(
                f"Error updating education category for record {record.record_id}"
                f" - Operation: {operation_id}: {e.message}",
                extra={**log_extra, "error_code": e.code},
            )
            return _result(
                record, verdict.category, RecordOutcome.FAILED,
                verdict.year_recognized, error=e.message,
            )
        except Exception as e:
            logger.error(
                f"Unexpected error updating education category for record "
                f"{record.record_id} - Operation: {operation_id}: {e}",
                extra=log_extra,
                exc_info=True,
            )
            return _result(
                record, verdict.category, RecordOutcome.FAILED,
                verdict.year_recognized, error=str(e),
            )

        self._notify_changed(record, verdict.category)
        return _result(
            record, verdict.category, RecordOutcome.CHANGED, verdict.year_recognized,
        )

    def _gateway_for(self, record: EducationRecord) -> RecordStoreGateway:
        gateway = self._gateways.get(record.program)
        if gateway is None:
            raise LookupError(f"No gateway configured for program '{record.program.value}'")
        return gateway

    def _notify_changed(
        self, record: EducationRecord, new_category: EducationCategory,
    ) -> None:
        if self._on_changed is None:
            return
        try:
            self._on_changed(record.record_id, record.category, new_category)
        except Exception as e:
            logger.error(
                f"on_category_changed hook failed: {e}",
                extra={"record_id": record.record_id},
                exc_info=True,
            )

    # ─── Distribution / health ───────────────────────────────────

    async def get_category_distribution(self) -> CategoryDistribution:
        """Count every category bucket of every program. Read-only."""
        counts: dict[EducationProgram, dict[EducationCategory, int]] = {}
        for program, gateway in self._gateways.items():
            counts[program] = {
                category: len(await gateway.find_records_by_category(category))
                for category in EducationCategory
            }
        return compute_distribution(counts)

    async def check_record_store(self) -> bool:
        for gateway in self._gateways.values():
            if not await gateway.health_check():
                return False
        return True

    async def check_ledger(self) -> bool:
        if self._ledger is None:
            return False
        return await self._ledger.health_check()

    async def latest_run(self) -> dict | None:
        if self._ledger is None:
            return None
        runs = await self._ledger.list_recent_runs(limit=1)
        return runs[0] if runs else None

    @property
    def ledger(self) -> RunLedger | None:
        return self._ledger

    # ─── Ledger (best-effort) ────────────────────────────────────

    async def _ledger_start(
        self, operation_id: OperationId, trigger: SweepTrigger, reason: str,
        started_at: datetime,
    ) -> None:
        if self._ledger is None:
            return
        try:
            await self._ledger.start_run(operation_id, trigger, reason, started_at)
        except Exception as e:
            logger.warning(
                f"Run ledger start failed: {e}", extra={"operation_id": operation_id},
            )

    async def _ledger_finish(
        self, operation_id: OperationId, status: RunStatus,
        stats: dict | None = None, error: str | None = None,
    ) -> None:
        if self._ledger is None:
            return
        try:
            await self._ledger.finish_run(
                operation_id, status, self._now(), stats=stats, error=error,
            )
        except Exception as e:
            logger.warning(
                f"Run ledger finish failed: {e}", extra={"operation_id": operation_id},
            )

    async def _ledger_purge(self, now: datetime) -> None:
        if self._ledger is None:
            return
        try:
            purged = await self._ledger.purge_expired(now)
        except Exception as e:
            logger.warning(f"Run ledger purge failed: {e}")
            return
        if purged:
            logger.info(f"Purged {purged} expired run ledger entries")


def _result(
    record: EducationRecord,
    new_category: EducationCategory,
    outcome: RecordOutcome,
    year_recognized: bool,
    error: str | None = None,
) -> RecordResult:
    return RecordResult(
        record_id=record.record_id,
        subject_business_id=record.subject_business_id,
        program=record.program,
        graduation_year=record.graduation_year,
        old_category=record.category,
        new_category=new_category,
        outcome=outcome,
        year_recognized=year_recognized,
        error=error,
    )
