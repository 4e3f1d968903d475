"""Education Lifecycle API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map LifecycleError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Ledger database, record store client and scheduler are created in the
      lifespan and torn down in reverse order

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Scheduler jobs started last: no job can fire before its collaborators exist
"""

import logging
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from education_lifecycle.api.error_handlers import register_error_handlers
from education_lifecycle.api.routes import category_scheduler, health
from education_lifecycle.config import Settings, get_settings
from education_lifecycle.core.domain_types import EducationProgram
from education_lifecycle.infrastructure.database import (
    DatabaseSessionManager, init_db,
)
from education_lifecycle.infrastructure.observability import setup_logging
from education_lifecycle.infrastructure.record_store_client import (
    ResilientRecordStoreClient,
)
from education_lifecycle.infrastructure.record_store_gateway import (
    ODataEducationGateway, ODataMembershipSettingsSource,
)
from education_lifecycle.infrastructure.run_ledger import SqlRunLedger
from education_lifecycle.services.category_sweep import (
    CategorySweepService, make_local_today,
)
from education_lifecycle.services.sweep_triggers import SweepTriggerHost

logger = logging.getLogger(__name__)


def build_record_store_client(settings: Settings) -> ResilientRecordStoreClient:
    return ResilientRecordStoreClient(
        settings.record_store_url,
        settings.record_store_token,
        api_path=settings.record_store_api_path,
        max_retries=settings.record_store_max_retries,
        base_delay_ms=settings.record_store_base_delay_ms,
        max_delay_ms=settings.record_store_max_delay_ms,
        timeout_seconds=settings.record_store_timeout_seconds,
    )


def build_trigger_host(
    settings: Settings,
    client: ResilientRecordStoreClient,
    db: DatabaseSessionManager,
) -> SweepTriggerHost:
    """Wire gateways, ledger, sweep service and triggers from settings."""
    gateways = {
        EducationProgram.OT: ODataEducationGateway(
            client, EducationProgram.OT, settings.ot_education_entity_set,
        ),
        EducationProgram.OTA: ODataEducationGateway(
            client, EducationProgram.OTA, settings.ota_education_entity_set,
        ),
    }
    sweep = CategorySweepService(
        gateways,
        ODataMembershipSettingsSource(client, settings.membership_settings_entity_set),
        SqlRunLedger(db, timedelta(hours=settings.run_ledger_ttl_hours)),
        batch_size=settings.sweep_batch_size,
        batch_delay_seconds=settings.sweep_batch_delay_seconds,
        today=make_local_today(settings.scheduler_timezone),
    )
    return SweepTriggerHost(
        sweep,
        timezone=settings.scheduler_timezone,
        daily_cron=settings.daily_sweep_cron,
        annual_cron=settings.annual_sweep_cron,
        eligibility_months=tuple(settings.sweep_eligibility_months),
        enabled=settings.scheduler_enabled,
        timeout_seconds=settings.sweep_timeout_seconds,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    db = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    if settings.database_url.startswith("sqlite"):
        await db.create_all()
    client = build_record_store_client(settings)
    host = build_trigger_host(settings, client, db)

    app.state.db_manager = db
    app.state.trigger_host = host
    host.start()
    logger.info("Education Lifecycle API started")
    yield
    logger.info("Education Lifecycle API shutting down")
    host.shutdown()
    await client.aclose()
    await db.dispose()


app = FastAPI(
    title="Education Lifecycle API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(category_scheduler.router)

register_error_handlers(app)
