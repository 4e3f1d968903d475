"""API test fixtures — FastAPI app with services swapped through dependency overrides.

Invariants:
    - Lifespan is not run (ASGITransport): no scheduler, no real record store
    - Trigger host built over the in-memory fakes; ledger is the SQL ledger
      on in-memory SQLite so /runs exercises the real persistence path
"""

from datetime import date, timedelta

import pytest
from httpx import ASGITransport, AsyncClient

from education_lifecycle.api.dependencies import (
    get_db_manager, get_sweep_service, get_trigger_host,
)
from education_lifecycle.core.domain_types import EducationProgram
from education_lifecycle.infrastructure.database import DatabaseSessionManager
from education_lifecycle.infrastructure.run_ledger import SqlRunLedger
from education_lifecycle.main import app
from education_lifecycle.services.category_sweep import CategorySweepService
from education_lifecycle.services.sweep_triggers import SweepTriggerHost

from tests.services.fakes import FakeGateway, FakeSettingsSource, RecordingSleep

TODAY = date(2026, 6, 15)


@pytest.fixture
async def db():
    manager = DatabaseSessionManager("sqlite+aiosqlite:///:memory:")
    await manager.create_all()
    yield manager
    await manager.dispose()


@pytest.fixture
def ot_gateway():
    return FakeGateway(program=EducationProgram.OT)


@pytest.fixture
def ota_gateway():
    return FakeGateway(program=EducationProgram.OTA)


@pytest.fixture
def settings_source():
    return FakeSettingsSource(date(2026, 12, 31))


@pytest.fixture
def host(db, ot_gateway, ota_gateway, settings_source):
    sweep = CategorySweepService(
        {EducationProgram.OT: ot_gateway, EducationProgram.OTA: ota_gateway},
        settings_source,
        SqlRunLedger(db, ttl=timedelta(days=30)),
        today=lambda: TODAY,
        sleep=RecordingSleep(),
    )
    return SweepTriggerHost(sweep, enabled=False)


@pytest.fixture
async def client(host, db):
    app.dependency_overrides[get_trigger_host] = lambda: host
    app.dependency_overrides[get_sweep_service] = lambda: host.sweep
    app.dependency_overrides[get_db_manager] = lambda: db

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
