"""Service test fixtures — sweep service over in-memory fakes.

Invariants:
    - today is frozen at 2026-06-15 (inside the default eligibility window)
    - Membership year ends 2026-12-31, so 2025/2026 graduates are NEW_GRADUATED
    - Batch delays are recorded, never slept
"""

from datetime import date

import pytest

from education_lifecycle.core.domain_types import EducationProgram
from education_lifecycle.services.category_sweep import CategorySweepService

from tests.services.fakes import (
    FakeClock, FakeGateway, FakeSettingsSource, InMemoryRunLedger,
    RecordingSleep,
)

TODAY = date(2026, 6, 15)
YEAR_ENDS = date(2026, 12, 31)


@pytest.fixture
def ot_gateway():
    return FakeGateway(program=EducationProgram.OT)


@pytest.fixture
def ota_gateway():
    return FakeGateway(program=EducationProgram.OTA)


@pytest.fixture
def settings_source():
    return FakeSettingsSource(YEAR_ENDS)


@pytest.fixture
def ledger():
    return InMemoryRunLedger()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sleep(clock):
    return RecordingSleep(clock)


@pytest.fixture
def changes():
    return []


@pytest.fixture
def sweep(ot_gateway, ota_gateway, settings_source, ledger, sleep, clock, changes):
    return CategorySweepService(
        {EducationProgram.OT: ot_gateway, EducationProgram.OTA: ota_gateway},
        settings_source,
        ledger,
        batch_size=50,
        batch_delay_seconds=1.0,
        on_category_changed=lambda rid, old, new: changes.append((rid, old, new)),
        today=lambda: TODAY,
        monotonic=clock,
        sleep=sleep,
    )
