"""Route Dependencies — hand the lifespan-built services to route handlers.

Invariants:
    - Services are built once in the lifespan and stored on app.state
    - Routes only ever receive them through Depends(), so tests swap them
      with app.dependency_overrides

Design Decisions:
    - app.state over module globals: one app instance owns its own services
"""

from fastapi import Request

from education_lifecycle.infrastructure.database import DatabaseSessionManager
from education_lifecycle.services.category_sweep import CategorySweepService
from education_lifecycle.services.sweep_triggers import SweepTriggerHost


def get_trigger_host(request: Request) -> SweepTriggerHost:
    return request.app.state.trigger_host


def get_sweep_service(request: Request) -> CategorySweepService:
    return request.app.state.trigger_host.sweep


def get_db_manager(request: Request) -> DatabaseSessionManager | None:
    return getattr(request.app.state, "db_manager", None)
