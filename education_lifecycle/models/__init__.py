"""ORM Models — SQLAlchemy declarative models owned by this service.

Invariants:
    - All models inherit from Base (db/base.py)
    - Education records themselves are NOT modeled here: they live in the
      external record store and are reached through the gateways

Design Decisions:
    - All models imported here so Base.metadata is complete before
      create_all() or alembic autogenerate runs
"""

from education_lifecycle.models.sweep_run import SweepRun  # noqa: F401
