"""Run ledger — sweep_runs.

Revision ID: 001_sweep_runs
Revises: None
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001_sweep_runs"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "sweep_runs",
        sa.Column("operation_id", sa.String(80), primary_key=True),
        sa.Column("trigger", sa.String(20), nullable=False),
        sa.Column("reason", sa.Text, nullable=False, server_default=""),
        sa.Column("status", sa.String(20), nullable=False, server_default="running"),
        sa.Column("stats", sa.JSON, nullable=True),
        sa.Column("error", sa.Text, nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("finished_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_sweep_runs_started_at", "sweep_runs", ["started_at"])
    op.create_index("ix_sweep_runs_expires_at", "sweep_runs", ["expires_at"])


def downgrade() -> None:
    op.drop_index("ix_sweep_runs_expires_at", table_name="sweep_runs")
    op.drop_index("ix_sweep_runs_started_at", table_name="sweep_runs")
    op.drop_table("sweep_runs")
