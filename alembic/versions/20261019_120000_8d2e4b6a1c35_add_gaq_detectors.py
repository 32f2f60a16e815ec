"""Add global aggregated quality detectors

Creates global_aggregated_quality_detectors: for a data pass and one of its
runs, the detectors whose QC flags make the global aggregated quality.

Revision ID: 8d2e4b6a1c35
Revises: 3f1c2a9b7d10
Create Date: 2026-10-19 12:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "8d2e4b6a1c35"
down_revision: str | None = "3f1c2a9b7d10"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Upgrade database schema."""
    op.create_table(
        "global_aggregated_quality_detectors",
        sa.Column("data_pass_id", sa.Integer(), nullable=False),
        sa.Column("run_number", sa.Integer(), nullable=False),
        sa.Column("detector_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["data_pass_id"], ["data_passes.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["run_number"], ["runs.run_number"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["detector_id"], ["detectors.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("data_pass_id", "run_number", "detector_id"),
    )


def downgrade() -> None:
    """Downgrade database schema."""
    op.drop_table("global_aggregated_quality_detectors")
