"""Initial logbook schema

Creates the tables of the logbook:
- users, tags, environments, environment_histories
- lhc_periods, run_types, detectors, runs and their join tables
- logs and their join tables
- data_passes, data_pass_versions, simulation_passes and their join tables
- quality_control_flag_types, quality_control_flags, effective periods,
  verifications and the pass join tables

Revision ID: 3f1c2a9b7d10
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3f1c2a9b7d10"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

# Enum columns store member names
RUN_QUALITY = sa.Enum("GOOD", "BAD", "UNKNOWN", "TEST", name="runquality")
RUN_DEFINITION = sa.Enum(
    "PHYSICS",
    "COSMICS",
    "TECHNICAL",
    "SYNTHETIC",
    "CALIBRATION",
    "COMMISSIONING",
    name="rundefinition",
)
TRIGGER_VALUE = sa.Enum("OFF", "LTU", "CTP", name="triggervalue")
DETECTOR_TYPE = sa.Enum(
    "PHYSICAL",
    "VIRTUAL",
    "QC_ONLY",
    "MUON_GLO",
    "AOT_GLO",
    "AOT_EVENT",
    "OTHER",
    name="detectortype",
)
LOG_SUBTYPE = sa.Enum(
    "RUN", "SUBSYSTEM", "ANNOUNCEMENT", "INTERVENTION", "COMMENT", name="logsubtype"
)
LOG_ORIGIN = sa.Enum("HUMAN", "PROCESS", name="logorigin")
QC_FLAG_ORIGIN = sa.Enum("HUMAN", "PROCESS", name="qcflagorigin")
ENVIRONMENT_STATUS = sa.Enum(
    "STANDBY",
    "DEPLOYED",
    "CONFIGURED",
    "RUNNING",
    "ERROR",
    "DESTROYED",
    "DONE",
    name="environmentstatus",
)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    """Upgrade database schema."""
    # ==========================================================================
    # USERS AND TAGS
    # ==========================================================================
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("external_id", sa.BigInteger(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("external_id"),
    )
    op.create_index("ix_users_name", "users", ["name"])

    op.create_table(
        "tags",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("text", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("color", sa.String(length=7), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("mattermost", sa.String(length=255), nullable=True),
        sa.Column("archived_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("text"),
    )

    # ==========================================================================
    # ENVIRONMENTS
    # ==========================================================================
    op.create_table(
        "environments",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("status", ENVIRONMENT_STATUS, nullable=True),
        sa.Column("status_message", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "environment_histories",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("environment_id", sa.String(length=32), nullable=False),
        sa.Column("status", ENVIRONMENT_STATUS, nullable=False),
        sa.Column("status_message", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["environment_id"], ["environments.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_environment_histories_environment_id", "environment_histories", ["environment_id"]
    )

    # ==========================================================================
    # REFERENCE DATA
    # ==========================================================================
    op.create_table(
        "lhc_periods",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=16), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )
    op.create_table(
        "run_types",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=64), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )
    op.create_table(
        "detectors",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=16), nullable=False),
        sa.Column("type", DETECTOR_TYPE, nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )

    # ==========================================================================
    # RUNS
    # ==========================================================================
    op.create_table(
        "runs",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("run_number", sa.Integer(), nullable=False),
        sa.Column("environment_id", sa.String(length=32), nullable=True),
        sa.Column("run_type_id", sa.Integer(), nullable=True),
        sa.Column("lhc_period_id", sa.Integer(), nullable=True),
        sa.Column("run_quality", RUN_QUALITY, nullable=False),
        sa.Column("definition", RUN_DEFINITION, nullable=True),
        sa.Column("trigger_value", TRIGGER_VALUE, nullable=True),
        sa.Column("time_o2_start", sa.DateTime(timezone=True), nullable=True),
        sa.Column("time_o2_end", sa.DateTime(timezone=True), nullable=True),
        sa.Column("time_trg_start", sa.DateTime(timezone=True), nullable=True),
        sa.Column("time_trg_end", sa.DateTime(timezone=True), nullable=True),
        sa.Column("n_detectors", sa.Integer(), nullable=True),
        sa.Column("n_flps", sa.Integer(), nullable=True),
        sa.Column("n_epns", sa.Integer(), nullable=True),
        sa.Column("fill_number", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["environment_id"], ["environments.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["run_type_id"], ["run_types.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["lhc_period_id"], ["lhc_periods.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_runs_run_number", "runs", ["run_number"], unique=True)
    op.create_index("ix_runs_lhc_period_id", "runs", ["lhc_period_id"])

    op.create_table(
        "run_tags",
        sa.Column("run_id", sa.Integer(), nullable=False),
        sa.Column("tag_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["run_id"], ["runs.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["tag_id"], ["tags.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("run_id", "tag_id"),
    )
    op.create_table(
        "run_detectors",
        sa.Column("run_id", sa.Integer(), nullable=False),
        sa.Column("detector_id", sa.Integer(), nullable=False),
        sa.Column("quality", sa.String(length=16), nullable=True),
        sa.ForeignKeyConstraint(["run_id"], ["runs.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["detector_id"], ["detectors.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("run_id", "detector_id"),
    )

    # ==========================================================================
    # LOGS
    # ==========================================================================
    op.create_table(
        "logs",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("title", sa.String(length=140), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("subtype", LOG_SUBTYPE, nullable=False),
        sa.Column("origin", LOG_ORIGIN, nullable=False),
        sa.Column("author_id", sa.Integer(), nullable=False),
        sa.Column("root_log_id", sa.Integer(), nullable=True),
        sa.Column("parent_log_id", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["author_id"], ["users.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["root_log_id"], ["logs.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["parent_log_id"], ["logs.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_logs_author_id", "logs", ["author_id"])
    op.create_index("ix_logs_root_log_id", "logs", ["root_log_id"])

    op.create_table(
        "log_tags",
        sa.Column("log_id", sa.Integer(), nullable=False),
        sa.Column("tag_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["log_id"], ["logs.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["tag_id"], ["tags.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("log_id", "tag_id"),
    )
    op.create_table(
        "log_runs",
        sa.Column("log_id", sa.Integer(), nullable=False),
        sa.Column("run_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["log_id"], ["logs.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["run_id"], ["runs.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("log_id", "run_id"),
    )
    op.create_table(
        "log_environments",
        sa.Column("log_id", sa.Integer(), nullable=False),
        sa.Column("environment_id", sa.String(length=32), nullable=False),
        sa.ForeignKeyConstraint(["log_id"], ["logs.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["environment_id"], ["environments.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("log_id", "environment_id"),
    )

    # ==========================================================================
    # PASSES
    # ==========================================================================
    op.create_table(
        "data_passes",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=64), nullable=False),
        sa.Column("lhc_period_id", sa.Integer(), nullable=True),
        sa.Column("skimming_stage", sa.String(length=32), nullable=True),
        sa.Column("is_frozen", sa.Boolean(), nullable=False),
        sa.Column("deleted", sa.Boolean(), server_default=sa.false(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["lhc_period_id"], ["lhc_periods.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )
    op.create_index("ix_data_passes_lhc_period_id", "data_passes", ["lhc_period_id"])
    op.create_index("ix_data_passes_deleted", "data_passes", ["deleted"])

    op.create_table(
        "data_pass_versions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("data_pass_id", sa.Integer(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("reconstructed_events_count", sa.BigInteger(), nullable=True),
        sa.Column("output_size", sa.BigInteger(), nullable=True),
        sa.Column("last_seen", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["data_pass_id"], ["data_passes.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_data_pass_versions_data_pass_id", "data_pass_versions", ["data_pass_id"])

    op.create_table(
        "simulation_passes",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=64), nullable=False),
        sa.Column("jira_id", sa.String(length=32), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("pwg", sa.Text(), nullable=True),
        sa.Column("requested_events_count", sa.BigInteger(), nullable=True),
        sa.Column("generated_events_count", sa.BigInteger(), nullable=True),
        sa.Column("output_size", sa.BigInteger(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )

    op.create_table(
        "data_pass_runs",
        sa.Column("data_pass_id", sa.Integer(), nullable=False),
        sa.Column("run_number", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["data_pass_id"], ["data_passes.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["run_number"], ["runs.run_number"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("data_pass_id", "run_number"),
    )
    op.create_table(
        "simulation_pass_runs",
        sa.Column("simulation_pass_id", sa.Integer(), nullable=False),
        sa.Column("run_number", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["simulation_pass_id"], ["simulation_passes.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["run_number"], ["runs.run_number"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("simulation_pass_id", "run_number"),
    )
    op.create_table(
        "simulation_pass_data_passes",
        sa.Column("simulation_pass_id", sa.Integer(), nullable=False),
        sa.Column("data_pass_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["simulation_pass_id"], ["simulation_passes.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["data_pass_id"], ["data_passes.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("simulation_pass_id", "data_pass_id"),
    )

    # ==========================================================================
    # QUALITY CONTROL
    # ==========================================================================
    op.create_table(
        "quality_control_flag_types",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=64), nullable=False),
        sa.Column("method", sa.String(length=64), nullable=False),
        sa.Column("bad", sa.Boolean(), nullable=False),
        sa.Column("color", sa.String(length=7), nullable=True),
        sa.Column("monte_carlo_reproducible", sa.Boolean(), nullable=False),
        sa.Column("archived_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_by_id", sa.Integer(), nullable=True),
        sa.Column("last_updated_by_id", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["created_by_id"], ["users.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["last_updated_by_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
        sa.UniqueConstraint("method"),
    )

    op.create_table(
        "quality_control_flags",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("from", sa.DateTime(timezone=True), nullable=True),
        sa.Column("to", sa.DateTime(timezone=True), nullable=True),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column("origin", QC_FLAG_ORIGIN, nullable=False),
        sa.Column("run_number", sa.Integer(), nullable=False),
        sa.Column("detector_id", sa.Integer(), nullable=False),
        sa.Column("flag_type_id", sa.Integer(), nullable=False),
        sa.Column("created_by_id", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["run_number"], ["runs.run_number"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["detector_id"], ["detectors.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["flag_type_id"], ["quality_control_flag_types.id"], ondelete="RESTRICT"
        ),
        sa.ForeignKeyConstraint(["created_by_id"], ["users.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_quality_control_flags_run_number", "quality_control_flags", ["run_number"])
    op.create_index("ix_quality_control_flags_detector_id", "quality_control_flags", ["detector_id"])

    op.create_table(
        "quality_control_flag_effective_periods",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("flag_id", sa.Integer(), nullable=False),
        sa.Column("from", sa.DateTime(timezone=True), nullable=True),
        sa.Column("to", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["flag_id"], ["quality_control_flags.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_quality_control_flag_effective_periods_flag_id",
        "quality_control_flag_effective_periods",
        ["flag_id"],
    )

    op.create_table(
        "quality_control_flag_verifications",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("flag_id", sa.Integer(), nullable=False),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column("created_by_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["flag_id"], ["quality_control_flags.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["created_by_id"], ["users.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_quality_control_flag_verifications_flag_id",
        "quality_control_flag_verifications",
        ["flag_id"],
    )

    op.create_table(
        "data_pass_quality_control_flags",
        sa.Column("data_pass_id", sa.Integer(), nullable=False),
        sa.Column("quality_control_flag_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["data_pass_id"], ["data_passes.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["quality_control_flag_id"], ["quality_control_flags.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("data_pass_id", "quality_control_flag_id"),
    )
    op.create_table(
        "simulation_pass_quality_control_flags",
        sa.Column("simulation_pass_id", sa.Integer(), nullable=False),
        sa.Column("quality_control_flag_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["simulation_pass_id"], ["simulation_passes.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["quality_control_flag_id"], ["quality_control_flags.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("simulation_pass_id", "quality_control_flag_id"),
    )


def downgrade() -> None:
    """Downgrade database schema."""
    op.drop_table("simulation_pass_quality_control_flags")
    op.drop_table("data_pass_quality_control_flags")
    op.drop_table("quality_control_flag_verifications")
    op.drop_table("quality_control_flag_effective_periods")
    op.drop_table("quality_control_flags")
    op.drop_table("quality_control_flag_types")
    op.drop_table("simulation_pass_data_passes")
    op.drop_table("simulation_pass_runs")
    op.drop_table("data_pass_runs")
    op.drop_table("simulation_passes")
    op.drop_table("data_pass_versions")
    op.drop_table("data_passes")
    op.drop_table("log_environments")
    op.drop_table("log_runs")
    op.drop_table("log_tags")
    op.drop_table("logs")
    op.drop_table("run_detectors")
    op.drop_table("run_tags")
    op.drop_table("runs")
    op.drop_table("detectors")
    op.drop_table("run_types")
    op.drop_table("lhc_periods")
    op.drop_table("environment_histories")
    op.drop_table("environments")
    op.drop_table("tags")
    op.drop_table("users")

    bind = op.get_bind()
    for enum in (
        RUN_QUALITY,
        RUN_DEFINITION,
        TRIGGER_VALUE,
        DETECTOR_TYPE,
        LOG_SUBTYPE,
        LOG_ORIGIN,
        QC_FLAG_ORIGIN,
        ENVIRONMENT_STATUS,
    ):
        enum.drop(bind, checkfirst=True)
