"""
SQLAlchemy models for the logbook.

Tables:
- User: author of logs and QC flags, identified by the external SSO id
- Tag: label attached to runs and logs
- Environment / EnvironmentHistory: control environments and their status changes
- LhcPeriod, RunType, Detector: reference data of runs
- Run: one data-taking session
- Log: free-text entry, possibly a reply in a thread
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    BigInteger,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base
from db.models.base_model import ArchivableMixin, BaseModel, TimestampMixin
from packages.bookkeeping.enums import (
    DetectorType,
    EnvironmentStatus,
    LogOrigin,
    LogSubtype,
    RunDefinition,
    RunQuality,
    TriggerValue,
)
from packages.shared.timestamps import now_ms, to_ms

if TYPE_CHECKING:
    from db.models.passes import DataPass

# =============================================================================
# Association tables
# =============================================================================

run_tags = Table(
    "run_tags",
    Base.metadata,
    Column("run_id", ForeignKey("runs.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)

run_detectors = Table(
    "run_detectors",
    Base.metadata,
    Column("run_id", ForeignKey("runs.id", ondelete="CASCADE"), primary_key=True),
    Column("detector_id", ForeignKey("detectors.id", ondelete="CASCADE"), primary_key=True),
    Column("quality", String(16), nullable=True),
)

log_tags = Table(
    "log_tags",
    Base.metadata,
    Column("log_id", ForeignKey("logs.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)

log_runs = Table(
    "log_runs",
    Base.metadata,
    Column("log_id", ForeignKey("logs.id", ondelete="CASCADE"), primary_key=True),
    Column("run_id", ForeignKey("runs.id", ondelete="CASCADE"), primary_key=True),
)

log_environments = Table(
    "log_environments",
    Base.metadata,
    Column("log_id", ForeignKey("logs.id", ondelete="CASCADE"), primary_key=True),
    Column(
        "environment_id",
        ForeignKey("environments.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


# =============================================================================
# Users and tags
# =============================================================================


class User(BaseModel):
    """A person known through the SSO, created on first authenticated write."""

    __tablename__ = "users"

    external_id: Mapped[int] = mapped_column(BigInteger, unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)


class Tag(BaseModel, ArchivableMixin):
    __tablename__ = "tags"

    text: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    color: Mapped[str | None] = mapped_column(String(7), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    mattermost: Mapped[str | None] = mapped_column(String(255), nullable=True)


# =============================================================================
# Environments
# =============================================================================


class Environment(Base, TimestampMixin):
    """A control environment, keyed by the id given by the control system."""

    __tablename__ = "environments"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    status: Mapped[EnvironmentStatus | None] = mapped_column(nullable=True)
    status_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    runs = relationship("Run", back_populates="environment")
    history = relationship(
        "EnvironmentHistory",
        back_populates="environment",
        cascade="all, delete-orphan",
        order_by="EnvironmentHistory.id",
    )


class EnvironmentHistory(Base):
    __tablename__ = "environment_histories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    environment_id: Mapped[str] = mapped_column(
        String(32),
        ForeignKey("environments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    status: Mapped[EnvironmentStatus] = mapped_column(nullable=False)
    status_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    environment = relationship("Environment", back_populates="history")


# =============================================================================
# Reference data
# =============================================================================


class LhcPeriod(Base):
    __tablename__ = "lhc_periods"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(16), unique=True, nullable=False)

    runs = relationship("Run", back_populates="lhc_period")


class RunType(Base):
    __tablename__ = "run_types"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)


class Detector(Base, TimestampMixin):
    __tablename__ = "detectors"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(16), unique=True, nullable=False)
    type: Mapped[DetectorType] = mapped_column(default=DetectorType.PHYSICAL, nullable=False)


# =============================================================================
# Runs
# =============================================================================


class Run(BaseModel):
    """
    One data-taking session.

    The QC period of a run goes from its trigger start (or O2 start when the
    trigger was off) to its trigger end (or O2 end).
    """

    __tablename__ = "runs"

    run_number: Mapped[int] = mapped_column(Integer, unique=True, nullable=False, index=True)

    # --- Relations ---
    environment_id: Mapped[str | None] = mapped_column(
        String(32),
        ForeignKey("environments.id", ondelete="SET NULL"),
        nullable=True,
    )
    run_type_id: Mapped[int | None] = mapped_column(
        ForeignKey("run_types.id", ondelete="SET NULL"),
        nullable=True,
    )
    lhc_period_id: Mapped[int | None] = mapped_column(
        ForeignKey("lhc_periods.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    # --- State ---
    run_quality: Mapped[RunQuality] = mapped_column(
        default=RunQuality.UNKNOWN,
        nullable=False,
    )
    definition: Mapped[RunDefinition | None] = mapped_column(nullable=True)
    trigger_value: Mapped[TriggerValue | None] = mapped_column(nullable=True)

    # --- Timing ---
    time_o2_start: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    time_o2_end: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    time_trg_start: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    time_trg_end: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # --- Counters ---
    n_detectors: Mapped[int | None] = mapped_column(Integer, nullable=True)
    n_flps: Mapped[int | None] = mapped_column(Integer, nullable=True)
    n_epns: Mapped[int | None] = mapped_column(Integer, nullable=True)
    fill_number: Mapped[int | None] = mapped_column(Integer, nullable=True)

    environment = relationship("Environment", back_populates="runs")
    run_type = relationship("RunType")
    lhc_period = relationship("LhcPeriod", back_populates="runs")
    tags = relationship("Tag", secondary=run_tags, order_by="Tag.text")
    detectors = relationship("Detector", secondary=run_detectors, order_by="Detector.name")
    logs = relationship("Log", secondary=log_runs, back_populates="runs")
    data_passes: Mapped[list["DataPass"]] = relationship(
        "DataPass",
        secondary="data_pass_runs",
        back_populates="runs",
    )

    @property
    def qc_time_start(self) -> datetime | None:
        return self.time_trg_start or self.time_o2_start

    @property
    def qc_time_end(self) -> datetime | None:
        return self.time_trg_end or self.time_o2_end

    @property
    def run_duration(self) -> int | None:
        """Milliseconds between trigger start and trigger end, or now while running."""
        start = to_ms(self.time_trg_start)
        if start is None:
            return None
        end = to_ms(self.time_trg_end) if self.time_trg_end is not None else now_ms()
        return end - start


# =============================================================================
# Logs
# =============================================================================


class Log(BaseModel):
    """A log entry. Replies point to their parent and to the root of the thread."""

    __tablename__ = "logs"

    title: Mapped[str] = mapped_column(String(140), nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    subtype: Mapped[LogSubtype] = mapped_column(default=LogSubtype.RUN, nullable=False)
    origin: Mapped[LogOrigin] = mapped_column(default=LogOrigin.HUMAN, nullable=False)

    author_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    root_log_id: Mapped[int | None] = mapped_column(
        ForeignKey("logs.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    parent_log_id: Mapped[int | None] = mapped_column(
        ForeignKey("logs.id", ondelete="CASCADE"),
        nullable=True,
    )

    author = relationship("User")
    tags = relationship("Tag", secondary=log_tags, order_by="Tag.text")
    runs = relationship("Run", secondary=log_runs, back_populates="logs")
    environments = relationship("Environment", secondary=log_environments)
    parent = relationship(
        "Log",
        foreign_keys=[parent_log_id],
        remote_side="Log.id",
        back_populates="replies",
    )
    replies = relationship(
        "Log",
        foreign_keys=[parent_log_id],
        back_populates="parent",
        order_by="Log.id",
    )
