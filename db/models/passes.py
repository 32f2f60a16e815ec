"""
SQLAlchemy models for reconstruction and simulation passes.

Tables:
- DataPass: a reconstruction campaign over runs of an LHC period
- DataPassVersion: a production of a data pass, with its output statistics
- SimulationPass: a Monte Carlo production anchored on runs and data passes
"""

from datetime import datetime

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base
from db.models.base_model import BaseModel, SoftDeleteMixin, TimestampMixin

data_pass_runs = Table(
    "data_pass_runs",
    Base.metadata,
    Column("data_pass_id", ForeignKey("data_passes.id", ondelete="CASCADE"), primary_key=True),
    Column("run_number", ForeignKey("runs.run_number", ondelete="CASCADE"), primary_key=True),
)

simulation_pass_runs = Table(
    "simulation_pass_runs",
    Base.metadata,
    Column(
        "simulation_pass_id",
        ForeignKey("simulation_passes.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column("run_number", ForeignKey("runs.run_number", ondelete="CASCADE"), primary_key=True),
)

simulation_pass_data_passes = Table(
    "simulation_pass_data_passes",
    Base.metadata,
    Column(
        "simulation_pass_id",
        ForeignKey("simulation_passes.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column("data_pass_id", ForeignKey("data_passes.id", ondelete="CASCADE"), primary_key=True),
)


class DataPass(BaseModel, SoftDeleteMixin):
    __tablename__ = "data_passes"

    name: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    lhc_period_id: Mapped[int | None] = mapped_column(
        ForeignKey("lhc_periods.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    skimming_stage: Mapped[str | None] = mapped_column(String(32), nullable=True)
    is_frozen: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    lhc_period = relationship("LhcPeriod")
    versions = relationship(
        "DataPassVersion",
        back_populates="data_pass",
        cascade="all, delete-orphan",
        order_by="DataPassVersion.id",
    )
    runs = relationship("Run", secondary=data_pass_runs, back_populates="data_passes")
    simulation_passes = relationship(
        "SimulationPass",
        secondary=simulation_pass_data_passes,
        back_populates="data_passes",
    )


class DataPassVersion(Base, TimestampMixin):
    __tablename__ = "data_pass_versions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    data_pass_id: Mapped[int] = mapped_column(
        ForeignKey("data_passes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    reconstructed_events_count: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    output_size: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    last_seen: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    data_pass = relationship("DataPass", back_populates="versions")


class SimulationPass(BaseModel):
    __tablename__ = "simulation_passes"

    name: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    jira_id: Mapped[str | None] = mapped_column(String(32), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    pwg: Mapped[str | None] = mapped_column(Text, nullable=True)
    requested_events_count: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    generated_events_count: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    output_size: Mapped[int | None] = mapped_column(BigInteger, nullable=True)

    runs = relationship("Run", secondary=simulation_pass_runs)
    data_passes = relationship(
        "DataPass",
        secondary=simulation_pass_data_passes,
        back_populates="simulation_passes",
    )
