"""
SQLAlchemy models for quality control.

Tables:
- QcFlagType: catalogue of flag kinds (bad or not, MC reproducible or not)
- QcFlag: a flag over a period of a run for one detector
- QcFlagEffectivePeriod: parts of a flag not overridden by newer flags
- QcFlagVerification: sign-off of a flag by someone other than its author
- GaqDetector: detectors whose flags make the global aggregated quality of a
  run in a data pass

A flag linked to a data pass or a simulation pass is asynchronous, a flag
linked to neither is synchronous.
"""

from datetime import datetime

from sqlalchemy import (
    Boolean,
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
from db.models.base_model import ArchivableMixin, BaseModel
from packages.bookkeeping.enums import QcFlagOrigin

data_pass_quality_control_flags = Table(
    "data_pass_quality_control_flags",
    Base.metadata,
    Column("data_pass_id", ForeignKey("data_passes.id", ondelete="CASCADE"), primary_key=True),
    Column(
        "quality_control_flag_id",
        ForeignKey("quality_control_flags.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)

simulation_pass_quality_control_flags = Table(
    "simulation_pass_quality_control_flags",
    Base.metadata,
    Column(
        "simulation_pass_id",
        ForeignKey("simulation_passes.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "quality_control_flag_id",
        ForeignKey("quality_control_flags.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class QcFlagType(BaseModel, ArchivableMixin):
    __tablename__ = "quality_control_flag_types"

    name: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    method: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    bad: Mapped[bool] = mapped_column(Boolean, nullable=False)
    color: Mapped[str | None] = mapped_column(String(7), nullable=True)
    mc_reproducible: Mapped[bool] = mapped_column(
        "monte_carlo_reproducible", Boolean, default=False, nullable=False
    )

    created_by_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    last_updated_by_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    created_by = relationship("User", foreign_keys=[created_by_id])
    last_updated_by = relationship("User", foreign_keys=[last_updated_by_id])


class QcFlag(BaseModel):
    """
    A QC flag. ``from_time``/``to_time`` are both null only when the run has
    neither a start nor an end time.
    """

    __tablename__ = "quality_control_flags"

    from_time: Mapped[datetime | None] = mapped_column("from", DateTime(timezone=True), nullable=True)
    to_time: Mapped[datetime | None] = mapped_column("to", DateTime(timezone=True), nullable=True)
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    origin: Mapped[QcFlagOrigin] = mapped_column(default=QcFlagOrigin.HUMAN, nullable=False)

    run_number: Mapped[int] = mapped_column(
        ForeignKey("runs.run_number", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    detector_id: Mapped[int] = mapped_column(
        ForeignKey("detectors.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    flag_type_id: Mapped[int] = mapped_column(
        ForeignKey("quality_control_flag_types.id", ondelete="RESTRICT"),
        nullable=False,
    )
    created_by_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
    )

    run = relationship("Run")
    detector = relationship("Detector")
    flag_type = relationship("QcFlagType")
    created_by = relationship("User")
    verifications = relationship(
        "QcFlagVerification",
        back_populates="flag",
        cascade="all, delete-orphan",
        order_by="QcFlagVerification.id",
    )
    effective_periods = relationship(
        "QcFlagEffectivePeriod",
        back_populates="flag",
        cascade="all, delete-orphan",
        order_by="QcFlagEffectivePeriod.id",
    )
    data_passes = relationship("DataPass", secondary=data_pass_quality_control_flags)
    simulation_passes = relationship("SimulationPass", secondary=simulation_pass_quality_control_flags)


class QcFlagEffectivePeriod(Base):
    __tablename__ = "quality_control_flag_effective_periods"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    flag_id: Mapped[int] = mapped_column(
        ForeignKey("quality_control_flags.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    from_time: Mapped[datetime | None] = mapped_column("from", DateTime(timezone=True), nullable=True)
    to_time: Mapped[datetime | None] = mapped_column("to", DateTime(timezone=True), nullable=True)

    flag = relationship("QcFlag", back_populates="effective_periods")


class QcFlagVerification(Base):
    __tablename__ = "quality_control_flag_verifications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    flag_id: Mapped[int] = mapped_column(
        ForeignKey("quality_control_flags.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    flag = relationship("QcFlag", back_populates="verifications")
    created_by = relationship("User")


class GaqDetector(Base):
    __tablename__ = "global_aggregated_quality_detectors"

    data_pass_id: Mapped[int] = mapped_column(
        ForeignKey("data_passes.id", ondelete="CASCADE"),
        primary_key=True,
    )
    run_number: Mapped[int] = mapped_column(
        ForeignKey("runs.run_number", ondelete="CASCADE"),
        primary_key=True,
    )
    detector_id: Mapped[int] = mapped_column(
        ForeignKey("detectors.id", ondelete="CASCADE"),
        primary_key=True,
    )

    detector = relationship("Detector")
