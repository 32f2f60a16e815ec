"""Database models package."""

from db.models.base_model import (
    ArchivableMixin,
    BaseModel,
    SoftDeleteMixin,
    TimestampMixin,
)
from db.models.logbook import (
    Detector,
    Environment,
    EnvironmentHistory,
    LhcPeriod,
    Log,
    Run,
    RunType,
    Tag,
    User,
    log_environments,
    log_runs,
    log_tags,
    run_detectors,
    run_tags,
)
from db.models.passes import (
    DataPass,
    DataPassVersion,
    SimulationPass,
    data_pass_runs,
    simulation_pass_data_passes,
    simulation_pass_runs,
)
from db.models.quality_control import (
    GaqDetector,
    QcFlag,
    QcFlagEffectivePeriod,
    QcFlagType,
    QcFlagVerification,
    data_pass_quality_control_flags,
    simulation_pass_quality_control_flags,
)

__all__ = [
    # Base models and mixins
    "ArchivableMixin",
    "BaseModel",
    "SoftDeleteMixin",
    "TimestampMixin",
    # Logbook models
    "Detector",
    "Environment",
    "EnvironmentHistory",
    "LhcPeriod",
    "Log",
    "Run",
    "RunType",
    "Tag",
    "User",
    "log_environments",
    "log_runs",
    "log_tags",
    "run_detectors",
    "run_tags",
    # Pass models
    "DataPass",
    "DataPassVersion",
    "SimulationPass",
    "data_pass_runs",
    "simulation_pass_data_passes",
    "simulation_pass_runs",
    # Quality control models
    "GaqDetector",
    "QcFlag",
    "QcFlagEffectivePeriod",
    "QcFlagType",
    "QcFlagVerification",
    "data_pass_quality_control_flags",
    "simulation_pass_quality_control_flags",
]
