"""Enumerations shared by the models, the services and the wire converters."""

from enum import Enum


class RunQuality(str, Enum):
    """Quality assigned to a run by the shift crew."""

    GOOD = "good"
    BAD = "bad"
    UNKNOWN = "unknown"
    TEST = "test"


class RunDefinition(str, Enum):
    """Kind of run, derived from its configuration."""

    PHYSICS = "PHYSICS"
    COSMICS = "COSMICS"
    TECHNICAL = "TECHNICAL"
    SYNTHETIC = "SYNTHETIC"
    CALIBRATION = "CALIBRATION"
    COMMISSIONING = "COMMISSIONING"


class TriggerValue(str, Enum):
    OFF = "OFF"
    LTU = "LTU"
    CTP = "CTP"


class DetectorType(str, Enum):
    PHYSICAL = "PHYSICAL"
    VIRTUAL = "VIRTUAL"
    QC_ONLY = "QC_ONLY"
    MUON_GLO = "MUON_GLO"
    AOT_GLO = "AOT_GLO"
    AOT_EVENT = "AOT_EVENT"
    OTHER = "OTHER"


class LogSubtype(str, Enum):
    RUN = "run"
    SUBSYSTEM = "subsystem"
    ANNOUNCEMENT = "announcement"
    INTERVENTION = "intervention"
    COMMENT = "comment"


class LogOrigin(str, Enum):
    HUMAN = "human"
    PROCESS = "process"


class QcFlagOrigin(str, Enum):
    """Who created a QC flag: a person or an automated checker."""

    HUMAN = "human"
    PROCESS = "process"


class EnvironmentStatus(str, Enum):
    STANDBY = "STANDBY"
    DEPLOYED = "DEPLOYED"
    CONFIGURED = "CONFIGURED"
    RUNNING = "RUNNING"
    ERROR = "ERROR"
    DESTROYED = "DESTROYED"
    DONE = "DONE"


class Role(str, Enum):
    """Access roles carried by session tokens."""

    ADMIN = "admin"
    DPG_ASYNC_QC_ADMIN = "dpg_asynchronous_qc_admin"


class CreatedByOperator(str, Enum):
    OR = "or"
    NONE = "none"


class TagOperation(str, Enum):
    AND = "and"
    OR = "or"
    NONE_OF = "none-of"
