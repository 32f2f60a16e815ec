"""Pydantic schemas for QC flag types and QC flags."""

from dataclasses import dataclass, field

from pydantic import AliasChoices, Field, model_validator

from apps.api.logs.schemas import UserView
from apps.api.runs.schemas import DetectorView
from apps.api.schemas import ApiModel, EpochMs
from packages.bookkeeping.enums import CreatedByOperator, QcFlagOrigin

# =============================================================================
# Flag types
# =============================================================================


class QcFlagTypeView(ApiModel):
    id: int
    name: str
    method: str
    bad: bool
    color: str | None = None
    mc_reproducible: bool = False
    archived: bool = False
    archived_at: EpochMs = None
    created_by: UserView | None = None
    last_updated_by: UserView | None = None
    created_at: EpochMs = None
    updated_at: EpochMs = None


class QcFlagTypeCreate(ApiModel):
    name: str = Field(min_length=1, max_length=64)
    method: str = Field(min_length=1, max_length=64)
    bad: bool
    color: str | None = Field(default=None, pattern=r"^#[0-9a-fA-F]{6}$")
    mc_reproducible: bool = False


class QcFlagTypeUpdate(ApiModel):
    color: str | None = Field(default=None, pattern=r"^#[0-9a-fA-F]{6}$")
    archived: bool | None = None


@dataclass
class QcFlagTypeFilters:
    ids: list[int] = field(default_factory=list)
    names: list[str] = field(default_factory=list)
    methods: list[str] = field(default_factory=list)
    bad: bool | None = None
    archived: bool | None = None


# =============================================================================
# Flags
# =============================================================================


class QcFlagVerificationView(ApiModel):
    id: int
    comment: str | None = None
    created_by: UserView
    created_at: EpochMs = None


class QcFlagEffectivePeriodView(ApiModel):
    from_time: EpochMs = Field(
        default=None,
        validation_alias=AliasChoices("from_time", "from"),
        serialization_alias="from",
    )
    to_time: EpochMs = Field(
        default=None,
        validation_alias=AliasChoices("to_time", "to"),
        serialization_alias="to",
    )


class QcFlagView(ApiModel):
    id: int
    from_time: EpochMs = Field(
        default=None,
        validation_alias=AliasChoices("from_time", "from"),
        serialization_alias="from",
    )
    to_time: EpochMs = Field(
        default=None,
        validation_alias=AliasChoices("to_time", "to"),
        serialization_alias="to",
    )
    comment: str | None = None
    origin: QcFlagOrigin
    run_number: int
    detector_id: int
    detector: DetectorView | None = None
    flag_type_id: int
    flag_type: QcFlagTypeView
    created_by: UserView
    verifications: list[QcFlagVerificationView] = []
    effective_periods: list[QcFlagEffectivePeriodView] = []
    created_at: EpochMs = None
    updated_at: EpochMs = None


class QcFlagCreate(ApiModel):
    """A new flag for a run and a detector.

    At most one of ``dataPassId`` and ``simulationPassId`` may be given; with
    neither the flag is synchronous.
    """

    from_time: int | None = Field(
        default=None,
        validation_alias=AliasChoices("from", "from_time"),
    )
    to_time: int | None = Field(
        default=None,
        validation_alias=AliasChoices("to", "to_time"),
    )
    comment: str | None = None
    origin: QcFlagOrigin = QcFlagOrigin.HUMAN
    flag_type_id: int = Field(ge=1)
    run_number: int = Field(ge=1)
    detector_id: int = Field(ge=1)
    data_pass_id: int | None = Field(default=None, ge=1)
    simulation_pass_id: int | None = Field(default=None, ge=1)

    @model_validator(mode="after")
    def check_single_pass(self) -> "QcFlagCreate":
        if self.data_pass_id is not None and self.simulation_pass_id is not None:
            raise ValueError("A QC flag can not belong to both a data pass and a simulation pass")
        return self


class QcFlagVerify(ApiModel):
    comment: str | None = None


@dataclass
class CreatedByFilter:
    names: list[str] = field(default_factory=list)
    operator: CreatedByOperator | str = CreatedByOperator.OR


@dataclass
class QcFlagScope:
    """Which flags override each other: same pass (or none), run and detector."""

    run_number: int
    detector_id: int
    data_pass_id: int | None = None
    simulation_pass_id: int | None = None


# =============================================================================
# Global aggregated quality
# =============================================================================


class GaqPeriodView(ApiModel):
    """A block of a run with the flags its aggregated quality comes from."""

    from_time: EpochMs = Field(default=None, serialization_alias="from")
    to_time: EpochMs = Field(default=None, serialization_alias="to")
    contributing_flags: list[QcFlagView] = []


class GaqDetectorsSet(ApiModel):
    data_pass_id: int = Field(ge=1)
    run_numbers: list[int] = Field(min_length=1)
    detector_ids: list[int] = Field(min_length=1)


class GaqDetectorView(ApiModel):
    data_pass_id: int
    run_number: int
    detector_id: int
