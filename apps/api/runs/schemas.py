"""Pydantic schemas for runs and their reference data."""

from dataclasses import dataclass, field

from pydantic import Field

from apps.api.schemas import ApiModel, EpochMs
from apps.api.tags.schemas import TagView
from packages.bookkeeping.enums import (
    DetectorType,
    RunDefinition,
    RunQuality,
    TagOperation,
    TriggerValue,
)

# =============================================================================
# Reference data
# =============================================================================


class DetectorView(ApiModel):
    id: int
    name: str
    type: DetectorType


class LhcPeriodView(ApiModel):
    id: int
    name: str


class RunTypeView(ApiModel):
    id: int
    name: str


# =============================================================================
# Runs
# =============================================================================


class RunView(ApiModel):
    id: int
    run_number: int
    environment_id: str | None = None
    run_type: RunTypeView | None = None
    lhc_period: LhcPeriodView | None = None
    run_quality: RunQuality
    definition: RunDefinition | None = None
    trigger_value: TriggerValue | None = None
    time_o2_start: EpochMs = None
    time_o2_end: EpochMs = None
    time_trg_start: EpochMs = None
    time_trg_end: EpochMs = None
    qc_time_start: EpochMs = None
    qc_time_end: EpochMs = None
    run_duration: int | None = None
    n_detectors: int | None = None
    n_flps: int | None = None
    n_epns: int | None = None
    fill_number: int | None = None
    detectors: list[DetectorView] = []
    tags: list[TagView] = []
    created_at: EpochMs = None
    updated_at: EpochMs = None


class RunCreate(ApiModel):
    """Start of a run, as reported by the control system."""

    run_number: int = Field(ge=1)
    environment_id: str | None = None
    run_type: str | None = None
    lhc_period: str | None = None
    definition: RunDefinition | None = None
    trigger_value: TriggerValue | None = None
    time_o2_start: int | None = None
    time_trg_start: int | None = None
    n_detectors: int | None = Field(default=None, ge=0)
    n_flps: int | None = Field(default=None, ge=0)
    n_epns: int | None = Field(default=None, ge=0)
    fill_number: int | None = None
    detectors: list[str] = []


class RunUpdate(ApiModel):
    run_quality: RunQuality | None = None
    definition: RunDefinition | None = None
    time_o2_end: int | None = None
    time_trg_end: int | None = None
    n_detectors: int | None = Field(default=None, ge=0)
    n_flps: int | None = Field(default=None, ge=0)
    n_epns: int | None = Field(default=None, ge=0)
    tags: list[str] | None = None


@dataclass
class RunFilters:
    run_numbers: str | None = None
    run_qualities: list[RunQuality] = field(default_factory=list)
    environment_ids: list[str] = field(default_factory=list)
    definitions: list[RunDefinition] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    tags_operation: TagOperation = TagOperation.AND
    data_pass_ids: list[int] = field(default_factory=list)
    simulation_pass_ids: list[int] = field(default_factory=list)
    lhc_period_ids: list[int] = field(default_factory=list)
    detectors: list[str] = field(default_factory=list)
