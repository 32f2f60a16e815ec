"""Pydantic schemas for data passes and simulation passes."""

from dataclasses import dataclass, field

from apps.api.runs.schemas import LhcPeriodView
from apps.api.schemas import ApiModel, EpochMs


class DataPassVersionView(ApiModel):
    id: int
    description: str | None = None
    reconstructed_events_count: int | None = None
    output_size: int | None = None
    last_seen: EpochMs = None


class DataPassView(ApiModel):
    id: int
    name: str
    skimming_stage: str | None = None
    is_frozen: bool = False
    lhc_period: LhcPeriodView | None = None
    versions: list[DataPassVersionView] = []
    runs_count: int = 0
    simulation_passes_count: int = 0


class SimulationPassView(ApiModel):
    id: int
    name: str
    jira_id: str | None = None
    description: str | None = None
    pwg: str | None = None
    requested_events_count: int | None = None
    generated_events_count: int | None = None
    output_size: int | None = None
    runs_count: int = 0
    data_passes_count: int = 0


@dataclass
class DataPassFilters:
    ids: list[int] = field(default_factory=list)
    names: list[str] = field(default_factory=list)
    lhc_period_ids: list[int] = field(default_factory=list)
    simulation_pass_ids: list[int] = field(default_factory=list)


@dataclass
class SimulationPassFilters:
    ids: list[int] = field(default_factory=list)
    names: list[str] = field(default_factory=list)
    lhc_period_ids: list[int] = field(default_factory=list)
    data_pass_ids: list[int] = field(default_factory=list)
