"""Pydantic schemas for environments."""

from pydantic import Field

from apps.api.schemas import ApiModel, EpochMs
from packages.bookkeeping.enums import EnvironmentStatus


class EnvironmentHistoryItemView(ApiModel):
    id: int
    status: EnvironmentStatus
    status_message: str | None = None
    created_at: EpochMs = None


class EnvironmentRunView(ApiModel):
    id: int
    run_number: int


class EnvironmentView(ApiModel):
    id: str
    status: EnvironmentStatus | None = None
    status_message: str | None = None
    created_at: EpochMs = None
    updated_at: EpochMs = None
    runs: list[EnvironmentRunView] = []
    history: list[EnvironmentHistoryItemView] = []


class EnvironmentCreate(ApiModel):
    env_id: str = Field(min_length=1, max_length=32)
    status: EnvironmentStatus | None = None
    status_message: str | None = None


class EnvironmentUpdate(ApiModel):
    status: EnvironmentStatus | None = None
    status_message: str | None = None
