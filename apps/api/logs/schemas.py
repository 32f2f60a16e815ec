"""Pydantic schemas for logs."""

from dataclasses import dataclass, field

from pydantic import Field

from apps.api.schemas import ApiModel, EpochMs
from apps.api.tags.schemas import TagView
from packages.bookkeeping.enums import CreatedByOperator, LogOrigin, LogSubtype, TagOperation


class UserView(ApiModel):
    id: int
    external_id: int
    name: str


class LogRunView(ApiModel):
    id: int
    run_number: int


class LogEnvironmentView(ApiModel):
    id: str


class LogView(ApiModel):
    id: int
    title: str
    text: str
    subtype: LogSubtype
    origin: LogOrigin
    author: UserView
    root_log_id: int | None = None
    parent_log_id: int | None = None
    tags: list[TagView] = []
    runs: list[LogRunView] = []
    environments: list[LogEnvironmentView] = []
    created_at: EpochMs = None
    updated_at: EpochMs = None


class LogTreeView(LogView):
    replies: list["LogTreeView"] = []


class LogCreate(ApiModel):
    title: str = Field(min_length=3, max_length=140)
    text: str = Field(min_length=1)
    subtype: LogSubtype = LogSubtype.RUN
    parent_log_id: int | None = Field(default=None, ge=1)
    tags: list[str] = []
    run_numbers: list[int] = []
    environments: list[str] = []


@dataclass
class LogFilters:
    title: str | None = None
    created_by_names: list[str] = field(default_factory=list)
    created_by_operator: CreatedByOperator | str = CreatedByOperator.OR
    tags: list[str] = field(default_factory=list)
    tags_operation: TagOperation = TagOperation.AND
    run_numbers: str | None = None
    environment_ids: list[str] = field(default_factory=list)
    root_only: bool = False
