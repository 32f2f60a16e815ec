"""Pydantic schemas for tags."""

import re

from pydantic import Field, field_validator

from apps.api.schemas import ApiModel, EpochMs

COLOR_PATTERN = re.compile(r"^#[0-9a-fA-F]{6}$")


class TagView(ApiModel):
    id: int
    text: str
    description: str | None = None
    color: str | None = None
    email: str | None = None
    mattermost: str | None = None
    archived: bool = False
    archived_at: EpochMs = None
    created_at: EpochMs = None
    updated_at: EpochMs = None


class TagCreate(ApiModel):
    text: str = Field(min_length=2, max_length=255)
    description: str | None = None
    color: str | None = None
    email: str | None = None
    mattermost: str | None = None

    @field_validator("text")
    @classmethod
    def validate_text(cls, v: str) -> str:
        if any(character.isspace() for character in v):
            raise ValueError("Tag text must not contain spaces")
        return v

    @field_validator("color")
    @classmethod
    def validate_color(cls, v: str | None) -> str | None:
        if v is not None and not COLOR_PATTERN.match(v):
            raise ValueError("Color must be a hex code such as #FF0000")
        return v


class TagUpdate(ApiModel):
    description: str | None = None
    color: str | None = None
    email: str | None = None
    mattermost: str | None = None
    archived: bool | None = None

    @field_validator("color")
    @classmethod
    def validate_color(cls, v: str | None) -> str | None:
        if v is not None and not COLOR_PATTERN.match(v):
            raise ValueError("Color must be a hex code such as #FF0000")
        return v
