"""Pydantic schemas for authentication."""

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SessionUser(BaseModel):
    """The identity carried by a session token."""

    model_config = ConfigDict(populate_by_name=True)

    external_id: int = Field(alias="id")
    username: str
    name: str
    access: list[str] = []

    @field_validator("access", mode="before")
    @classmethod
    def split_access(cls, v: object) -> object:
        """Tokens may carry roles as a comma separated string."""
        if isinstance(v, str):
            return [role.strip() for role in v.split(",") if role.strip()]
        return v

    def has_any_role(self, roles: list[str]) -> bool:
        return bool(set(roles) & set(self.access))
