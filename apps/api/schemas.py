"""Schemas and query helpers shared by all routers."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Generic, TypeVar

from fastapi import Query
from pydantic import BaseModel, BeforeValidator, ConfigDict
from pydantic.alias_generators import to_camel

from apps.api.config import get_settings
from packages.shared.exceptions import BadParameterError
from packages.shared.timestamps import to_ms

T = TypeVar("T")
E = TypeVar("E", bound=Enum)


def _epoch_ms(value: Any) -> Any:
    if isinstance(value, datetime):
        return to_ms(value)
    return value


# Timestamps travel as epoch milliseconds
EpochMs = Annotated[int | None, BeforeValidator(_epoch_ms)]


class ApiModel(BaseModel):
    """Base for request and response bodies: camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# =============================================================================
# Envelopes
# =============================================================================


class ListMeta(ApiModel):
    total_count: int
    page_count: int | None = None


class ListResponse(ApiModel, Generic[T]):
    """Paginated list envelope."""

    meta: ListMeta
    data: list[T]


class DataResponse(ApiModel, Generic[T]):
    data: T


# =============================================================================
# Query parameters
# =============================================================================


@dataclass
class PageParams:
    limit: int
    offset: int = 0


def get_page(
    limit: int | None = Query(default=None, alias="page[limit]", ge=1),
    offset: int = Query(default=0, alias="page[offset]", ge=0),
) -> PageParams:
    """Pagination from ``page[limit]`` and ``page[offset]``."""
    settings = get_settings()
    if limit is None:
        limit = settings.pagination_limit
    return PageParams(limit=min(limit, settings.pagination_max_limit), offset=offset)


def split_csv(value: str | None) -> list[str]:
    """``"a, b,,c"`` -> ``["a", "b", "c"]``."""
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def split_csv_ints(value: str | None) -> list[int]:
    """Comma separated integers."""
    items = split_csv(value)
    try:
        return [int(item) for item in items]
    except ValueError:
        raise BadParameterError(f"Expected a comma separated list of integers, got: {value}") from None


def split_csv_enum(value: str | None, enum_cls: type[E]) -> list[E]:
    """Comma separated enum values."""
    try:
        return [enum_cls(item) for item in split_csv(value)]
    except ValueError:
        expected = ", ".join(member.value for member in enum_cls)
        raise BadParameterError(f"Expected values among {expected}, got: {value}") from None
