"""Shared utilities package."""

from packages.shared.deepmerge import deep_merge
from packages.shared.exceptions import (
    AccessDeniedError,
    AppException,
    BadParameterError,
    ConflictError,
    NotFoundError,
    UnauthorizedError,
    UnsupportedOperatorError,
)
from packages.shared.pagination import CountedData, counted_data_to_http_view

__all__ = [
    "AccessDeniedError",
    "AppException",
    "BadParameterError",
    "ConflictError",
    "CountedData",
    "NotFoundError",
    "UnauthorizedError",
    "UnsupportedOperatorError",
    "counted_data_to_http_view",
    "deep_merge",
]
