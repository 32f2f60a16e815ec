"""API routers package."""

from apps.api.routers import (
    environments,
    external,
    gaq_detectors,
    health,
    logs,
    passes,
    qc_flag_types,
    qc_flags,
    reference,
    runs,
    status,
    tags,
)

__all__ = [
    "environments",
    "external",
    "gaq_detectors",
    "health",
    "logs",
    "passes",
    "qc_flag_types",
    "qc_flags",
    "reference",
    "runs",
    "status",
    "tags",
]
