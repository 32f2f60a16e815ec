"""
FastAPI application entrypoint.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from apps.api.config import get_settings
from apps.api.logging_config import setup_logging
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
from packages.bookkeeping.process_info import ProcessInfo
from packages.shared.exceptions import register_exception_handlers

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    settings = get_settings()
    setup_logging(level=settings.log_level, json_output=settings.log_json)
    logger.info(f"Starting {settings.app_name} {settings.app_version} ({settings.environment})")

    yield

    logger.info(f"Stopping {settings.app_name}")


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.process_info = ProcessInfo(name=settings.app_name, version=settings.app_version)

    register_exception_handlers(app)

    # Include routers
    app.include_router(health.router)
    for module in (
        status,
        tags,
        environments,
        runs,
        logs,
        reference,
        passes,
        qc_flag_types,
        qc_flags,
        gaq_detectors,
        external,
    ):
        app.include_router(module.router, prefix=settings.api_prefix)

    return app


app = create_app()
