"""
Health check endpoint.
GET /health - Returns 200 if the database answers, 503 otherwise.
"""

import logging
import time
from typing import Any

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from apps.api.db import get_db

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check(response: Response, db: Session = Depends(get_db)) -> dict[str, Any]:
    """
    Health check endpoint.

    Returns:
        200 + {"status": "ok", ...} if the database check passes
        503 + {"status": "degraded", ...} otherwise
    """
    result: dict[str, Any] = {"status": "ok", "api": "ok", "db": "ok"}

    # --- Check database (SELECT 1) ---
    try:
        start = time.perf_counter()
        db.execute(text("SELECT 1"))
        result["db_latency_ms"] = round((time.perf_counter() - start) * 1000, 2)
    except SQLAlchemyError as e:
        logger.warning(f"Database health check failed: {e}")
        result["db"] = "fail"
        result["status"] = "degraded"
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return result
