"""Service status and shift lookup."""

from typing import Any

from fastapi import APIRouter, Depends, Query, Request

from packages.bookkeeping.process_info import ProcessInfo
from packages.bookkeeping.shifts import get_shift_from_timestamp
from packages.shared.timestamps import now_ms, to_ms

router = APIRouter(tags=["Status"])


def get_process_info(request: Request) -> ProcessInfo:
    """The process facts recorded at startup."""
    return request.app.state.process_info


@router.get("/status")
def get_status(info: ProcessInfo = Depends(get_process_info)) -> dict[str, Any]:
    return {
        "data": {
            "name": info.name,
            "version": info.version,
            "uptime": round(info.uptime_seconds(), 3),
            "startedAt": to_ms(info.started_at),
        }
    }


@router.get("/shifts")
def get_shift(timestamp: int | None = Query(default=None, ge=0)) -> dict[str, Any]:
    """The shift containing ``timestamp`` (epoch ms), the current one by default."""
    shift = get_shift_from_timestamp(now_ms() if timestamp is None else timestamp)
    return {"data": shift.to_view()}
