"""
External endpoints for detector and control software.

These mirror the messages the control software exchanges with the logbook:
enum values travel in their external form (``GOOD``, ``RUN_DEFINITION_PHYSICS``)
and are converted on the way in and out by the field converters declared
below.
"""

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from pydantic import AliasChoices, Field, ValidationError
from sqlalchemy.orm import Session

from apps.api.auth.dependencies import get_current_user
from apps.api.db import get_db
from apps.api.quality_control.flags import QcFlagService
from apps.api.runs.schemas import RunUpdate, RunView
from apps.api.runs.service import RunService
from apps.api.schemas import ApiModel
from db.models import Run, User
from packages.bookkeeping.enums import QcFlagOrigin
from packages.bookkeeping.wire import convert_from_wire, convert_to_wire, enum_field

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/external", tags=["External"])

# Layout of the run message
RUN_FIELDS = (
    enum_field((), "runQuality", "RunQuality"),
    enum_field((), "definition", "RunDefinition"),
    enum_field((), "triggerValue", "TriggerValue"),
    enum_field(("detectors",), "type", "DetectorType"),
)


class ExternalQcFlag(ApiModel):
    flag_type_id: int = Field(ge=1)
    from_time: int | None = Field(default=None, validation_alias=AliasChoices("from", "from_time"))
    to_time: int | None = Field(default=None, validation_alias=AliasChoices("to", "to_time"))
    comment: str | None = None
    origin: QcFlagOrigin = QcFlagOrigin.PROCESS


class ExternalQcFlagsCreate(ApiModel):
    run_number: int = Field(ge=1)
    pass_name: str = Field(min_length=1)
    detector_name: str = Field(min_length=1)
    flags: list[ExternalQcFlag] = Field(min_length=1)


def run_to_wire(run: Run) -> dict[str, Any]:
    message = jsonable_encoder(RunView.model_validate(run).model_dump(by_alias=True))
    return convert_to_wire(message, RUN_FIELDS)


@router.get("/runs/{run_number}")
def get_run(run_number: int, db: Session = Depends(get_db)) -> dict[str, Any]:
    return {"data": run_to_wire(RunService(db).get_or_fail(run_number))}


@router.patch("/runs/{run_number}")
def update_run(
    run_number: int,
    message: dict[str, Any] = Body(...),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    """Update a run from a message carrying external enum values."""
    try:
        data = RunUpdate.model_validate(convert_from_wire(message, RUN_FIELDS))
    except ValidationError as e:
        raise RequestValidationError(e.errors()) from None

    service = RunService(db)
    service.update(run_number, data, user)
    return {"data": run_to_wire(service.get_or_fail(run_number))}


@router.post("/qcFlags/dataPass", status_code=status.HTTP_201_CREATED)
def create_data_pass_flags(
    data: ExternalQcFlagsCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    """Create the flags of a data pass, addressed by pass and detector names."""
    flags = QcFlagService(db).create_many_for_data_pass(
        [flag.model_dump() for flag in data.flags],
        run_number=data.run_number,
        pass_name=data.pass_name,
        detector_name=data.detector_name,
        user=user,
    )
    logger.info(f"Created {len(flags)} QC flags for pass {data.pass_name} and run {data.run_number}")
    return {"flagIds": [flag.id for flag in flags]}
