"""Global aggregated quality detector endpoints."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from apps.api.auth.dependencies import PROTECTED, QC_ADMIN_ROLES, require_access
from apps.api.db import get_db
from apps.api.quality_control.gaq import GaqService
from apps.api.quality_control.schemas import GaqDetectorsSet, GaqDetectorView
from apps.api.runs.schemas import DetectorView
from apps.api.schemas import DataResponse

router = APIRouter(prefix="/gaqDetectors", tags=["QC flags"])


@router.get("", response_model=DataResponse[list[DetectorView]])
def list_gaq_detectors(
    data_pass_id: int = Query(alias="dataPassId"),
    run_number: int = Query(alias="runNumber"),
    db: Session = Depends(get_db),
):
    return {"data": GaqService(db).get_detectors(data_pass_id, run_number)}


@router.post(
    "",
    response_model=DataResponse[list[GaqDetectorView]],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_access(PROTECTED, {"roles": QC_ADMIN_ROLES}))],
)
def set_gaq_detectors(data: GaqDetectorsSet, db: Session = Depends(get_db)):
    """Replace the GAQ detectors of some runs of a data pass."""
    entries = GaqService(db).set_detectors(data.data_pass_id, data.run_numbers, data.detector_ids)
    return {"data": entries}
