"""Read-only reference data: detectors and LHC periods."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from apps.api.db import get_db
from apps.api.runs.schemas import DetectorView, LhcPeriodView
from apps.api.runs.service import list_detectors, list_lhc_periods
from apps.api.schemas import DataResponse, ListResponse, PageParams, get_page
from packages.shared.pagination import counted_data_to_http_view

router = APIRouter(tags=["Reference data"])


@router.get("/detectors", response_model=DataResponse[list[DetectorView]])
def get_detectors(db: Session = Depends(get_db)):
    return {"data": list_detectors(db)}


@router.get("/lhcPeriods", response_model=ListResponse[LhcPeriodView])
def get_lhc_periods(page: PageParams = Depends(get_page), db: Session = Depends(get_db)):
    return counted_data_to_http_view(list_lhc_periods(db, page), page.limit)
