"""
QC flag endpoints.

Listings are per scope: a data pass, a simulation pass, or no pass for the
synchronous flags set during data taking.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from apps.api.auth.dependencies import PROTECTED, get_current_user, require_access
from apps.api.db import get_db
from apps.api.quality_control.flags import QcFlagService
from apps.api.quality_control.gaq import GaqService
from apps.api.quality_control.schemas import (
    CreatedByFilter,
    GaqPeriodView,
    QcFlagCreate,
    QcFlagScope,
    QcFlagVerify,
    QcFlagView,
)
from apps.api.quality_control.summary import QcFlagSummaryService
from apps.api.schemas import DataResponse, ListResponse, PageParams, get_page, split_csv
from db.models import User
from packages.bookkeeping.enums import CreatedByOperator, Role
from packages.shared.pagination import counted_data_to_http_view

router = APIRouter(prefix="/qcFlags", tags=["QC flags"])


def get_created_by_filter(
    names: str | None = Query(default=None, alias="filter[createdBy][names]"),
    operator: str = Query(default=CreatedByOperator.OR.value, alias="filter[createdBy][operator]"),
) -> CreatedByFilter:
    return CreatedByFilter(names=split_csv(names), operator=operator)


# =============================================================================
# Reads
# =============================================================================


@router.get("/summary")
def get_summary(
    data_pass_id: int | None = Query(default=None, alias="dataPassId"),
    simulation_pass_id: int | None = Query(default=None, alias="simulationPassId"),
    lhc_period_id: int | None = Query(default=None, alias="lhcPeriodId"),
    mc_reproducible_as_not_bad: bool = Query(default=False, alias="mcReproducibleAsNotBad"),
    db: Session = Depends(get_db),
) -> dict:
    """Coverage of bad and not bad flags per run and detector."""
    summary = QcFlagSummaryService(db).get_summary(
        data_pass_id=data_pass_id,
        simulation_pass_id=simulation_pass_id,
        lhc_period_id=lhc_period_id,
        mc_reproducible_as_not_bad=mc_reproducible_as_not_bad,
    )
    return {"data": summary}


@router.get("/summary/gaq")
def get_gaq_summary(
    data_pass_id: int = Query(alias="dataPassId"),
    mc_reproducible_as_not_bad: bool = Query(default=False, alias="mcReproducibleAsNotBad"),
    db: Session = Depends(get_db),
) -> dict:
    """Global aggregated quality coverage of every run of a data pass."""
    return {"data": GaqService(db).get_summary(data_pass_id, mc_reproducible_as_not_bad)}


@router.get("/gaq", response_model=DataResponse[list[GaqPeriodView]])
def list_gaq_periods(
    data_pass_id: int = Query(alias="dataPassId"),
    run_number: int = Query(alias="runNumber"),
    db: Session = Depends(get_db),
):
    return {"data": GaqService(db).get_periods(data_pass_id, run_number)}


@router.get("/perDataPass", response_model=ListResponse[QcFlagView])
def list_flags_per_data_pass(
    data_pass_id: int = Query(alias="dataPassId"),
    run_number: int = Query(alias="runNumber"),
    detector_id: int = Query(alias="detectorId"),
    page: PageParams = Depends(get_page),
    created_by: CreatedByFilter = Depends(get_created_by_filter),
    db: Session = Depends(get_db),
):
    scope = QcFlagScope(run_number=run_number, detector_id=detector_id, data_pass_id=data_pass_id)
    counted = QcFlagService(db).get_all_per_scope(scope, page, created_by)
    return counted_data_to_http_view(counted, page.limit)


@router.get("/perSimulationPass", response_model=ListResponse[QcFlagView])
def list_flags_per_simulation_pass(
    simulation_pass_id: int = Query(alias="simulationPassId"),
    run_number: int = Query(alias="runNumber"),
    detector_id: int = Query(alias="detectorId"),
    page: PageParams = Depends(get_page),
    created_by: CreatedByFilter = Depends(get_created_by_filter),
    db: Session = Depends(get_db),
):
    scope = QcFlagScope(
        run_number=run_number,
        detector_id=detector_id,
        simulation_pass_id=simulation_pass_id,
    )
    counted = QcFlagService(db).get_all_per_scope(scope, page, created_by)
    return counted_data_to_http_view(counted, page.limit)


@router.get("/synchronous", response_model=ListResponse[QcFlagView])
def list_synchronous_flags(
    run_number: int = Query(alias="runNumber"),
    detector_id: int = Query(alias="detectorId"),
    page: PageParams = Depends(get_page),
    created_by: CreatedByFilter = Depends(get_created_by_filter),
    db: Session = Depends(get_db),
):
    scope = QcFlagScope(run_number=run_number, detector_id=detector_id)
    counted = QcFlagService(db).get_all_per_scope(scope, page, created_by)
    return counted_data_to_http_view(counted, page.limit)


@router.get("/{flag_id}", response_model=DataResponse[QcFlagView])
def get_flag(flag_id: int, db: Session = Depends(get_db)):
    return {"data": QcFlagService(db).get_or_fail(flag_id)}


# =============================================================================
# Writes
# =============================================================================


@router.post("", response_model=DataResponse[QcFlagView], status_code=status.HTTP_201_CREATED)
def create_flag(
    data: QcFlagCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    service = QcFlagService(db)
    flag = service.create(data, user)
    return {"data": service.get_or_fail(flag.id)}


@router.delete(
    "/{flag_id}",
    response_model=DataResponse[QcFlagView],
    dependencies=[Depends(require_access(PROTECTED, {"roles": [Role.ADMIN.value]}))],
)
def delete_flag(flag_id: int, db: Session = Depends(get_db)):
    return {"data": QcFlagService(db).delete(flag_id)}


@router.post("/{flag_id}/verify", response_model=DataResponse[QcFlagView])
def verify_flag(
    flag_id: int,
    data: QcFlagVerify | None = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    comment = data.comment if data else None
    return {"data": QcFlagService(db).verify(flag_id, user, comment)}
