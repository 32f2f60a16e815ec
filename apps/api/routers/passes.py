"""Data pass and simulation pass endpoints."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from apps.api.auth.dependencies import PROTECTED, QC_ADMIN_ROLES, require_access
from apps.api.db import get_db
from apps.api.passes.schemas import (
    DataPassFilters,
    DataPassView,
    SimulationPassFilters,
    SimulationPassView,
)
from apps.api.passes.service import DataPassService, SimulationPassService
from apps.api.schemas import DataResponse, ListResponse, PageParams, get_page, split_csv, split_csv_ints
from packages.shared.pagination import counted_data_to_http_view

router = APIRouter(tags=["Passes"])


# =============================================================================
# Data passes
# =============================================================================


@router.get("/dataPasses", response_model=ListResponse[DataPassView])
def list_data_passes(
    page: PageParams = Depends(get_page),
    ids: str | None = Query(default=None, alias="filter[ids]"),
    names: str | None = Query(default=None, alias="filter[names]"),
    lhc_period_ids: str | None = Query(default=None, alias="filter[lhcPeriodIds]"),
    simulation_pass_ids: str | None = Query(default=None, alias="filter[simulationPassIds]"),
    db: Session = Depends(get_db),
):
    filters = DataPassFilters(
        ids=split_csv_ints(ids),
        names=split_csv(names),
        lhc_period_ids=split_csv_ints(lhc_period_ids),
        simulation_pass_ids=split_csv_ints(simulation_pass_ids),
    )
    return counted_data_to_http_view(DataPassService(db).get_all(page, filters), page.limit)


@router.patch(
    "/dataPasses/freeze",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_access(PROTECTED, {"roles": QC_ADMIN_ROLES}))],
)
def freeze_data_pass(data_pass_id: int = Query(alias="dataPassId"), db: Session = Depends(get_db)):
    DataPassService(db).set_frozen_state(data_pass_id, True)


@router.patch(
    "/dataPasses/unfreeze",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_access(PROTECTED, {"roles": QC_ADMIN_ROLES}))],
)
def unfreeze_data_pass(data_pass_id: int = Query(alias="dataPassId"), db: Session = Depends(get_db)):
    DataPassService(db).set_frozen_state(data_pass_id, False)


@router.get("/dataPasses/{data_pass_id}", response_model=DataResponse[DataPassView])
def get_data_pass(data_pass_id: int, db: Session = Depends(get_db)):
    return {"data": DataPassService(db).get_or_fail(data_pass_id)}


# =============================================================================
# Simulation passes
# =============================================================================


@router.get("/simulationPasses", response_model=ListResponse[SimulationPassView])
def list_simulation_passes(
    page: PageParams = Depends(get_page),
    ids: str | None = Query(default=None, alias="filter[ids]"),
    names: str | None = Query(default=None, alias="filter[names]"),
    lhc_period_ids: str | None = Query(default=None, alias="filter[lhcPeriodIds]"),
    data_pass_ids: str | None = Query(default=None, alias="filter[dataPassIds]"),
    db: Session = Depends(get_db),
):
    filters = SimulationPassFilters(
        ids=split_csv_ints(ids),
        names=split_csv(names),
        lhc_period_ids=split_csv_ints(lhc_period_ids),
        data_pass_ids=split_csv_ints(data_pass_ids),
    )
    return counted_data_to_http_view(SimulationPassService(db).get_all(page, filters), page.limit)


@router.get("/simulationPasses/{simulation_pass_id}", response_model=DataResponse[SimulationPassView])
def get_simulation_pass(simulation_pass_id: int, db: Session = Depends(get_db)):
    return {"data": SimulationPassService(db).get_by_identifier(simulation_pass_id=simulation_pass_id)}
