"""Run endpoints."""

from typing import Literal

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from apps.api.auth.dependencies import get_current_user
from apps.api.db import get_db
from apps.api.logs.schemas import LogView
from apps.api.runs.schemas import RunCreate, RunFilters, RunUpdate, RunView
from apps.api.runs.service import RunService
from apps.api.schemas import (
    DataResponse,
    ListResponse,
    PageParams,
    get_page,
    split_csv,
    split_csv_enum,
    split_csv_ints,
)
from db.models import User
from packages.bookkeeping.enums import RunDefinition, RunQuality, TagOperation
from packages.shared.pagination import counted_data_to_http_view

router = APIRouter(prefix="/runs", tags=["Runs"])


def get_run_filters(
    run_numbers: str | None = Query(default=None, alias="filter[runNumbers]"),
    run_qualities: str | None = Query(default=None, alias="filter[runQualities]"),
    environment_ids: str | None = Query(default=None, alias="filter[environmentIds]"),
    definitions: str | None = Query(default=None, alias="filter[definitions]"),
    tags: str | None = Query(default=None, alias="filter[tags][values]"),
    tags_operation: TagOperation = Query(default=TagOperation.AND, alias="filter[tags][operation]"),
    data_pass_ids: str | None = Query(default=None, alias="filter[dataPassIds]"),
    simulation_pass_ids: str | None = Query(default=None, alias="filter[simulationPassIds]"),
    lhc_period_ids: str | None = Query(default=None, alias="filter[lhcPeriodIds]"),
    detectors: str | None = Query(default=None, alias="filter[detectors]"),
) -> RunFilters:
    return RunFilters(
        run_numbers=run_numbers,
        run_qualities=split_csv_enum(run_qualities, RunQuality),
        environment_ids=split_csv(environment_ids),
        definitions=split_csv_enum(definitions, RunDefinition),
        tags=split_csv(tags),
        tags_operation=tags_operation,
        data_pass_ids=split_csv_ints(data_pass_ids),
        simulation_pass_ids=split_csv_ints(simulation_pass_ids),
        lhc_period_ids=split_csv_ints(lhc_period_ids),
        detectors=split_csv(detectors),
    )


@router.get("", response_model=ListResponse[RunView])
def list_runs(
    page: PageParams = Depends(get_page),
    filters: RunFilters = Depends(get_run_filters),
    sort: Literal["ASC", "DESC"] = Query(default="DESC", alias="sort[runNumber]"),
    db: Session = Depends(get_db),
):
    counted = RunService(db).get_all(page, filters, ascending=sort == "ASC")
    return counted_data_to_http_view(counted, page.limit)


@router.get("/{run_number}", response_model=DataResponse[RunView])
def get_run(run_number: int, db: Session = Depends(get_db)):
    return {"data": RunService(db).get_or_fail(run_number)}


@router.get("/{run_number}/logs", response_model=DataResponse[list[LogView]])
def get_run_logs(run_number: int, db: Session = Depends(get_db)):
    return {"data": RunService(db).get_logs(run_number)}


@router.post("", response_model=DataResponse[RunView], status_code=status.HTTP_201_CREATED)
def start_run(
    data: RunCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Register the start of a run."""
    service = RunService(db)
    run = service.create(data)
    return {"data": service.get_or_fail(run.run_number)}


@router.patch("/{run_number}", response_model=DataResponse[RunView])
def update_run(
    run_number: int,
    data: RunUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Update a run. A good/bad quality change is reported in a log."""
    service = RunService(db)
    service.update(run_number, data, user)
    return {"data": service.get_or_fail(run_number)}
