"""Environment endpoints."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from apps.api.auth.dependencies import PROTECTED, require_access
from apps.api.db import get_db
from apps.api.environments.schemas import EnvironmentCreate, EnvironmentUpdate, EnvironmentView
from apps.api.environments.service import EnvironmentService
from apps.api.schemas import DataResponse, ListResponse, PageParams, get_page, split_csv
from packages.shared.pagination import counted_data_to_http_view

router = APIRouter(prefix="/environments", tags=["Environments"])


@router.get("", response_model=ListResponse[EnvironmentView])
def list_environments(
    page: PageParams = Depends(get_page),
    ids: str | None = Query(default=None, alias="filter[ids]"),
    db: Session = Depends(get_db),
):
    counted = EnvironmentService(db).get_all(page, ids=split_csv(ids))
    return counted_data_to_http_view(counted, page.limit)


@router.get("/{environment_id}", response_model=DataResponse[EnvironmentView])
def get_environment(environment_id: str, db: Session = Depends(get_db)):
    return {"data": EnvironmentService(db).get_or_fail(environment_id)}


@router.post(
    "",
    response_model=DataResponse[EnvironmentView],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_access(PROTECTED))],
)
def create_environment(data: EnvironmentCreate, db: Session = Depends(get_db)):
    return {"data": EnvironmentService(db).create(data)}


@router.patch(
    "/{environment_id}",
    response_model=DataResponse[EnvironmentView],
    dependencies=[Depends(require_access(PROTECTED))],
)
def update_environment(environment_id: str, data: EnvironmentUpdate, db: Session = Depends(get_db)):
    return {"data": EnvironmentService(db).update(environment_id, data)}
