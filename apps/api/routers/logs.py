"""Log endpoints."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from apps.api.auth.dependencies import get_current_user
from apps.api.db import get_db
from apps.api.logs.schemas import LogCreate, LogFilters, LogTreeView, LogView
from apps.api.logs.service import LogService
from apps.api.schemas import DataResponse, ListResponse, PageParams, get_page, split_csv
from apps.api.tags.schemas import TagView
from db.models import User
from packages.bookkeeping.enums import CreatedByOperator, TagOperation
from packages.shared.pagination import counted_data_to_http_view

router = APIRouter(prefix="/logs", tags=["Logs"])


def get_log_filters(
    title: str | None = Query(default=None, alias="filter[title]"),
    created_by_names: str | None = Query(default=None, alias="filter[createdBy][names]"),
    created_by_operator: str = Query(
        default=CreatedByOperator.OR.value, alias="filter[createdBy][operator]"
    ),
    tags: str | None = Query(default=None, alias="filter[tags][values]"),
    tags_operation: TagOperation = Query(default=TagOperation.AND, alias="filter[tags][operation]"),
    run_numbers: str | None = Query(default=None, alias="filter[runNumbers]"),
    environment_ids: str | None = Query(default=None, alias="filter[environmentIds]"),
    root_only: bool = Query(default=False, alias="filter[rootOnly]"),
) -> LogFilters:
    # Operator validated by the filter builder
    return LogFilters(
        title=title,
        created_by_names=split_csv(created_by_names),
        created_by_operator=created_by_operator,
        tags=split_csv(tags),
        tags_operation=tags_operation,
        run_numbers=run_numbers,
        environment_ids=split_csv(environment_ids),
        root_only=root_only,
    )


@router.get("", response_model=ListResponse[LogView])
def list_logs(
    page: PageParams = Depends(get_page),
    filters: LogFilters = Depends(get_log_filters),
    db: Session = Depends(get_db),
):
    counted = LogService(db).get_all(page, filters)
    return counted_data_to_http_view(counted, page.limit)


@router.get("/{log_id}", response_model=DataResponse[LogView])
def get_log(log_id: int, db: Session = Depends(get_db)):
    return {"data": LogService(db).get_or_fail(log_id)}


@router.get("/{log_id}/tree", response_model=DataResponse[LogTreeView])
def get_log_tree(log_id: int, db: Session = Depends(get_db)):
    """The thread of the log, from its root with nested replies."""
    return {"data": LogService(db).get_tree(log_id)}


@router.get("/{log_id}/tags", response_model=DataResponse[list[TagView]])
def get_log_tags(log_id: int, db: Session = Depends(get_db)):
    return {"data": LogService(db).get_or_fail(log_id).tags}


@router.post("", response_model=DataResponse[LogView], status_code=status.HTTP_201_CREATED)
def create_log(
    data: LogCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    service = LogService(db)
    log = service.create(data, author=user)
    return {"data": service.get_or_fail(log.id)}
