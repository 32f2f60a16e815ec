"""QC flag type endpoints."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from apps.api.auth.dependencies import get_current_user
from apps.api.db import get_db
from apps.api.quality_control.flag_types import QcFlagTypeService
from apps.api.quality_control.schemas import (
    QcFlagTypeCreate,
    QcFlagTypeFilters,
    QcFlagTypeUpdate,
    QcFlagTypeView,
)
from apps.api.schemas import DataResponse, ListResponse, PageParams, get_page, split_csv, split_csv_ints
from db.models import User
from packages.shared.pagination import counted_data_to_http_view

router = APIRouter(prefix="/qcFlagTypes", tags=["QC flag types"])


@router.get("", response_model=ListResponse[QcFlagTypeView])
def list_flag_types(
    page: PageParams = Depends(get_page),
    ids: str | None = Query(default=None, alias="filter[ids]"),
    names: str | None = Query(default=None, alias="filter[names]"),
    methods: str | None = Query(default=None, alias="filter[methods]"),
    bad: bool | None = Query(default=None, alias="filter[bad]"),
    archived: bool | None = Query(default=None, alias="filter[archived]"),
    db: Session = Depends(get_db),
):
    filters = QcFlagTypeFilters(
        ids=split_csv_ints(ids),
        names=split_csv(names),
        methods=split_csv(methods),
        bad=bad,
        archived=archived,
    )
    return counted_data_to_http_view(QcFlagTypeService(db).get_all(page, filters), page.limit)


@router.get("/{flag_type_id}", response_model=DataResponse[QcFlagTypeView])
def get_flag_type(flag_type_id: int, db: Session = Depends(get_db)):
    return {"data": QcFlagTypeService(db).get_or_fail(flag_type_id)}


@router.post("", response_model=DataResponse[QcFlagTypeView], status_code=status.HTTP_201_CREATED)
def create_flag_type(
    data: QcFlagTypeCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return {"data": QcFlagTypeService(db).create(data, user)}


@router.patch("/{flag_type_id}", response_model=DataResponse[QcFlagTypeView])
def update_flag_type(
    flag_type_id: int,
    data: QcFlagTypeUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return {"data": QcFlagTypeService(db).update(flag_type_id, data, user)}
