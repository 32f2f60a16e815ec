"""Tag endpoints."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from apps.api.auth.dependencies import PROTECTED, require_access
from apps.api.db import get_db
from apps.api.schemas import DataResponse, ListResponse, PageParams, get_page, split_csv, split_csv_ints
from apps.api.tags.schemas import TagCreate, TagUpdate, TagView
from apps.api.tags.service import TagService
from packages.shared.pagination import counted_data_to_http_view

router = APIRouter(prefix="/tags", tags=["Tags"])


@router.get("", response_model=ListResponse[TagView])
def list_tags(
    page: PageParams = Depends(get_page),
    ids: str | None = Query(default=None, alias="filter[ids]"),
    texts: str | None = Query(default=None, alias="filter[texts]"),
    archived: bool | None = Query(default=None, alias="filter[archived]"),
    db: Session = Depends(get_db),
):
    counted = TagService(db).get_all(
        page,
        ids=split_csv_ints(ids),
        texts=split_csv(texts),
        archived=archived,
    )
    return counted_data_to_http_view(counted, page.limit)


@router.get("/name", response_model=DataResponse[TagView])
def get_tag_by_name(name: str = Query(min_length=1), db: Session = Depends(get_db)):
    return {"data": TagService(db).get_by_text_or_fail(name)}


@router.get("/{tag_id}", response_model=DataResponse[TagView])
def get_tag(tag_id: int, db: Session = Depends(get_db)):
    return {"data": TagService(db).get_or_fail(tag_id)}


@router.post(
    "",
    response_model=DataResponse[TagView],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_access(PROTECTED))],
)
def create_tag(data: TagCreate, db: Session = Depends(get_db)):
    return {"data": TagService(db).create(data)}


@router.patch(
    "/{tag_id}",
    response_model=DataResponse[TagView],
    dependencies=[Depends(require_access(PROTECTED))],
)
def update_tag(tag_id: int, data: TagUpdate, db: Session = Depends(get_db)):
    return {"data": TagService(db).update(tag_id, data)}
