"""QC flag type service."""

import logging

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session, selectinload

from apps.api.quality_control.schemas import QcFlagTypeCreate, QcFlagTypeFilters, QcFlagTypeUpdate
from apps.api.schemas import PageParams
from db.models import QcFlagType, User
from packages.shared.exceptions import ConflictError, NotFoundError
from packages.shared.pagination import CountedData

logger = logging.getLogger(__name__)


class QcFlagTypeService:
    def __init__(self, db: Session):
        self.db = db

    def get_all(self, page: PageParams, filters: QcFlagTypeFilters | None = None) -> CountedData:
        filters = filters or QcFlagTypeFilters()
        stmt = select(QcFlagType)
        if filters.ids:
            stmt = stmt.where(QcFlagType.id.in_(filters.ids))
        if filters.names:
            stmt = stmt.where(QcFlagType.name.in_(filters.names))
        if filters.methods:
            stmt = stmt.where(QcFlagType.method.in_(filters.methods))
        if filters.bad is not None:
            stmt = stmt.where(QcFlagType.bad.is_(filters.bad))
        if filters.archived is True:
            stmt = stmt.where(QcFlagType.archived_at.is_not(None))
        elif filters.archived is False:
            stmt = stmt.where(QcFlagType.archived_at.is_(None))

        count = self.db.execute(select(func.count()).select_from(stmt.subquery())).scalar_one()
        rows = (
            self.db.execute(
                stmt.options(
                    selectinload(QcFlagType.created_by),
                    selectinload(QcFlagType.last_updated_by),
                )
                .order_by(QcFlagType.method)
                .limit(page.limit)
                .offset(page.offset)
            )
            .scalars()
            .all()
        )
        return CountedData(count=count, rows=rows)

    def get_or_fail(self, flag_type_id: int) -> QcFlagType:
        flag_type = self.db.get(QcFlagType, flag_type_id)
        if flag_type is None:
            raise NotFoundError("Quality Control Flag Type", flag_type_id)
        return flag_type

    def create(self, data: QcFlagTypeCreate, user: User) -> QcFlagType:
        clash = self.db.execute(
            select(QcFlagType).where(
                or_(QcFlagType.name == data.name, QcFlagType.method == data.method)
            )
        ).scalars().first()
        if clash is not None:
            raise ConflictError(
                f"A QC flag type with name ({data.name}) or method ({data.method}) already exists"
            )

        flag_type = QcFlagType(**data.model_dump(), created_by=user, last_updated_by=user)
        self.db.add(flag_type)
        self.db.commit()
        logger.info(f"Created QC flag type {flag_type.method} ({flag_type.id})")
        return flag_type

    def update(self, flag_type_id: int, data: QcFlagTypeUpdate, user: User) -> QcFlagType:
        flag_type = self.get_or_fail(flag_type_id)
        changes = data.model_dump(exclude_unset=True)
        if "color" in changes:
            flag_type.color = changes["color"]
        if changes.get("archived") is not None:
            flag_type.set_archived(changes["archived"])
        flag_type.last_updated_by = user
        self.db.commit()
        return flag_type
