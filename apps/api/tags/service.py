"""Tag service."""

import logging
from collections.abc import Iterable

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from apps.api.schemas import PageParams
from apps.api.tags.schemas import TagCreate, TagUpdate
from db.models import Tag
from packages.shared.exceptions import BadParameterError, ConflictError, NotFoundError
from packages.shared.pagination import CountedData

logger = logging.getLogger(__name__)


class TagService:
    def __init__(self, db: Session):
        self.db = db

    # =========================================================================
    # Reads
    # =========================================================================

    def get_all(
        self,
        page: PageParams,
        ids: list[int] | None = None,
        texts: list[str] | None = None,
        archived: bool | None = None,
    ) -> CountedData:
        stmt = select(Tag)
        if ids:
            stmt = stmt.where(Tag.id.in_(ids))
        if texts:
            stmt = stmt.where(Tag.text.in_(texts))
        if archived is True:
            stmt = stmt.where(Tag.archived_at.is_not(None))
        elif archived is False:
            stmt = stmt.where(Tag.archived_at.is_(None))

        count = self.db.execute(select(func.count()).select_from(stmt.subquery())).scalar_one()
        rows = (
            self.db.execute(stmt.order_by(Tag.text).limit(page.limit).offset(page.offset))
            .scalars()
            .all()
        )
        return CountedData(count=count, rows=rows)

    def get_or_fail(self, tag_id: int) -> Tag:
        tag = self.db.get(Tag, tag_id)
        if tag is None:
            raise NotFoundError("Tag", tag_id)
        return tag

    def get_by_text_or_fail(self, text: str) -> Tag:
        tag = self.db.execute(select(Tag).where(Tag.text == text)).scalar_one_or_none()
        if tag is None:
            raise NotFoundError("Tag", text, key="text")
        return tag

    def get_many_by_texts(self, texts: Iterable[str]) -> list[Tag]:
        """Resolve tag texts, every one of them must exist."""
        texts = list(dict.fromkeys(texts))
        if not texts:
            return []
        tags = self.db.execute(select(Tag).where(Tag.text.in_(texts))).scalars().all()
        missing = set(texts) - {tag.text for tag in tags}
        if missing:
            raise BadParameterError(f"Tags {', '.join(sorted(missing))} could not be found")
        return list(tags)

    def find_by_texts(self, texts: Iterable[str]) -> list[Tag]:
        """Resolve tag texts, unknown texts are ignored."""
        texts = list(texts)
        if not texts:
            return []
        return list(self.db.execute(select(Tag).where(Tag.text.in_(texts))).scalars().all())

    # =========================================================================
    # Writes
    # =========================================================================

    def create(self, data: TagCreate) -> Tag:
        exists = self.db.execute(select(Tag.id).where(Tag.text == data.text)).first()
        if exists:
            raise ConflictError(f"The provided tag ({data.text}) already exists")

        tag = Tag(**data.model_dump())
        self.db.add(tag)
        self.db.commit()
        logger.info(f"Created tag {tag.text} ({tag.id})")
        return tag

    def update(self, tag_id: int, data: TagUpdate) -> Tag:
        tag = self.get_or_fail(tag_id)
        changes = data.model_dump(exclude_unset=True)
        archived = changes.pop("archived", None)
        for key, value in changes.items():
            setattr(tag, key, value)
        if archived is not None:
            tag.set_archived(archived)
        self.db.commit()
        return tag
