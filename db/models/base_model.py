"""Base model with common fields and mixins."""

from datetime import UTC, datetime
from typing import TYPE_CHECKING, TypeVar

from sqlalchemy import Boolean, DateTime, Integer, false, func, select
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base

if TYPE_CHECKING:
    from sqlalchemy.sql import Select

# Type variable for generic query methods
T = TypeVar("T", bound="SoftDeleteMixin")


class TimestampMixin:
    """Mixin that adds created_at and updated_at timestamps."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class SoftDeleteMixin:
    """
    Mixin that adds soft delete capability via a ``deleted`` flag.

    Query Patterns:
        # Active records only
        stmt = DataPass.active_query()
    """

    deleted: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        server_default=false(),
        nullable=False,
        index=True,
    )

    @classmethod
    def active_query(cls: type[T]) -> "Select[tuple[T]]":
        """Return a select statement that excludes soft-deleted records."""
        return select(cls).where(cls.deleted.is_(False))


class ArchivableMixin:
    """Mixin for records that are archived rather than deleted.

    Archived records stay readable but can no longer be attached to new data.
    """

    archived_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    @property
    def archived(self) -> bool:
        return self.archived_at is not None

    def set_archived(self, archived: bool) -> None:
        if archived and self.archived_at is None:
            self.archived_at = datetime.now(UTC)
        elif not archived:
            self.archived_at = None


class BaseModel(Base, TimestampMixin):
    """Base model with auto-increment primary key and timestamps."""

    __abstract__ = True

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
