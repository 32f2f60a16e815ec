"""
Log service.

Handles:
- Filtered listing of logs
- Creation of logs and replies
- Reconstruction of reply threads
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from apps.api.logs.schemas import LogCreate, LogFilters, LogTreeView, LogView
from apps.api.schemas import PageParams
from apps.api.tags.service import TagService
from db.models import Environment, Log, Run, Tag, User
from packages.bookkeeping.enums import LogOrigin
from packages.bookkeeping.filters import get_created_by_filter_clause, get_tags_filter_clause
from packages.shared.exceptions import BadParameterError, NotFoundError
from packages.shared.pagination import CountedData
from packages.shared.ranges import unpack_number_range

logger = logging.getLogger(__name__)

LOG_LOAD_OPTIONS = (
    selectinload(Log.author),
    selectinload(Log.tags),
    selectinload(Log.runs),
    selectinload(Log.environments),
)


class LogService:
    def __init__(self, db: Session):
        self.db = db
        self.tags = TagService(db)

    # =========================================================================
    # Reads
    # =========================================================================

    def get_all(self, page: PageParams, filters: LogFilters | None = None) -> CountedData:
        filters = filters or LogFilters()
        stmt = select(Log).join(Log.author)

        if filters.title:
            stmt = stmt.where(Log.title.contains(filters.title))
        if filters.created_by_names:
            stmt = stmt.where(
                get_created_by_filter_clause(
                    filters.created_by_names,
                    filters.created_by_operator,
                    User.name,
                )
            )
        if filters.tags:
            stmt = stmt.where(
                get_tags_filter_clause(Log.tags, Tag.text, filters.tags, filters.tags_operation)
            )
        if filters.run_numbers:
            try:
                run_numbers = unpack_number_range(filters.run_numbers)
            except ValueError as e:
                raise BadParameterError(str(e)) from None
            stmt = stmt.where(Log.runs.any(Run.run_number.in_(run_numbers)))
        if filters.environment_ids:
            stmt = stmt.where(Log.environments.any(Environment.id.in_(filters.environment_ids)))
        if filters.root_only:
            stmt = stmt.where(Log.parent_log_id.is_(None))

        count = self.db.execute(select(func.count()).select_from(stmt.subquery())).scalar_one()
        rows = (
            self.db.execute(
                stmt.options(*LOG_LOAD_OPTIONS)
                .order_by(Log.created_at.desc(), Log.id.desc())
                .limit(page.limit)
                .offset(page.offset)
            )
            .scalars()
            .all()
        )
        return CountedData(count=count, rows=rows)

    def get_or_fail(self, log_id: int) -> Log:
        log = self.db.execute(
            select(Log).where(Log.id == log_id).options(*LOG_LOAD_OPTIONS)
        ).scalar_one_or_none()
        if log is None:
            raise NotFoundError("Log", log_id)
        return log

    def get_tree(self, log_id: int) -> LogTreeView:
        """The whole thread the log belongs to, starting from its root."""
        log = self.get_or_fail(log_id)
        root_id = log.root_log_id or log.id

        thread = (
            self.db.execute(
                select(Log)
                .where((Log.id == root_id) | (Log.root_log_id == root_id))
                .options(*LOG_LOAD_OPTIONS)
                .order_by(Log.id)
            )
            .scalars()
            .all()
        )

        views = {
            item.id: LogTreeView.model_validate(LogView.model_validate(item).model_dump())
            for item in thread
        }
        for item in thread:
            if item.parent_log_id in views:
                views[item.parent_log_id].replies.append(views[item.id])
        return views[root_id]

    # =========================================================================
    # Writes
    # =========================================================================

    def create(
        self,
        data: LogCreate,
        author: User,
        origin: LogOrigin = LogOrigin.HUMAN,
        optional_tags: list[str] | None = None,
        commit: bool = True,
    ) -> Log:
        """Create a log.

        Args:
            data: the log content and its links
            author: the user signing the log
            origin: human for user entries, process for generated ones
            optional_tags: tags attached only when they exist
            commit: False to leave the transaction open for the caller
        """
        log = Log(
            title=data.title,
            text=data.text,
            subtype=data.subtype,
            origin=origin,
            author=author,
        )

        if data.parent_log_id is not None:
            parent = self.db.get(Log, data.parent_log_id)
            if parent is None:
                raise BadParameterError(
                    f"Parent log with this id ({data.parent_log_id}) could not be found"
                )
            log.parent_log_id = parent.id
            log.root_log_id = parent.root_log_id or parent.id

        log.tags = self.tags.get_many_by_texts(data.tags)
        if optional_tags:
            known = {tag.id for tag in log.tags}
            log.tags += [tag for tag in self.tags.find_by_texts(optional_tags) if tag.id not in known]
        log.runs = self._get_runs(data.run_numbers)
        log.environments = self._get_environments(data.environments)

        self.db.add(log)
        if commit:
            self.db.commit()
        else:
            self.db.flush()
        logger.info(f"Created log {log.id} ({log.title}) by {author.name}")
        return log

    def _get_runs(self, run_numbers: list[int]) -> list[Run]:
        if not run_numbers:
            return []
        runs = self.db.execute(select(Run).where(Run.run_number.in_(run_numbers))).scalars().all()
        missing = set(run_numbers) - {run.run_number for run in runs}
        if missing:
            raise BadParameterError(
                f"Runs {', '.join(str(n) for n in sorted(missing))} could not be found"
            )
        return list(runs)

    def _get_environments(self, environment_ids: list[str]) -> list[Environment]:
        if not environment_ids:
            return []
        environments = (
            self.db.execute(select(Environment).where(Environment.id.in_(environment_ids)))
            .scalars()
            .all()
        )
        missing = set(environment_ids) - {environment.id for environment in environments}
        if missing:
            raise BadParameterError(
                f"Environments {', '.join(sorted(missing))} could not be found"
            )
        return list(environments)
