"""Environment service."""

import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from apps.api.environments.schemas import EnvironmentCreate, EnvironmentUpdate
from apps.api.schemas import PageParams
from db.models import Environment, EnvironmentHistory
from packages.shared.exceptions import ConflictError, NotFoundError
from packages.shared.pagination import CountedData

logger = logging.getLogger(__name__)


class EnvironmentService:
    def __init__(self, db: Session):
        self.db = db

    def get_all(self, page: PageParams, ids: list[str] | None = None) -> CountedData:
        stmt = select(Environment)
        if ids:
            stmt = stmt.where(Environment.id.in_(ids))

        count = self.db.execute(select(func.count()).select_from(stmt.subquery())).scalar_one()
        rows = (
            self.db.execute(
                stmt.options(selectinload(Environment.runs), selectinload(Environment.history))
                .order_by(Environment.created_at.desc(), Environment.id)
                .limit(page.limit)
                .offset(page.offset)
            )
            .scalars()
            .all()
        )
        return CountedData(count=count, rows=rows)

    def get_or_fail(self, environment_id: str) -> Environment:
        environment = self.db.get(Environment, environment_id)
        if environment is None:
            raise NotFoundError("Environment", environment_id)
        return environment

    def create(self, data: EnvironmentCreate) -> Environment:
        if self.db.get(Environment, data.env_id) is not None:
            raise ConflictError(f"An environment with this id ({data.env_id}) already exists")

        environment = Environment(
            id=data.env_id,
            status=data.status,
            status_message=data.status_message,
        )
        self.db.add(environment)
        if data.status is not None:
            environment.history.append(
                EnvironmentHistory(status=data.status, status_message=data.status_message)
            )
        self.db.commit()
        logger.info(f"Created environment {environment.id}")
        return environment

    def update(self, environment_id: str, data: EnvironmentUpdate) -> Environment:
        """Update the status, recording every status change in the history."""
        environment = self.get_or_fail(environment_id)
        changes = data.model_dump(exclude_unset=True)

        if "status_message" in changes:
            environment.status_message = changes["status_message"]
        new_status = changes.get("status")
        if new_status is not None and new_status != environment.status:
            environment.status = new_status
            environment.history.append(
                EnvironmentHistory(status=new_status, status_message=environment.status_message)
            )
            logger.info(f"Environment {environment.id} is now {new_status.value}")

        self.db.commit()
        return environment
