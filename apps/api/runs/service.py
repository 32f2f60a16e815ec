"""
Run service.

Handles:
- Filtered listing of runs
- Run start (creation) and run updates
- Logging of run quality changes
"""

import logging
from datetime import UTC, datetime

from sqlalchemy import and_, func, select
from sqlalchemy.orm import Session, selectinload

from apps.api.logs.schemas import LogCreate
from apps.api.logs.service import LogService
from apps.api.runs.schemas import RunCreate, RunFilters, RunUpdate
from apps.api.schemas import PageParams
from apps.api.tags.service import TagService
from db.models import (
    DataPass,
    Detector,
    Environment,
    LhcPeriod,
    Log,
    Run,
    RunType,
    Tag,
    User,
    simulation_pass_runs,
)
from packages.bookkeeping.enums import LogOrigin, LogSubtype, RunQuality
from packages.bookkeeping.filters import get_tags_filter_clause
from packages.shared.exceptions import BadParameterError, ConflictError, NotFoundError
from packages.shared.pagination import CountedData
from packages.shared.ranges import unpack_number_range
from packages.shared.timestamps import from_ms

logger = logging.getLogger(__name__)

RUN_LOAD_OPTIONS = (
    selectinload(Run.tags),
    selectinload(Run.detectors),
    selectinload(Run.run_type),
    selectinload(Run.lhc_period),
)

# Quality changes between these values are reported in a log
LOGGABLE_QUALITIES = (RunQuality.GOOD, RunQuality.BAD)
QUALITY_CHANGE_TAGS = ["DPG", "RC"]


class RunService:
    def __init__(self, db: Session):
        self.db = db
        self.tags = TagService(db)
        self.logs = LogService(db)

    # =========================================================================
    # Reads
    # =========================================================================

    def get_all(
        self,
        page: PageParams,
        filters: RunFilters | None = None,
        ascending: bool = False,
    ) -> CountedData:
        stmt = self._filtered_query(filters or RunFilters())

        count = self.db.execute(select(func.count()).select_from(stmt.subquery())).scalar_one()
        order = Run.run_number.asc() if ascending else Run.run_number.desc()
        rows = (
            self.db.execute(
                stmt.options(*RUN_LOAD_OPTIONS).order_by(order).limit(page.limit).offset(page.offset)
            )
            .scalars()
            .all()
        )
        return CountedData(count=count, rows=rows)

    def _filtered_query(self, filters: RunFilters):
        stmt = select(Run)

        if filters.run_numbers:
            try:
                run_numbers = unpack_number_range(filters.run_numbers)
            except ValueError as e:
                raise BadParameterError(str(e)) from None
            stmt = stmt.where(Run.run_number.in_(run_numbers))
        if filters.run_qualities:
            stmt = stmt.where(Run.run_quality.in_(filters.run_qualities))
        if filters.environment_ids:
            stmt = stmt.where(Run.environment_id.in_(filters.environment_ids))
        if filters.definitions:
            stmt = stmt.where(Run.definition.in_(filters.definitions))
        if filters.tags:
            stmt = stmt.where(
                get_tags_filter_clause(Run.tags, Tag.text, filters.tags, filters.tags_operation)
            )
        if filters.data_pass_ids:
            stmt = stmt.where(Run.data_passes.any(DataPass.id.in_(filters.data_pass_ids)))
        if filters.simulation_pass_ids:
            stmt = stmt.where(
                Run.run_number.in_(
                    select(simulation_pass_runs.c.run_number).where(
                        simulation_pass_runs.c.simulation_pass_id.in_(filters.simulation_pass_ids)
                    )
                )
            )
        if filters.lhc_period_ids:
            stmt = stmt.where(Run.lhc_period_id.in_(filters.lhc_period_ids))
        if filters.detectors:
            stmt = stmt.where(
                and_(*(Run.detectors.any(Detector.name == name) for name in filters.detectors))
            )
        return stmt

    def get_by_run_number(self, run_number: int) -> Run | None:
        return self.db.execute(
            select(Run).where(Run.run_number == run_number).options(*RUN_LOAD_OPTIONS)
        ).scalar_one_or_none()

    def get_or_fail(self, run_number: int) -> Run:
        run = self.get_by_run_number(run_number)
        if run is None:
            raise NotFoundError("Run", run_number, key="run number")
        return run

    def get_logs(self, run_number: int) -> list[Log]:
        run = self.get_or_fail(run_number)
        return sorted(run.logs, key=lambda log: log.id, reverse=True)

    # =========================================================================
    # Writes
    # =========================================================================

    def create(self, data: RunCreate) -> Run:
        """Register the start of a run."""
        if self.db.execute(select(Run.id).where(Run.run_number == data.run_number)).first():
            raise ConflictError(f"A run already exists with run number {data.run_number}")

        run = Run(
            run_number=data.run_number,
            definition=data.definition,
            trigger_value=data.trigger_value,
            time_o2_start=from_ms(data.time_o2_start),
            time_trg_start=from_ms(data.time_trg_start),
            n_detectors=data.n_detectors,
            n_flps=data.n_flps,
            n_epns=data.n_epns,
            fill_number=data.fill_number,
        )

        if data.environment_id is not None:
            if self.db.get(Environment, data.environment_id) is None:
                raise BadParameterError(
                    f"Environment with this id ({data.environment_id}) could not be found"
                )
            run.environment_id = data.environment_id
        if data.run_type:
            run.run_type = self._get_or_create(RunType, data.run_type)
        if data.lhc_period:
            run.lhc_period = self._get_or_create(LhcPeriod, data.lhc_period)
        run.detectors = self._get_detectors(data.detectors)
        if run.n_detectors is None and data.detectors:
            run.n_detectors = len(run.detectors)

        self.db.add(run)
        self.db.commit()
        logger.info(f"Run {run.run_number} started")
        return run

    def update(self, run_number: int, data: RunUpdate, user: User) -> Run:
        """Apply a patch to a run.

        Tags given in the patch replace the tags of the run. When the quality
        switches between good and bad, a log is created in the same transaction.
        """
        run = self.get_or_fail(run_number)
        changes = data.model_dump(exclude_unset=True)
        previous_quality = run.run_quality

        if "tags" in changes:
            run.tags = self.tags.get_many_by_texts(changes.pop("tags") or [])
        for key in ("time_o2_end", "time_trg_end"):
            if key in changes:
                setattr(run, key, from_ms(changes.pop(key)))
        for key, value in changes.items():
            if value is None and key == "run_quality":
                continue
            setattr(run, key, value)

        if (
            run.run_quality != previous_quality
            and previous_quality in LOGGABLE_QUALITIES
            and run.run_quality in LOGGABLE_QUALITIES
        ):
            self._log_quality_change(run, previous_quality, user)

        self.db.commit()
        return run

    def _log_quality_change(self, run: Run, previous: RunQuality, user: User) -> None:
        now = datetime.now(UTC)
        text = (
            f"The run quality for run {run.run_number} has been changed from "
            f"{previous.value} to {run.run_quality.value} by {user.name} "
            f"on {now:%d/%m/%Y} at {now:%H:%M:%S}"
        )
        self.logs.create(
            LogCreate(
                title=f"Run {run.run_number} quality has changed to {run.run_quality.value}",
                text=text,
                subtype=LogSubtype.RUN,
                run_numbers=[run.run_number],
            ),
            author=user,
            origin=LogOrigin.PROCESS,
            optional_tags=QUALITY_CHANGE_TAGS,
            commit=False,
        )
        logger.info(
            f"Run {run.run_number} quality changed from {previous.value} to {run.run_quality.value}"
        )

    def _get_or_create(self, model, name: str):
        instance = self.db.execute(select(model).where(model.name == name)).scalar_one_or_none()
        if instance is None:
            instance = model(name=name)
            self.db.add(instance)
        return instance

    def _get_detectors(self, names: list[str]) -> list[Detector]:
        if not names:
            return []
        detectors = self.db.execute(select(Detector).where(Detector.name.in_(names))).scalars().all()
        missing = set(names) - {detector.name for detector in detectors}
        if missing:
            raise BadParameterError(f"Detectors {', '.join(sorted(missing))} could not be found")
        return list(detectors)


# =============================================================================
# Reference data
# =============================================================================


def list_detectors(db: Session) -> list[Detector]:
    return list(db.execute(select(Detector).order_by(Detector.name)).scalars().all())


def list_lhc_periods(db: Session, page: PageParams) -> CountedData:
    count = db.execute(select(func.count(LhcPeriod.id))).scalar_one()
    rows = (
        db.execute(select(LhcPeriod).order_by(LhcPeriod.name.desc()).limit(page.limit).offset(page.offset))
        .scalars()
        .all()
    )
    return CountedData(count=count, rows=rows)
