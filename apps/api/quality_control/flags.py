"""
QC flag service.

Handles:
- Creation of synchronous flags and of flags for data or simulation passes
- Maintenance of effective periods when flags are created or deleted
- Verification of flags
- Listings per scope
"""

import logging
from collections.abc import Sequence

from sqlalchemy import func, not_, select
from sqlalchemy.orm import Session, selectinload

from apps.api.config import get_settings
from apps.api.quality_control.schemas import CreatedByFilter, QcFlagCreate, QcFlagScope
from apps.api.schemas import PageParams
from db.models import (
    DataPass,
    Detector,
    QcFlag,
    QcFlagEffectivePeriod,
    QcFlagType,
    QcFlagVerification,
    Run,
    SimulationPass,
    User,
    data_pass_runs,
    simulation_pass_runs,
)
from packages.bookkeeping.effective_periods import Period, compute_effective_periods
from packages.bookkeeping.filters import get_created_by_filter_clause
from packages.shared.exceptions import (
    AccessDeniedError,
    BadParameterError,
    ConflictError,
    NotFoundError,
)
from packages.shared.pagination import CountedData
from packages.shared.timestamps import from_ms, to_ms

logger = logging.getLogger(__name__)

FLAG_LOAD_OPTIONS = (
    selectinload(QcFlag.flag_type).selectinload(QcFlagType.created_by),
    selectinload(QcFlag.flag_type).selectinload(QcFlagType.last_updated_by),
    selectinload(QcFlag.created_by),
    selectinload(QcFlag.detector),
    selectinload(QcFlag.verifications).selectinload(QcFlagVerification.created_by),
    selectinload(QcFlag.effective_periods),
)


def flag_period(flag: QcFlag) -> Period:
    return Period(to_ms(flag.from_time), to_ms(flag.to_time))


def scope_clause(scope: QcFlagScope):
    """Predicate selecting the flags of a scope."""
    conditions = [
        QcFlag.run_number == scope.run_number,
        QcFlag.detector_id == scope.detector_id,
    ]
    if scope.data_pass_id is not None:
        conditions.append(QcFlag.data_passes.any(DataPass.id == scope.data_pass_id))
    elif scope.simulation_pass_id is not None:
        conditions.append(QcFlag.simulation_passes.any(SimulationPass.id == scope.simulation_pass_id))
    else:
        conditions.append(not_(QcFlag.data_passes.any()))
        conditions.append(not_(QcFlag.simulation_passes.any()))
    return conditions


class QcFlagService:
    def __init__(self, db: Session, non_qc_detectors: Sequence[str] | None = None):
        self.db = db
        if non_qc_detectors is None:
            non_qc_detectors = get_settings().non_qc_detectors
        self.non_qc_detectors = set(non_qc_detectors)

    # =========================================================================
    # Reads
    # =========================================================================

    def get_or_fail(self, flag_id: int) -> QcFlag:
        flag = self.db.execute(
            select(QcFlag).where(QcFlag.id == flag_id).options(*FLAG_LOAD_OPTIONS)
        ).scalar_one_or_none()
        if flag is None:
            raise NotFoundError("Quality Control Flag", flag_id)
        return flag

    def get_all_per_scope(
        self,
        scope: QcFlagScope,
        page: PageParams,
        created_by: CreatedByFilter | None = None,
    ) -> CountedData:
        """Flags of a scope, newest first."""
        stmt = select(QcFlag).where(*scope_clause(scope))
        if created_by and created_by.names:
            stmt = stmt.join(QcFlag.created_by).where(
                get_created_by_filter_clause(created_by.names, created_by.operator, User.name)
            )

        count = self.db.execute(select(func.count()).select_from(stmt.subquery())).scalar_one()
        rows = (
            self.db.execute(
                stmt.options(*FLAG_LOAD_OPTIONS)
                .order_by(QcFlag.id.desc())
                .limit(page.limit)
                .offset(page.offset)
            )
            .scalars()
            .all()
        )
        return CountedData(count=count, rows=rows)

    # =========================================================================
    # Creation
    # =========================================================================

    def create(self, data: QcFlagCreate, user: User, commit: bool = True) -> QcFlag:
        """Create a flag and shrink the effective periods of the older flags of its scope.

        Raises:
            NotFoundError: unknown flag type, detector, run or pass
            BadParameterError: archived flag type, non QC detector, run not
                associated with the pass and detector, or invalid period
        """
        flag_type = self.db.get(QcFlagType, data.flag_type_id)
        if flag_type is None:
            raise NotFoundError("Quality Control Flag Type", data.flag_type_id)
        if flag_type.archived:
            raise BadParameterError(f"Quality Control Flag Type ({flag_type.method}) is archived")

        detector = self.db.get(Detector, data.detector_id)
        if detector is None:
            raise NotFoundError("Detector", data.detector_id)
        if detector.name in self.non_qc_detectors:
            raise BadParameterError(f"QC flags cannot be assigned to non QC detector ({detector.name})")

        run = self.db.execute(
            select(Run).where(Run.run_number == data.run_number).options(selectinload(Run.detectors))
        ).scalar_one_or_none()
        if run is None:
            raise NotFoundError("Run", data.run_number, key="number")

        scope = QcFlagScope(
            run_number=run.run_number,
            detector_id=detector.id,
            data_pass_id=data.data_pass_id,
            simulation_pass_id=data.simulation_pass_id,
        )
        data_pass, simulation_pass = self._check_association(scope, run, detector)
        from_time, to_time = prepare_flag_period(data.from_time, data.to_time, run)

        flag = QcFlag(
            from_time=from_ms(from_time),
            to_time=from_ms(to_time),
            comment=data.comment,
            origin=data.origin,
            run_number=run.run_number,
            detector_id=detector.id,
            flag_type=flag_type,
            created_by=user,
        )
        if data_pass is not None:
            flag.data_passes.append(data_pass)
        if simulation_pass is not None:
            flag.simulation_passes.append(simulation_pass)
        self.db.add(flag)
        self.db.flush()

        self._update_effective_periods(scope)
        if commit:
            self.db.commit()
        logger.info(
            f"Created QC flag {flag.id} ({flag_type.method}) for run {run.run_number} "
            f"and detector {detector.name} by {user.name}"
        )
        return flag

    def create_many_for_data_pass(
        self,
        flags: Sequence[dict],
        run_number: int,
        pass_name: str,
        detector_name: str,
        user: User,
    ) -> list[QcFlag]:
        """Create several flags of a data pass named by pass and detector names.

        All the flags are created in one transaction.
        """
        data_pass = self.db.execute(
            DataPass.active_query().where(DataPass.name == pass_name)
        ).scalar_one_or_none()
        if data_pass is None:
            raise NotFoundError("Data Pass", pass_name, key="name")
        detector = self.db.execute(
            select(Detector).where(Detector.name == detector_name)
        ).scalar_one_or_none()
        if detector is None:
            raise NotFoundError("Detector", detector_name, key="name")

        created = []
        for flag in flags:
            data = QcFlagCreate.model_validate(
                {
                    **flag,
                    "run_number": run_number,
                    "detector_id": detector.id,
                    "data_pass_id": data_pass.id,
                }
            )
            created.append(self.create(data, user, commit=False))
        self.db.commit()
        return created

    def _check_association(self, scope: QcFlagScope, run: Run, detector: Detector):
        """Resolve the pass of the scope and check it covers the run and the detector."""
        run_has_detector = any(d.id == detector.id for d in run.detectors)
        data_pass = simulation_pass = None

        if scope.data_pass_id is not None:
            data_pass = self.db.execute(
                DataPass.active_query().where(DataPass.id == scope.data_pass_id)
            ).scalar_one_or_none()
            if data_pass is None:
                raise NotFoundError("Data Pass", scope.data_pass_id)
            if data_pass.is_frozen:
                raise BadParameterError(f"Data pass ({data_pass.name}) is frozen")
            pass_has_run = self.db.execute(
                select(data_pass_runs).where(
                    data_pass_runs.c.data_pass_id == data_pass.id,
                    data_pass_runs.c.run_number == run.run_number,
                )
            ).first()
            if not (pass_has_run and run_has_detector):
                raise BadParameterError(
                    f"There is not association between data pass with this id ({data_pass.id}), "
                    f"run with this number ({run.run_number}) and detector with this name ({detector.name})"
                )
        elif scope.simulation_pass_id is not None:
            simulation_pass = self.db.get(SimulationPass, scope.simulation_pass_id)
            if simulation_pass is None:
                raise NotFoundError("Simulation Pass", scope.simulation_pass_id)
            pass_has_run = self.db.execute(
                select(simulation_pass_runs).where(
                    simulation_pass_runs.c.simulation_pass_id == simulation_pass.id,
                    simulation_pass_runs.c.run_number == run.run_number,
                )
            ).first()
            if not (pass_has_run and run_has_detector):
                raise BadParameterError(
                    f"There is not association between simulation pass with this id ({simulation_pass.id}), "
                    f"run with this number ({run.run_number}) and detector with this name ({detector.name})"
                )
        elif not run_has_detector:
            raise BadParameterError(
                f"There is not association between run with this number ({run.run_number}) "
                f"and detector with this name ({detector.name})"
            )
        return data_pass, simulation_pass

    # =========================================================================
    # Deletion and verification
    # =========================================================================

    def delete(self, flag_id: int) -> QcFlag:
        """Delete a flag that has not been verified and give its time back to older flags."""
        flag = self.get_or_fail(flag_id)
        if flag.verifications:
            raise ConflictError("Cannot delete QC flag which is verified")
        frozen = next((data_pass for data_pass in flag.data_passes if data_pass.is_frozen), None)
        if frozen is not None:
            raise ConflictError(f"Data pass ({frozen.name}) is frozen")

        scope = QcFlagScope(
            run_number=flag.run_number,
            detector_id=flag.detector_id,
            data_pass_id=flag.data_passes[0].id if flag.data_passes else None,
            simulation_pass_id=flag.simulation_passes[0].id if flag.simulation_passes else None,
        )
        self.db.delete(flag)
        self.db.flush()

        self._update_effective_periods(scope)
        self.db.commit()
        logger.info(f"Deleted QC flag {flag_id} of run {scope.run_number}")
        return flag

    def verify(self, flag_id: int, user: User, comment: str | None = None) -> QcFlag:
        flag = self.get_or_fail(flag_id)
        if flag.created_by_id == user.id:
            raise AccessDeniedError("You cannot verify QC flag created by you")

        flag.verifications.append(QcFlagVerification(comment=comment, created_by=user))
        self.db.commit()
        logger.info(f"QC flag {flag_id} verified by {user.name}")
        return self.get_or_fail(flag_id)

    # =========================================================================
    # Effective periods
    # =========================================================================

    def _update_effective_periods(self, scope: QcFlagScope) -> None:
        """Recompute the effective periods of every flag of the scope.

        Flags are ordered by creation, each one loses the periods of all the
        flags created after it.
        """
        flags = (
            self.db.execute(
                select(QcFlag)
                .where(*scope_clause(scope))
                .options(selectinload(QcFlag.effective_periods))
                .order_by(QcFlag.id)
            )
            .scalars()
            .all()
        )
        periods = [flag_period(flag) for flag in flags]

        for index, flag in enumerate(flags):
            effective = compute_effective_periods(periods[index], periods[index + 1:])
            current = [flag_period(period) for period in flag.effective_periods]
            if current == effective:
                continue
            flag.effective_periods = [
                QcFlagEffectivePeriod(from_time=from_ms(period.start), to_time=from_ms(period.end))
                for period in effective
            ]
        self.db.flush()


def prepare_flag_period(
    from_time: int | None,
    to_time: int | None,
    run: Run,
) -> tuple[int | None, int | None]:
    """Default a flag period to the run bounds and validate it.

    Returns:
        The (from, to) period in epoch milliseconds, both None only when the
        run has neither bound and none is given.
    """
    run_start = to_ms(run.qc_time_start)
    run_end = to_ms(run.qc_time_end)

    from_time = run_start if from_time is None else from_time
    to_time = run_end if to_time is None else to_time

    if from_time is None and to_time is None:
        return None, None
    if from_time is None or to_time is None or run_start is None or run_end is None:
        raise BadParameterError(
            "Only null QC flag timestamps are accepted as run.startTime or run.endTime is missing"
        )

    if from_time >= to_time:
        raise BadParameterError('Parameter "to" timestamp must be greater than "from" timestamp')
    if from_time < run_start or to_time > run_end:
        raise BadParameterError(
            f"Given QC flag period ({from_time}, {to_time}) is out of run ({run_start}, {run_end}) period"
        )
    return from_time, to_time
