"""QC summary service: per run and detector coverage of bad and not bad flags."""

import logging

from sqlalchemy import not_, select
from sqlalchemy.orm import Session, selectinload

from db.models import DataPass, QcFlag, Run, SimulationPass
from packages.bookkeeping.effective_periods import Period
from packages.bookkeeping.qc_summary import FlagContribution, summarize
from packages.shared.exceptions import BadParameterError
from packages.shared.timestamps import to_ms

logger = logging.getLogger(__name__)


class QcFlagSummaryService:
    def __init__(self, db: Session):
        self.db = db

    def get_summary(
        self,
        data_pass_id: int | None = None,
        simulation_pass_id: int | None = None,
        lhc_period_id: int | None = None,
        mc_reproducible_as_not_bad: bool = False,
    ) -> dict[int, dict[int, dict]]:
        """Summary of the flags of one scope.

        The scope is a data pass, a simulation pass, or the synchronous flags
        of the runs of an LHC period. Exactly one of them must be given.
        """
        given = [value for value in (data_pass_id, simulation_pass_id, lhc_period_id) if value is not None]
        if len(given) != 1:
            raise BadParameterError(
                "Exactly one of dataPassId, simulationPassId or lhcPeriodId must be provided"
            )

        stmt = select(QcFlag).join(QcFlag.run)
        if data_pass_id is not None:
            stmt = stmt.where(QcFlag.data_passes.any(DataPass.id == data_pass_id))
        elif simulation_pass_id is not None:
            stmt = stmt.where(QcFlag.simulation_passes.any(SimulationPass.id == simulation_pass_id))
        else:
            stmt = stmt.where(
                Run.lhc_period_id == lhc_period_id,
                not_(QcFlag.data_passes.any()),
                not_(QcFlag.simulation_passes.any()),
            )

        flags = (
            self.db.execute(
                stmt.options(
                    selectinload(QcFlag.flag_type),
                    selectinload(QcFlag.run),
                    selectinload(QcFlag.verifications),
                    selectinload(QcFlag.effective_periods),
                )
            )
            .scalars()
            .all()
        )

        run_bounds = {
            flag.run_number: (to_ms(flag.run.qc_time_start), to_ms(flag.run.qc_time_end))
            for flag in flags
        }
        contributions = [
            FlagContribution(
                run_number=flag.run_number,
                detector_id=flag.detector_id,
                bad=flag.flag_type.bad,
                mc_reproducible=flag.flag_type.mc_reproducible,
                verified=bool(flag.verifications),
                effective_periods=[
                    Period(to_ms(period.from_time), to_ms(period.to_time))
                    for period in flag.effective_periods
                ],
            )
            for flag in flags
        ]
        summary = summarize(contributions, run_bounds, mc_reproducible_as_not_bad)
        logger.debug(f"QC summary computed over {len(flags)} flags and {len(summary)} runs")
        return {
            run_number: {detector_id: unit.to_view() for detector_id, unit in per_detector.items()}
            for run_number, per_detector in summary.items()
        }
