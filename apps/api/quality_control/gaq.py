"""
Global aggregated quality service.

Handles:
- The GAQ detectors of the runs of a data pass
- GAQ periods of a run with the flags contributing to each of them
- GAQ summary of every run of a data pass
"""

import json
import logging
from collections import defaultdict
from collections.abc import Sequence

from sqlalchemy import and_, delete, select
from sqlalchemy.orm import Session, selectinload

from apps.api.passes.service import DataPassService
from apps.api.quality_control.flags import FLAG_LOAD_OPTIONS
from apps.api.quality_control.schemas import GaqPeriodView, QcFlagView
from db.models import (
    DataPass,
    Detector,
    GaqDetector,
    QcFlag,
    Run,
    data_pass_runs,
)
from packages.bookkeeping.effective_periods import Period
from packages.bookkeeping.gaq import GaqFlag, compute_gaq_periods, summarize_gaq
from packages.shared.exceptions import BadParameterError
from packages.shared.timestamps import to_ms

logger = logging.getLogger(__name__)


def _gaq_flag(flag: QcFlag) -> GaqFlag:
    return GaqFlag(
        id=flag.id,
        bad=flag.flag_type.bad,
        mc_reproducible=flag.flag_type.mc_reproducible,
        verified=bool(flag.verifications),
        effective_periods=[
            Period(to_ms(period.from_time), to_ms(period.to_time)) for period in flag.effective_periods
        ],
    )


def _run_bounds(run: Run) -> tuple[int | None, int | None]:
    return to_ms(run.qc_time_start), to_ms(run.qc_time_end)


class GaqService:
    def __init__(self, db: Session):
        self.db = db

    # =========================================================================
    # GAQ detectors
    # =========================================================================

    def get_detectors(self, data_pass_id: int, run_number: int) -> list[Detector]:
        """Detectors contributing to the GAQ of a run, ordered by name."""
        return list(
            self.db.execute(
                select(Detector)
                .join(GaqDetector, GaqDetector.detector_id == Detector.id)
                .where(GaqDetector.data_pass_id == data_pass_id, GaqDetector.run_number == run_number)
                .order_by(Detector.name)
            )
            .scalars()
            .all()
        )

    def set_detectors(
        self,
        data_pass_id: int,
        run_numbers: Sequence[int],
        detector_ids: Sequence[int],
    ) -> list[GaqDetector]:
        """Replace the GAQ detectors of the given runs of a data pass.

        Raises:
            NotFoundError: unknown data pass
            BadParameterError: a run is not part of the data pass, a detector
                does not exist or is not part of a run
        """
        data_pass = DataPassService(self.db).get_model_by_identifier(data_pass_id=data_pass_id)
        run_numbers = list(dict.fromkeys(run_numbers))
        detector_ids = list(dict.fromkeys(detector_ids))

        in_pass = set(
            self.db.execute(
                select(data_pass_runs.c.run_number).where(
                    data_pass_runs.c.data_pass_id == data_pass.id,
                    data_pass_runs.c.run_number.in_(run_numbers),
                )
            )
            .scalars()
            .all()
        )
        missing_runs = [run_number for run_number in run_numbers if run_number not in in_pass]
        if missing_runs:
            raise BadParameterError(
                f"No association between data pass with id {data_pass.id} and following runs: "
                f"{','.join(str(run_number) for run_number in missing_runs)}"
            )

        detectors = self.db.execute(select(Detector).where(Detector.id.in_(detector_ids))).scalars().all()
        known_ids = {detector.id for detector in detectors}
        unknown_ids = [detector_id for detector_id in detector_ids if detector_id not in known_ids]
        if unknown_ids:
            raise BadParameterError(f"No detectors with IDs: ({','.join(str(i) for i in unknown_ids)})")

        runs = (
            self.db.execute(
                select(Run).where(Run.run_number.in_(run_numbers)).options(selectinload(Run.detectors))
            )
            .scalars()
            .all()
        )
        missing_detectors = []
        for run in sorted(runs, key=lambda r: r.run_number):
            run_detector_ids = {detector.id for detector in run.detectors}
            names = [detector.name for detector in detectors if detector.id not in run_detector_ids]
            if names:
                missing_detectors.append([run.run_number, names])
        if missing_detectors:
            raise BadParameterError(
                f"No association between runs and detectors: {json.dumps(missing_detectors)}"
            )

        self.db.execute(
            delete(GaqDetector).where(
                GaqDetector.data_pass_id == data_pass.id,
                GaqDetector.run_number.in_(run_numbers),
            )
        )
        entries = [
            GaqDetector(data_pass_id=data_pass.id, run_number=run_number, detector_id=detector_id)
            for run_number in run_numbers
            for detector_id in detector_ids
        ]
        self.db.add_all(entries)
        self.db.commit()
        logger.info(
            f"GAQ detectors of data pass {data_pass.name} set to {sorted(d.name for d in detectors)} "
            f"for runs {run_numbers}"
        )
        return entries

    # =========================================================================
    # Aggregation
    # =========================================================================

    def _load_flags(self, data_pass_id: int, run_number: int | None = None) -> list[QcFlag]:
        """Flags of a data pass set on GAQ detectors."""
        stmt = (
            select(QcFlag)
            .join(
                GaqDetector,
                and_(
                    GaqDetector.data_pass_id == data_pass_id,
                    GaqDetector.run_number == QcFlag.run_number,
                    GaqDetector.detector_id == QcFlag.detector_id,
                ),
            )
            .where(QcFlag.data_passes.any(DataPass.id == data_pass_id))
        )
        if run_number is not None:
            stmt = stmt.where(QcFlag.run_number == run_number)
        return list(
            self.db.execute(stmt.options(*FLAG_LOAD_OPTIONS, selectinload(QcFlag.run)).order_by(QcFlag.id))
            .scalars()
            .all()
        )

    def get_periods(self, data_pass_id: int, run_number: int) -> list[GaqPeriodView]:
        """GAQ periods of a run, each with the flags that define its quality."""
        data_pass = DataPassService(self.db).get_model_by_identifier(data_pass_id=data_pass_id)
        flags = self._load_flags(data_pass.id, run_number)
        if not flags:
            return []

        by_id = {flag.id: flag for flag in flags}
        periods = compute_gaq_periods([_gaq_flag(flag) for flag in flags], *_run_bounds(flags[0].run))
        return [
            GaqPeriodView(
                from_time=period.start,
                to_time=period.end,
                contributing_flags=[QcFlagView.model_validate(by_id[flag.id]) for flag in period.flags],
            )
            for period in periods
        ]

    def get_summary(self, data_pass_id: int, mc_reproducible_as_not_bad: bool = False) -> dict[int, dict]:
        """GAQ summary keyed by run number."""
        data_pass = DataPassService(self.db).get_model_by_identifier(data_pass_id=data_pass_id)

        per_run: dict[int, list[QcFlag]] = defaultdict(list)
        for flag in self._load_flags(data_pass.id):
            per_run[flag.run_number].append(flag)

        summary = {}
        for run_number, flags in sorted(per_run.items()):
            run_summary = summarize_gaq(
                [_gaq_flag(flag) for flag in flags],
                *_run_bounds(flags[0].run),
                mc_reproducible_as_not_bad=mc_reproducible_as_not_bad,
            )
            if run_summary is not None:
                summary[run_number] = run_summary.to_view()
        logger.debug(f"GAQ summary of data pass {data_pass.name} computed over {len(per_run)} runs")
        return summary
