"""
Data pass and simulation pass services.

Listings come from aggregated queries: every pass is returned with the number
of runs and related passes it is linked to.
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from apps.api.passes.schemas import (
    DataPassFilters,
    DataPassView,
    SimulationPassFilters,
    SimulationPassView,
)
from apps.api.schemas import PageParams
from db.models import (
    DataPass,
    Run,
    SimulationPass,
    data_pass_runs,
    simulation_pass_data_passes,
    simulation_pass_runs,
)
from packages.shared.exceptions import BadParameterError, NotFoundError
from packages.shared.pagination import CountedData

logger = logging.getLogger(__name__)


def _count_links(table, key_column, owner_column):
    return (
        select(func.count())
        .select_from(table)
        .where(key_column == owner_column)
        .correlate_except(table)
        .scalar_subquery()
    )


# =============================================================================
# Data passes
# =============================================================================


class DataPassService:
    def __init__(self, db: Session):
        self.db = db

    def _aggregated_query(self):
        runs_count = _count_links(data_pass_runs, data_pass_runs.c.data_pass_id, DataPass.id)
        simulation_passes_count = _count_links(
            simulation_pass_data_passes,
            simulation_pass_data_passes.c.data_pass_id,
            DataPass.id,
        )
        return select(
            DataPass,
            runs_count.label("runs_count"),
            simulation_passes_count.label("simulation_passes_count"),
        ).where(DataPass.deleted.is_(False))

    def get_all(self, page: PageParams, filters: DataPassFilters | None = None) -> CountedData:
        filters = filters or DataPassFilters()
        conditions = []
        if filters.ids:
            conditions.append(DataPass.id.in_(filters.ids))
        if filters.names:
            conditions.append(DataPass.name.in_(filters.names))
        if filters.lhc_period_ids:
            conditions.append(DataPass.lhc_period_id.in_(filters.lhc_period_ids))
        if filters.simulation_pass_ids:
            conditions.append(
                DataPass.simulation_passes.any(SimulationPass.id.in_(filters.simulation_pass_ids))
            )

        # One row per data pass, the number of groups is the total
        groups = self.db.execute(
            select(DataPass.id)
            .where(DataPass.deleted.is_(False), *conditions)
            .group_by(DataPass.id)
        ).all()

        rows = self.db.execute(
            self._aggregated_query()
            .where(*conditions)
            .options(selectinload(DataPass.versions), selectinload(DataPass.lhc_period))
            .order_by(DataPass.id.desc())
            .limit(page.limit)
            .offset(page.offset)
        ).all()
        return CountedData(count=groups, rows=[_data_pass_view(*row) for row in rows])

    def get_or_fail(self, data_pass_id: int) -> DataPassView:
        row = self.db.execute(
            self._aggregated_query()
            .where(DataPass.id == data_pass_id)
            .options(selectinload(DataPass.versions), selectinload(DataPass.lhc_period))
        ).first()
        if row is None:
            raise NotFoundError("Data Pass", data_pass_id)
        return _data_pass_view(*row)

    def get_model_by_identifier(self, data_pass_id: int | None = None, name: str | None = None) -> DataPass:
        """The data pass by id or name, deleted passes are not found."""
        if data_pass_id is None and not name:
            raise BadParameterError("Can not find without Data Pass id or name")
        stmt = DataPass.active_query()
        if data_pass_id is not None:
            data_pass = self.db.execute(stmt.where(DataPass.id == data_pass_id)).scalar_one_or_none()
            if data_pass is None:
                raise NotFoundError("Data Pass", data_pass_id)
        else:
            data_pass = self.db.execute(stmt.where(DataPass.name == name)).scalar_one_or_none()
            if data_pass is None:
                raise NotFoundError("Data Pass", name, key="name")
        return data_pass

    def set_frozen_state(self, data_pass_id: int, frozen: bool) -> DataPass:
        """Freeze or unfreeze a data pass. QC flags of a frozen data pass cannot change."""
        data_pass = self.get_model_by_identifier(data_pass_id=data_pass_id)
        data_pass.is_frozen = frozen
        self.db.commit()
        logger.info(f"Data pass {data_pass.name} {'frozen' if frozen else 'unfrozen'}")
        return data_pass


def _data_pass_view(data_pass: DataPass, runs_count: int, simulation_passes_count: int) -> DataPassView:
    return DataPassView.model_validate(data_pass).model_copy(
        update={"runs_count": runs_count, "simulation_passes_count": simulation_passes_count}
    )


# =============================================================================
# Simulation passes
# =============================================================================


class SimulationPassService:
    def __init__(self, db: Session):
        self.db = db

    def _aggregated_query(self):
        runs_count = _count_links(
            simulation_pass_runs,
            simulation_pass_runs.c.simulation_pass_id,
            SimulationPass.id,
        )
        data_passes_count = _count_links(
            simulation_pass_data_passes,
            simulation_pass_data_passes.c.simulation_pass_id,
            SimulationPass.id,
        )
        return select(
            SimulationPass,
            runs_count.label("runs_count"),
            data_passes_count.label("data_passes_count"),
        )

    def get_all(
        self,
        page: PageParams,
        filters: SimulationPassFilters | None = None,
    ) -> CountedData:
        filters = filters or SimulationPassFilters()
        conditions = []
        if filters.ids:
            conditions.append(SimulationPass.id.in_(filters.ids))
        if filters.names:
            conditions.append(SimulationPass.name.in_(filters.names))
        if filters.lhc_period_ids:
            conditions.append(SimulationPass.runs.any(Run.lhc_period_id.in_(filters.lhc_period_ids)))
        if filters.data_pass_ids:
            conditions.append(SimulationPass.data_passes.any(DataPass.id.in_(filters.data_pass_ids)))

        count = self.db.execute(
            select(func.count(SimulationPass.id)).where(*conditions)
        ).scalar_one()
        rows = self.db.execute(
            self._aggregated_query()
            .where(*conditions)
            .order_by(SimulationPass.id.desc())
            .limit(page.limit)
            .offset(page.offset)
        ).all()
        return CountedData(count=count, rows=[_simulation_pass_view(*row) for row in rows])

    def get_by_identifier(self, simulation_pass_id: int | None = None, name: str | None = None) -> SimulationPassView:
        """Find a simulation pass by id, or by name when no id is given."""
        if simulation_pass_id is None and not name:
            raise BadParameterError("Can not find without Simulation Pass id or name")

        stmt = self._aggregated_query()
        if simulation_pass_id is not None:
            row = self.db.execute(stmt.where(SimulationPass.id == simulation_pass_id)).first()
            if row is None:
                raise NotFoundError("Simulation Pass", simulation_pass_id)
        else:
            row = self.db.execute(stmt.where(SimulationPass.name == name)).first()
            if row is None:
                raise NotFoundError("Simulation Pass", name, key="name")
        return _simulation_pass_view(*row)


def _simulation_pass_view(
    simulation_pass: SimulationPass,
    runs_count: int,
    data_passes_count: int,
) -> SimulationPassView:
    return SimulationPassView.model_validate(simulation_pass).model_copy(
        update={"runs_count": runs_count, "data_passes_count": data_passes_count}
    )
