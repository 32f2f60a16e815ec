"""
Domain logic of the bookkeeping service that does not need a database.

- filters: SQL predicates for declarative list filters
- wire: enum and message conversion for external callers
- effective_periods: overriding of older QC flags by newer ones
- qc_summary: per run and detector QC coverage
- shifts: shift boundaries for a timestamp
"""

from packages.bookkeeping.effective_periods import Period, compute_effective_periods
from packages.bookkeeping.filters import get_created_by_filter_clause
from packages.bookkeeping.process_info import ProcessInfo
from packages.bookkeeping.shifts import get_shift_from_timestamp
from packages.bookkeeping.wire import from_wire_enum, to_wire_enum

__all__ = [
    "Period",
    "ProcessInfo",
    "compute_effective_periods",
    "from_wire_enum",
    "get_created_by_filter_clause",
    "get_shift_from_timestamp",
    "to_wire_enum",
]
