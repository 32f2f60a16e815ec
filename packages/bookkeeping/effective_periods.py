"""
Effective periods of QC flags.

Within one scope (a pass, or no pass for synchronous flags, plus a run and a
detector) a newer flag overrides older ones over the time it covers. The
effective periods of a flag are what is left of its own period once the
periods of every newer flag of the scope have been removed.

Periods are half-open ``[start, end)`` intervals in epoch milliseconds. A
``None`` bound means the period is unbounded on that side, which happens for
flags of runs that have no start or end time.
"""

from collections.abc import Iterable
from dataclasses import dataclass

_MIN = float("-inf")
_MAX = float("inf")


@dataclass(frozen=True)
class Period:
    start: int | None
    end: int | None

    @property
    def low(self) -> float:
        return _MIN if self.start is None else self.start

    @property
    def high(self) -> float:
        return _MAX if self.end is None else self.end

    @property
    def is_empty(self) -> bool:
        return self.low >= self.high

    def overlaps(self, other: "Period") -> bool:
        return max(self.low, other.low) < min(self.high, other.high)

    def covers(self, other: "Period") -> bool:
        return self.low <= other.low and other.high <= self.high

    def subtract(self, other: "Period") -> list["Period"]:
        """The parts of this period not covered by ``other``."""
        if not self.overlaps(other):
            return [self]

        remaining = []
        if self.low < other.low:
            remaining.append(Period(self.start, other.start))
        if other.high < self.high:
            remaining.append(Period(other.end, self.end))
        return remaining

    def length(self, start: int | None = None, end: int | None = None) -> int | None:
        """Length in milliseconds, unbounded sides clipped to ``start``/``end``.

        Returns None when a side stays unbounded.
        """
        low = self.start if self.start is not None else start
        high = self.end if self.end is not None else end
        if low is None or high is None:
            return None
        return max(high - low, 0)


def compute_effective_periods(own: Period, newer: Iterable[Period]) -> list[Period]:
    """Remove every newer period from ``own``.

    Example:
        >>> compute_effective_periods(Period(0, 100), [Period(20, 30), Period(50, None)])
        [Period(start=0, end=20), Period(start=30, end=50)]
    """
    remaining = [own] if not own.is_empty else []
    for cut in newer:
        remaining = [piece for period in remaining for piece in period.subtract(cut)]
        if not remaining:
            break
    return sorted(remaining, key=lambda period: period.low)


def merge_periods(periods: Iterable[Period]) -> list[Period]:
    """Union of periods, as a sorted list of disjoint periods."""
    merged: list[Period] = []
    for period in sorted(periods, key=lambda p: p.low):
        if merged and period.low <= merged[-1].high:
            last = merged.pop()
            end = last.end if last.high >= period.high else period.end
            merged.append(Period(last.start, end))
        else:
            merged.append(period)
    return merged
