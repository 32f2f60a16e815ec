"""
Global aggregated quality (GAQ) of a run in a data pass.

The run is cut into blocks at every bound of the effective periods of the
flags of its GAQ detectors. The quality of a block comes from the flags
covering it: bad when one of them is bad and not Monte Carlo reproducible,
else Monte Carlo reproducible when one of them is, else good. Blocks that no
flag covers have an undefined quality and are left out.
"""

import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from packages.bookkeeping.effective_periods import Period, compute_effective_periods, merge_periods


class BlockQuality(str, Enum):
    BAD = "bad"
    MC_REPRODUCIBLE = "mcr"
    GOOD = "good"


@dataclass
class GaqFlag:
    """A flag of a GAQ detector, reduced to what the aggregation needs."""

    id: int
    bad: bool
    mc_reproducible: bool
    verified: bool
    effective_periods: list[Period] = field(default_factory=list)


@dataclass
class GaqPeriod:
    start: int | None
    end: int | None
    flags: list[GaqFlag]

    @property
    def quality(self) -> BlockQuality:
        if any(flag.bad and not flag.mc_reproducible for flag in self.flags):
            return BlockQuality.BAD
        if any(flag.mc_reproducible for flag in self.flags):
            return BlockQuality.MC_REPRODUCIBLE
        return BlockQuality.GOOD

    def coverage(self, run_start: int | None, run_end: int | None) -> float | None:
        """Fraction of the run this block spans.

        On a run missing a bound only a block unbounded on both sides has a
        known coverage, the whole run.
        """
        if run_start is None or run_end is None:
            return 1.0 if self.start is None and self.end is None else None
        if run_end <= run_start:
            return None
        return (Period(self.start, self.end).length(run_start, run_end) or 0) / (run_end - run_start)


@dataclass
class GaqSummary:
    bad_effective_run_coverage: float | None
    explicitly_not_bad_effective_run_coverage: float | None
    mc_reproducible: bool
    missing_verifications_count: int
    undefined_quality_periods_count: int

    def to_view(self) -> dict[str, Any]:
        return {
            "badEffectiveRunCoverage": self.bad_effective_run_coverage,
            "explicitlyNotBadEffectiveRunCoverage": self.explicitly_not_bad_effective_run_coverage,
            "mcReproducible": self.mc_reproducible,
            "missingVerificationsCount": self.missing_verifications_count,
            "undefinedQualityPeriodsCount": self.undefined_quality_periods_count,
        }


def _bound(value: float) -> int | None:
    return None if math.isinf(value) else int(value)


def _add(left: float | None, right: float | None) -> float | None:
    if left is None or right is None:
        return None
    return left + right


def compute_gaq_periods(
    flags: Sequence[GaqFlag],
    run_start: int | None,
    run_end: int | None,
) -> list[GaqPeriod]:
    """Blocks of the run covered by at least one flag, in time order."""
    run = Period(run_start, run_end)
    bounds = {run.low, run.high}
    for flag in flags:
        for period in flag.effective_periods:
            bounds.update(value for value in (period.low, period.high) if run.low <= value <= run.high)

    ordered = sorted(bounds)
    periods = []
    for low, high in zip(ordered, ordered[1:]):
        block = Period(_bound(low), _bound(high))
        covering = [
            flag for flag in flags if any(period.covers(block) for period in flag.effective_periods)
        ]
        if covering:
            periods.append(GaqPeriod(block.start, block.end, covering))
    return periods


def summarize_gaq(
    flags: Sequence[GaqFlag],
    run_start: int | None,
    run_end: int | None,
    mc_reproducible_as_not_bad: bool = False,
) -> GaqSummary | None:
    """GAQ summary of one run, None when no flag has an effective period."""
    periods = compute_gaq_periods(flags, run_start, run_end)
    if not periods:
        return None

    coverages: dict[BlockQuality, float | None] = {quality: 0.0 for quality in BlockQuality}
    for period in periods:
        coverages[period.quality] = _add(coverages[period.quality], period.coverage(run_start, run_end))

    mc_reproducible = coverages[BlockQuality.MC_REPRODUCIBLE]
    bad = coverages[BlockQuality.BAD]
    good = coverages[BlockQuality.GOOD]
    if mc_reproducible_as_not_bad:
        good = _add(good, mc_reproducible)
    else:
        bad = _add(bad, mc_reproducible)

    contributing = {flag.id: flag for period in periods for flag in period.flags}
    undefined = compute_effective_periods(
        Period(run_start, run_end),
        merge_periods(period for flag in flags for period in flag.effective_periods),
    )
    return GaqSummary(
        bad_effective_run_coverage=bad,
        explicitly_not_bad_effective_run_coverage=good,
        mc_reproducible=any(period.quality is BlockQuality.MC_REPRODUCIBLE for period in periods),
        missing_verifications_count=sum(1 for flag in contributing.values() if not flag.verified),
        undefined_quality_periods_count=len(undefined),
    )
