"""
QC summary per run and detector.

For every (run, detector) pair of a scope the summary tells which fraction of
the run is covered by effective periods of bad flags, which fraction by
effective periods of flags explicitly marked as not bad, whether any of them
is Monte Carlo reproducible and how many of them still lack a verification.
"""

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from packages.bookkeeping.effective_periods import Period


@dataclass
class FlagContribution:
    """One QC flag of the scope, reduced to what the summary needs."""

    run_number: int
    detector_id: int
    bad: bool
    mc_reproducible: bool
    verified: bool
    effective_periods: list[Period] = field(default_factory=list)


@dataclass
class PartialSummary:
    """Aggregate of the flags of one (run, detector, bad) group."""

    bad: bool
    effective_run_coverage: float | None
    mc_reproducible: bool
    missing_verifications_count: int


@dataclass
class SummaryUnit:
    bad_effective_run_coverage: float | None = 0.0
    explicitly_not_bad_effective_run_coverage: float | None = 0.0
    missing_verifications_count: int = 0
    mc_reproducible: bool = False

    def to_view(self) -> dict[str, Any]:
        return {
            "badEffectiveRunCoverage": self.bad_effective_run_coverage,
            "explicitlyNotBadEffectiveRunCoverage": self.explicitly_not_bad_effective_run_coverage,
            "missingVerificationsCount": self.missing_verifications_count,
            "mcReproducible": self.mc_reproducible,
        }


def effective_run_coverage(
    periods: Iterable[Period],
    run_start: int | None,
    run_end: int | None,
) -> float | None:
    """Fraction of the run covered by ``periods``, clamped to [0, 1].

    When the run misses a bound its duration is unknown: the coverage is 1 if
    some period is unbounded on both sides, None otherwise. A run that lasts
    no time has no coverage either.
    """
    periods = list(periods)
    if not periods:
        return 0.0
    if run_start is None or run_end is None:
        if any(period.start is None and period.end is None for period in periods):
            return 1.0
        return None
    if run_end <= run_start:
        return None

    covered = 0
    for period in periods:
        covered += period.length(run_start, run_end) or 0
    return min(max(covered / (run_end - run_start), 0.0), 1.0)


def merge_into_summary_unit(unit: SummaryUnit | None, partial: PartialSummary) -> SummaryUnit:
    """Fold a partial summary into the unit of its (run, detector) pair."""
    unit = unit or SummaryUnit()
    if partial.bad:
        unit.bad_effective_run_coverage = partial.effective_run_coverage
    else:
        unit.explicitly_not_bad_effective_run_coverage = partial.effective_run_coverage
    unit.mc_reproducible = unit.mc_reproducible or partial.mc_reproducible
    unit.missing_verifications_count += partial.missing_verifications_count
    return unit


def summarize(
    contributions: Iterable[FlagContribution],
    run_bounds: dict[int, tuple[int | None, int | None]],
    mc_reproducible_as_not_bad: bool = False,
) -> dict[int, dict[int, SummaryUnit]]:
    """Build the summary, keyed by run number then detector id.

    Flags without any effective period are ignored.
    """
    groups: dict[tuple[int, int, bool], list[FlagContribution]] = defaultdict(list)
    for flag in contributions:
        if not flag.effective_periods:
            continue
        bad = flag.bad and not (flag.mc_reproducible and mc_reproducible_as_not_bad)
        groups[(flag.run_number, flag.detector_id, bad)].append(flag)

    summary: dict[int, dict[int, SummaryUnit]] = defaultdict(dict)
    for (run_number, detector_id, bad), flags in sorted(groups.items()):
        run_start, run_end = run_bounds.get(run_number, (None, None))
        partial = PartialSummary(
            bad=bad,
            effective_run_coverage=effective_run_coverage(
                (period for flag in flags for period in flag.effective_periods),
                run_start,
                run_end,
            ),
            mc_reproducible=any(flag.mc_reproducible for flag in flags),
            missing_verifications_count=sum(1 for flag in flags if not flag.verified),
        )
        summary[run_number][detector_id] = merge_into_summary_unit(
            summary[run_number].get(detector_id), partial
        )
    return dict(summary)
