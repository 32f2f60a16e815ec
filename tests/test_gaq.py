"""Tests for the global aggregated quality computation."""

import pytest

from packages.bookkeeping.effective_periods import Period
from packages.bookkeeping.gaq import (
    BlockQuality,
    GaqFlag,
    GaqPeriod,
    compute_gaq_periods,
    summarize_gaq,
)

HOUR = 3600 * 1000


def hours(start: int, end: int) -> Period:
    return Period(start * HOUR, end * HOUR)


def gaq_flag(
    flag_id: int,
    period: Period,
    bad: bool = True,
    mc_reproducible: bool = False,
    verified: bool = False,
) -> GaqFlag:
    return GaqFlag(
        id=flag_id,
        bad=bad,
        mc_reproducible=mc_reproducible,
        verified=verified,
        effective_periods=[period],
    )


@pytest.fixture
def three_detectors() -> list[GaqFlag]:
    """Flags of CPV (1x), EMC (2x) and FDD (3x) over a run from 6h to 22h."""
    return [
        gaq_flag(10, hours(14, 16), bad=False),
        gaq_flag(11, hours(6, 10), verified=True),
        gaq_flag(12, hours(10, 14), bad=False),
        gaq_flag(13, hours(18, 22), bad=False),
        gaq_flag(20, hours(6, 10)),
        gaq_flag(21, hours(10, 12)),
        gaq_flag(22, hours(12, 13), mc_reproducible=True),
        gaq_flag(23, hours(14, 16), bad=False),
        gaq_flag(24, hours(18, 20), bad=False, verified=True),
        gaq_flag(30, hours(14, 16)),
        gaq_flag(31, hours(10, 14), mc_reproducible=True),
    ]


class TestComputeGaqPeriods:
    """Tests for compute_gaq_periods."""

    def test_blocks_and_their_quality(self, three_detectors: list[GaqFlag]) -> None:
        periods = compute_gaq_periods(three_detectors, 6 * HOUR, 22 * HOUR)

        assert [
            (period.start // HOUR, period.end // HOUR, period.quality, sorted(f.id for f in period.flags))
            for period in periods
        ] == [
            (6, 10, BlockQuality.BAD, [11, 20]),
            (10, 12, BlockQuality.BAD, [12, 21, 31]),
            (12, 13, BlockQuality.MC_REPRODUCIBLE, [12, 22, 31]),
            (13, 14, BlockQuality.MC_REPRODUCIBLE, [12, 31]),
            (14, 16, BlockQuality.BAD, [10, 23, 30]),
            (18, 20, BlockQuality.GOOD, [13, 24]),
            (20, 22, BlockQuality.GOOD, [13]),
        ]

    def test_no_flags(self) -> None:
        assert compute_gaq_periods([], 0, 100) == []

    def test_run_without_bounds(self) -> None:
        periods = compute_gaq_periods([gaq_flag(1, Period(None, None))], None, None)

        assert [(period.start, period.end) for period in periods] == [(None, None)]
        assert periods[0].coverage(None, None) == 1.0

    def test_block_of_a_run_missing_a_bound_has_no_coverage(self) -> None:
        periods = compute_gaq_periods([gaq_flag(1, Period(5, 10))], None, 100)

        assert [(period.start, period.end) for period in periods] == [(5, 10)]
        assert periods[0].coverage(None, 100) is None


class TestSummarizeGaq:
    """Tests for summarize_gaq."""

    def test_mc_reproducible_counted_as_bad_by_default(self, three_detectors: list[GaqFlag]) -> None:
        summary = summarize_gaq(three_detectors, 6 * HOUR, 22 * HOUR)

        assert summary.to_view() == {
            "badEffectiveRunCoverage": pytest.approx(0.625),
            "explicitlyNotBadEffectiveRunCoverage": pytest.approx(0.25),
            "mcReproducible": True,
            "missingVerificationsCount": 9,
            "undefinedQualityPeriodsCount": 1,
        }

    def test_mc_reproducible_as_not_bad(self, three_detectors: list[GaqFlag]) -> None:
        summary = summarize_gaq(three_detectors, 6 * HOUR, 22 * HOUR, mc_reproducible_as_not_bad=True)

        assert summary.bad_effective_run_coverage == pytest.approx(0.5)
        assert summary.explicitly_not_bad_effective_run_coverage == pytest.approx(0.375)

    def test_no_flags(self) -> None:
        assert summarize_gaq([], 0, 100) is None

    def test_run_without_bounds(self) -> None:
        summary = summarize_gaq([gaq_flag(1, Period(None, None))], None, None)

        assert summary.bad_effective_run_coverage == 1.0
        assert summary.explicitly_not_bad_effective_run_coverage == 0.0
        assert summary.undefined_quality_periods_count == 0

    def test_unknown_coverage_on_a_run_missing_a_bound(self) -> None:
        summary = summarize_gaq([gaq_flag(1, Period(5, 10))], None, 100)

        assert summary.bad_effective_run_coverage is None
        assert summary.undefined_quality_periods_count == 2

    def test_run_lasting_no_time(self) -> None:
        assert summarize_gaq([gaq_flag(1, Period(None, None))], 100, 100) is None
        assert GaqPeriod(100, 100, []).coverage(100, 100) is None
