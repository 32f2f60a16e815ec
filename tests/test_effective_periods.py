"""Tests for effective period computation."""

from packages.bookkeeping.effective_periods import Period, compute_effective_periods, merge_periods


class TestPeriod:
    """Tests for Period operations."""

    def test_overlap(self) -> None:
        assert Period(0, 10).overlaps(Period(5, 15))
        assert not Period(0, 10).overlaps(Period(10, 20))

    def test_unbounded_overlaps_everything(self) -> None:
        assert Period(None, None).overlaps(Period(5, 6))
        assert Period(None, 10).overlaps(Period(5, None))

    def test_covers(self) -> None:
        assert Period(0, 10).covers(Period(0, 10))
        assert Period(None, 10).covers(Period(None, 5))
        assert not Period(0, 10).covers(Period(5, 15))
        assert not Period(0, 10).covers(Period(None, 5))

    def test_subtract_middle_splits(self) -> None:
        assert Period(0, 100).subtract(Period(20, 30)) == [Period(0, 20), Period(30, 100)]

    def test_subtract_covering_removes(self) -> None:
        assert Period(10, 20).subtract(Period(0, 100)) == []

    def test_subtract_disjoint_keeps(self) -> None:
        assert Period(10, 20).subtract(Period(30, 40)) == [Period(10, 20)]

    def test_length(self) -> None:
        assert Period(10, 25).length() == 15
        assert Period(None, 25).length() is None
        assert Period(None, 25).length(start=5) == 20


class TestComputeEffectivePeriods:
    """Tests for compute_effective_periods."""

    def test_no_newer_flags(self) -> None:
        assert compute_effective_periods(Period(0, 100), []) == [Period(0, 100)]

    def test_newer_flags_cut_the_period(self) -> None:
        effective = compute_effective_periods(Period(0, 100), [Period(20, 30), Period(50, None)])

        assert effective == [Period(0, 20), Period(30, 50)]

    def test_fully_overridden(self) -> None:
        assert compute_effective_periods(Period(10, 20), [Period(0, 15), Period(15, 30)]) == []

    def test_unbounded_flag_is_overridden_by_unbounded_flag(self) -> None:
        assert compute_effective_periods(Period(None, None), [Period(None, None)]) == []

    def test_empty_own_period(self) -> None:
        assert compute_effective_periods(Period(10, 10), []) == []


class TestMergePeriods:
    """Tests for merge_periods."""

    def test_overlapping_and_touching_periods_merge(self) -> None:
        merged = merge_periods([Period(20, 30), Period(0, 10), Period(10, 15), Period(25, 40)])

        assert merged == [Period(0, 15), Period(20, 40)]

    def test_unbounded_end_absorbs(self) -> None:
        assert merge_periods([Period(0, None), Period(5, 10)]) == [Period(0, None)]
