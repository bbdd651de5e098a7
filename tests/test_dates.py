"""
Tests for the date-range overlap primitive.

Covers symmetry, self-overlap, the shared-boundary rule, adjacent ranges,
missing end dates and the same-day turnover policy.
"""

import itertools
from datetime import date, timedelta

import pytest

from rentdesk.common.dates import DateRange, overlaps, parse_iso_date

D = date


def _ranges():
    base = D(2024, 1, 1)
    points = [base + timedelta(days=n) for n in (0, 2, 4, 5, 9)]
    return [DateRange(a, b) for a, b in itertools.combinations_with_replacement(points, 2)]


# ---------------------------------------------------------------------------
# Properties
# ---------------------------------------------------------------------------

class TestOverlapProperties:
    @pytest.mark.parametrize("inclusive", [True, False])
    def test_symmetric(self, inclusive):
        for a, b in itertools.product(_ranges(), repeat=2):
            assert a.overlaps(b, inclusive=inclusive) == b.overlaps(a, inclusive=inclusive), (a, b)

    @pytest.mark.parametrize("inclusive", [True, False])
    def test_range_overlaps_itself(self, inclusive):
        for a in _ranges():
            assert a.overlaps(a, inclusive=inclusive)


# ---------------------------------------------------------------------------
# Boundaries
# ---------------------------------------------------------------------------

class TestOverlapBoundaries:
    def test_shared_boundary_counts_as_overlap(self):
        assert overlaps(D(2024, 1, 1), D(2024, 1, 5), D(2024, 1, 5), D(2024, 1, 10))

    def test_adjacent_ranges_do_not_overlap(self):
        assert not overlaps(D(2024, 1, 1), D(2024, 1, 4), D(2024, 1, 5), D(2024, 1, 10))

    def test_nested_range_overlaps(self):
        assert overlaps(D(2024, 1, 1), D(2024, 1, 31), D(2024, 1, 10), D(2024, 1, 12))

    def test_missing_end_is_a_single_day(self):
        assert overlaps(D(2024, 1, 5), None, D(2024, 1, 1), D(2024, 1, 5))
        assert not overlaps(D(2024, 1, 6), None, D(2024, 1, 1), D(2024, 1, 5))

    def test_both_ends_missing(self):
        assert overlaps(D(2024, 1, 5), None, D(2024, 1, 5), None)
        assert not overlaps(D(2024, 1, 5), None, D(2024, 1, 6), None)


class TestSameDayTurnover:
    """inclusive=False lets a return and a pickup share a day."""

    def test_handover_day_is_free(self):
        assert not overlaps(D(2024, 1, 1), D(2024, 1, 5), D(2024, 1, 5), D(2024, 1, 10), inclusive=False)
        assert not overlaps(D(2024, 1, 5), D(2024, 1, 10), D(2024, 1, 1), D(2024, 1, 5), inclusive=False)

    def test_real_overlap_still_conflicts(self):
        assert overlaps(D(2024, 1, 1), D(2024, 1, 6), D(2024, 1, 5), D(2024, 1, 10), inclusive=False)

    def test_single_day_inside_other_range_conflicts(self):
        assert overlaps(D(2024, 1, 3), None, D(2024, 1, 1), D(2024, 1, 5), inclusive=False)

    def test_single_day_on_return_day_is_free(self):
        assert not overlaps(D(2024, 1, 5), None, D(2024, 1, 1), D(2024, 1, 5), inclusive=False)

    def test_identical_single_days_conflict(self):
        assert overlaps(D(2024, 1, 5), D(2024, 1, 5), D(2024, 1, 5), D(2024, 1, 5), inclusive=False)


# ---------------------------------------------------------------------------
# DateRange helpers
# ---------------------------------------------------------------------------

class TestDateRange:
    def test_rejects_inverted_range(self):
        with pytest.raises(ValueError):
            DateRange(D(2024, 1, 5), D(2024, 1, 1))

    def test_days_is_inclusive(self):
        assert DateRange(D(2024, 1, 1), D(2024, 1, 5)).days == 5
        assert DateRange.from_optional(D(2024, 1, 1), None).days == 1

    def test_intersection(self):
        a = DateRange(D(2024, 1, 1), D(2024, 1, 10))
        b = DateRange(D(2024, 1, 8), D(2024, 1, 20))
        assert a.intersection(b) == DateRange(D(2024, 1, 8), D(2024, 1, 10))
        assert a.intersection(DateRange(D(2024, 2, 1), D(2024, 2, 2))) is None

    def test_iter_days(self):
        days = list(DateRange(D(2024, 2, 28), D(2024, 3, 1)).iter_days())
        assert days == [D(2024, 2, 28), D(2024, 2, 29), D(2024, 3, 1)]

    def test_parse_iso_date_accepts_timestamps(self):
        assert parse_iso_date("2024-01-05") == D(2024, 1, 5)
        assert parse_iso_date("2024-01-05T00:00:00.000Z") == D(2024, 1, 5)
