"""
Tests for descriptive statistics.
Small hand-checked series; no store involved.
"""

import pytest
from datetime import datetime, timedelta, timezone

from analysis.calculations.statistics import (
    describe_prices,
    describe_series,
    sample_stddev,
    upper_median,
    range_pct,
    StatisticsError
)
from analysis.models import Sample


T0 = datetime(2025, 8, 1, tzinfo=timezone.utc)


def make_series(prices, asset_id='bitcoin'):
    return [Sample(asset_id, T0 + timedelta(minutes=i), p) for i, p in enumerate(prices)]


class TestDescribePrices:
    """Tests for describe_prices."""

    def test_percent_change_gain(self):
        """first=100, last=150 is +50%."""
        stats = describe_prices([100.0, 120.0, 150.0])
        assert stats['percent_change'] == pytest.approx(50.0)
        assert stats['first_price'] == 100.0
        assert stats['last_price'] == 150.0

    def test_percent_change_zero_first_price(self):
        """A zero first price yields 0 regardless of the last price."""
        stats = describe_prices([0.0, 10.0, 500.0])
        assert stats['percent_change'] == 0.0

    def test_known_values(self):
        """Mean, extrema, sample stddev and range on a small series."""
        stats = describe_prices([2.0, 4.0, 4.0, 4.0, 5.0, 5.0, 7.0, 9.0])

        assert stats['avg_price'] == pytest.approx(5.0)
        assert stats['min_price'] == 2.0
        assert stats['max_price'] == 9.0
        # Population std is 2.0; sample std is sqrt(32/7)
        assert stats['stddev_price'] == pytest.approx((32 / 7) ** 0.5)
        assert stats['range_pct'] == pytest.approx(350.0)
        assert stats['sample_count'] == 8

    def test_constant_series(self):
        """Constant prices have no dispersion."""
        stats = describe_prices([100.0, 100.0, 100.0, 100.0])
        assert stats['stddev_price'] == pytest.approx(0.0, abs=1e-12)
        assert stats['range_pct'] == 0.0
        assert stats['percent_change'] == 0.0

    def test_single_price(self):
        """One price: stddev defined as 0."""
        stats = describe_prices([42.0])
        assert stats['stddev_price'] == 0.0
        assert stats['median_price'] == 42.0
        assert stats['sample_count'] == 1

    def test_empty_raises(self):
        with pytest.raises(StatisticsError):
            describe_prices([])

    def test_describe_series_uses_chronological_order(self):
        series = make_series([10.0, 30.0, 20.0])
        stats = describe_series(series)
        assert stats['first_price'] == 10.0
        assert stats['last_price'] == 20.0
        assert stats['percent_change'] == pytest.approx(100.0)


class TestUpperMedian:
    """The median takes index n // 2 of the sorted prices."""

    def test_even_count_takes_upper_middle(self):
        assert upper_median([1.0, 2.0, 3.0, 4.0]) == 3.0

    def test_even_count_unsorted_input(self):
        assert upper_median([4.0, 1.0, 3.0, 2.0]) == 3.0

    def test_odd_count(self):
        assert upper_median([5.0, 1.0, 3.0]) == 3.0

    def test_empty_raises(self):
        with pytest.raises(StatisticsError):
            upper_median([])


class TestRangeAndStddev:

    def test_range_pct_non_positive_min(self):
        assert range_pct(0.0, 10.0) == 0.0
        assert range_pct(-5.0, 10.0) == 0.0

    def test_range_pct_basic(self):
        assert range_pct(50.0, 75.0) == pytest.approx(50.0)

    def test_sample_stddev_two_values(self):
        # values 1, 3: mean 2, squared deviations sum 2, / (n-1) = 2
        assert sample_stddev([1.0, 3.0]) == pytest.approx(2 ** 0.5)
