"""
Descriptive statistics over a single price series.
Pure functions - callers check minimum sample counts before calling.
"""

import numpy as np
from typing import Dict, List, Sequence

from analysis.guardrails import safe_pct_change
from analysis.models import Sample


class StatisticsError(Exception):
    """Raised when statistics are requested for an empty series."""
    pass


def sample_stddev(values: Sequence[float]) -> float:
    """
    Sample standard deviation (ddof=1).

    Returns:
        0.0 when fewer than 2 values
    """
    if len(values) <= 1:
        return 0.0
    return float(np.std(np.asarray(values, dtype=np.float64), ddof=1))


def upper_median(values: Sequence[float]) -> float:
    """
    Middle element of the sorted values.

    For an even count this is the element at index n/2 (the upper of the
    two middle values), not their average: [1, 2, 3, 4] -> 3.
    """
    if not values:
        raise StatisticsError("Cannot take median of empty series")
    ordered = sorted(values)
    return float(ordered[len(ordered) // 2])


def range_pct(min_price: float, max_price: float) -> float:
    """(max - min) / min * 100, or 0 when min <= 0."""
    if min_price <= 0:
        return 0.0
    return (max_price - min_price) / min_price * 100


def describe_prices(prices: List[float]) -> Dict[str, float]:
    """
    Calculate descriptive statistics for prices in chronological order.

    Args:
        prices: Non-empty list of prices, oldest first

    Returns:
        Dictionary with first_price, last_price, percent_change, avg_price,
        stddev_price, min_price, max_price, median_price, range_pct,
        sample_count

    Raises:
        StatisticsError: If prices is empty
    """
    if not prices:
        raise StatisticsError("Cannot describe empty series")

    price_array = np.asarray(prices, dtype=np.float64)

    first = float(price_array[0])
    last = float(price_array[-1])
    min_price = float(price_array.min())
    max_price = float(price_array.max())

    return {
        'first_price': first,
        'last_price': last,
        'percent_change': safe_pct_change(first, last),
        'avg_price': float(price_array.mean()),
        'stddev_price': sample_stddev(prices),
        'min_price': min_price,
        'max_price': max_price,
        'median_price': upper_median(prices),
        'range_pct': range_pct(min_price, max_price),
        'sample_count': len(prices),
    }


def describe_series(series: Sequence[Sample]) -> Dict[str, float]:
    """describe_prices over the prices of a Series."""
    return describe_prices([s.price for s in series])
