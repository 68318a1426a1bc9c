"""
Trend utilities - ordinary least squares on (unix_time, price).
Pure functions; thresholds come from named TrendProfiles.
"""

import math
from typing import List, Sequence, Tuple, Union

from analysis.config import TrendProfile, STRICT_PROFILE
from analysis.models import Sample


UPTREND = 'Uptrend'
DOWNTREND = 'Downtrend'
SIDEWAYS = 'Sideways'

# Below this the OLS denominator is treated as zero (all x equal)
DEGENERATE_DENOM = 1e-20


class TrendError(ValueError):
    """Raised when trend inputs are malformed."""
    pass


def _sums(
    x: Sequence[float],
    y: Sequence[float],
    origin: float = 0.0
) -> Tuple[float, float, float, float]:
    # Unix seconds are ~1e9; summing x - origin keeps n*Σx² - (Σx)² from
    # cancelling to noise. Slope is unchanged by the shift.
    sum_x = sum_y = sum_xy = sum_xx = 0.0
    for xi, yi in zip(x, y):
        xi -= origin
        sum_x += xi
        sum_y += yi
        sum_xy += xi * yi
        sum_xx += xi * xi
    return sum_x, sum_y, sum_xy, sum_xx


def ols_slope(x: Sequence[float], y: Sequence[float], min_points: int = 2) -> float:
    """
    Closed-form OLS slope from the sums Σx, Σy, Σxy, Σx².

    Args:
        x: Independent values (unix seconds)
        y: Dependent values (prices)
        min_points: Fewer points than this yields slope 0

    Returns:
        Fitted slope, or 0.0 when unfit (too few points or all x equal)
    """
    if len(x) != len(y):
        raise TrendError("x and y must have same length")

    n = float(len(x))
    if n == 0 or n < min_points:
        return 0.0

    sum_x, sum_y, sum_xy, sum_xx = _sums(x, y, origin=x[0])
    denom = n * sum_xx - sum_x * sum_x
    if abs(denom) < DEGENERATE_DENOM:
        return 0.0

    return (n * sum_xy - sum_x * sum_y) / denom


def linear_regression(
    x: Sequence[float],
    y: Sequence[float],
    min_points: int = 3
) -> Tuple[float, float, float]:
    """
    Fit y = slope * x + intercept and report residual standard error.

    rse = sqrt(SSE / max(n - 2, 1))

    Args:
        x: Independent values (unix seconds)
        y: Dependent values (prices)
        min_points: Fewer points than this yields (0, 0, 0)

    Returns:
        Tuple of (slope, intercept, rse). With all x equal the fit is the
        flat line through mean(y) and rse is 0.
    """
    if len(x) != len(y):
        raise TrendError("x and y must have same length")

    n = float(len(x))
    if n == 0 or n < min_points:
        return 0.0, 0.0, 0.0

    origin = x[0]
    sum_x, sum_y, sum_xy, sum_xx = _sums(x, y, origin=origin)
    denom = n * sum_xx - sum_x * sum_x
    if abs(denom) < DEGENERATE_DENOM:
        return 0.0, sum_y / n, 0.0

    slope = (n * sum_xy - sum_x * sum_y) / denom
    shifted_intercept = (sum_y - slope * sum_x) / n
    intercept = shifted_intercept - slope * origin

    sse = 0.0
    for xi, yi in zip(x, y):
        fit = shifted_intercept + slope * (xi - origin)
        sse += (yi - fit) * (yi - fit)

    df = max(n - 2, 1)
    rse = math.sqrt(sse / df)

    return slope, intercept, rse


def classify_trend(
    slope: float,
    threshold: Union[TrendProfile, float] = STRICT_PROFILE
) -> str:
    """
    Label a slope as Uptrend, Downtrend or Sideways.

    Strict inequalities: a slope exactly at ±threshold is Sideways.

    Args:
        slope: Fitted price change per second
        threshold: TrendProfile or raw non-negative threshold

    Returns:
        One of 'Uptrend', 'Downtrend', 'Sideways'
    """
    tau = threshold.threshold if isinstance(threshold, TrendProfile) else float(threshold)
    if tau < 0:
        raise TrendError(f"threshold must be non-negative, got {tau}")

    if slope > tau:
        return UPTREND
    if slope < -tau:
        return DOWNTREND
    return SIDEWAYS


def series_xy(series: Sequence[Sample]) -> Tuple[List[float], List[float]]:
    """Split a Series into (unix_time, price) lists."""
    return [s.unix_time for s in series], [s.price for s in series]


def series_slope(series: Sequence[Sample]) -> float:
    """OLS slope of price against unix time for a Series."""
    x, y = series_xy(series)
    return ols_slope(x, y)
