"""
Forecast utilities - OLS projection with a normal-approximation prediction interval.
Pure functions; the series is supplied by the caller.
"""

import math
from datetime import datetime, timedelta
from typing import Optional, Sequence

from analysis.calculations.trend import classify_trend, linear_regression, series_xy
from analysis.config import LOOSE_PROFILE, TrendProfile
from analysis.guardrails import InsufficientDataError, MIN_SAMPLES_FORECAST, check_finite
from analysis.models import Forecast, Sample, ensure_utc


# Two-sided ~95% normal multiplier
Z_95 = 1.96

# Sxx below this is replaced by SXX_FALLBACK (all timestamps coincide)
SXX_EPSILON = 1e-20
SXX_FALLBACK = 1.0


class ForecastError(InsufficientDataError):
    """Raised when a forecast cannot be produced from the series."""
    pass


def round_price(value: float) -> float:
    """
    Round to 2 decimals, halves away from zero.

    Display-only rounding: 2.345 -> 2.35, -2.345 -> -2.35.
    """
    return math.copysign(math.floor(abs(value) * 100 + 0.5), value) / 100


def prediction_std_error(
    rse: float,
    x: Sequence[float],
    x_future: float
) -> float:
    """
    Standard error of a new observation at x_future.

    Formula: se = rse * sqrt(1 + 1/n + (x_future - mean(x))² / Sxx)

    Args:
        rse: Residual standard error of the fit
        x: Fitted independent values
        x_future: Point being forecast

    Returns:
        Prediction standard error
    """
    n = len(x)
    origin = x[0]
    # Leverage is shift-invariant; work relative to x[0] for precision
    mean_x = sum(xi - origin for xi in x) / n
    sxx = sum((xi - origin - mean_x) ** 2 for xi in x)
    if sxx < SXX_EPSILON:
        sxx = SXX_FALLBACK

    distance = (x_future - origin) - mean_x
    leverage = distance * distance / sxx

    return rse * math.sqrt(1 + 1 / n + leverage)


def forecast_series(
    series: Sequence[Sample],
    horizon: timedelta,
    now: datetime,
    asset_id: Optional[str] = None,
    profile: TrendProfile = LOOSE_PROFILE
) -> Forecast:
    """
    Project the price at now + horizon from an OLS fit of the series.

    Steps:
    1. Require MIN_SAMPLES_FORECAST samples
    2. Fit slope, intercept and residual standard error
    3. predicted = intercept + slope * unix(now + horizon)
    4. Interval = predicted ± 1.96 * se_pred, lower bound floored at 0
    5. Round predicted and bounds to 2 decimals (after all arithmetic)

    Args:
        series: Samples in chronological order
        horizon: Offset of the forecast point from now
        now: Reference instant
        asset_id: Asset identifier (defaults to the series' own)
        profile: Trend threshold profile for the label

    Returns:
        Forecast record

    Raises:
        ForecastError: If fewer than MIN_SAMPLES_FORECAST samples
    """
    if asset_id is None and series:
        asset_id = series[0].asset_id

    if len(series) < MIN_SAMPLES_FORECAST:
        raise ForecastError(MIN_SAMPLES_FORECAST, len(series), asset_id)

    now = ensure_utc(now)
    horizon_end = now + horizon
    x_future = float(int(horizon_end.timestamp()))

    x, y = series_xy(series)
    slope, intercept, rse = linear_regression(x, y)

    predicted = intercept + slope * x_future
    check_finite(predicted, 'predicted_price')

    se_pred = prediction_std_error(rse, x, x_future)
    price_low = predicted - Z_95 * se_pred
    price_high = predicted + Z_95 * se_pred
    if price_low < 0:
        price_low = 0.0

    return Forecast(
        asset_id=asset_id,
        horizon=horizon,
        predicted_price=round_price(predicted),
        price_low=round_price(price_low),
        price_high=round_price(price_high),
        trend_label=classify_trend(slope, profile),
        slope=slope,
        sample_count=len(series),
        predicted_at=now,
        horizon_end=horizon_end,
    )
