"""
Market queries - load a Series from the store, call the pure calculations.
Each function is one read-only request; nothing is cached between calls.
"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from analysis.calculations.forecast import forecast_series
from analysis.calculations.statistics import describe_series, sample_stddev
from analysis.calculations.trend import classify_trend, series_slope
from analysis.calculations.volatility import series_volatility
from analysis.config import LOOSE_PROFILE, STRICT_PROFILE, TrendProfile
from analysis.guardrails import (
    InsufficientDataError,
    MIN_SAMPLES_FORECAST,
    MIN_SAMPLES_STATISTICS,
    MIN_SAMPLES_TREND,
    check_finite,
    require_min_samples,
)
from analysis.models import (
    Forecast,
    Insight,
    MoverRecord,
    Sample,
    TrendResult,
    VolatilityResult,
    ensure_utc,
)
from analysis.movers import DEFAULT_LOOKBACK, rank_movers as _rank_movers
from storage.price_store import PriceStore
from storage.series_loader import load_latest, load_lookback, load_series, utc_now


logger = logging.getLogger(__name__)

DEFAULT_HORIZON = timedelta(minutes=60)
DEFAULT_FORECAST_LOOKBACK = timedelta(minutes=1440)


def build_insight(asset_id: str, series: Sequence[Sample]) -> Insight:
    """
    Combine descriptive statistics and volatility for one non-empty Series.

    Callers decide the minimum sample count; this only requires one sample.
    """
    stats = describe_series(series)
    return Insight(
        asset_id=asset_id,
        volatility=series_volatility(series),
        **stats
    )


def _load_checked(
    store: PriceStore,
    asset_id: str,
    start: Optional[datetime],
    end: Optional[datetime],
    required: int
) -> List[Sample]:
    series = load_series(store, asset_id, start, end)
    try:
        require_min_samples(series, required, asset_id)
    except InsufficientDataError:
        logger.warning(
            "Rejected request for %s: %d samples in [%s, %s), need %d",
            asset_id, len(series), start, end, required
        )
        raise
    return series


def compute_insight(
    store: PriceStore,
    asset_id: str,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None
) -> Insight:
    """
    Descriptive statistics and volatility for one asset over [start, end).

    Raises:
        InsufficientDataError: If fewer than 2 samples in the window
    """
    series = _load_checked(store, asset_id, start, end, MIN_SAMPLES_STATISTICS)
    insight = build_insight(asset_id, series)
    logger.info("Computed insight for %s over %d samples", asset_id, insight.sample_count)
    return insight


def compute_volatility(
    store: PriceStore,
    asset_id: str,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None
) -> VolatilityResult:
    """
    Log-return volatility plus price dispersion for one asset over [start, end).

    Raises:
        InsufficientDataError: If fewer than 2 samples in the window
    """
    series = _load_checked(store, asset_id, start, end, MIN_SAMPLES_STATISTICS)
    prices = [s.price for s in series]

    result = VolatilityResult(
        asset_id=asset_id,
        start=start,
        end=end,
        volatility=series_volatility(series),
        stddev_price=sample_stddev(prices),
        mean_price=sum(prices) / len(prices),
        sample_count=len(series),
    )
    logger.info("Computed volatility for %s: %.6f", asset_id, result.volatility)
    return result


def compute_trend(
    store: PriceStore,
    asset_id: str,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    profile: TrendProfile = STRICT_PROFILE
) -> TrendResult:
    """
    OLS slope of price against unix time, labelled with the given profile.

    Raises:
        InsufficientDataError: If fewer than 2 samples in the window
    """
    series = _load_checked(store, asset_id, start, end, MIN_SAMPLES_TREND)
    slope = series_slope(series)
    check_finite(slope, 'slope')

    result = TrendResult(
        asset_id=asset_id,
        start=start,
        end=end,
        slope=slope,
        trend_label=classify_trend(slope, profile),
        sample_count=len(series),
    )
    logger.info("Computed trend for %s: %s (slope=%g)", asset_id, result.trend_label, slope)
    return result


def rank_movers(
    store: PriceStore,
    lookback: timedelta = DEFAULT_LOOKBACK,
    now: Optional[datetime] = None,
    max_workers: Optional[int] = None
) -> List[MoverRecord]:
    """Cross-asset ranking by |percent change|; see analysis.movers."""
    return _rank_movers(store, lookback=lookback, now=now, max_workers=max_workers)


def forecast(
    store: PriceStore,
    asset_id: str,
    horizon: timedelta = DEFAULT_HORIZON,
    lookback: timedelta = DEFAULT_FORECAST_LOOKBACK,
    now: Optional[datetime] = None,
    profile: TrendProfile = LOOSE_PROFILE
) -> Forecast:
    """
    Forecast the price at now + horizon from samples in the lookback window.

    Raises:
        InsufficientDataError: If fewer than 10 samples in the lookback
    """
    if horizon <= timedelta(0):
        raise ValueError(f"horizon must be positive, got {horizon}")

    now = ensure_utc(now) if now is not None else utc_now()
    series = load_lookback(store, asset_id, lookback, now)

    try:
        result = forecast_series(series, horizon, now, asset_id=asset_id, profile=profile)
    except InsufficientDataError:
        logger.warning(
            "Rejected forecast for %s: %d samples in %s lookback, need %d",
            asset_id, len(series), lookback, MIN_SAMPLES_FORECAST
        )
        raise

    logger.info(
        "Forecast %s at %s: %.2f [%.2f, %.2f]",
        asset_id, result.horizon_end.isoformat(), result.predicted_price,
        result.price_low, result.price_high
    )
    return result


def latest_price(
    store: PriceStore,
    asset_id: str,
    now: Optional[datetime] = None
) -> Optional[Sample]:
    """Most recent sample for an asset, or None when it has none."""
    return load_latest(store, asset_id, now)


def price_history(
    store: PriceStore,
    asset_id: str,
    minutes: int = 60,
    now: Optional[datetime] = None
) -> List[Sample]:
    """Samples from the last `minutes` minutes, ascending. May be empty."""
    return load_lookback(store, asset_id, timedelta(minutes=minutes), now)
