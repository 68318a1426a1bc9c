"""
Value objects for the analytics core.
Request-scoped and immutable - built from loader output, discarded after use.
"""

from dataclasses import dataclass, asdict
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional


def ensure_utc(ts: datetime) -> datetime:
    """Interpret naive datetimes as UTC; convert aware ones to UTC."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


@dataclass(frozen=True)
class Sample:
    """One observed price for one asset."""
    asset_id: str
    timestamp: datetime
    price: float

    @property
    def unix_time(self) -> float:
        """Whole seconds since epoch, as used for regression x values."""
        return float(int(ensure_utc(self.timestamp).timestamp()))


@dataclass(frozen=True)
class Insight:
    """Descriptive statistics for one asset over one window."""
    asset_id: str
    first_price: float
    last_price: float
    percent_change: float
    avg_price: float
    stddev_price: float
    volatility: float
    min_price: float
    max_price: float
    median_price: float
    range_pct: float
    sample_count: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class MoverRecord:
    """Price change of one asset between a boundary sample and its latest sample."""
    asset_id: str
    boundary_price: float
    latest_price: float
    percent_change: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Forecast:
    """Point forecast with a ~95% prediction interval."""
    asset_id: str
    horizon: timedelta
    predicted_price: float
    price_low: float
    price_high: float
    trend_label: str
    slope: float
    sample_count: int
    predicted_at: datetime
    horizon_end: datetime

    @property
    def horizon_minutes(self) -> int:
        return int(self.horizon.total_seconds() // 60)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'asset_id': self.asset_id,
            'horizon_minutes': self.horizon_minutes,
            'predicted_price': self.predicted_price,
            'price_low': self.price_low,
            'price_high': self.price_high,
            'trend_label': self.trend_label,
            'slope': self.slope,
            'sample_count': self.sample_count,
            'predicted_at': self.predicted_at.isoformat(),
            'horizon_end': self.horizon_end.isoformat(),
        }


@dataclass(frozen=True)
class VolatilityResult:
    asset_id: str
    start: Optional[datetime]
    end: Optional[datetime]
    volatility: float
    stddev_price: float
    mean_price: float
    sample_count: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class TrendResult:
    asset_id: str
    start: Optional[datetime]
    end: Optional[datetime]
    slope: float
    trend_label: str
    sample_count: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class MarketSummary:
    """Insights for every asset over one UTC day, ranked by percent change."""
    report_date: Optional[datetime]
    coin_metrics: List[Insight]
    top_gainers: List[Insight]
    top_losers: List[Insight]
