"""
Configuration for the analytics core.
Environment-driven settings plus the named trend threshold profiles.
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


DEFAULT_COIN_IDS = [
    'bitcoin', 'ethereum', 'ripple', 'litecoin', 'cardano', 'dogecoin',
    'polkadot', 'bitcoin-cash', 'binancecoin', 'chainlink', 'vechain',
    'tron', 'monero', 'solana', 'avalanche', 'terra', 'uniswap',
    'shiba-inu', 'algorand',
]


@dataclass(frozen=True)
class TrendProfile:
    """Named slope threshold for trend classification (price units per second)."""
    name: str
    threshold: float

    def __post_init__(self):
        if self.threshold < 0:
            raise ValueError(f"threshold must be non-negative, got {self.threshold}")


# Windowed trend queries
STRICT_PROFILE = TrendProfile('strict', 0.01)

# Forecast trend label over day-scale lookbacks
LOOSE_PROFILE = TrendProfile('loose', 0.0001)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if not raw:
        return list(default)
    return [item.strip() for item in raw.split(',') if item.strip()]


@dataclass
class AnalyticsConfig:
    """Runtime settings read from the environment."""
    db_path: str = './data/market.db'
    movers_lookback_minutes: int = 1440
    forecast_horizon_minutes: int = 60
    forecast_lookback_minutes: int = 1440
    movers_max_workers: int = 8
    requests_timeout_s: int = 30
    log_level: str = 'INFO'
    coin_ids: List[str] = field(default_factory=lambda: list(DEFAULT_COIN_IDS))

    def __post_init__(self):
        """Validate settings."""
        for name in ('movers_lookback_minutes', 'forecast_horizon_minutes',
                     'forecast_lookback_minutes', 'movers_max_workers',
                     'requests_timeout_s'):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")


def load_config(db_path: Optional[str] = None) -> AnalyticsConfig:
    """
    Build AnalyticsConfig from environment variables.

    Args:
        db_path: Overrides MARKET_DB_PATH when given

    Returns:
        Validated configuration

    Raises:
        ValueError: If a variable is not a valid positive integer
    """
    return AnalyticsConfig(
        db_path=db_path or os.getenv('MARKET_DB_PATH', './data/market.db'),
        movers_lookback_minutes=_env_int('MOVERS_LOOKBACK_MINUTES', 1440),
        forecast_horizon_minutes=_env_int('FORECAST_HORIZON_MINUTES', 60),
        forecast_lookback_minutes=_env_int('FORECAST_LOOKBACK_MINUTES', 1440),
        movers_max_workers=_env_int('MOVERS_MAX_WORKERS', 8),
        requests_timeout_s=_env_int('REQUESTS_TIMEOUT_S', 30),
        log_level=os.getenv('MARKET_ANALYTICS_LOG_LEVEL', 'INFO').upper(),
        coin_ids=_env_list('COINGECKO_COIN_IDS', DEFAULT_COIN_IDS),
    )
