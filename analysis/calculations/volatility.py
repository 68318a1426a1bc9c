"""
Volatility calculation utilities.
Pure functions for log returns and a realized volatility proxy.
"""

import numpy as np
from typing import List, Sequence

from analysis.models import Sample


class VolatilityError(Exception):
    """Raised when volatility calculation fails."""
    pass


def log_returns(prices: List[float]) -> np.ndarray:
    """
    Calculate log returns from consecutive prices.

    Formula: r_i = ln(P_i / P_{i-1})

    Pairs where either price is zero or negative are skipped rather than
    treated as a zero return, so the result can be shorter than
    len(prices) - 1.

    Args:
        prices: List of prices in chronological order

    Returns:
        Numpy array of log returns (empty for fewer than 2 prices)

    Raises:
        VolatilityError: If a price is NaN or infinite
    """
    price_array = np.asarray(prices, dtype=np.float64)

    if price_array.size and not np.all(np.isfinite(price_array)):
        raise VolatilityError("NaN or infinite prices not allowed")

    if price_array.size < 2:
        return np.array([], dtype=np.float64)

    prev = price_array[:-1]
    curr = price_array[1:]
    valid = (prev > 0) & (curr > 0)

    return np.log(curr[valid] / prev[valid])


def realized_vol(log_ret: np.ndarray) -> float:
    """
    Sample standard deviation (ddof=1) of log returns.

    Never annualized or scaled: the value is the dispersion of log returns
    over whatever interval the samples were taken at.

    Args:
        log_ret: Array of log returns

    Returns:
        Volatility proxy, 0.0 when fewer than 2 returns
    """
    if len(log_ret) <= 1:
        return 0.0

    if np.any(np.isnan(log_ret)):
        raise VolatilityError("NaN values not allowed in log returns")

    if np.any(np.isinf(log_ret)):
        raise VolatilityError("Infinite values not allowed in log returns")

    return float(np.std(log_ret, ddof=1))


def series_volatility(series: Sequence[Sample]) -> float:
    """Volatility proxy for a Series."""
    return realized_vol(log_returns([s.price for s in series]))
