"""
Guardrails for the analytics core - error taxonomy and minimum-data checks.
Requests with too few samples are rejected, never filled with defaults.
"""

import numpy as np
from typing import Optional, Sequence

from analysis.models import Sample


# Minimum samples per method
MIN_SAMPLES_STATISTICS = 2
MIN_SAMPLES_TREND = 2
MIN_SAMPLES_FORECAST = 10


class AnalyticsError(Exception):
    """Base class for analytics failures surfaced to callers."""
    pass


class InsufficientDataError(AnalyticsError):
    """Raised when a series has fewer samples than a method needs."""

    def __init__(self, required: int, available: int, asset_id: Optional[str] = None):
        self.required = required
        self.available = available
        self.asset_id = asset_id
        target = f" for {asset_id}" if asset_id else ""
        super().__init__(
            f"Insufficient data{target}: need at least {required} samples, have {available}"
        )


def require_min_samples(
    series: Sequence[Sample],
    required: int,
    asset_id: Optional[str] = None
) -> None:
    """
    Reject a series that is too short for the requested method.

    Args:
        series: Samples in chronological order
        required: Minimum number of samples
        asset_id: Asset identifier for the error message

    Raises:
        InsufficientDataError: If len(series) < required
    """
    if len(series) < required:
        raise InsufficientDataError(required, len(series), asset_id)


def safe_pct_change(start: float, end: float) -> float:
    """
    Percent change from start to end, 0 when start is zero.

    The zero is a sentinel for an undefined ratio, not an observed
    "no change".
    """
    if start == 0:
        return 0.0
    return (end - start) / start * 100


def check_finite(value: float, name: str) -> None:
    """Raise AnalyticsError for NaN or infinite results."""
    if np.isnan(value):
        raise AnalyticsError(f"NaN value found in {name}")
    if np.isinf(value):
        raise AnalyticsError(f"Infinite value found in {name}")
