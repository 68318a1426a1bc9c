"""
Series loader - normalized reads from a PriceStore.
Ranged fetches return ascending Series; boundary lookups return a single
Sample or None. Gaps are never filled and duplicates pass through.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from analysis.models import Sample, ensure_utc
from storage.price_store import PriceStore


logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def load_series(
    store: PriceStore,
    asset_id: str,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None
) -> List[Sample]:
    """
    Load one asset's samples over [start, end).

    Args:
        store: Time-series store
        asset_id: Asset identifier
        start: Inclusive lower bound (None = unbounded)
        end: Exclusive upper bound (None = unbounded)

    Returns:
        Samples ascending by timestamp; may be empty
    """
    if start is not None and end is not None and ensure_utc(start) > ensure_utc(end):
        raise ValueError(f"start ({start}) must be <= end ({end})")

    samples = store.fetch_range(asset_id, start, end)

    # Stable: coincident timestamps stay in store order
    series = sorted(samples, key=lambda s: ensure_utc(s.timestamp))

    logger.debug("Loaded %d samples for %s in [%s, %s)", len(series), asset_id, start, end)
    return series


def load_lookback(
    store: PriceStore,
    asset_id: str,
    lookback: timedelta,
    now: Optional[datetime] = None
) -> List[Sample]:
    """Load samples with timestamp >= now - lookback (no upper bound)."""
    if lookback <= timedelta(0):
        raise ValueError(f"lookback must be positive, got {lookback}")

    now = ensure_utc(now) if now is not None else utc_now()
    return load_series(store, asset_id, start=now - lookback)


def load_boundary(store: PriceStore, asset_id: str, at: datetime) -> Optional[Sample]:
    """Latest sample with timestamp <= at, or None."""
    return store.fetch_latest_at_or_before(asset_id, ensure_utc(at))


def load_latest(
    store: PriceStore,
    asset_id: str,
    now: Optional[datetime] = None
) -> Optional[Sample]:
    """Latest known sample at or before now (latest overall when now is None)."""
    if now is None:
        return store.fetch_latest_at_or_before(asset_id)
    return store.fetch_latest_at_or_before(asset_id, ensure_utc(now))


def load_all_series(
    store: PriceStore,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None
) -> Dict[str, List[Sample]]:
    """
    Load a Series for every known asset over [start, end).

    Returns:
        Mapping of asset_id to non-empty Series (empty ones omitted)
    """
    result = {}
    for asset_id in sorted(store.list_known_assets()):
        series = load_series(store, asset_id, start, end)
        if series:
            result[asset_id] = series
        else:
            logger.debug("No samples for %s in [%s, %s)", asset_id, start, end)
    return result
