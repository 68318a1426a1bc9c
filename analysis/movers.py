"""
Mover ranking - cross-asset percent change over a lookback window.
Per-asset lookups fan out to a thread pool and are joined before sorting.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from analysis.guardrails import safe_pct_change
from analysis.models import MoverRecord, ensure_utc
from storage.price_store import PriceStore
from storage.series_loader import load_boundary, load_latest, utc_now


logger = logging.getLogger(__name__)

DEFAULT_LOOKBACK = timedelta(minutes=1440)
DEFAULT_MAX_WORKERS = 8


def mover_for_asset(
    store: PriceStore,
    asset_id: str,
    boundary_time: datetime,
    now: datetime
) -> Optional[MoverRecord]:
    """
    Compare the boundary price against the latest price for one asset.

    Args:
        store: Time-series store
        asset_id: Asset identifier
        boundary_time: now - lookback
        now: Reference instant for the latest price

    Returns:
        MoverRecord, or None when either endpoint is missing or the
        boundary price is not strictly positive
    """
    boundary = load_boundary(store, asset_id, boundary_time)
    if boundary is None:
        return None

    latest = load_latest(store, asset_id, now)
    if latest is None:
        return None

    if boundary.price <= 0:
        return None

    return MoverRecord(
        asset_id=asset_id,
        boundary_price=boundary.price,
        latest_price=latest.price,
        percent_change=safe_pct_change(boundary.price, latest.price),
    )


def sort_movers(records: Sequence[MoverRecord]) -> List[MoverRecord]:
    """Largest absolute percent change first; gains and losses intermixed."""
    return sorted(records, key=lambda r: abs(r.percent_change), reverse=True)


def rank_movers(
    store: PriceStore,
    lookback: timedelta = DEFAULT_LOOKBACK,
    now: Optional[datetime] = None,
    max_workers: Optional[int] = None
) -> List[MoverRecord]:
    """
    Rank every known asset by absolute percent change over the lookback.

    Assets missing an endpoint are left out, and so are assets whose lookup
    raises (logged); partial data never fails the whole ranking.

    Args:
        store: Time-series store
        lookback: Window length D; boundary is the latest sample at or before now - D
        now: Reference instant (defaults to current UTC time)
        max_workers: Thread pool size for the per-asset lookups

    Returns:
        MoverRecords sorted by |percent_change| descending
    """
    if lookback <= timedelta(0):
        raise ValueError(f"lookback must be positive, got {lookback}")

    now = ensure_utc(now) if now is not None else utc_now()
    boundary_time = now - lookback

    asset_ids = sorted(store.list_known_assets())
    if not asset_ids:
        return []

    workers = max_workers or min(DEFAULT_MAX_WORKERS, len(asset_ids))

    records = []
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [
            (asset_id, executor.submit(mover_for_asset, store, asset_id, boundary_time, now))
            for asset_id in asset_ids
        ]
        for asset_id, future in futures:
            try:
                record = future.result()
            except Exception as exc:
                logger.warning("Mover lookup failed for %s: %s", asset_id, exc)
                continue

            if record is None:
                logger.debug("Excluding %s from movers: missing endpoint", asset_id)
                continue

            records.append(record)

    ranked = sort_movers(records)
    logger.info(
        "Ranked %d of %d assets over %s lookback", len(ranked), len(asset_ids), lookback
    )
    return ranked

