"""
Normalizers for transforming provider data to canonical shape.
Pure functions - no IO, network, or side effects.
"""

from datetime import datetime
from typing import Dict, Any, List

from analysis.models import ensure_utc


def normalize_quotes(
    raw_quotes: Dict[str, Any],
    *,
    timestamp: datetime,
    currency: str = 'usd'
) -> List[Dict[str, Any]]:
    """
    Transform a provider quote map to canonical sample rows.

    Every row of one snapshot shares the same timestamp. Coins without a
    quote in the requested currency are dropped.

    Args:
        raw_quotes: Map of coin_id -> {currency: price}
        timestamp: Snapshot time (naive values are taken as UTC)
        currency: Quote currency key

    Returns:
        List of canonical rows sorted by asset_id
    """
    if not raw_quotes:
        return []

    ts = ensure_utc(timestamp)
    rows = []

    for coin_id in sorted(raw_quotes):
        quote = raw_quotes[coin_id]
        if not isinstance(quote, dict) or quote.get(currency) is None:
            continue

        price = quote[currency]
        # Provider sends ints for whole-dollar prices
        if isinstance(price, int) and not isinstance(price, bool):
            price = float(price)

        rows.append({
            'asset_id': coin_id,
            'timestamp': ts,
            'price': price,
        })

    return rows
