"""
Time-series store interface and its SQLite and in-memory implementations.
The analytics core receives a store as an argument; it never opens one.
"""

import bisect
import sqlite3
from collections import defaultdict
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Protocol, Set

import pandas as pd

from analysis.models import Sample, ensure_utc
from storage.loaders import format_timestamp, parse_timestamp


class PriceStoreError(Exception):
    """Raised when the backing store cannot be queried."""
    pass


class PriceStore(Protocol):
    """Read-only queries the analytics core needs from a time-series store."""

    def fetch_range(
        self,
        asset_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None
    ) -> List[Sample]:
        """Samples with start <= timestamp < end, ascending. None = unbounded."""
        ...

    def fetch_latest_at_or_before(
        self,
        asset_id: str,
        timestamp: Optional[datetime] = None
    ) -> Optional[Sample]:
        """Latest sample with timestamp <= given one (None = latest overall)."""
        ...

    def list_known_assets(self) -> Set[str]:
        ...


class SQLitePriceStore:
    """PriceStore backed by the prices table from storage.loaders."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def fetch_range(
        self,
        asset_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None
    ) -> List[Sample]:
        query = "SELECT asset_id, timestamp, price FROM prices WHERE asset_id = ?"
        params = [asset_id]

        if start is not None:
            query += " AND timestamp >= ?"
            params.append(format_timestamp(start))

        if end is not None:
            query += " AND timestamp < ?"
            params.append(format_timestamp(end))

        # rowid keeps coincident timestamps in insertion order
        query += " ORDER BY timestamp ASC, rowid ASC"

        try:
            df = pd.read_sql_query(query, self.conn, params=params)
        except (sqlite3.Error, pd.errors.DatabaseError) as e:
            raise PriceStoreError(f"Range query failed for {asset_id}: {e}") from e

        return _frame_to_samples(df)

    def fetch_latest_at_or_before(
        self,
        asset_id: str,
        timestamp: Optional[datetime] = None
    ) -> Optional[Sample]:
        query = "SELECT asset_id, timestamp, price FROM prices WHERE asset_id = ?"
        params = [asset_id]

        if timestamp is not None:
            query += " AND timestamp <= ?"
            params.append(format_timestamp(timestamp))

        query += " ORDER BY timestamp DESC, rowid DESC LIMIT 1"

        try:
            row = self.conn.execute(query, params).fetchone()
        except sqlite3.Error as e:
            raise PriceStoreError(f"Point query failed for {asset_id}: {e}") from e

        if row is None:
            return None

        return Sample(asset_id=row[0], timestamp=parse_timestamp(row[1]), price=float(row[2]))

    def list_known_assets(self) -> Set[str]:
        try:
            rows = self.conn.execute("SELECT DISTINCT asset_id FROM prices").fetchall()
        except sqlite3.Error as e:
            raise PriceStoreError(f"Asset listing failed: {e}") from e

        return {row[0] for row in rows}


class InMemoryPriceStore:
    """PriceStore over a fixed list of samples. Useful for tests and fixtures."""

    def __init__(self, samples: Iterable[Sample] = ()):
        by_asset: Dict[str, List[Sample]] = defaultdict(list)
        for sample in samples:
            by_asset[sample.asset_id].append(sample)

        # Stable sort: equal timestamps keep the order they were given in
        self._series = {
            asset_id: sorted(series, key=lambda s: ensure_utc(s.timestamp))
            for asset_id, series in by_asset.items()
        }
        self._keys = {
            asset_id: [ensure_utc(s.timestamp) for s in series]
            for asset_id, series in self._series.items()
        }

    def fetch_range(
        self,
        asset_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None
    ) -> List[Sample]:
        series = self._series.get(asset_id, [])
        keys = self._keys.get(asset_id, [])

        lo = 0 if start is None else bisect.bisect_left(keys, ensure_utc(start))
        hi = len(series) if end is None else bisect.bisect_left(keys, ensure_utc(end))

        return list(series[lo:hi])

    def fetch_latest_at_or_before(
        self,
        asset_id: str,
        timestamp: Optional[datetime] = None
    ) -> Optional[Sample]:
        series = self._series.get(asset_id, [])
        if not series:
            return None

        if timestamp is None:
            return series[-1]

        idx = bisect.bisect_right(self._keys[asset_id], ensure_utc(timestamp))
        if idx == 0:
            return None
        return series[idx - 1]

    def list_known_assets(self) -> Set[str]:
        return set(self._series)


def _frame_to_samples(df: pd.DataFrame) -> List[Sample]:
    if df.empty:
        return []

    return [
        Sample(asset_id=asset_id, timestamp=parse_timestamp(ts), price=float(price))
        for asset_id, ts, price in zip(df['asset_id'], df['timestamp'], df['price'])
    ]
