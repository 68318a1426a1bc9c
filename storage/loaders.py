"""
Database loaders - schema setup and append-only sample inserts for SQLite.
Thin IO layer; the analytics core never calls these directly.
"""

import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Any, List, Union

from analysis.models import Sample, ensure_utc


def init_database(conn: sqlite3.Connection) -> None:
    """
    Initialize database with required tables.
    Idempotent - safe to call multiple times.

    Args:
        conn: SQLite connection
    """
    # Duplicate (asset_id, timestamp) rows are allowed; rowid keeps insert order
    conn.execute("""
        CREATE TABLE IF NOT EXISTS prices (
            asset_id TEXT NOT NULL,
            timestamp DATETIME NOT NULL,
            price REAL NOT NULL
        )
    """)

    conn.execute(
        "CREATE INDEX IF NOT EXISTS idx_prices_asset_ts ON prices(asset_id, timestamp)"
    )

    conn.commit()


def get_connection(db_path: str = './data/market.db') -> sqlite3.Connection:
    """
    Get SQLite connection with proper configuration.

    Args:
        db_path: Path to SQLite database file

    Returns:
        Configured SQLite connection
    """
    if db_path != ':memory:':
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    # Worker threads of the mover fan-out share this connection for reads
    conn = sqlite3.connect(db_path, check_same_thread=False)
    conn.execute("PRAGMA journal_mode = WAL")  # Better concurrency
    return conn


def format_timestamp(ts: datetime) -> str:
    """
    Canonical stored form: UTC, microsecond precision, fixed width.
    Fixed width keeps lexicographic order equal to time order.
    """
    return ensure_utc(ts).strftime('%Y-%m-%d %H:%M:%S.%f')


def parse_timestamp(value: Union[str, datetime]) -> datetime:
    """Inverse of format_timestamp; returns an aware UTC datetime."""
    if isinstance(value, datetime):
        return ensure_utc(value)
    return datetime.strptime(value, '%Y-%m-%d %H:%M:%S.%f').replace(tzinfo=timezone.utc)


def insert_samples(conn: sqlite3.Connection, rows: List[Dict[str, Any]]) -> int:
    """
    Append sample rows to the prices table.

    Args:
        conn: SQLite connection
        rows: Canonical sample dictionaries (asset_id, timestamp, price)

    Returns:
        Number of rows inserted
    """
    if not rows:
        return 0

    conn.executemany(
        "INSERT INTO prices (asset_id, timestamp, price) VALUES (?, ?, ?)",
        [
            (row['asset_id'], format_timestamp(row['timestamp']), float(row['price']))
            for row in rows
        ]
    )

    conn.commit()
    return len(rows)


def insert_series(conn: sqlite3.Connection, samples: List[Sample]) -> int:
    """insert_samples for Sample objects."""
    return insert_samples(conn, [
        {'asset_id': s.asset_id, 'timestamp': s.timestamp, 'price': s.price}
        for s in samples
    ])
