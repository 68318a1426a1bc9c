"""
Price snapshot DAG - one pass of the quote ingestion pipeline.
Composes: Provider → Transform → Validate → Store.
Scheduling (e.g. every minute) is left to cron or another scheduler.
"""

import logging
import sqlite3
from datetime import datetime, timezone
from typing import Dict, Any, List, Optional
from dataclasses import dataclass, field

from analysis.config import DEFAULT_COIN_IDS
from ingestion.providers.coingecko_adapter import fetch_simple_prices
from ingestion.transforms.normalizers import normalize_quotes
from ingestion.transforms.validators import validate_sample_row, ValidationError
from storage.loaders import insert_samples


logger = logging.getLogger(__name__)


@dataclass
class PriceSnapshotConfig:
    """Configuration for one price snapshot run."""
    coin_ids: List[str] = field(default_factory=lambda: list(DEFAULT_COIN_IDS))
    timestamp: Optional[datetime] = None
    timeout: Optional[int] = None

    def __post_init__(self):
        """Validate and set defaults."""
        if not self.coin_ids:
            raise ValueError("coin_ids must be non-empty")

        if self.timestamp is None:
            self.timestamp = datetime.now(timezone.utc)


def run_price_snapshot(config: PriceSnapshotConfig, conn: sqlite3.Connection) -> Dict[str, Any]:
    """
    Fetch one quote snapshot and append it to the prices table.

    Pipeline stages:
    1. Fetch raw quotes from provider
    2. Normalize to canonical sample rows (shared timestamp)
    3. Validate each row, skipping bad ones
    4. Store valid rows

    Args:
        config: Snapshot configuration
        conn: SQLite database connection

    Returns:
        Dictionary with run results
    """
    start_time = datetime.now()

    result = {
        'timestamp': config.timestamp,
        'status': 'running',
        'rows_fetched': 0,
        'rows_stored': 0,
        'validation_warnings': 0,
        'error_message': None
    }

    try:
        # Stage 1: Fetch raw quotes
        raw_quotes = fetch_simple_prices(config.coin_ids, timeout=config.timeout)
        result['rows_fetched'] = len(raw_quotes)

        # Stage 2: Normalize
        rows = normalize_quotes(raw_quotes, timestamp=config.timestamp)

        # Stage 3: Validate each row
        valid_rows = []
        for row in rows:
            try:
                validate_sample_row(row)
                valid_rows.append(row)
            except ValidationError as e:
                result['validation_warnings'] += 1
                logger.warning("Skipping %s: %s", row.get('asset_id', 'unknown'), e)

        # Stage 4: Store
        result['rows_stored'] = insert_samples(conn, valid_rows)
        for row in valid_rows:
            logger.info("Inserted %s price: $%.2f", row['asset_id'], row['price'])

        result['status'] = 'completed'

    except Exception as e:
        logger.error("Price snapshot failed: %s", e)
        result['status'] = 'failed'
        result['error_message'] = str(e)

    result['duration_seconds'] = (datetime.now() - start_time).total_seconds()
    return result
