"""
Core validators for canonical sample rows.
Pure functions - no IO, network, or side effects.
"""

import math
from datetime import datetime
from typing import Dict, Any


class ValidationError(ValueError):
    """Raised when data validation fails."""
    pass


def validate_sample_row(row: Dict[str, Any]) -> None:
    """
    Validate a canonical sample row.

    Args:
        row: Dictionary with asset_id, timestamp, price

    Raises:
        ValidationError: If validation fails
    """
    required_keys = {'asset_id', 'timestamp', 'price'}

    missing = required_keys - set(row.keys())
    if missing:
        raise ValidationError(f"Missing required keys: {missing}")

    if not isinstance(row['asset_id'], str) or not row['asset_id'].strip():
        raise ValidationError(f"asset_id must be non-empty string, got {row['asset_id']!r}")

    if not isinstance(row['timestamp'], datetime):
        raise ValidationError(f"timestamp must be datetime, got {type(row['timestamp'])}")

    if row['timestamp'].tzinfo is None:
        raise ValidationError("timestamp must be timezone-aware")

    price = row['price']
    if isinstance(price, bool) or not isinstance(price, (int, float)):
        raise ValidationError(f"price must be numeric, got {type(price)}")

    if not math.isfinite(price):
        raise ValidationError(f"price must be finite, got {price}")

    if price < 0:
        raise ValidationError(f"price must be non-negative, got {price}")
