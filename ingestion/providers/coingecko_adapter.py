"""
CoinGecko adapter - fetch spot USD quotes for a set of coins.
Network IO allowed here, but minimal business logic.
"""

import os
import re
import requests
from typing import Dict, Any, List, Optional


SIMPLE_PRICE_URL = 'https://api.coingecko.com/api/v3/simple/price'

_COIN_ID_PATTERN = re.compile(r'^[a-z0-9][a-z0-9-]*$')


class CoinGeckoError(Exception):
    """Raised when CoinGecko operations fail."""
    pass


def fetch_simple_prices(coin_ids: List[str], timeout: Optional[int] = None) -> Dict[str, Any]:
    """
    Fetch current USD prices for coins.
    Returns raw data in provider format - no normalization.

    Args:
        coin_ids: CoinGecko coin identifiers (e.g., 'bitcoin')
        timeout: Request timeout in seconds (default: REQUESTS_TIMEOUT_S or 30)

    Returns:
        Provider map of coin_id -> {'usd': price}

    Raises:
        CoinGeckoError: If fetch fails or a coin id is invalid
    """
    _validate_coin_ids(coin_ids)

    if timeout is None:
        timeout = int(os.getenv('REQUESTS_TIMEOUT_S', '30'))

    params = {
        'ids': ','.join(coin_ids),
        'vs_currencies': 'usd',
    }

    try:
        response = requests.get(SIMPLE_PRICE_URL, params=params, timeout=timeout)
    except requests.RequestException as e:
        raise CoinGeckoError(f"Failed to fetch prices: {str(e)}") from e

    if response.status_code != 200:
        raise CoinGeckoError(f"Non-OK HTTP status: {response.status_code}")

    try:
        data = response.json()
    except ValueError as e:
        raise CoinGeckoError(f"Error decoding response: {str(e)}") from e

    if not isinstance(data, dict):
        raise CoinGeckoError(f"Unexpected response shape: {type(data).__name__}")

    return data


def _validate_coin_ids(coin_ids: List[str]) -> None:
    """
    Basic coin id validation.

    Args:
        coin_ids: CoinGecko coin identifiers

    Raises:
        CoinGeckoError: If the list is empty or an id is malformed
    """
    if not coin_ids:
        raise CoinGeckoError("At least one coin id required")

    for coin_id in coin_ids:
        if not isinstance(coin_id, str) or not _COIN_ID_PATTERN.match(coin_id):
            raise CoinGeckoError(f"Invalid coin id: {coin_id!r}")
