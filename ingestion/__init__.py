"""
Data Ingestion Module

Handles fetching and validating price snapshots from external sources:
- CoinGecko simple-price endpoint for spot USD quotes
"""

__version__ = "0.1.0"
