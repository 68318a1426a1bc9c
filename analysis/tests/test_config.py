"""
Tests for environment-driven configuration.
"""

import os
import pytest
from unittest.mock import patch

from analysis.config import (
    load_config,
    AnalyticsConfig,
    TrendProfile,
    STRICT_PROFILE,
    LOOSE_PROFILE,
    DEFAULT_COIN_IDS
)


class TestProfiles:

    def test_named_profiles(self):
        assert STRICT_PROFILE.threshold == 0.01
        assert LOOSE_PROFILE.threshold == 0.0001
        assert STRICT_PROFILE.threshold > LOOSE_PROFILE.threshold

    def test_profile_is_frozen(self):
        with pytest.raises(Exception):
            STRICT_PROFILE.threshold = 1.0


class TestLoadConfig:

    @patch.dict(os.environ, {}, clear=True)
    def test_defaults(self):
        config = load_config()

        assert config.db_path == './data/market.db'
        assert config.movers_lookback_minutes == 1440
        assert config.forecast_horizon_minutes == 60
        assert config.forecast_lookback_minutes == 1440
        assert config.log_level == 'INFO'
        assert config.coin_ids == DEFAULT_COIN_IDS

    @patch.dict(os.environ, {
        'MARKET_DB_PATH': '/tmp/prices.db',
        'MOVERS_LOOKBACK_MINUTES': '60',
        'COINGECKO_COIN_IDS': 'bitcoin, ethereum ,',
        'MARKET_ANALYTICS_LOG_LEVEL': 'debug',
    }, clear=True)
    def test_environment_overrides(self):
        config = load_config()

        assert config.db_path == '/tmp/prices.db'
        assert config.movers_lookback_minutes == 60
        assert config.coin_ids == ['bitcoin', 'ethereum']
        assert config.log_level == 'DEBUG'

    @patch.dict(os.environ, {'MARKET_DB_PATH': '/tmp/env.db'}, clear=True)
    def test_explicit_db_path_wins(self):
        assert load_config(db_path='/tmp/cli.db').db_path == '/tmp/cli.db'

    @patch.dict(os.environ, {'FORECAST_HORIZON_MINUTES': 'soon'}, clear=True)
    def test_invalid_integer(self):
        with pytest.raises(ValueError, match="FORECAST_HORIZON_MINUTES"):
            load_config()

    def test_non_positive_rejected(self):
        with pytest.raises(ValueError, match="movers_max_workers"):
            AnalyticsConfig(movers_max_workers=0)
