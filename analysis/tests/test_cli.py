"""
Tests for the command-line entry point.
Runs main() against a temp SQLite database and parses the JSON output.
"""

import json
import logging
import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import cli
from analysis.models import Sample
from storage.loaders import get_connection, init_database, insert_series


@pytest.fixture
def db_path(tmp_path):
    """Database with 12 minute samples for bitcoin, ending a minute ago."""
    path = tmp_path / 'market.db'
    now = datetime.now(timezone.utc)
    samples = [
        Sample('bitcoin', now - timedelta(minutes=12 - i), 100.0 + i)
        for i in range(12)
    ]
    conn = get_connection(str(path))
    init_database(conn)
    insert_series(conn, samples)
    conn.close()
    return str(path)


def run_cli(capsys, *argv):
    code = cli.main(list(argv))
    captured = capsys.readouterr()
    return code, captured.out, captured.err


class TestCli:

    def test_insight(self, capsys, db_path):
        code, out, _ = run_cli(capsys, '--db-path', db_path, 'insight', 'bitcoin')

        assert code == cli.EXIT_OK
        payload = json.loads(out)
        assert payload['asset_id'] == 'bitcoin'
        assert payload['sample_count'] == 12
        assert payload['first_price'] == 100.0
        assert payload['last_price'] == 111.0

    def test_trend_with_window(self, capsys, db_path):
        end = (datetime.now(timezone.utc) + timedelta(minutes=1)).isoformat()
        code, out, _ = run_cli(capsys, '--db-path', db_path, 'trend', 'bitcoin', '--end', end)

        assert code == cli.EXIT_OK
        payload = json.loads(out)
        assert payload['trend_label'] == 'Uptrend'

    def test_forecast(self, capsys, db_path):
        code, out, _ = run_cli(capsys, '--db-path', db_path, 'forecast', 'bitcoin',
                               '--horizon-minutes', '30')

        assert code == cli.EXIT_OK
        payload = json.loads(out)
        assert payload['horizon_minutes'] == 30
        assert payload['sample_count'] == 12
        assert payload['price_low'] <= payload['predicted_price'] <= payload['price_high']

    def test_insufficient_data_exit_code(self, capsys, db_path):
        code, out, err = run_cli(capsys, '--db-path', db_path, 'insight', 'ethereum')

        assert code == cli.EXIT_INSUFFICIENT_DATA
        assert out == ''
        assert 'Insufficient data' in err

    def test_latest_not_found(self, capsys, db_path):
        code, _, err = run_cli(capsys, '--db-path', db_path, 'latest', 'ethereum')

        assert code == cli.EXIT_ERROR
        assert 'not found' in err

    def test_movers(self, capsys, db_path):
        code, out, _ = run_cli(capsys, '--db-path', db_path, 'movers', '--minutes', '5')

        assert code == cli.EXIT_OK
        payload = json.loads(out)
        assert payload[0]['asset_id'] == 'bitcoin'
        assert payload[0]['percent_change'] > 0

    def test_movers_non_positive_minutes_falls_back_with_warning(self, capsys, caplog, db_path):
        with caplog.at_level(logging.WARNING, logger='market_analytics'):
            code, out, _ = run_cli(capsys, '--db-path', db_path, 'movers', '--minutes', '0')

        assert code == cli.EXIT_OK
        # Default 1440-minute lookback reaches before the first sample
        assert json.loads(out) == []
        assert 'minutes=0 outside' in caplog.text

    def test_history(self, capsys, db_path):
        code, out, _ = run_cli(capsys, '--db-path', db_path, 'history', 'bitcoin', '--minutes', '60')

        assert code == cli.EXIT_OK
        assert len(json.loads(out)) == 12

    @patch('cli.run_price_snapshot')
    def test_snapshot_failure(self, mock_snapshot, capsys, db_path):
        mock_snapshot.return_value = {'status': 'failed', 'error_message': 'boom'}

        code, _, err = run_cli(capsys, '--db-path', db_path, 'snapshot')

        assert code == cli.EXIT_ERROR
        assert 'boom' in err


class TestClampMinutes:

    def test_in_range(self):
        assert cli.clamp_minutes(120, 60, cli.HORIZON_MINUTES_RANGE, 'h') == 120

    def test_out_of_range_falls_back(self):
        assert cli.clamp_minutes(20000, 60, cli.HORIZON_MINUTES_RANGE, 'h') == 60
        assert cli.clamp_minutes(10, 1440, cli.LOOKBACK_MINUTES_RANGE, 'l') == 1440

    def test_open_upper_bound(self):
        assert cli.clamp_minutes(100000, 1440, cli.MOVERS_MINUTES_RANGE, 'm') == 100000

    def test_below_open_range_warns(self, caplog):
        with caplog.at_level(logging.WARNING, logger='market_analytics'):
            assert cli.clamp_minutes(-5, 1440, cli.MOVERS_MINUTES_RANGE, 'minutes') == 1440

        assert 'minutes=-5 outside [1, None]' in caplog.text

    def test_missing_uses_default(self):
        assert cli.clamp_minutes(None, 60, cli.HORIZON_MINUTES_RANGE, 'h') == 60
