#!/usr/bin/env python3
"""
Main CLI for the market analytics engine.
Usage: python cli.py COMMAND [options]
"""

import sys
import json
import logging
import argparse
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Any, List, Optional

# Add project root to path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from analysis.config import load_config, AnalyticsConfig
from analysis.guardrails import AnalyticsError, InsufficientDataError
from analysis.market_queries import (
    compute_insight,
    compute_volatility,
    compute_trend,
    rank_movers,
    forecast,
    latest_price,
    price_history,
)
from analysis.market_report import build_daily_summary, summary_to_dict
from analysis.models import ensure_utc
from pipeline.price_snapshot_dag import PriceSnapshotConfig, run_price_snapshot
from storage.loaders import get_connection, init_database
from storage.price_store import SQLitePriceStore, PriceStoreError


logger = logging.getLogger('market_analytics')

# Accepted request ranges; out-of-range values fall back to defaults
HORIZON_MINUTES_RANGE = (1, 10080)
LOOKBACK_MINUTES_RANGE = (30, 43200)
MOVERS_MINUTES_RANGE = (1, None)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_INSUFFICIENT_DATA = 2


def _parse_time(value: str) -> datetime:
    """ISO-8601 instant; naive values are taken as UTC."""
    try:
        return ensure_utc(datetime.fromisoformat(value.replace('Z', '+00:00')))
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid time: {value} (use ISO-8601)")


def clamp_minutes(value: Optional[int], default: int, bounds: tuple, name: str) -> int:
    """
    Return value if inside bounds, otherwise default (with a warning).
    An upper bound of None leaves the range open above.
    """
    if value is None:
        return default
    low, high = bounds
    if value >= low and (high is None or value <= high):
        return value
    logger.warning("%s=%d outside [%s, %s]; using %d", name, value, low, high, default)
    return default


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Price statistics, trends, movers and forecasts from stored samples',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python cli.py insight bitcoin --start 2025-08-01T00:00:00Z --end 2025-08-02T00:00:00Z
  python cli.py trend ethereum --start 2025-08-01T00:00:00Z --end 2025-08-02T00:00:00Z
  python cli.py movers --minutes 60
  python cli.py forecast solana --horizon-minutes 120
  python cli.py report --day 2025-08-01
  python cli.py snapshot
        """
    )
    parser.add_argument('--db-path',
                        help='Path to SQLite database (default: MARKET_DB_PATH or ./data/market.db)')

    sub = parser.add_subparsers(dest='command', required=True)

    for name in ('insight', 'volatility', 'trend'):
        p = sub.add_parser(name, help=f'{name} for one asset over a window')
        p.add_argument('asset_id', help='Asset identifier (e.g., bitcoin)')
        p.add_argument('--start', type=_parse_time, help='Window start (inclusive, ISO-8601)')
        p.add_argument('--end', type=_parse_time, help='Window end (exclusive, ISO-8601)')

    p = sub.add_parser('movers', help='Rank assets by absolute percent change')
    p.add_argument('--minutes', type=int, help='Lookback in minutes (default: 1440)')

    p = sub.add_parser('forecast', help='Linear forecast with prediction interval')
    p.add_argument('asset_id')
    p.add_argument('--horizon-minutes', type=int, help='Forecast horizon (1-10080, default: 60)')
    p.add_argument('--lookback-minutes', type=int, help='Fit window (30-43200, default: 1440)')

    p = sub.add_parser('latest', help='Most recent price for one asset')
    p.add_argument('asset_id')

    p = sub.add_parser('history', help='Samples from the last N minutes')
    p.add_argument('asset_id')
    p.add_argument('--minutes', type=int, default=60)

    p = sub.add_parser('report', help='Daily market summary for one UTC day')
    p.add_argument('--day', type=date.fromisoformat, help='Day (YYYY-MM-DD, default: yesterday)')

    sub.add_parser('snapshot', help='Fetch one quote snapshot into the database')

    return parser


def run_command(args: argparse.Namespace, config: AnalyticsConfig, conn) -> Any:
    """Dispatch a parsed command; returns a JSON-serializable result."""
    store = SQLitePriceStore(conn)

    if args.command == 'insight':
        return compute_insight(store, args.asset_id, args.start, args.end).to_dict()

    if args.command == 'volatility':
        return compute_volatility(store, args.asset_id, args.start, args.end).to_dict()

    if args.command == 'trend':
        return compute_trend(store, args.asset_id, args.start, args.end).to_dict()

    if args.command == 'movers':
        minutes = clamp_minutes(args.minutes, config.movers_lookback_minutes,
                                MOVERS_MINUTES_RANGE, 'minutes')
        movers = rank_movers(
            store,
            lookback=timedelta(minutes=minutes),
            max_workers=config.movers_max_workers
        )
        return [m.to_dict() for m in movers]

    if args.command == 'forecast':
        horizon = clamp_minutes(args.horizon_minutes, config.forecast_horizon_minutes,
                                HORIZON_MINUTES_RANGE, 'horizon_minutes')
        lookback = clamp_minutes(args.lookback_minutes, config.forecast_lookback_minutes,
                                 LOOKBACK_MINUTES_RANGE, 'lookback_minutes')
        return forecast(
            store,
            args.asset_id,
            horizon=timedelta(minutes=horizon),
            lookback=timedelta(minutes=lookback)
        ).to_dict()

    if args.command == 'latest':
        sample = latest_price(store, args.asset_id)
        if sample is None:
            raise AnalyticsError(f"Price data not found for {args.asset_id}")
        return _sample_dict(sample)

    if args.command == 'history':
        return [_sample_dict(s) for s in price_history(store, args.asset_id, args.minutes)]

    if args.command == 'report':
        return summary_to_dict(build_daily_summary(store, args.day))

    if args.command == 'snapshot':
        snapshot = PriceSnapshotConfig(coin_ids=config.coin_ids, timeout=config.requests_timeout_s)
        result = run_price_snapshot(snapshot, conn)
        if result['status'] != 'completed':
            raise AnalyticsError(f"Snapshot failed: {result['error_message']}")
        return result

    raise AnalyticsError(f"Unknown command: {args.command}")


def _sample_dict(sample) -> dict:
    return {
        'asset_id': sample.asset_id,
        'timestamp': sample.timestamp.isoformat(),
        'price': sample.price,
    }


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    try:
        config = load_config(db_path=args.db_path)
    except ValueError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_ERROR

    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    conn = get_connection(config.db_path)
    try:
        init_database(conn)
        result = run_command(args, config, conn)
    except InsufficientDataError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_INSUFFICIENT_DATA
    except (AnalyticsError, PriceStoreError, ValueError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_ERROR
    finally:
        conn.close()

    print(json.dumps(result, indent=2, default=str))
    return EXIT_OK


if __name__ == '__main__':
    sys.exit(main())
