"""
Daily market summary - insights for every asset over one UTC day.
Composes the per-asset insight into a ranked, JSON-ready summary.
"""

import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

from analysis.market_queries import build_insight
from analysis.models import Insight, MarketSummary
from storage.price_store import PriceStore
from storage.series_loader import load_all_series, utc_now


logger = logging.getLogger(__name__)

TOP_N = 5


def day_window(day: date) -> Tuple[datetime, datetime]:
    """[00:00, next 00:00) in UTC for a calendar day."""
    start = datetime.combine(day, time(0, 0), tzinfo=timezone.utc)
    return start, start + timedelta(days=1)


def rank_insights(insights: List[Insight], top_n: int = TOP_N) -> MarketSummary:
    """
    Sort insights by percent change and split off gainers and losers.

    Gainers are the first min(top_n, n) after a descending sort; losers are
    the last min(top_n, n), most negative first. With few assets the two
    lists overlap.
    """
    ordered = sorted(insights, key=lambda i: i.percent_change, reverse=True)
    top = min(top_n, len(ordered))

    return MarketSummary(
        report_date=None,
        coin_metrics=ordered,
        top_gainers=ordered[:top],
        top_losers=list(reversed(ordered))[:top],
    )


def build_daily_summary(
    store: PriceStore,
    day: Optional[date] = None,
    top_n: int = TOP_N
) -> MarketSummary:
    """
    Build the market summary for one UTC day (default: yesterday).

    Every asset with at least one sample that day gets an Insight;
    single-sample assets report zero dispersion.

    Args:
        store: Time-series store
        day: Calendar day in UTC
        top_n: Size of the gainer and loser lists

    Returns:
        MarketSummary with report_date at the day's 00:00 UTC
    """
    if day is None:
        day = (utc_now() - timedelta(days=1)).date()

    start, end = day_window(day)
    all_series = load_all_series(store, start, end)

    insights = [build_insight(asset_id, series) for asset_id, series in all_series.items()]
    ranked = rank_insights(insights, top_n)

    logger.info("Built market summary for %s: %d assets", day.isoformat(), len(insights))

    return MarketSummary(
        report_date=start,
        coin_metrics=ranked.coin_metrics,
        top_gainers=ranked.top_gainers,
        top_losers=ranked.top_losers,
    )


def summary_to_dict(summary: MarketSummary) -> Dict[str, Any]:
    """JSON-serializable form of a MarketSummary."""
    return {
        'report_date': summary.report_date.date().isoformat() if summary.report_date else None,
        'coin_metrics': [i.to_dict() for i in summary.coin_metrics],
        'top_gainers': [i.to_dict() for i in summary.top_gainers],
        'top_losers': [i.to_dict() for i in summary.top_losers],
    }
