"""
Tests for the daily market summary.
"""

import pytest
from datetime import date, datetime, timedelta, timezone

from analysis.market_report import (
    build_daily_summary,
    day_window,
    rank_insights,
    summary_to_dict
)
from analysis.market_queries import build_insight
from analysis.models import Sample
from storage.price_store import InMemoryPriceStore


DAY = date(2025, 8, 1)
DAY_START = datetime(2025, 8, 1, tzinfo=timezone.utc)


def day_series(asset_id, first, last, start=DAY_START):
    return [
        Sample(asset_id, start + timedelta(hours=1), first),
        Sample(asset_id, start + timedelta(hours=12), (first + last) / 2),
        Sample(asset_id, start + timedelta(hours=23), last),
    ]


class TestDayWindow:

    def test_utc_midnight_bounds(self):
        start, end = day_window(DAY)
        assert start == DAY_START
        assert end == DAY_START + timedelta(days=1)


class TestBuildDailySummary:

    def test_ranks_and_splits(self):
        changes = {'a': 110.0, 'b': 80.0, 'c': 100.0, 'd': 130.0, 'e': 95.0, 'f': 101.0, 'g': 60.0}
        samples = []
        for asset_id, last in changes.items():
            samples += day_series(asset_id, 100.0, last)

        summary = build_daily_summary(InMemoryPriceStore(samples), DAY)

        assert summary.report_date == DAY_START
        assert [i.asset_id for i in summary.coin_metrics] == ['d', 'a', 'f', 'c', 'e', 'b', 'g']
        assert [i.asset_id for i in summary.top_gainers] == ['d', 'a', 'f', 'c', 'e']
        assert [i.asset_id for i in summary.top_losers] == ['g', 'b', 'e', 'c', 'f']

    def test_only_samples_in_day(self):
        samples = day_series('a', 100.0, 120.0) + [
            Sample('a', DAY_START - timedelta(minutes=1), 1.0),
            Sample('a', DAY_START + timedelta(days=1), 1000.0),
        ]

        summary = build_daily_summary(InMemoryPriceStore(samples), DAY)

        insight = summary.coin_metrics[0]
        assert insight.sample_count == 3
        assert insight.first_price == 100.0
        assert insight.last_price == 120.0

    def test_assets_without_samples_omitted(self):
        samples = day_series('a', 100.0, 120.0) + [
            Sample('old', DAY_START - timedelta(days=3), 5.0)
        ]

        summary = build_daily_summary(InMemoryPriceStore(samples), DAY)

        assert [i.asset_id for i in summary.coin_metrics] == ['a']

    def test_single_sample_asset_included(self):
        samples = [Sample('solo', DAY_START + timedelta(hours=3), 9.0)]

        summary = build_daily_summary(InMemoryPriceStore(samples), DAY)

        assert summary.coin_metrics[0].stddev_price == 0.0
        assert summary.coin_metrics[0].percent_change == 0.0

    def test_empty_store(self):
        summary = build_daily_summary(InMemoryPriceStore(), DAY)
        assert summary.coin_metrics == []
        assert summary.top_gainers == []
        assert summary.top_losers == []


class TestRankInsights:

    def test_fewer_than_top_n(self):
        insights = [
            build_insight('up', day_series('up', 100.0, 150.0)),
            build_insight('down', day_series('down', 100.0, 50.0)),
        ]

        ranked = rank_insights(insights, top_n=5)

        assert [i.asset_id for i in ranked.top_gainers] == ['up', 'down']
        assert [i.asset_id for i in ranked.top_losers] == ['down', 'up']


class TestSummaryToDict:

    def test_serializable(self):
        import json

        summary = build_daily_summary(InMemoryPriceStore(day_series('a', 100.0, 110.0)), DAY)
        payload = summary_to_dict(summary)

        assert payload['report_date'] == '2025-08-01'
        assert payload['coin_metrics'][0]['asset_id'] == 'a'
        assert payload['coin_metrics'][0]['percent_change'] == pytest.approx(10.0)
        json.dumps(payload)
