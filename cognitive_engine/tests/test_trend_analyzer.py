"""
Tests for the trend analyzer: series normalization, OLS slope, moving-average
classification and the concurrent historical fan-out.
"""

from datetime import date, timedelta
from typing import List

import numpy as np
import pytest

from cognitive_engine.models import MetricSnapshot, TrendClassification
from cognitive_engine.services.trend_analyzer import (
    analyze_series,
    analyze_trend,
    collect_trends,
    metric_series,
    ols_slope,
    select_trend_skus,
)


def _snapshots(values: List[float]) -> List[MetricSnapshot]:
    start = date(2025, 6, 1)
    return [
        MetricSnapshot(date=start + timedelta(days=i), metrics={'revenue': v})
        for i, v in enumerate(values)
    ]


class TestSeries:
    """Snapshot normalization through pandas."""

    def test_out_of_order_snapshots_are_sorted(self) -> None:
        snaps = _snapshots([10, 20, 30])
        values = metric_series(list(reversed(snaps)), 'revenue')
        assert list(values) == [10, 20, 30]

    def test_duplicate_dates_keep_last(self) -> None:
        snaps = _snapshots([10, 20]) + [MetricSnapshot(date=date(2025, 6, 2), metrics={'revenue': 99})]
        assert list(metric_series(snaps, 'revenue')) == [10, 99]

    def test_missing_metric_reads_as_zero(self) -> None:
        assert list(metric_series(_snapshots([1, 2]), 'ads')) == [0, 0]

    def test_ols_slope(self) -> None:
        assert ols_slope(np.array([1.0, 3.0, 5.0, 7.0])) == pytest.approx(2.0)
        assert ols_slope(np.array([5.0])) == 0.0


class TestAnalyzeSeries:
    """Classification rules and the 3-point minimum."""

    @pytest.mark.scenario
    def test_strictly_increasing_is_improving(self, rising_history) -> None:
        trend = analyze_trend(rising_history)

        assert trend.classification == TrendClassification.IMPROVING
        assert trend.slopePct > 0
        assert trend.dataPoints == 10

    def test_strictly_decreasing_is_declining(self) -> None:
        trend = analyze_series(np.array([200, 190, 180, 170, 160, 150, 140, 130, 120, 110.0]))

        assert trend.classification == TrendClassification.DECLINING
        assert trend.slopePct < 0
        assert trend.movingAvg7d < trend.previousMovingAvg7d

    def test_flat_is_stable(self) -> None:
        trend = analyze_series(np.array([100.0] * 8))

        assert trend.classification == TrendClassification.STABLE
        assert trend.slopePct == 0.0

    def test_short_series_compares_against_first_half(self) -> None:
        trend = analyze_series(np.array([100, 120, 140, 160.0]))

        assert trend.previousMovingAvg7d == 110.0
        assert trend.movingAvg7d == 130.0

    @pytest.mark.boundary
    def test_fewer_than_three_points_is_unknown(self) -> None:
        assert analyze_series(np.array([100, 200.0])) is None
        assert analyze_trend([]) is None

    def test_zero_mean_series_is_stable(self) -> None:
        trend = analyze_series(np.zeros(5))
        assert trend.classification == TrendClassification.STABLE


class TestSelectTrendSkus:

    def test_top_spenders_only(self, cube_factory) -> None:
        cube = cube_factory(skus=[
            {'sku': 'A', 'ads': 100},
            {'sku': 'B', 'ads': 300},
            {'sku': 'C', 'ads': 0},
            {'sku': 'D', 'ads': 200},
        ])
        assert select_trend_skus(cube.skus, top_n=2) == ['B', 'D']


@pytest.mark.asyncio
class TestCollectTrends:
    """Concurrent per-scope fetch with per-scope failure isolation."""

    async def test_account_and_skus_fetched(self, rising_history) -> None:
        calls = []

        async def fetch(tenant_id: str, scope: str, days: int) -> List[MetricSnapshot]:
            calls.append((tenant_id, scope, days))
            return rising_history

        trends = await collect_trends('acme', ['A', 'B'], fetch, days=21)

        assert trends.account.classification == TrendClassification.IMPROVING
        assert set(trends.skus) == {'A', 'B'}
        assert sorted(c[1] for c in calls) == ['account', 'sku:A', 'sku:B']
        assert all(c[2] == 21 for c in calls)

    async def test_failed_scope_does_not_abort_others(self, rising_history) -> None:
        async def fetch(tenant_id: str, scope: str, days: int) -> List[MetricSnapshot]:
            if scope == 'sku:A':
                raise ConnectionError('snapshot store unavailable')
            return rising_history

        trends = await collect_trends('acme', ['A', 'B'], fetch)

        assert trends.account is not None
        assert 'A' not in trends.skus
        assert 'B' in trends.skus

    async def test_short_history_leaves_scope_unknown(self) -> None:
        async def fetch(tenant_id: str, scope: str, days: int) -> List[MetricSnapshot]:
            return _snapshots([100, 110])

        trends = await collect_trends('acme', ['A'], fetch)

        assert trends.account is None
        assert trends.skus == {}
