"""
Tests for the data cube builder and the zero-safe ratio helpers.

Test Classes:
- TestRatios: safe_div, pct, share and mean edge cases
- TestSkuStatus: derive_sku_status rule order
- TestBuildDataCube: derived fields, shares, ordering and invariants
- TestAttachTrends: trend attachment at account and SKU level
"""

from datetime import date

import pytest
from pydantic import ValidationError

from cognitive_engine.models import (
    AnalysisContext,
    CubeTrends,
    DemographicType,
    SkuStatus,
    TrendClassification,
    TrendData,
)
from cognitive_engine.services.cube_builder import (
    attach_trends,
    build_data_cube,
    derive_sku_status,
)
from cognitive_engine.services.ratios import mean, pct, safe_div, share


class TestRatios:
    """Zero denominators must yield exactly 0, never NaN or an exception."""

    def test_safe_div_zero_denominator(self) -> None:
        assert safe_div(100.0, 0) == 0.0
        assert safe_div(100.0, -0.0) == 0.0

    def test_safe_div_regular(self) -> None:
        assert safe_div(45000, 9000) == 5.0

    def test_pct_and_share(self) -> None:
        assert pct(1, 4) == 25.0
        assert share(1, 3) == 33.33
        assert share(5, 0) == 0.0

    def test_mean_empty(self) -> None:
        assert mean([]) == 0.0
        assert mean([2, 4]) == 3.0


class TestSkuStatus:
    """derive_sku_status checks its rules in order; first match wins."""

    def test_no_return_pauses(self) -> None:
        assert derive_sku_status(0, 0, 0, 30, 100) == SkuStatus.PAUSAR

    def test_low_roas_pauses(self) -> None:
        assert derive_sku_status(4.9, 40, 10, 40, 100) == SkuStatus.PAUSAR

    def test_high_cpa_pauses(self) -> None:
        assert derive_sku_status(9, 81, 10, 40, 100) == SkuStatus.PAUSAR

    def test_thin_margin_keeps(self) -> None:
        assert derive_sku_status(9, 40, 10, 20, 100) == SkuStatus.MANTER

    def test_healthy_with_stock_scales(self) -> None:
        assert derive_sku_status(9, 40, 12, 35, 50) == SkuStatus.ESCALAR

    def test_healthy_without_stock_keeps(self) -> None:
        assert derive_sku_status(9, 40, 12, 35, 20) == SkuStatus.MANTER


class TestBuildDataCube:
    """build_data_cube fills every derived field from the raw slices."""

    def test_account_ratios(self, cube_factory) -> None:
        cube = cube_factory(account={
            'ads': 9000, 'impressions': 400000, 'clicks': 12000, 'conversions': 150, 'revenue': 45000,
        })

        assert cube.account.roas == 5.0
        assert cube.account.cpa == 60.0
        assert cube.account.ctr == 3.0

    def test_zero_spend_yields_zero_ratios(self, cube_factory) -> None:
        """A zero denominator produces 0 for every ratio."""
        cube = cube_factory(account={'ads': 0, 'revenue': 1000})

        assert cube.account.roas == 0.0
        assert cube.account.cpa == 0.0
        assert cube.account.ctr == 0.0

    def test_sku_shares_and_profit(self, cube_factory) -> None:
        cube = cube_factory(
            skus=[
                {'sku': 'A', 'revenue': 3000, 'ads': 300, 'conversions': 10},
                {'sku': 'B', 'revenue': 1000, 'ads': 700, 'conversions': 5},
            ],
            skuExtras={'A': {'marginPct': 40, 'stock': 10}},
        )
        a, b = cube.skus

        assert a.revenueShare == 75.0
        assert b.adsShare == 70.0
        assert a.grossProfit == 1200.0
        assert a.profitAfterAds == 900.0
        # Defaults apply when the catalog has no entry
        assert b.marginPct == 30.0
        assert b.stock == 0.0
        # Display name falls back to the SKU code
        assert a.nome == 'A'

    def test_explicit_status_is_kept(self, cube_factory) -> None:
        cube = cube_factory(skus=[{'sku': 'A', 'revenue': 0, 'ads': 100, 'status': 'escalar'}])
        assert cube.skus[0].status == SkuStatus.ESCALAR

    def test_missing_status_is_derived(self, cube_factory) -> None:
        cube = cube_factory(skus=[{'sku': 'A', 'revenue': 0, 'ads': 100}])
        assert cube.skus[0].status == SkuStatus.PAUSAR

    def test_ga4_conversion_rate_is_fraction(self, cube_factory) -> None:
        cube = cube_factory(ga4={'sessions': 10000, 'purchases': 200, 'purchaseRevenue': 40000})

        assert cube.ga4.conversionRate == pytest.approx(0.02)
        assert cube.ga4.avgOrderValue == 200.0

    def test_demographic_shares_per_dimension(self, cube_factory) -> None:
        """Age and gender shares each sum to 100 within their own dimension."""
        cube = cube_factory(demographics=[
            {'type': 'age', 'segment': 'AGE_RANGE_25_34', 'revenue': 600, 'cost': 100},
            {'type': 'age', 'segment': 'AGE_RANGE_35_44', 'revenue': 400, 'cost': 100},
            {'type': 'gender', 'segment': 'MALE', 'revenue': 700, 'cost': 100},
            {'type': 'gender', 'segment': 'FEMALE', 'revenue': 300, 'cost': 100},
        ])
        ages = [d for d in cube.demographics if d.type == DemographicType.AGE]
        genders = [d for d in cube.demographics if d.type == DemographicType.GENDER]

        assert [a.revenueShare for a in ages] == [60.0, 40.0]
        assert [g.revenueShare for g in genders] == [70.0, 30.0]
        assert ages[0].label == '25-34'
        assert genders[1].label == 'Female'

    def test_geographic_sorted_by_revenue(self, cube_factory) -> None:
        cube = cube_factory(geographic=[
            {'region': 'Minas Gerais', 'revenue': 1000, 'cost': 100},
            {'region': 'Sao Paulo', 'revenue': 5000, 'cost': 500},
            {'region': 'Parana', 'revenue': 2000, 'cost': 300},
        ])
        assert [g.region for g in cube.geographic] == ['Sao Paulo', 'Parana', 'Minas Gerais']

    def test_empty_slices_default(self, cube_factory) -> None:
        cube = cube_factory()

        assert cube.account is None
        assert cube.ga4 is None
        assert cube.skus == []
        assert cube.planning.receita_captada is None
        assert cube.meta.days_remaining == 15
        assert cube.meta.pace_ratio == 0.5

    def test_input_is_not_mutated(self, context_factory) -> None:
        ctx = context_factory(skus=[{'sku': 'A', 'revenue': 100, 'ads': 10}])
        before = ctx.model_dump()

        build_data_cube(ctx)

        assert ctx.model_dump() == before


class TestContextValidation:
    """Malformed contexts are rejected at the boundary."""

    def test_day_of_month_beyond_month(self) -> None:
        with pytest.raises(ValidationError):
            AnalysisContext(
                tenantId='acme', periodStart=date(2025, 6, 1), periodEnd=date(2025, 6, 30),
                daysInPeriod=30, dayOfMonth=31, daysInMonth=30,
            )

    def test_duplicate_sku_rejected(self, context_factory) -> None:
        with pytest.raises(ValidationError):
            context_factory(skus=[{'sku': 'A'}, {'sku': 'A'}])

    def test_negative_spend_rejected(self, context_factory) -> None:
        with pytest.raises(ValidationError):
            context_factory(account={'ads': -1})


class TestAttachTrends:
    """attach_trends returns a copy carrying account and per-SKU trends."""

    def test_trends_attached(self, cube_factory) -> None:
        cube = cube_factory(skus=[
            {'sku': 'A', 'revenue': 100, 'ads': 10},
            {'sku': 'B', 'revenue': 100, 'ads': 10},
        ])
        trend = TrendData(
            classification=TrendClassification.DECLINING,
            slopePct=-2.5, movingAvg7d=80, previousMovingAvg7d=100, dataPoints=14,
        )

        enriched = attach_trends(cube, CubeTrends(account=trend, skus={'A': trend}))

        assert enriched.trends.account == trend
        assert enriched.skus[0].trend == trend
        # No entry means unknown, not stable
        assert enriched.skus[1].trend is None
        # Original cube is untouched
        assert cube.skus[0].trend is None
        assert cube.trends is None

    def test_none_returns_same_cube(self, cube_factory) -> None:
        cube = cube_factory()
        assert attach_trends(cube, None) is cube
