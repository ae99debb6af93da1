"""
Tests for the account-level diagnostics: strategic mode, bottleneck and
budget reallocation.
"""

import pytest

from cognitive_engine.models import (
    BottleneckConstraint,
    CubeTrends,
    StrategicMode,
    TrendClassification,
    TrendData,
)
from cognitive_engine.services.bottleneck import detect_bottleneck
from cognitive_engine.services.budget_optimizer import optimize_budget, reduction_rate
from cognitive_engine.services.cube_builder import attach_trends
from cognitive_engine.services.mode_detector import classify_mode, detect_strategic_mode


# ============================================================
# STRATEGIC MODE
# ============================================================

class TestClassifyMode:
    """Mode thresholds are inclusive on the upper mode."""

    @pytest.mark.boundary
    @pytest.mark.parametrize('score,mode', [
        (100, StrategicMode.ESCALAR),
        (75, StrategicMode.ESCALAR),
        (74.99, StrategicMode.OTIMIZAR),
        (50, StrategicMode.OTIMIZAR),
        (25, StrategicMode.PROTEGER),
        (24.999, StrategicMode.REESTRUTURAR),
        (0, StrategicMode.REESTRUTURAR),
    ])
    def test_thresholds(self, score, mode) -> None:
        assert classify_mode(score) == mode


class TestDetectStrategicMode:

    def test_healthy_account_scales(self, cube_factory) -> None:
        """ROAS 10, CPA 20 and 90% margin: three signals, all at 100."""
        cube = cube_factory(account={'ads': 1000, 'revenue': 10000, 'conversions': 50})

        assessment = detect_strategic_mode(cube)

        assert assessment.mode == StrategicMode.ESCALAR
        assert assessment.score == 100.0
        assert len(assessment.signals) == 3
        assert assessment.confidence == pytest.approx(0.74)

    def test_no_signals_is_neutral(self, cube_factory) -> None:
        assessment = detect_strategic_mode(cube_factory())

        assert assessment.mode == StrategicMode.OTIMIZAR
        assert assessment.score == 50.0
        assert assessment.confidence == 0.3

    def test_account_trend_adds_a_signal(self, cube_factory) -> None:
        cube = cube_factory(account={'ads': 1000, 'revenue': 10000, 'conversions': 50})
        declining = TrendData(
            classification=TrendClassification.DECLINING,
            slopePct=-4.0, movingAvg7d=80, previousMovingAvg7d=100, dataPoints=14,
        )

        assessment = detect_strategic_mode(attach_trends(cube, CubeTrends(account=declining)))

        assert len(assessment.signals) == 4
        # (100 x 0.52 + 20 x 0.13) / 0.65
        assert assessment.score == pytest.approx(84.0)
        assert any('declining' in s for s in assessment.signals)

    def test_struggling_account_restructures(self, cube_factory) -> None:
        cube = cube_factory(
            account={'ads': 9000, 'revenue': 9500, 'conversions': 60},
            planning={'receita_captada': 100000, 'roas_captado': 8, 'cpa_geral': 80},
        )

        assessment = detect_strategic_mode(cube)

        assert assessment.mode == StrategicMode.REESTRUTURAR
        assert assessment.score < 25

    def test_confidence_capped(self, full_context) -> None:
        from cognitive_engine.services.cube_builder import build_data_cube

        assessment = detect_strategic_mode(build_data_cube(full_context))

        assert assessment.confidence <= 0.9
        assert 0 <= assessment.score <= 100


# ============================================================
# BOTTLENECK
# ============================================================

class TestDetectBottleneck:

    @pytest.fixture
    def funnel(self):
        return {'sessions': 10000, 'purchases': 200, 'purchaseRevenue': 40000}

    def test_symmetric_funnel_resolves_to_traffic(self, cube_factory, funnel) -> None:
        """Sessions, conversion and AOV tie at R$ 4.000; traffic comes first."""
        cube = cube_factory(account={'ads': 5000, 'revenue': 40000, 'conversions': 200}, ga4=funnel)

        bottleneck = detect_bottleneck(cube)

        assert bottleneck.constraint == BottleneckConstraint.TRAFFIC
        assert bottleneck.financialImpact.estimatedRevenueGain == 4000.0
        # Reference target: 40000 x 1.2
        assert bottleneck.severity == pytest.approx(8000 / 48000)
        assert bottleneck.hasSufficientData is True

    def test_budget_behind_plan_wins(self, cube_factory, funnel) -> None:
        cube = cube_factory(
            account={'ads': 5000, 'revenue': 40000, 'conversions': 200},
            ga4=funnel,
            planning={'investimento_ads': 30000},
        )

        bottleneck = detect_bottleneck(cube)

        assert bottleneck.constraint == BottleneckConstraint.BUDGET
        # (15000 expected - 5000 spent) x ROAS 8
        assert bottleneck.financialImpact.estimatedRevenueGain == 80000.0

    def test_thin_margin_candidate(self, cube_factory) -> None:
        cube = cube_factory(
            account={'ads': 9000, 'revenue': 10000, 'conversions': 50},
            ga4={'sessions': 1000, 'purchases': 10, 'purchaseRevenue': 2000},
        )

        bottleneck = detect_bottleneck(cube)

        # 5% of 10000 beats 10% of a 2000 funnel
        assert bottleneck.constraint == BottleneckConstraint.MARGIN
        assert bottleneck.financialImpact.estimatedRevenueGain == 500.0

    def test_plan_target_drives_severity(self, cube_factory, funnel) -> None:
        cube = cube_factory(
            account={'ads': 5000, 'revenue': 40000, 'conversions': 200},
            ga4=funnel,
            planning={'receita_captada': 100000},
        )
        # Paced target 50000, gap 10000
        assert detect_bottleneck(cube).severity == pytest.approx(0.2)

    def test_missing_sessions_returns_placeholder(self, cube_factory) -> None:
        cube = cube_factory(account={'ads': 5000, 'revenue': 40000})

        bottleneck = detect_bottleneck(cube)

        assert bottleneck.hasSufficientData is False
        assert bottleneck.financialImpact.netImpact == 0
        assert bottleneck.unlockAction == 'Collect more data'


# ============================================================
# BUDGET OPTIMIZER
# ============================================================

class TestReductionRate:

    @pytest.mark.boundary
    @pytest.mark.parametrize('roas,rate', [
        (2.9, 0.5),
        (3.0, 0.3),
        (4.99, 0.3),
        (5.0, 0.2),
    ])
    def test_rules_in_order(self, roas, rate) -> None:
        assert reduction_rate(roas) == rate


class TestOptimizeBudget:

    @pytest.fixture
    def scenario_cube(self, cube_factory):
        return cube_factory(
            account={'ads': 3000, 'revenue': 14400, 'conversions': 96},
            skus=[
                {'sku': 'S1', 'ads': 1000, 'revenue': 2000, 'conversions': 20},
                {'sku': 'S2', 'ads': 800, 'revenue': 1600, 'conversions': 16},
                {'sku': 'S3', 'ads': 600, 'revenue': 5400, 'conversions': 30},
                {'sku': 'S4', 'ads': 400, 'revenue': 3600, 'conversions': 20},
                {'sku': 'S5', 'ads': 200, 'revenue': 1800, 'conversions': 10},
            ],
        )

    @pytest.mark.scenario
    def test_low_roas_budget_moves_to_high_roas(self, scenario_cube) -> None:
        """
        S1 and S2 (ROAS 2) give up half their spend; the R$ 900 freed is split
        evenly across S3-S5 (ROAS 9 each) at 70% efficiency.
        """
        plan = optimize_budget(scenario_cube)

        assert plan is not None
        assert [a.entity for a in plan.allocations] == ['S3', 'S4', 'S5', 'S2', 'S1']
        assert [a.delta for a in plan.allocations] == [300.0, 300.0, 300.0, -400.0, -500.0]
        assert [a.recommendedBudget for a in plan.allocations] == [900.0, 700.0, 500.0, 400.0, 500.0]
        assert plan.allocations[0].expectedRoas == 6.3
        assert plan.improvementBRL == pytest.approx(630.0)
        assert plan.expectedTotalRevenue == pytest.approx(15030.0)
        assert plan.currentTotalRoas == 4.8
        assert plan.confidence == 0.5

    def test_budget_is_conserved(self, scenario_cube) -> None:
        plan = optimize_budget(scenario_cube)
        assert sum(a.delta for a in plan.allocations) == pytest.approx(0.0)

    def test_abstains_when_too_little_is_freed(self, cube_factory) -> None:
        cube = cube_factory(
            account={'ads': 600, 'revenue': 3000, 'conversions': 25},
            skus=[
                {'sku': 'A', 'ads': 150, 'revenue': 600, 'conversions': 5},
                {'sku': 'B', 'ads': 200, 'revenue': 3000, 'conversions': 10},
                {'sku': 'C', 'ads': 200, 'revenue': 3000, 'conversions': 10},
            ],
        )
        assert optimize_budget(cube) is None

    def test_needs_three_skus(self, cube_factory) -> None:
        cube = cube_factory(
            account={'ads': 3000, 'revenue': 14400},
            skus=[
                {'sku': 'S1', 'ads': 1000, 'revenue': 2000, 'conversions': 20},
                {'sku': 'S3', 'ads': 600, 'revenue': 5400, 'conversions': 30},
            ],
        )
        assert optimize_budget(cube) is None

    def test_needs_minimum_account_budget(self, scenario_cube, cube_factory) -> None:
        cube = cube_factory(
            account={'ads': 400, 'revenue': 2000},
            skus=[s.model_dump(include={'sku', 'ads', 'revenue', 'conversions'}) for s in scenario_cube.skus],
        )
        assert optimize_budget(cube) is None

    def test_min_roas_is_configurable(self, scenario_cube) -> None:
        # With a floor of 2 nothing qualifies as a source
        assert optimize_budget(scenario_cube, min_roas=2.0) is None
