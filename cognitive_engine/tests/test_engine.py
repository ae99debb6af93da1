"""
Tests for the engine orchestrator, the health score, the legacy projection
and the executive summary templates.

Test Classes:
- TestHealthScore: exposure penalty, success bonus and clamping
- TestAnalyze: end-to-end pipeline over a full context
- TestEmptyContext: behavior when no slice is populated
- TestLegacyProjection: insights, top priority and quick wins
- TestAnalyzeWithTrends: historical enrichment through an injected fetcher
- TestTemplates: headline, top action and projection text
"""

from datetime import datetime, timezone
from typing import List
from unittest.mock import patch

import pytest

from cognitive_engine.analyzers.base import make_finding, recommend
from cognitive_engine.core.config import Settings
from cognitive_engine.models import (
    BottleneckConstraint,
    EffortLevel,
    FindingKind,
    FindingMetrics,
    ImpactLevel,
    KpiStatus,
    MetricSnapshot,
    Severity,
    StrategicMode,
    Timeframe,
    TrendClassification,
)
from cognitive_engine.services.engine import (
    analyze,
    analyze_cube,
    analyze_with_trends,
    compute_health_score,
    is_quick_win,
    to_legacy,
)
from cognitive_engine.services.cube_builder import build_data_cube
from cognitive_engine.services.financial_impact import build_impact
from cognitive_engine.services.pacing import project_metric
from cognitive_engine.services.templates import describe_projection, headline, top_action


GENERATED_AT = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)


def _finding(kind, severity, net):
    return make_finding(
        kind, severity, title=kind.value, description='',
        metrics=FindingMetrics(current=1.0, target=1.0),
        impact=build_impact(net, 0.0, 0.5, Timeframe.SHORT, 'test'),
    )


# ============================================================
# HEALTH SCORE
# ============================================================

class TestHealthScore:

    def test_exposure_penalty_and_success_bonus(self) -> None:
        """60 - (1000 / 10000 x 100) + 2 x 3 = 56."""
        findings = [
            _finding(FindingKind.EFF_ZERO_CONV, Severity.DANGER, 1000),
            _finding(FindingKind.OPP_GROWTH, Severity.SUCCESS, 500),
            _finding(FindingKind.COMP_DIRECT_STRONG, Severity.SUCCESS, 0),
        ]
        assert compute_health_score(findings, 60, 10000) == 56

    def test_penalty_capped(self) -> None:
        findings = [_finding(FindingKind.RISK_ROAS_CRITICAL, Severity.DANGER, 1_000_000)]
        assert compute_health_score(findings, 60, 10000) == 20

    def test_bonus_capped(self) -> None:
        findings = [_finding(FindingKind.OPP_GROWTH, Severity.SUCCESS, 0) for _ in range(10)]
        assert compute_health_score(findings, 50, 10000) == 62

    def test_clamped_to_range(self) -> None:
        findings = [_finding(FindingKind.OPP_GROWTH, Severity.SUCCESS, 0) for _ in range(5)]
        assert compute_health_score(findings, 95, 0) == 100
        danger = [_finding(FindingKind.RISK_ROAS_CRITICAL, Severity.DANGER, 1_000_000)]
        assert compute_health_score(danger, 10, 0) == 0

    def test_negative_exposure_counts_by_magnitude(self) -> None:
        findings = [_finding(FindingKind.RISK_BOUNCE, Severity.WARNING, -1000)]
        assert compute_health_score(findings, 60, 10000) == 50


# ============================================================
# PIPELINE
# ============================================================

class TestAnalyze:

    @pytest.fixture
    def response(self, full_context):
        return analyze(full_context, generated_at=GENERATED_AT)

    def test_is_deterministic(self, full_context, response) -> None:
        again = analyze(full_context, generated_at=GENERATED_AT)
        assert again.model_dump() == response.model_dump()

    def test_prebuilt_cube_matches_context(self, full_context, response) -> None:
        from_cube = analyze_cube(build_data_cube(full_context), full_context.tenantId, generated_at=GENERATED_AT)
        assert from_cube.model_dump() == response.model_dump()

    def test_findings_ranked_by_score(self, response) -> None:
        scores = [d.score for d in response.findings]

        assert response.findings
        assert scores == sorted(scores, reverse=True)
        assert [d.rank for d in response.findings] == list(range(1, len(scores) + 1))

    def test_findings_are_correlated(self, response) -> None:
        correlated = [d.finding for d in response.findings if d.finding.correlationId]
        assert any(f.correlationId == 'budget-misallocation' for f in correlated)

    def test_limits_respected(self, full_context) -> None:
        response = analyze(full_context, max_findings=3, max_insights=2, generated_at=GENERATED_AT)

        assert len(response.findings) == 3
        assert len(response.insights) == 2

    def test_insights_follow_ranking(self, response) -> None:
        ranked_ids = [d.finding.id for d in response.findings]
        assert [i.id for i in response.insights] == ranked_ids[:len(response.insights)]

    def test_diagnostics_present(self, response) -> None:
        assert response.bottleneck.hasSufficientData is True
        assert 0 <= response.healthScore <= 100
        assert response.summary.healthScore == response.healthScore
        assert [p.metric for p in response.pacingProjections][0] == 'receita_captada'
        assert response.executiveSummary.headline.startswith('Mode: ')
        assert response.generatedAt == GENERATED_AT

    def test_segmentation_echoed(self, response) -> None:
        assert response.segmentation is not None
        assert [d.device for d in response.segmentation.devices] == ['MOBILE', 'DESKTOP']

    def test_no_trends_without_history(self, response) -> None:
        assert response.accountTrend is None
        assert not any(d.finding.kind == FindingKind.SKU_TREND_DECLINE for d in response.findings)


class TestEmptyContext:

    def test_neutral_output(self, context_factory) -> None:
        response = analyze(context_factory(), generated_at=GENERATED_AT)

        assert response.findings == []
        assert response.insights == []
        assert response.mode.mode == StrategicMode.OTIMIZAR
        assert response.healthScore == 50
        assert response.bottleneck.hasSufficientData is False
        assert response.budgetPlan is None
        assert response.segmentation is None
        assert response.summary.topPriority is None
        assert response.executiveSummary.topAction == 'No priority actions right now'


# ============================================================
# LEGACY PROJECTION
# ============================================================

class TestLegacyProjection:

    def test_top_priority_is_first_problem(self, full_context) -> None:
        response = analyze(full_context, generated_at=GENERATED_AT)

        expected = next(
            i for i in response.insights if i.severity in (Severity.DANGER, Severity.WARNING)
        )
        assert response.summary.topPriority == expected

    def test_quick_wins(self, full_context) -> None:
        response = analyze(full_context, generated_at=GENERATED_AT)

        assert len(response.summary.quickWins) <= 3
        assert all(is_quick_win(i) for i in response.summary.quickWins)

    def test_quick_win_requires_low_effort_and_real_impact(self) -> None:
        from cognitive_engine.services.engine import to_legacy_insight

        def insight(impact, effort):
            return to_legacy_insight(make_finding(
                FindingKind.EFF_ZERO_CONV, Severity.DANGER, 'x', '', FindingMetrics(current=0.0),
                build_impact(0, 100, 0.9, Timeframe.IMMEDIATE, 'x'),
                recommendations=[recommend('act', impact, effort)],
            ))

        assert is_quick_win(insight(ImpactLevel.HIGH, EffortLevel.LOW))
        assert not is_quick_win(insight(ImpactLevel.LOW, EffortLevel.LOW))
        assert not is_quick_win(insight(ImpactLevel.HIGH, EffortLevel.MEDIUM))

    def test_legacy_response_drops_financial_fields(self, full_context) -> None:
        legacy = to_legacy(analyze(full_context, generated_at=GENERATED_AT))
        dumped = legacy.model_dump()

        assert set(dumped) == {'insights', 'summary', 'generatedAt'}
        assert 'financialImpact' not in dumped['insights'][0]
        assert 'rootCause' not in dumped['insights'][0]


# ============================================================
# HISTORICAL ENRICHMENT
# ============================================================

@pytest.mark.asyncio
class TestAnalyzeWithTrends:

    async def test_trends_attached(self, full_context, rising_history) -> None:
        scopes: List[str] = []

        async def fetch(tenant_id: str, scope: str, days: int) -> List[MetricSnapshot]:
            scopes.append(scope)
            return rising_history

        settings = Settings(database_url='postgresql://localhost/snapshots', trend_top_skus=2)

        response = await analyze_with_trends(full_context, fetch, settings)

        assert response.accountTrend.classification == TrendClassification.IMPROVING
        # Account plus the two highest-spend SKUs
        assert sorted(scopes) == ['account', 'sku:A-100', 'sku:B-200']

    async def test_fetch_failures_degrade_to_no_trend(self, full_context) -> None:
        async def fetch(tenant_id: str, scope: str, days: int) -> List[MetricSnapshot]:
            raise ConnectionError('snapshot store unavailable')

        response = await analyze_with_trends(full_context, fetch, Settings(database_url=None))

        assert response.accountTrend is None
        assert response.findings

    async def test_cube_built_once(self, full_context, rising_history) -> None:
        async def fetch(tenant_id: str, scope: str, days: int) -> List[MetricSnapshot]:
            return rising_history

        settings = Settings(database_url='postgresql://localhost/snapshots', trend_top_skus=2)

        with patch(
            'cognitive_engine.services.engine.build_data_cube', wraps=build_data_cube
        ) as build:
            response = await analyze_with_trends(full_context, fetch, settings)

        build.assert_called_once_with(full_context)
        assert response.accountTrend.classification == TrendClassification.IMPROVING


# ============================================================
# TEMPLATES
# ============================================================

class TestTemplates:

    def test_headline(self, context_factory) -> None:
        response = analyze(context_factory(), generated_at=GENERATED_AT)
        assert headline(response.mode, response.bottleneck) == 'Mode: Optimize | Main bottleneck: Traffic'

    def test_top_action_uses_first_recommendation(self, full_context) -> None:
        response = analyze(full_context, generated_at=GENERATED_AT)
        first = response.findings[0].finding

        expected = first.recommendations[0].action if first.recommendations else first.title

        assert top_action(response.findings).startswith(expected)

    def test_top_action_without_decisions(self) -> None:
        assert top_action([]) == 'No priority actions right now'

    def test_key_metrics_include_revenue_projection(self, full_context) -> None:
        response = analyze(full_context, generated_at=GENERATED_AT)
        labels = {m.label: m for m in response.executiveSummary.keyMetrics}

        assert 'Strategic score' in labels
        assert labels['Revenue projection'].status == KpiStatus.DANGER

    def test_describe_currency_projection(self) -> None:
        projection = project_metric('receita_captada', 'Captured revenue', 45000, 100000, 15, 30, True)
        assert describe_projection(projection) == (
            'Captured revenue: projection R$ 90.000,00 vs target R$ 100.000,00, at risk'
        )

    def test_describe_count_projection(self) -> None:
        projection = project_metric('sessoes', 'Sessions', 20000, 60000, 15, 30)
        assert describe_projection(projection) == 'Sessions: projection 40.000 vs target 60.000, off track'

    def test_bottleneck_labels_cover_every_constraint(self) -> None:
        from cognitive_engine.services.templates import BOTTLENECK_LABELS

        assert set(BOTTLENECK_LABELS) == set(BottleneckConstraint)
