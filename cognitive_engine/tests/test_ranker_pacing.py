"""
Tests for the decision ranker and the month-end pacing projector.
"""

import pytest

from cognitive_engine.analyzers.base import make_finding, recommend
from cognitive_engine.models import (
    EffortLevel,
    FindingKind,
    FindingMetrics,
    ImpactLevel,
    PacingScenario,
    Severity,
    Timeframe,
)
from cognitive_engine.services.financial_impact import build_impact
from cognitive_engine.services.pacing import classify_pacing, compute_pacing_projections, project_metric
from cognitive_engine.services.ranker import rank_decisions, score_finding


def _finding(kind, severity, net, confidence=0.5, efforts=(), finding_id=None):
    return make_finding(
        kind,
        severity,
        title=kind.value,
        description='',
        metrics=FindingMetrics(current=1.0, target=1.0),
        impact=build_impact(net, 0.0, confidence, Timeframe.SHORT, 'test'),
        recommendations=[recommend('act', ImpactLevel.MEDIUM, e) for e in efforts],
        finding_id=finding_id,
    )


class TestScoreFinding:

    def test_components(self) -> None:
        finding = _finding(
            FindingKind.EFF_ZERO_CONV, Severity.DANGER, 1000, 0.9,
            efforts=(EffortLevel.LOW, EffortLevel.HIGH),
        )

        components = score_finding(finding)

        assert components.impactBRL == 1000
        assert components.urgency == 3
        assert components.effort == 2.0

    def test_no_recommendations_default_effort(self) -> None:
        finding = _finding(FindingKind.COMP_DIRECT_STRONG, Severity.SUCCESS, 0)
        assert score_finding(finding).effort == 2.0

    def test_negative_impact_uses_magnitude(self) -> None:
        finding = _finding(FindingKind.RISK_BOUNCE, Severity.WARNING, -1800)
        assert score_finding(finding).impactBRL == 1800


class TestRankDecisions:

    def test_highest_score_first(self) -> None:
        small = _finding(FindingKind.EFF_ZERO_CONV, Severity.DANGER, 100, efforts=(EffortLevel.LOW,))
        large = _finding(FindingKind.PG_REVENUE, Severity.WARNING, 10000, efforts=(EffortLevel.MEDIUM,))

        ranked = rank_decisions([small, large])

        assert [r.finding.id for r in ranked] == [large.id, small.id]
        assert [r.rank for r in ranked] == [1, 2]
        # 10000 x 0.5 x 2 / 2
        assert ranked[0].score == 5000.0

    def test_ties_keep_input_order(self) -> None:
        first = _finding(FindingKind.GEO_SCALE_BEST, Severity.SUCCESS, 500, finding_id='first')
        second = _finding(FindingKind.GEO_PAUSE_WORST, Severity.SUCCESS, 500, finding_id='second')

        ranked = rank_decisions([first, second])

        assert ranked[0].score == ranked[1].score
        assert [r.finding.id for r in ranked] == ['first', 'second']

    def test_empty(self) -> None:
        assert rank_decisions([]) == []


class TestProjectMetric:

    @pytest.mark.scenario
    def test_revenue_behind_pace(self) -> None:
        """45000 of 100000 on day 15/30 projects to 90000: 10% short, at risk."""
        projection = project_metric('receita_captada', 'Captured revenue', 45000, 100000, 15, 30, True)

        assert projection.dailyRate == 3000.0
        assert projection.projectedEndOfMonth == 90000.0
        assert projection.gapToTarget == 10000.0
        assert projection.gapPct == 10.0
        assert projection.projectedGapBRL == 10000.0
        assert projection.requiredDailyRate == 3666.67
        assert projection.scenario == PacingScenario.AT_RISK
        assert projection.confidence == pytest.approx(0.65)

    def test_non_currency_has_no_brl_gap(self) -> None:
        projection = project_metric('sessoes', 'Sessions', 20000, 60000, 15, 30)

        assert projection.projectedGapBRL is None
        assert projection.scenario == PacingScenario.OFF_TRACK

    def test_ahead_of_target(self) -> None:
        projection = project_metric('pedidos', 'Orders', 250, 400, 15, 30)

        assert projection.gapToTarget == -100.0
        assert projection.scenario == PacingScenario.ON_TRACK

    def test_last_day_requires_nothing_more(self) -> None:
        projection = project_metric('pedidos', 'Orders', 300, 400, 30, 30)

        assert projection.projectedEndOfMonth == 300.0
        assert projection.requiredDailyRate == 0.0
        assert projection.confidence == 0.9

    @pytest.mark.boundary
    def test_degenerate_inputs(self) -> None:
        assert project_metric('x', 'X', 100, 0, 15, 30) is None
        assert project_metric('x', 'X', 100, 1000, 0, 30) is None

    @pytest.mark.boundary
    @pytest.mark.parametrize('gap_pct,scenario', [
        (-5.0, PacingScenario.ON_TRACK),
        (0.0, PacingScenario.ON_TRACK),
        (15.0, PacingScenario.AT_RISK),
        (15.01, PacingScenario.OFF_TRACK),
    ])
    def test_classification(self, gap_pct, scenario) -> None:
        assert classify_pacing(gap_pct) == scenario


class TestComputePacingProjections:

    def test_every_planned_metric_with_data(self, full_context) -> None:
        from cognitive_engine.services.cube_builder import build_data_cube

        projections = compute_pacing_projections(build_data_cube(full_context))

        assert [p.metric for p in projections] == ['receita_captada', 'investimento', 'sessoes', 'pedidos']

    def test_missing_targets_skipped(self, cube_factory) -> None:
        cube = cube_factory(
            account={'ads': 1000, 'revenue': 5000},
            planning={'receita_captada': 20000},
        )

        projections = compute_pacing_projections(cube)

        assert [p.metric for p in projections] == ['receita_captada']
