"""
Cognitive Engine orchestrator.

Runs the full pipeline for one tenant and period:

    context -> DataCube -> (trends) -> analyzers -> correlation
            -> mode, bottleneck, budget plan -> ranking -> pacing
            -> health score, executive summary, legacy projection

analyze() is synchronous and pure: given the same context and trends it
returns the same response (generatedAt aside). analyze_with_trends() adds
the only I/O, the concurrent historical snapshot fetch, and hands the
enriched cube to analyze_cube().
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from cognitive_engine.analyzers.registry import run_analyzers
from cognitive_engine.core.config import Settings
from cognitive_engine.models.enums import EffortLevel, ImpactLevel, Severity
from cognitive_engine.models.schemas import (
    AnalysisContext,
    CognitiveFinding,
    CognitiveResponse,
    CubeTrends,
    DataCube,
    IntelligenceSummary,
    LegacyInsight,
    LegacyIntelligenceResponse,
    Segmentation,
)
from cognitive_engine.services.bottleneck import detect_bottleneck
from cognitive_engine.services.budget_optimizer import DEFAULT_MIN_ROAS, optimize_budget
from cognitive_engine.services.correlation import correlate_findings
from cognitive_engine.services.cube_builder import attach_trends, build_data_cube
from cognitive_engine.services.mode_detector import detect_strategic_mode
from cognitive_engine.services.pacing import compute_pacing_projections
from cognitive_engine.services.ranker import rank_decisions
from cognitive_engine.services.snapshot_store import SnapshotFetcher
from cognitive_engine.services.templates import executive_summary
from cognitive_engine.services.trend_analyzer import collect_trends, select_trend_skus


logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

DEFAULT_MAX_FINDINGS: int = 15
DEFAULT_MAX_INSIGHTS: int = 12
MAX_QUICK_WINS: int = 3

# Health score adjustments
MAX_RISK_PENALTY: float = 40.0
SUCCESS_BONUS: float = 3.0
MAX_SUCCESS_BONUS: float = 12.0


# =============================================================================
# Health Score
# =============================================================================

def compute_health_score(
    findings: List[CognitiveFinding],
    mode_score: float,
    account_revenue: float,
) -> int:
    """
    Health score weighted by financial exposure.

    Starts from the mode score, subtracts the |netImpact| of warning and
    danger findings as a percentage of revenue (at most 40 points) and adds
    3 points per success finding (at most 12). Clamped to [0, 100].
    """
    exposure = sum(
        abs(f.financialImpact.netImpact) for f in findings if f.severity != Severity.SUCCESS
    )
    penalty = min(exposure / max(account_revenue, 1.0) * 100, MAX_RISK_PENALTY)
    successes = sum(1 for f in findings if f.severity == Severity.SUCCESS)
    bonus = min(successes * SUCCESS_BONUS, MAX_SUCCESS_BONUS)

    return int(max(0.0, min(100.0, round(mode_score - penalty + bonus))))


# =============================================================================
# Legacy Projection
# =============================================================================

def to_legacy_insight(finding: CognitiveFinding) -> LegacyInsight:
    """Strip impact and correlation data from a finding."""
    return LegacyInsight(
        id=finding.id,
        category=finding.category,
        severity=finding.severity,
        title=finding.title,
        description=finding.description,
        metrics=finding.metrics,
        recommendations=finding.recommendations,
        source=finding.source,
    )


def is_quick_win(insight: LegacyInsight) -> bool:
    return any(
        r.effort == EffortLevel.LOW and r.impact != ImpactLevel.LOW
        for r in insight.recommendations
    )


def build_summary(insights: List[LegacyInsight], health_score: int) -> IntelligenceSummary:
    top_priority = next(
        (i for i in insights if i.severity in (Severity.DANGER, Severity.WARNING)),
        None,
    )
    quick_wins = [i for i in insights if is_quick_win(i)][:MAX_QUICK_WINS]
    return IntelligenceSummary(healthScore=health_score, topPriority=top_priority, quickWins=quick_wins)


def to_legacy(response: CognitiveResponse) -> LegacyIntelligenceResponse:
    return LegacyIntelligenceResponse(
        insights=response.insights,
        summary=response.summary,
        generatedAt=response.generatedAt,
    )


# =============================================================================
# Pipeline
# =============================================================================

def analyze(
    context: AnalysisContext,
    trends: Optional[CubeTrends] = None,
    min_roas: float = DEFAULT_MIN_ROAS,
    max_findings: int = DEFAULT_MAX_FINDINGS,
    max_insights: int = DEFAULT_MAX_INSIGHTS,
    generated_at: Optional[datetime] = None,
) -> CognitiveResponse:
    """
    Run the cognitive engine over already-fetched metrics.

    Args:
        context: Metric slices for one tenant and period
        trends: Historical trends to attach to the cube, if any
        min_roas: Minimum ROAS parameter of the budget optimizer
        max_findings: Ranked findings returned
        max_insights: Findings exposed in the legacy insights list
        generated_at: Response timestamp, defaults to now (UTC)

    Returns:
        CognitiveResponse with the ranked findings, diagnostics and the
        legacy projection
    """
    cube = attach_trends(build_data_cube(context), trends)
    return analyze_cube(
        cube,
        context.tenantId,
        min_roas=min_roas,
        max_findings=max_findings,
        max_insights=max_insights,
        generated_at=generated_at,
    )


def analyze_cube(
    cube: DataCube,
    tenant_id: str,
    min_roas: float = DEFAULT_MIN_ROAS,
    max_findings: int = DEFAULT_MAX_FINDINGS,
    max_insights: int = DEFAULT_MAX_INSIGHTS,
    generated_at: Optional[datetime] = None,
) -> CognitiveResponse:
    """Run the pipeline over a cube that is already built (and trend-enriched)."""
    findings = correlate_findings(run_analyzers(cube))

    mode = detect_strategic_mode(cube)
    bottleneck = detect_bottleneck(cube)
    budget_plan = optimize_budget(cube, min_roas=min_roas)

    ranked = rank_decisions(findings)
    pacing = compute_pacing_projections(cube)

    health_score = compute_health_score(
        findings, mode.score, cube.account.revenue if cube.account else 0.0
    )
    summary_block = executive_summary(mode, bottleneck, ranked, pacing)

    insights = [to_legacy_insight(d.finding) for d in ranked[:max_insights]]

    segmentation = None
    if cube.devices or cube.demographics or cube.geographic:
        segmentation = Segmentation(
            devices=cube.devices,
            demographics=cube.demographics,
            geographic=cube.geographic,
        )

    logger.info(
        f"Cognitive analysis for tenant={tenant_id}: {len(findings)} findings, "
        f"mode={mode.mode.value} ({mode.score:.1f}), bottleneck={bottleneck.constraint.value}, "
        f"health={health_score}, budget_plan={'yes' if budget_plan else 'no'}"
    )

    return CognitiveResponse(
        mode=mode,
        bottleneck=bottleneck,
        healthScore=health_score,
        findings=ranked[:max_findings],
        pacingProjections=pacing,
        executiveSummary=summary_block,
        budgetPlan=budget_plan,
        accountTrend=cube.trends.account if cube.trends else None,
        segmentation=segmentation,
        insights=insights,
        summary=build_summary(insights, health_score),
        generatedAt=generated_at or datetime.now(timezone.utc),
    )


async def analyze_with_trends(
    context: AnalysisContext,
    fetch: SnapshotFetcher,
    settings: Settings,
) -> CognitiveResponse:
    """
    Enrich the run with historical trends, then analyze.

    The account and the top-spend SKUs are fetched concurrently; failed
    scopes simply carry no trend.
    """
    cube = build_data_cube(context)
    sku_ids = select_trend_skus(cube.skus, settings.trend_top_skus)
    trends = await collect_trends(
        context.tenantId,
        sku_ids,
        fetch,
        days=settings.snapshot_history_days,
    )
    return analyze_cube(
        attach_trends(cube, trends),
        context.tenantId,
        min_roas=settings.budget_min_roas,
        max_findings=settings.max_ranked_findings,
        max_insights=settings.max_legacy_insights,
    )
