"""
Executive summary templates.

Short, fixed-structure strings built from the mode, the bottleneck and the
ranked findings. No free-form prose generation happens here.
"""

from typing import Dict, List

from cognitive_engine.models.enums import (
    BottleneckConstraint,
    KpiStatus,
    PacingScenario,
    Severity,
    StrategicMode,
)
from cognitive_engine.models.schemas import (
    Bottleneck,
    ExecutiveSummary,
    KeyMetric,
    ModeAssessment,
    PacingProjection,
    RankedDecision,
)
from cognitive_engine.services.financial_impact import format_brl


MODE_LABELS: Dict[StrategicMode, str] = {
    StrategicMode.ESCALAR: "Scale",
    StrategicMode.OTIMIZAR: "Optimize",
    StrategicMode.PROTEGER: "Protect",
    StrategicMode.REESTRUTURAR: "Restructure",
}

BOTTLENECK_LABELS: Dict[BottleneckConstraint, str] = {
    BottleneckConstraint.TRAFFIC: "Traffic",
    BottleneckConstraint.CONVERSION: "Conversion",
    BottleneckConstraint.AOV: "Average order value",
    BottleneckConstraint.MARGIN: "Margin",
    BottleneckConstraint.BUDGET: "Budget",
}

SCENARIO_STATUS: Dict[PacingScenario, KpiStatus] = {
    PacingScenario.ON_TRACK: KpiStatus.OK,
    PacingScenario.AT_RISK: KpiStatus.WARN,
    PacingScenario.OFF_TRACK: KpiStatus.DANGER,
}

SCENARIO_LABELS: Dict[PacingScenario, str] = {
    PacingScenario.ON_TRACK: "on track",
    PacingScenario.AT_RISK: "at risk",
    PacingScenario.OFF_TRACK: "off track",
}


def headline(mode: ModeAssessment, bottleneck: Bottleneck) -> str:
    return (
        f"Mode: {MODE_LABELS[mode.mode]} | "
        f"Main bottleneck: {BOTTLENECK_LABELS[bottleneck.constraint]}"
    )


def top_action(decisions: List[RankedDecision]) -> str:
    if not decisions:
        return "No priority actions right now"

    finding = decisions[0].finding
    action = finding.recommendations[0].action if finding.recommendations else finding.title
    net = finding.financialImpact.netImpact
    if net > 0:
        return f"{action} (estimated impact: {format_brl(net)}/month)"
    return action


def score_status(score: float) -> KpiStatus:
    if score >= 75:
        return KpiStatus.OK
    if score >= 50:
        return KpiStatus.WARN
    return KpiStatus.DANGER


def key_metrics(
    mode: ModeAssessment,
    decisions: List[RankedDecision],
    pacing: List[PacingProjection],
) -> List[KeyMetric]:
    metrics = [KeyMetric(
        label="Strategic score",
        value=f"{mode.score:.0f}/100",
        status=score_status(mode.score),
    )]

    revenue = next((p for p in pacing if p.metric == "receita_captada"), None)
    if revenue is not None:
        metrics.append(KeyMetric(
            label="Revenue projection",
            value=format_brl(revenue.projectedEndOfMonth),
            status=SCENARIO_STATUS[revenue.scenario],
        ))

    opportunity = sum(
        d.finding.financialImpact.netImpact for d in decisions
        if d.finding.financialImpact.netImpact > 0
    )
    if opportunity > 0:
        metrics.append(KeyMetric(label="Total opportunity", value=format_brl(opportunity), status=KpiStatus.OK))

    risk = sum(
        abs(d.finding.financialImpact.netImpact) for d in decisions
        if d.finding.severity == Severity.DANGER
    )
    if risk > 0:
        metrics.append(KeyMetric(label="Identified risk", value=format_brl(risk), status=KpiStatus.DANGER))

    return metrics


def executive_summary(
    mode: ModeAssessment,
    bottleneck: Bottleneck,
    decisions: List[RankedDecision],
    pacing: List[PacingProjection],
) -> ExecutiveSummary:
    return ExecutiveSummary(
        headline=headline(mode, bottleneck),
        topAction=top_action(decisions),
        keyMetrics=key_metrics(mode, decisions, pacing),
    )


def describe_projection(projection: PacingProjection) -> str:
    """One-line text of a pacing projection, money formatted for currency metrics."""
    if projection.projectedGapBRL is not None:
        projected = format_brl(projection.projectedEndOfMonth)
        target = format_brl(projection.target)
    else:
        projected = f"{projection.projectedEndOfMonth:,.0f}".replace(",", ".")
        target = f"{projection.target:,.0f}".replace(",", ".")
    return (
        f"{projection.label}: projection {projected} vs target {target}, "
        f"{SCENARIO_LABELS[projection.scenario]}"
    )
