"""
Planning-gap analyzer.

Compares the period's actuals against the monthly operating plan. Volume
targets (revenue, spend, sessions) are prorated by elapsed days
(target * dayOfMonth / daysInMonth); rate targets (ROAS, conversion rate,
ticket, CPA) are compared as-is.

Rules (gap = (actual - target) / target * 100):

    | Kind           | Fires when        | Danger when |
    |----------------|-------------------|-------------|
    | pg-revenue     | |gap| >= 10       | gap < -20   |
    | pg-roas        | |gap| >= 15       | gap < -20   |
    | pg-budget      | |pace gap| >= 20  | gap > 40    |
    | pg-conversion  | gap <= -15        | gap < -25   |
    | pg-ticket      | |gap| >= 15       | gap < -20   |
    | pg-sessions    | |gap| >= 15       | gap < -20   |
    | pg-cpa         | gap >= 20         | gap > 40    |

Thresholds are inclusive. Positive gaps on revenue-like metrics surface as
success findings.
"""

from typing import List

from cognitive_engine.analyzers.base import gap_severity, make_finding, recommend
from cognitive_engine.models.enums import (
    EffortLevel,
    FindingKind,
    FindingSource,
    ImpactLevel,
    Severity,
    Timeframe,
)
from cognitive_engine.models.schemas import CognitiveFinding, DataCube, FindingMetrics
from cognitive_engine.services.financial_impact import (
    DEFAULT_AOV,
    build_impact,
    format_brl,
    quantify_conversion_improvement,
    quantify_revenue_gap,
)
from cognitive_engine.services.ratios import pct, safe_div


# =============================================================================
# Thresholds (percent gap)
# =============================================================================

REVENUE_GAP_THRESHOLD: float = 10.0
ROAS_GAP_THRESHOLD: float = 15.0
BUDGET_PACE_THRESHOLD: float = 20.0
BUDGET_PACE_DANGER: float = 40.0
CONVERSION_GAP_THRESHOLD: float = -15.0
CONVERSION_GAP_DANGER: float = -25.0
TICKET_GAP_THRESHOLD: float = 15.0
SESSIONS_GAP_THRESHOLD: float = 15.0
CPA_GAP_THRESHOLD: float = 20.0
CPA_GAP_DANGER: float = 40.0

# Session conversion rate assumed when the funnel has no purchases yet
FALLBACK_CONVERSION_RATE: float = 0.02


def _relative_gap(actual: float, target: float) -> float:
    return pct(actual - target, target)


def analyze_planning_gap(cube: DataCube) -> List[CognitiveFinding]:
    """Findings for every plan metric whose actual drifts from its (prorated) target."""
    account, ga4, plan, meta = cube.account, cube.ga4, cube.planning, cube.meta
    findings: List[CognitiveFinding] = []

    if account is None and ga4 is None:
        return findings

    pace_ratio = meta.pace_ratio
    remaining = meta.days_remaining

    # Captured revenue vs prorated target
    if plan.receita_captada and account is not None:
        target = plan.receita_captada
        actual = account.revenue
        prorated = target * pace_ratio
        gap = _relative_gap(actual, prorated)

        if abs(gap) >= REVENUE_GAP_THRESHOLD:
            daily_needed = safe_div(target - actual, remaining)
            findings.append(make_finding(
                FindingKind.PG_REVENUE,
                gap_severity(gap),
                title=(
                    f"Captured revenue {abs(gap):.0f}% below planned pace" if gap < 0
                    else f"Captured revenue {gap:.0f}% above planned pace"
                ),
                description=(
                    f"Actual {format_brl(actual)} vs expected pace {format_brl(prorated)} "
                    f"(monthly target {format_brl(target)}). "
                    + (f"{format_brl(target - actual)} still needed this month."
                       if gap < 0 else "On track to beat the target.")
                ),
                metrics=FindingMetrics(current=actual, target=target, gap=gap, trendPct=gap),
                impact=quantify_revenue_gap(actual, target, meta.dayOfMonth, meta.daysInMonth),
                recommendations=[recommend(
                    f"Raise captured revenue by {format_brl(daily_needed)}/day to reach the target",
                    ImpactLevel.HIGH, EffortLevel.MEDIUM,
                )] if gap < 0 else [],
                source=FindingSource.PLANNING,
            ))

    # ROAS vs target
    if plan.roas_captado and account is not None and account.ads > 0:
        target = plan.roas_captado
        actual = account.roas
        gap = _relative_gap(actual, target)

        if abs(gap) >= ROAS_GAP_THRESHOLD:
            revenue_gain = max(account.ads * target - account.revenue, 0.0)
            findings.append(make_finding(
                FindingKind.PG_ROAS,
                gap_severity(gap),
                title=(
                    f"ROAS {abs(gap):.0f}% below target" if gap < 0
                    else f"ROAS {gap:.0f}% above target"
                ),
                description=f"Current ROAS {actual:.1f} vs target {target:.1f}.",
                metrics=FindingMetrics(current=actual, target=target, gap=gap),
                impact=build_impact(
                    revenue_gain, 0.0, 0.5, Timeframe.SHORT,
                    f"ROAS {actual:.1f} -> {target:.1f} on {format_brl(account.ads)} spend: "
                    f"+{format_brl(revenue_gain)}",
                ),
                recommendations=[recommend(
                    "Review campaigns with ROAS below 5",
                    ImpactLevel.HIGH, EffortLevel.LOW,
                    steps=[
                        "List campaigns with ROAS < 5",
                        "Pause those spending over R$ 500 with no conversions",
                    ],
                )] if gap < -20 else [],
                source=FindingSource.PLANNING,
            ))

    # Spend pacing
    if plan.investimento_ads and account is not None:
        budget = plan.investimento_ads
        expected = budget * pace_ratio
        pace_gap = _relative_gap(account.ads, expected)

        if abs(pace_gap) >= BUDGET_PACE_THRESHOLD:
            if pace_gap > 0:
                overspend = max(account.ads - expected, 0.0)
                impact = build_impact(
                    0.0, overspend, 0.7, Timeframe.IMMEDIATE,
                    f"Overspend of {format_brl(overspend)} in the period",
                )
                action = "Adjust daily budgets to stay within the monthly plan"
            else:
                underspend = max(expected - account.ads, 0.0)
                impact = build_impact(
                    underspend * account.roas, 0.0, 0.5, Timeframe.SHORT,
                    f"+{format_brl(underspend)} spend x ROAS {account.roas:.1f} "
                    f"= +{format_brl(underspend * account.roas)}",
                )
                action = "Spend below plan may be capping revenue; review budget distribution"

            if pace_gap > BUDGET_PACE_DANGER:
                severity = Severity.DANGER
            elif pace_gap >= BUDGET_PACE_THRESHOLD:
                severity = Severity.WARNING
            else:
                severity = Severity.SUCCESS

            findings.append(make_finding(
                FindingKind.PG_BUDGET,
                severity,
                title=(
                    f"Ad spend {pace_gap:.0f}% above planned pace" if pace_gap > 0
                    else f"Ad spend {abs(pace_gap):.0f}% below planned pace"
                ),
                description=(
                    f"Spend {format_brl(account.ads)} vs expected {format_brl(expected)} "
                    f"by day {meta.dayOfMonth}. Monthly budget: {format_brl(budget)}."
                ),
                metrics=FindingMetrics(current=account.ads, target=budget, gap=pace_gap),
                impact=impact,
                recommendations=[recommend(action, ImpactLevel.MEDIUM, EffortLevel.LOW)],
                source=FindingSource.PLANNING,
            ))

    # Session conversion rate vs target
    if plan.taxa_conversao_captado and ga4 is not None and ga4.sessions > 0:
        target = plan.taxa_conversao_captado
        actual = ga4.conversionRate
        gap = _relative_gap(actual, target)

        if gap <= CONVERSION_GAP_THRESHOLD:
            findings.append(make_finding(
                FindingKind.PG_CONVERSION,
                Severity.DANGER if gap < CONVERSION_GAP_DANGER else Severity.WARNING,
                title=f"Conversion rate {abs(gap):.0f}% below plan",
                description=f"Conversion {actual * 100:.2f}% vs planned {target * 100:.2f}%.",
                metrics=FindingMetrics(current=actual, target=target, gap=gap),
                impact=quantify_conversion_improvement(
                    ga4, actual, target, meta.dayOfMonth, meta.daysInMonth
                ),
                recommendations=[recommend(
                    "Investigate conversion funnel bottlenecks",
                    ImpactLevel.HIGH, EffortLevel.MEDIUM,
                    steps=[
                        "Check cart abandonment rate",
                        "Audit the checkout page",
                        "Review pricing against competitors",
                    ],
                )],
                source=FindingSource.PLANNING,
            ))

    # Average ticket vs target
    if plan.ticket_medio_captado and account is not None and account.conversions > 0:
        target = plan.ticket_medio_captado
        actual = account.revenue / account.conversions
        gap = _relative_gap(actual, target)

        if abs(gap) >= TICKET_GAP_THRESHOLD:
            if gap < 0:
                impact = build_impact(
                    (target - actual) * account.conversions, 0.0, 0.4, Timeframe.MEDIUM,
                    f"+{format_brl(target - actual)}/order x {account.conversions:.0f} orders",
                )
            else:
                impact = build_impact(0.0, 0.0, 0.7, Timeframe.MEDIUM, "Ticket above plan")

            findings.append(make_finding(
                FindingKind.PG_TICKET,
                gap_severity(gap),
                title=(
                    f"Average ticket {abs(gap):.0f}% below plan" if gap < 0
                    else f"Average ticket {gap:.0f}% above plan"
                ),
                description=f"Ticket {format_brl(actual)} vs planned {format_brl(target)}.",
                metrics=FindingMetrics(current=actual, target=target, gap=gap),
                impact=impact,
                recommendations=[recommend(
                    "Promote higher-value SKUs or bundles to lift the ticket",
                    ImpactLevel.MEDIUM, EffortLevel.MEDIUM,
                    steps=["Review the product mix sold", "Create bundles", "Revisit upsell strategy"],
                )] if gap < 0 else [],
                source=FindingSource.PLANNING,
            ))

    # Sessions vs prorated target
    if plan.sessoes_totais and ga4 is not None:
        target = plan.sessoes_totais
        actual = ga4.sessions
        prorated = target * pace_ratio
        gap = _relative_gap(actual, prorated)

        if abs(gap) >= SESSIONS_GAP_THRESHOLD:
            if gap < 0:
                conv_rate = ga4.conversionRate if ga4.purchases > 0 else FALLBACK_CONVERSION_RATE
                aov = ga4.avgOrderValue or DEFAULT_AOV
                missing = max(target - actual, 0.0)
                impact = build_impact(
                    missing * conv_rate * aov, 0.0, 0.35, Timeframe.MEDIUM,
                    f"{missing:,.0f} sessions x {conv_rate * 100:.2f}% conv x {format_brl(aov)}",
                )
            else:
                impact = build_impact(0.0, 0.0, 0.7, Timeframe.MEDIUM, "Sessions above planned pace")

            findings.append(make_finding(
                FindingKind.PG_SESSIONS,
                gap_severity(gap),
                title=(
                    f"Sessions {abs(gap):.0f}% below planned pace" if gap < 0
                    else f"Sessions {gap:.0f}% above planned pace"
                ),
                description=(
                    f"Sessions {actual:,.0f} vs expected {prorated:,.0f} "
                    f"(monthly target {target:,.0f})."
                ),
                metrics=FindingMetrics(current=actual, target=target, gap=gap),
                impact=impact,
                recommendations=[recommend(
                    "Increase media investment or improve CTR to drive more sessions",
                    ImpactLevel.HIGH, EffortLevel.MEDIUM,
                )] if gap < 0 else [],
                source=FindingSource.PLANNING,
            ))

    # CPA vs target
    if plan.cpa_geral and account is not None and account.conversions > 0:
        target = plan.cpa_geral
        actual = account.cpa
        gap = _relative_gap(actual, target)

        if gap >= CPA_GAP_THRESHOLD:
            saving = (actual - target) * account.conversions
            findings.append(make_finding(
                FindingKind.PG_CPA,
                Severity.DANGER if gap > CPA_GAP_DANGER else Severity.WARNING,
                title=f"CPA {gap:.0f}% above plan",
                description=f"CPA {format_brl(actual)} vs planned {format_brl(target)}.",
                metrics=FindingMetrics(current=actual, target=target, gap=gap),
                impact=build_impact(
                    0.0, saving, 0.5, Timeframe.SHORT,
                    f"({format_brl(actual)} - {format_brl(target)}) x {account.conversions:.0f} "
                    f"conversions = {format_brl(saving)}",
                ),
                recommendations=[recommend(
                    f"Bring CPA from {format_brl(actual)} down to {format_brl(target)}",
                    ImpactLevel.HIGH, EffortLevel.MEDIUM,
                    steps=[
                        "Pause campaigns with CPA above R$ 100",
                        "Tune bids on mid-performing campaigns",
                        "Improve ad quality",
                    ],
                )],
                source=FindingSource.PLANNING,
            ))

    return findings
