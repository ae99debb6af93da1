"""
Opportunity analyzer: SKUs and budgets with room to grow.
"""

from typing import List

from cognitive_engine.analyzers.base import make_finding, recommend
from cognitive_engine.models.enums import (
    EffortLevel,
    FindingKind,
    ImpactLevel,
    Severity,
    SkuStatus,
    Timeframe,
)
from cognitive_engine.models.schemas import CognitiveFinding, DataCube, FindingMetrics
from cognitive_engine.services.financial_impact import (
    UNDERINVESTMENT_EFFICIENCY,
    build_impact,
    format_brl,
)
from cognitive_engine.services.ratios import safe_div


STAR_MIN_ROAS: float = 8.0
STAR_MAX_SPEND_RATIO: float = 0.5
STAR_MIN_CONVERSIONS: float = 2.0

MAX_SCALABLE_SKUS: int = 5
SCALABLE_REVENUE_UPLIFT: float = 0.2

GROWTH_MIN_ROAS: float = 8.0
GROWTH_MIN_SPEND: float = 1000.0
GROWTH_BUDGET_INCREASE: float = 0.2
# Revenue retained per extra real once diminishing returns kick in
GROWTH_RETURN_FACTOR: float = 0.7


def analyze_opportunities(cube: DataCube) -> List[CognitiveFinding]:
    account, skus = cube.account, cube.skus
    findings: List[CognitiveFinding] = []

    if account is None or not skus:
        return findings

    # High-ROAS SKUs running on a fraction of the average budget
    total_ads = sum(s.ads for s in skus)
    avg_spend = safe_div(total_ads, max(sum(1 for s in skus if s.ads > 0), 1))

    stars = sorted(
        (
            s for s in skus
            if s.roas > STAR_MIN_ROAS
            and 0 < s.ads < avg_spend * STAR_MAX_SPEND_RATIO
            and s.conversions >= STAR_MIN_CONVERSIONS
        ),
        key=lambda s: -s.roas,
    )
    if stars:
        top = stars[0]
        increases = [max(min(avg_spend - s.ads, s.ads * 2), 0.0) for s in stars]
        total_gain = sum(inc * s.roas * UNDERINVESTMENT_EFFICIENCY for inc, s in zip(increases, stars))
        findings.append(make_finding(
            FindingKind.OPP_UNDERINVESTED,
            Severity.SUCCESS,
            title=f"{len(stars)} SKU(s) with high ROAS and low investment",
            description=(
                f"{top.nome} returns ROAS {top.roas:.1f} on only {format_brl(top.ads)} "
                f"(average: {format_brl(avg_spend)})."
            ),
            metrics=FindingMetrics(current=top.roas, entityName=top.nome),
            impact=build_impact(
                total_gain, 0.0, 0.4, Timeframe.SHORT,
                f"{len(stars)} underinvested SKU(s): up to +{format_brl(total_gain)} revenue",
            ),
            recommendations=[recommend(
                f'Raise the budget of "{top.nome}" (ROAS {top.roas:.1f})',
                ImpactLevel.HIGH, EffortLevel.LOW,
                steps=[f'Scale "{s.nome}": ROAS {s.roas:.1f}, spend {format_brl(s.ads)}' for s in stars[:3]],
            )],
        ))

    # SKUs already tagged for scaling
    scalable = [s for s in skus if s.status == SkuStatus.ESCALAR]
    if 0 < len(scalable) <= MAX_SCALABLE_SKUS:
        revenue = sum(s.revenue for s in scalable)
        gain = revenue * SCALABLE_REVENUE_UPLIFT
        findings.append(make_finding(
            FindingKind.OPP_SCALABLE,
            Severity.SUCCESS,
            title=f"{len(scalable)} SKU(s) ready to scale",
            description=(
                f"Healthy ROAS, margin and stock: {', '.join(s.nome or s.sku for s in scalable)}. "
                f"Combined revenue {format_brl(revenue)}."
            ),
            metrics=FindingMetrics(current=revenue),
            impact=build_impact(
                gain, 0.0, 0.45, Timeframe.SHORT,
                f"+{SCALABLE_REVENUE_UPLIFT:.0%} on {format_brl(revenue)} = +{format_brl(gain)}",
            ),
            recommendations=[recommend(
                "Increase investment in SKUs tagged for scaling", ImpactLevel.HIGH, EffortLevel.LOW,
            )],
        ))

    # Account returning well enough to absorb more budget
    if account.roas > GROWTH_MIN_ROAS and account.ads > GROWTH_MIN_SPEND:
        increase = account.ads * GROWTH_BUDGET_INCREASE
        gain = increase * account.roas * GROWTH_RETURN_FACTOR
        findings.append(make_finding(
            FindingKind.OPP_GROWTH,
            Severity.SUCCESS,
            title=f"Account ROAS of {account.roas:.1f} leaves room to grow",
            description=(
                "ROAS above 8 supports more investment at a healthy return. "
                "Consider testing new audiences or creatives."
            ),
            metrics=FindingMetrics(current=account.roas),
            impact=build_impact(
                gain, 0.0, 0.4, Timeframe.SHORT,
                f"+{GROWTH_BUDGET_INCREASE:.0%} budget ({format_brl(increase)}) x ROAS {account.roas:.1f} "
                f"x {GROWTH_RETURN_FACTOR:.0%} = +{format_brl(gain)}",
            ),
            recommendations=[recommend(
                "Test a 20% increase in total budget", ImpactLevel.MEDIUM, EffortLevel.LOW,
            )],
        ))

    return findings
