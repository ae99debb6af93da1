"""
Geographic analyzer: where to scale and where to cut.

Geographic slices arrive sorted by revenue, largest first.
"""

from typing import List

from cognitive_engine.analyzers.base import make_finding, recommend
from cognitive_engine.models.enums import EffortLevel, FindingKind, ImpactLevel, Severity
from cognitive_engine.models.schemas import CognitiveFinding, DataCube, FindingMetrics
from cognitive_engine.services.financial_impact import (
    format_brl,
    quantify_concentration_risk,
    quantify_underinvestment,
    quantify_wasted_spend,
)
from cognitive_engine.services.ratios import mean


MIN_REGION_COST: float = 50.0

TOP_REGION_MAX_SHARE: float = 60.0
TOP_REGION_TARGET_SHARE: float = 50.0

SCALE_MIN_ROAS: float = 7.0
SCALE_MAX_SHARE: float = 20.0

PAUSE_MAX_ROAS: float = 3.0
PAUSE_MIN_COST: float = 200.0
PAUSE_TARGET_ROAS: float = 5.0
PAUSE_CUT: float = 0.5


def analyze_geographic(cube: DataCube) -> List[CognitiveFinding]:
    findings: List[CognitiveFinding] = []

    regions = [g for g in cube.geographic if g.cost > MIN_REGION_COST]
    if len(regions) < 2:
        return findings

    total_revenue = sum(r.revenue for r in regions)
    avg_spend = mean(r.cost for r in regions)

    top = regions[0]
    if total_revenue > 0 and top.revenueShare > TOP_REGION_MAX_SHARE:
        findings.append(make_finding(
            FindingKind.GEO_TOP_REGION,
            Severity.WARNING,
            title=f"{top.region} holds {top.revenueShare:.0f}% of revenue",
            description="Heavy geographic dependency. A downturn in this region would hit the whole operation.",
            metrics=FindingMetrics(
                current=top.revenueShare, target=TOP_REGION_TARGET_SHARE, entityName=top.region,
            ),
            impact=quantify_concentration_risk(top.revenue, total_revenue),
            recommendations=[recommend(
                "Spread investment to other regions with good ROAS",
                ImpactLevel.MEDIUM, EffortLevel.MEDIUM,
                steps=[
                    "Raise budget in secondary regions with ROAS > 5",
                    "Create geo-targeted campaigns for underserved regions",
                ],
            )],
        ))

    scalable = [
        r for r in regions
        if r.roas > SCALE_MIN_ROAS and r.revenueShare < SCALE_MAX_SHARE and r.conversions > 0
    ]
    if scalable:
        best = max(scalable, key=lambda r: r.roas)
        findings.append(make_finding(
            FindingKind.GEO_SCALE_BEST,
            Severity.SUCCESS,
            title=f"{best.region} returns ROAS {best.roas:.1f} with only {best.revenueShare:.0f}% of revenue",
            description="Excellent return on little investment. Scaling can add revenue efficiently.",
            metrics=FindingMetrics(current=best.revenueShare, target=SCALE_MAX_SHARE, entityName=best.region),
            impact=quantify_underinvestment(best.cost, avg_spend, best.roas),
            recommendations=[recommend(
                f"Raise investment in {best.region} by 30-50%", ImpactLevel.HIGH, EffortLevel.LOW,
            )],
        ))

    wasteful = [r for r in regions if r.roas < PAUSE_MAX_ROAS and r.cost > PAUSE_MIN_COST]
    if wasteful:
        worst = min(wasteful, key=lambda r: r.roas)
        findings.append(make_finding(
            FindingKind.GEO_PAUSE_WORST,
            Severity.WARNING,
            title=f"{worst.region} spending {format_brl(worst.cost)} at ROAS {worst.roas:.1f}",
            description="Low-return region. Cut investment and move it to more efficient regions.",
            metrics=FindingMetrics(current=worst.roas, target=PAUSE_TARGET_ROAS, entityName=worst.region),
            impact=quantify_wasted_spend(worst.cost * PAUSE_CUT, f"spend in {worst.region}"),
            recommendations=[recommend(
                f"Cut investment in {worst.region} by 50%", ImpactLevel.MEDIUM, EffortLevel.LOW,
            )],
        ))

    return findings
