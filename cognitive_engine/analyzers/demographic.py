"""
Demographic analyzer: which age range and gender convert best.

Undetermined segments stay in the cube for display but are excluded here,
since no bid adjustment can target them.
"""

from typing import List

from cognitive_engine.analyzers.base import make_finding, recommend
from cognitive_engine.models.enums import (
    DemographicType,
    EffortLevel,
    FindingKind,
    ImpactLevel,
    Severity,
)
from cognitive_engine.models.schemas import CognitiveFinding, DataCube, DemographicSlice, FindingMetrics
from cognitive_engine.services.financial_impact import (
    format_brl,
    quantify_budget_reallocation,
    quantify_underinvestment,
    quantify_wasted_spend,
)
from cognitive_engine.services.ratios import mean, safe_div


UNDETERMINED_SEGMENTS = frozenset({"AGE_RANGE_UNDETERMINED", "UNDETERMINED"})

AGE_MIN_COST: float = 50.0
AGE_CPA_OUTLIER: float = 2.0
AGE_BEST_MIN_ROAS: float = 7.0
AGE_BEST_MAX_SHARE: float = 30.0

GENDER_MIN_COST: float = 100.0
GENDER_ROAS_RATIO: float = 0.5
GENDER_SHIFT: float = 0.2


def _targetable(cube: DataCube, dimension: DemographicType) -> List[DemographicSlice]:
    return [
        d for d in cube.demographics
        if d.type == dimension and d.segment not in UNDETERMINED_SEGMENTS
    ]


def analyze_demographics(cube: DataCube) -> List[CognitiveFinding]:
    findings: List[CognitiveFinding] = []
    if not cube.demographics:
        return findings

    ages = _targetable(cube, DemographicType.AGE)
    genders = _targetable(cube, DemographicType.GENDER)

    # Age range acquiring customers at more than twice the average CPA
    with_spend = [a for a in ages if a.cost > AGE_MIN_COST]
    if len(with_spend) >= 2:
        avg_cpa = mean(a.cpa for a in with_spend)
        outliers = [a for a in with_spend if a.cpa > avg_cpa * AGE_CPA_OUTLIER and a.conversions > 0]
        if outliers:
            worst = max(outliers, key=lambda a: a.cpa)
            wasted = worst.cost * safe_div(worst.cpa - avg_cpa, worst.cpa)
            findings.append(make_finding(
                FindingKind.DEMO_AGE_HIGH_CPA,
                Severity.WARNING,
                title=f"Age {worst.label} with CPA {format_brl(worst.cpa)} (average {format_brl(avg_cpa)})",
                description=(
                    f"CPA is {safe_div(worst.cpa, avg_cpa):.1f}x the average for age {worst.label}. "
                    "Consider investing less in this audience."
                ),
                metrics=FindingMetrics(current=worst.cpa, target=avg_cpa, entityName=worst.label),
                impact=quantify_wasted_spend(wasted, f"spend on age {worst.label}"),
                recommendations=[recommend(
                    f"Lower bids for age {worst.label} by 30-50%",
                    ImpactLevel.MEDIUM, EffortLevel.LOW,
                    steps=[f"Set the {worst.label} age bid adjustment to -40%", "Watch CPA for 7 days"],
                )],
            ))

    # Best-returning age range with a small share of revenue
    converting = [a for a in ages if a.conversions > 0 and a.cost > AGE_MIN_COST]
    if len(converting) >= 2:
        best = max(converting, key=lambda a: a.roas)
        avg_spend = mean(a.cost for a in converting)
        if best.roas > AGE_BEST_MIN_ROAS and best.revenueShare < AGE_BEST_MAX_SHARE:
            findings.append(make_finding(
                FindingKind.DEMO_AGE_BEST,
                Severity.SUCCESS,
                title=(
                    f"Age {best.label} returns ROAS {best.roas:.1f} with only "
                    f"{best.revenueShare:.0f}% of revenue"
                ),
                description="Best audience by return. More investment here can add revenue.",
                metrics=FindingMetrics(
                    current=best.revenueShare, target=AGE_BEST_MAX_SHARE, entityName=best.label,
                ),
                impact=quantify_underinvestment(best.cost, avg_spend, best.roas),
                recommendations=[recommend(
                    f"Raise bids for age {best.label} by 20-30%", ImpactLevel.HIGH, EffortLevel.LOW,
                )],
            ))

    # ROAS gap between genders
    converting = sorted(
        (g for g in genders if g.conversions > 0 and g.cost > GENDER_MIN_COST),
        key=lambda g: -g.roas,
    )
    if len(converting) >= 2:
        best, worst = converting[0], converting[-1]
        if best.roas > 0 and worst.roas / best.roas < GENDER_ROAS_RATIO:
            findings.append(make_finding(
                FindingKind.DEMO_GENDER_GAP,
                Severity.WARNING,
                title=f"{best.label} returns ROAS {best.roas:.1f} vs {worst.label} at {worst.roas:.1f}",
                description=(
                    f"Return differs sharply by gender. Moving budget from {worst.label} "
                    f"to {best.label} can improve efficiency."
                ),
                metrics=FindingMetrics(
                    current=worst.roas, target=best.roas, entityName=f"{worst.label} -> {best.label}",
                ),
                impact=quantify_budget_reallocation(worst.cost * GENDER_SHIFT, worst.roas, best.roas),
                recommendations=[recommend(
                    f"Move 20% of the {worst.label} budget to {best.label}",
                    ImpactLevel.MEDIUM, EffortLevel.LOW,
                )],
            ))

    return findings
