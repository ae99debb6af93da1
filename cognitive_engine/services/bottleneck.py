"""
Bottleneck Detector.

Decomposes revenue as Sessions x Conversion Rate x AOV, simulates a +10%
improvement in each factor and returns the factor with the largest revenue
delta. Margin (gross margin after ads below 25%) and budget (spend trailing
the paced plan by more than 20%) join as extra candidates when they apply.

Candidates tie on equal impact (the three funnel factors are symmetric);
ties resolve to the earliest candidate: traffic, conversion, aov, margin,
budget.
"""

import logging
from dataclasses import dataclass
from typing import List

from cognitive_engine.models.enums import BottleneckConstraint, Timeframe
from cognitive_engine.models.schemas import Bottleneck, DataCube, FinancialImpact
from cognitive_engine.services.financial_impact import build_impact, format_brl
from cognitive_engine.services.ratios import pct, round2, safe_div


logger = logging.getLogger(__name__)


SIMULATED_LIFT: float = 0.1
MARGIN_FLOOR_PCT: float = 25.0
MARGIN_IMPROVEMENT: float = 0.05
BUDGET_PACE_FLOOR: float = 0.8
# Revenue reference when no plan target exists
UNPLANNED_TARGET_MULTIPLIER: float = 1.2


@dataclass
class _Candidate:
    constraint: BottleneckConstraint
    label: str
    impact: float
    unlock_action: str


def insufficient_data_bottleneck() -> Bottleneck:
    """Placeholder used when account or session data is missing. Not actionable."""
    return Bottleneck(
        constraint=BottleneckConstraint.TRAFFIC,
        severity=0.5,
        explanation="Insufficient data for bottleneck analysis",
        financialImpact=FinancialImpact(
            estimatedRevenueGain=0.0,
            estimatedCostSaving=0.0,
            netImpact=0.0,
            confidence=0.2,
            timeframe=Timeframe.MEDIUM,
            calculation="N/A",
        ),
        unlockAction="Collect more data",
        hasSufficientData=False,
    )


def _candidates(cube: DataCube) -> List[_Candidate]:
    account, ga4, planning, meta = cube.account, cube.ga4, cube.planning, cube.meta

    sessions = ga4.sessions
    conv_rate = ga4.conversionRate
    aov = ga4.avgOrderValue or safe_div(account.revenue, max(account.conversions, 1.0))

    candidates = [
        _Candidate(
            BottleneckConstraint.TRAFFIC, "Sessions",
            round2(sessions * SIMULATED_LIFT * conv_rate * aov),
            "Increase media investment or improve CTR to bring more traffic",
        ),
        _Candidate(
            BottleneckConstraint.CONVERSION, "Conversion rate",
            round2(sessions * conv_rate * SIMULATED_LIFT * aov),
            "Optimize the conversion funnel: landing pages, checkout, UX",
        ),
        _Candidate(
            BottleneckConstraint.AOV, "Average order value",
            round2(sessions * conv_rate * aov * SIMULATED_LIFT),
            "Push upsell, cross-sell and bundles to lift the ticket",
        ),
    ]

    if account.ads > 0 and account.revenue > 0:
        margin = pct(account.revenue - account.ads, account.revenue)
        if margin < MARGIN_FLOOR_PCT:
            candidates.append(_Candidate(
                BottleneckConstraint.MARGIN, "Margin",
                round2(account.revenue * MARGIN_IMPROVEMENT),
                "Lower CPA by pausing inefficient campaigns or negotiating costs",
            ))

    if planning.investimento_ads and account.ads > 0:
        expected_spend = planning.investimento_ads * meta.pace_ratio
        if account.ads < expected_spend * BUDGET_PACE_FLOOR:
            candidates.append(_Candidate(
                BottleneckConstraint.BUDGET, "Budget",
                round2((expected_spend - account.ads) * account.roas),
                "Invest the planned budget: spend is behind pace",
            ))

    return candidates


def detect_bottleneck(cube: DataCube) -> Bottleneck:
    """
    Find the revenue factor with the largest simulated marginal impact.

    Severity is the revenue gap to the paced target as a fraction of that
    target, clamped to [0, 1]. Without a plan target the reference is current
    revenue + 20%.
    """
    account, ga4 = cube.account, cube.ga4
    if account is None or ga4 is None or ga4.sessions == 0:
        return insufficient_data_bottleneck()

    target = cube.planning.receita_captada
    revenue_target = (
        target * cube.meta.pace_ratio if target
        else account.revenue * UNPLANNED_TARGET_MULTIPLIER
    )
    revenue_gap = max(revenue_target - account.revenue, 0.0)
    severity = min(revenue_gap / revenue_target, 1.0) if revenue_target > 0 else 0.5

    candidates = _candidates(cube)
    # max() keeps the first of equal candidates
    primary = max(candidates, key=lambda c: c.impact)

    logger.debug(
        f"Bottleneck for {cube.meta.tenantId}: {primary.constraint.value} "
        f"(+{primary.impact:.2f}, severity {severity:.2f})"
    )

    return Bottleneck(
        constraint=primary.constraint,
        severity=severity,
        explanation=(
            f"Main bottleneck: {primary.label}. A 10% improvement here would add "
            f"+{format_brl(primary.impact)} in revenue."
        ),
        financialImpact=build_impact(
            primary.impact, 0.0, 0.6, Timeframe.SHORT,
            f"+10% {primary.label} = +{format_brl(primary.impact)} revenue",
        ),
        unlockAction=primary.unlock_action,
    )
