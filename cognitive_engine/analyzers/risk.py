"""
Risk analyzer.

Negative patterns that threaten revenue: unprofitable account ROAS, SKUs
tagged for pausing, funnel leaks (bounce, cart abandonment), revenue
concentration in a single SKU and SKUs whose revenue trend is declining.
"""

import logging
from typing import List

from cognitive_engine.analyzers.base import make_finding, recommend
from cognitive_engine.models.enums import (
    EffortLevel,
    FindingKind,
    ImpactLevel,
    Severity,
    SkuStatus,
    Timeframe,
    TrendClassification,
)
from cognitive_engine.models.schemas import CognitiveFinding, DataCube, FindingMetrics
from cognitive_engine.services.financial_impact import (
    TARGET_BOUNCE_RATE,
    TARGET_CART_ABANDONMENT_PCT,
    build_impact,
    format_brl,
    quantify_bounce_impact,
    quantify_cart_abandonment,
    quantify_concentration_risk,
    quantify_pause_skus,
    quantify_trend_decline,
)
from cognitive_engine.services.ratios import pct, safe_div


logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

# Break-even ROAS below which spend is considered unprofitable
PAUSE_ROAS: float = 5.0
CRITICAL_ROAS_MIN_SPEND: float = 500.0

PAUSE_SKUS_MIN_SPEND: float = 500.0

BOUNCE_WARNING: float = 0.55
BOUNCE_DANGER: float = 0.65

CART_ABANDON_WARNING: float = 75.0
CART_ABANDON_DANGER: float = 85.0

CONCENTRATION_MIN_SKUS: int = 6
CONCENTRATION_MAX_SHARE: float = 50.0
CONCENTRATION_TARGET_SHARE: float = 30.0

TREND_DECLINE_MIN_SPEND: float = 300.0


def analyze_risks(cube: DataCube) -> List[CognitiveFinding]:
    account, skus, ga4 = cube.account, cube.skus, cube.ga4
    findings: List[CognitiveFinding] = []

    if account is None:
        return findings

    # Account spending below break-even
    if account.ads > CRITICAL_ROAS_MIN_SPEND and account.roas < PAUSE_ROAS:
        lost_revenue = max(account.ads * (PAUSE_ROAS - account.roas), 0.0)
        findings.append(make_finding(
            FindingKind.RISK_ROAS_CRITICAL,
            Severity.DANGER,
            title=f"Account ROAS at {account.roas:.1f}, below the pause threshold ({PAUSE_ROAS:.1f})",
            description=(
                f"{format_brl(account.ads)} invested for {format_brl(account.revenue)} in revenue. "
                "The operation risks running at a loss."
            ),
            metrics=FindingMetrics(current=account.roas, target=PAUSE_ROAS),
            impact=build_impact(
                lost_revenue, 0.0, 0.6, Timeframe.IMMEDIATE,
                f"ROAS {account.roas:.1f} vs break-even {PAUSE_ROAS:.1f}: "
                f"{format_brl(lost_revenue)} revenue gap",
            ),
            recommendations=[recommend(
                "Urgent review of every campaign",
                ImpactLevel.HIGH, EffortLevel.HIGH,
                steps=[
                    "Pause campaigns with ROAS < 3",
                    "Lower bids by 20% on the remaining campaigns",
                    "Focus budget on the top 5 SKUs by ROAS",
                ],
            )],
        ))

    # SKUs tagged for pausing that still spend
    to_pause = [s for s in skus if s.status == SkuStatus.PAUSAR]
    wasted = sum(s.ads for s in to_pause)
    if to_pause and wasted > PAUSE_SKUS_MIN_SPEND:
        avg_roas = safe_div(sum(s.roas * s.ads for s in to_pause), max(wasted, 1.0))
        findings.append(make_finding(
            FindingKind.RISK_PAUSE_SKUS,
            Severity.WARNING,
            title=f"{len(to_pause)} SKU(s) should be paused: {format_brl(wasted)} at risk",
            description=(
                "SKUs performing below the threshold: "
                f"{', '.join(s.nome or s.sku for s in to_pause[:3])}."
            ),
            metrics=FindingMetrics(current=wasted, entityName=to_pause[0].nome),
            impact=quantify_pause_skus(wasted, avg_roas),
            recommendations=[recommend(
                "Pause ads for SKUs tagged for pausing",
                ImpactLevel.HIGH, EffortLevel.LOW,
                steps=[
                    f'Pause "{s.nome or s.sku}" (ROAS {s.roas:.1f}, CPA {format_brl(s.cpa)})'
                    for s in to_pause[:3]
                ],
            )],
        ))

    # Funnel leaks
    if ga4 is not None and ga4.bounceRate > BOUNCE_WARNING:
        fallback_aov = safe_div(account.revenue, max(account.conversions, 1.0))
        findings.append(make_finding(
            FindingKind.RISK_BOUNCE,
            Severity.DANGER if ga4.bounceRate > BOUNCE_DANGER else Severity.WARNING,
            title=f"Bounce rate at {ga4.bounceRate * 100:.1f}%",
            description=(
                "More than half of visitors leave without interacting. This may point to "
                "experience, speed or traffic relevance problems."
            ),
            metrics=FindingMetrics(current=ga4.bounceRate, target=TARGET_BOUNCE_RATE),
            impact=quantify_bounce_impact(ga4, fallback_aov),
            recommendations=[recommend(
                "Improve the landing page experience",
                ImpactLevel.HIGH, EffortLevel.HIGH,
                steps=[
                    "Test page load speed",
                    "Check ad relevance against the landing page",
                    "Strengthen the call to action above the fold",
                ],
            )],
        ))

    if ga4 is not None and ga4.cartAbandonmentRate > CART_ABANDON_WARNING:
        findings.append(make_finding(
            FindingKind.RISK_CART_ABANDON,
            Severity.DANGER if ga4.cartAbandonmentRate > CART_ABANDON_DANGER else Severity.WARNING,
            title=f"Cart abandonment at {ga4.cartAbandonmentRate:.1f}%",
            description=(
                "Most shoppers who add to cart do not complete the purchase. "
                "Investigate checkout, shipping and payment."
            ),
            metrics=FindingMetrics(current=ga4.cartAbandonmentRate, target=TARGET_CART_ABANDONMENT_PCT),
            impact=quantify_cart_abandonment(ga4),
            recommendations=[recommend(
                "Streamline the checkout funnel",
                ImpactLevel.HIGH, EffortLevel.MEDIUM,
                steps=[
                    "Cut checkout steps",
                    "Offer free shipping above a threshold",
                    "Add payment options",
                ],
            )],
        ))

    # Revenue concentrated in one SKU
    if len(skus) >= CONCENTRATION_MIN_SKUS:
        top = max(skus, key=lambda s: s.revenue)
        total_revenue = sum(s.revenue for s in skus)
        top_pct = pct(top.revenue, total_revenue)
        if top_pct > CONCENTRATION_MAX_SHARE:
            findings.append(make_finding(
                FindingKind.RISK_CONCENTRATION,
                Severity.WARNING,
                title=f"{top_pct:.0f}% of revenue comes from one SKU",
                description=f'"{top.nome or top.sku}" brings in more than half of revenue. A drop there hits hard.',
                metrics=FindingMetrics(
                    current=top_pct, target=CONCENTRATION_TARGET_SHARE, entityName=top.nome or top.sku,
                ),
                impact=quantify_concentration_risk(top.revenue, total_revenue),
                recommendations=[recommend(
                    "Spread investment across more SKUs", ImpactLevel.MEDIUM, EffortLevel.MEDIUM,
                )],
            ))

    # SKUs with a declining revenue trend
    days_remaining = cube.meta.days_remaining
    for sku in skus:
        trend = sku.trend
        if trend is None or trend.classification != TrendClassification.DECLINING:
            continue
        if sku.ads <= TREND_DECLINE_MIN_SPEND:
            continue
        findings.append(make_finding(
            FindingKind.SKU_TREND_DECLINE,
            Severity.WARNING,
            title=f"Revenue of {sku.nome or sku.sku} is declining {abs(trend.slopePct):.1f}% per day",
            description=(
                f"7-day average {format_brl(trend.movingAvg7d)} against "
                f"{format_brl(trend.previousMovingAvg7d)} the week before, "
                f"on {format_brl(sku.ads)} of spend."
            ),
            metrics=FindingMetrics(
                current=trend.movingAvg7d,
                previous=trend.previousMovingAvg7d,
                trendPct=trend.slopePct,
                entityName=sku.nome or sku.sku,
            ),
            impact=quantify_trend_decline(trend.movingAvg7d, trend.previousMovingAvg7d, days_remaining),
            recommendations=[recommend(
                f"Review creatives, price and stock of {sku.sku}", ImpactLevel.MEDIUM, EffortLevel.MEDIUM,
            )],
            finding_id=f"sku-{sku.sku}-trend-decline",
        ))

    logger.debug(f"Risk analyzer produced {len(findings)} finding(s) for {cube.meta.tenantId}")
    return findings
