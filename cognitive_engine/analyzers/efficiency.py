"""
Efficiency analyzer.

Finds spend that is not paying back:

- campaigns spending over R$ 200 with zero conversions (danger)
- SKUs spending over R$ 30 with zero conversions (danger)
- campaigns and SKUs with ROAS < 3 on over R$ 500 of spend (warning)
- SKUs with CPA above R$ 80 on over R$ 300 of spend (warning)
- more than 40% of SKU spend sitting in SKUs with ROAS < 5 (warning)

Requires an account slice with spend.
"""

from typing import List, Sequence

from cognitive_engine.analyzers.base import make_finding, recommend
from cognitive_engine.models.enums import EffortLevel, FindingKind, ImpactLevel, Severity, Timeframe
from cognitive_engine.models.schemas import CognitiveFinding, DataCube, FindingMetrics
from cognitive_engine.services.financial_impact import (
    build_impact,
    format_brl,
    quantify_budget_reallocation,
    quantify_wasted_spend,
)
from cognitive_engine.services.ratios import mean, pct


ZERO_CONV_CAMPAIGN_FLOOR: float = 200.0
ZERO_CONV_SKU_FLOOR: float = 30.0

LOW_ROAS_CEILING: float = 3.0
LOW_ROAS_SPEND_FLOOR: float = 500.0

# Destination ROAS assumed when no entity clears the high-ROAS bar
HIGH_ROAS_FLOOR: float = 7.0
# Source ROAS assumed when the low-ROAS set is empty
LOW_ROAS_FALLBACK: float = 2.0

HIGH_CPA_CEILING: float = 80.0
HIGH_CPA_SPEND_FLOOR: float = 300.0

BUDGET_DIST_ROAS: float = 5.0
BUDGET_DIST_MAX_PCT: float = 40.0
BUDGET_DIST_TARGET_PCT: float = 20.0
BUDGET_DIST_MIN_SKUS: int = 4


def _name_list(names: Sequence[str], limit: int = 3) -> str:
    shown = ", ".join(names[:limit])
    if len(names) > limit:
        shown += f" and {len(names) - limit} more"
    return shown


def analyze_efficiency(cube: DataCube) -> List[CognitiveFinding]:
    account = cube.account
    findings: List[CognitiveFinding] = []

    if account is None or account.ads == 0:
        return findings

    campaigns, skus = cube.campaigns, cube.skus

    # Campaigns burning budget with no conversions
    zero_conv = [c for c in campaigns if c.costBRL > ZERO_CONV_CAMPAIGN_FLOOR and c.conversions == 0]
    if zero_conv:
        waste = sum(c.costBRL for c in zero_conv)
        findings.append(make_finding(
            FindingKind.EFF_ZERO_CONV,
            Severity.DANGER,
            title=f"{len(zero_conv)} campaign(s) with no conversions spending {format_brl(waste)}",
            description=f"Campaigns: {_name_list([c.campaignName for c in zero_conv])}.",
            metrics=FindingMetrics(current=waste, entityName=zero_conv[0].campaignName),
            impact=quantify_wasted_spend(waste, "campaign spend"),
            recommendations=[recommend(
                "Pause campaigns with no conversions now",
                ImpactLevel.HIGH, EffortLevel.LOW,
                steps=[f'Pause "{c.campaignName}" ({format_brl(c.costBRL)} spent)' for c in zero_conv[:3]],
            )],
        ))

    # SKUs burning budget with no conversions
    zero_conv_skus = [s for s in skus if s.ads > ZERO_CONV_SKU_FLOOR and s.conversions == 0]
    if zero_conv_skus:
        waste = sum(s.ads for s in zero_conv_skus)
        findings.append(make_finding(
            FindingKind.EFF_ZERO_CONV_SKU,
            Severity.DANGER,
            title=f"{len(zero_conv_skus)} SKU(s) with no conversions spending {format_brl(waste)}",
            description=f"SKUs: {_name_list([s.sku for s in zero_conv_skus])}.",
            metrics=FindingMetrics(current=waste, entityName=zero_conv_skus[0].nome),
            impact=quantify_wasted_spend(waste, "SKU spend"),
            recommendations=[recommend(
                "Pause ads for SKUs with no conversions",
                ImpactLevel.HIGH, EffortLevel.LOW,
                steps=[f"Pause {s.sku} ({format_brl(s.ads)} spent)" for s in zero_conv_skus[:3]],
            )],
        ))

    # Campaigns with material spend and poor return
    low_roas = [
        c for c in campaigns
        if c.costBRL > LOW_ROAS_SPEND_FLOOR and c.roas < LOW_ROAS_CEILING and c.conversions > 0
    ]
    if low_roas:
        spend = sum(c.costBRL for c in low_roas)
        avg_roas = mean(c.roas for c in low_roas)
        best = max((c.roas for c in campaigns if c.roas > HIGH_ROAS_FLOOR), default=HIGH_ROAS_FLOOR)
        findings.append(make_finding(
            FindingKind.EFF_LOW_ROAS_CAMPAIGN,
            Severity.WARNING,
            title=f"{format_brl(spend)} invested in campaigns with ROAS < 3",
            description=f"{len(low_roas)} campaign(s) averaging ROAS {avg_roas:.1f}. Consider shifting budget.",
            metrics=FindingMetrics(
                current=avg_roas, target=BUDGET_DIST_ROAS,
                gap=pct(avg_roas - BUDGET_DIST_ROAS, BUDGET_DIST_ROAS),
            ),
            impact=quantify_budget_reallocation(spend, avg_roas, best),
            recommendations=[recommend(
                "Shift budget to campaigns with ROAS above 7",
                ImpactLevel.HIGH, EffortLevel.MEDIUM,
                steps=[f'Cut budget of "{c.campaignName}" (ROAS {c.roas:.1f})' for c in low_roas[:3]],
            )],
        ))

    # SKUs with material spend and poor return
    low_roas_skus = [
        s for s in skus
        if s.ads > LOW_ROAS_SPEND_FLOOR and s.roas < LOW_ROAS_CEILING and s.conversions > 0
    ]
    if low_roas_skus:
        spend = sum(s.ads for s in low_roas_skus)
        avg_roas = mean(s.roas for s in low_roas_skus)
        best = max((s.roas for s in skus if s.roas > HIGH_ROAS_FLOOR), default=HIGH_ROAS_FLOOR)
        findings.append(make_finding(
            FindingKind.EFF_LOW_ROAS_SKU,
            Severity.WARNING,
            title=f"{format_brl(spend)} invested in SKUs with ROAS < 3",
            description=f"{_name_list([s.sku for s in low_roas_skus])} average ROAS {avg_roas:.1f}.",
            metrics=FindingMetrics(current=avg_roas, target=BUDGET_DIST_ROAS, entityName=low_roas_skus[0].nome),
            impact=quantify_budget_reallocation(spend * 0.5, avg_roas, best),
            recommendations=[recommend(
                "Halve spend on low-ROAS SKUs and move it to the best sellers",
                ImpactLevel.HIGH, EffortLevel.MEDIUM,
            )],
        ))

    # SKUs converting too expensively
    high_cpa = [s for s in skus if s.cpa > HIGH_CPA_CEILING and s.ads > HIGH_CPA_SPEND_FLOOR]
    if high_cpa:
        worst = max(high_cpa, key=lambda s: s.cpa)
        saving = sum((s.cpa - HIGH_CPA_CEILING) * s.conversions for s in high_cpa)
        findings.append(make_finding(
            FindingKind.EFF_HIGH_CPA_SKU,
            Severity.WARNING,
            title=f"{len(high_cpa)} SKU(s) with CPA above {format_brl(HIGH_CPA_CEILING)}",
            description=f"Worst: {worst.nome} with CPA {format_brl(worst.cpa)} and ROAS {worst.roas:.1f}.",
            metrics=FindingMetrics(current=worst.cpa, target=HIGH_CPA_CEILING, entityName=worst.nome),
            impact=build_impact(
                0.0, saving, 0.5, Timeframe.SHORT,
                f"CPA down to {format_brl(HIGH_CPA_CEILING)} on {len(high_cpa)} SKU(s): "
                f"{format_brl(saving)} saved",
            ),
            recommendations=[recommend(
                f"Review the ads of SKU {worst.sku}", ImpactLevel.MEDIUM, EffortLevel.MEDIUM,
            )],
        ))

    # Too much SKU spend parked in low-ROAS products
    if len(skus) >= BUDGET_DIST_MIN_SKUS:
        total_ads = sum(s.ads for s in skus)
        low = [s for s in skus if s.roas < BUDGET_DIST_ROAS and s.ads > 0]
        low_spend = sum(s.ads for s in low)
        low_pct = pct(low_spend, total_ads)

        if low_pct > BUDGET_DIST_MAX_PCT:
            high = [s.roas for s in skus if s.roas > HIGH_ROAS_FLOOR]
            avg_high = mean(high) if high else HIGH_ROAS_FLOOR
            avg_low = mean(s.roas for s in low) if low else LOW_ROAS_FALLBACK
            findings.append(make_finding(
                FindingKind.EFF_BUDGET_DISTRIBUTION,
                Severity.WARNING,
                title=f"{low_pct:.0f}% of spend in SKUs with ROAS < 5",
                description=(
                    f"{format_brl(low_spend)} of {format_brl(total_ads)} sits in "
                    f"{len(low)} low-return SKU(s)."
                ),
                metrics=FindingMetrics(
                    current=low_pct, target=BUDGET_DIST_TARGET_PCT, gap=low_pct - BUDGET_DIST_TARGET_PCT,
                ),
                impact=quantify_budget_reallocation(low_spend * 0.5, avg_low, avg_high),
                recommendations=[recommend(
                    "Shift budget to SKUs with ROAS above 7", ImpactLevel.HIGH, EffortLevel.MEDIUM,
                )],
            ))

    return findings
