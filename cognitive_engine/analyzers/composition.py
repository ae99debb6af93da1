"""
Traffic composition analyzer: paid vs organic vs direct mix and the channel
that converts best.
"""

from typing import FrozenSet, List

from cognitive_engine.analyzers.base import make_finding, recommend
from cognitive_engine.models.enums import EffortLevel, FindingKind, ImpactLevel, Severity
from cognitive_engine.models.schemas import CognitiveFinding, DataCube, FindingMetrics
from cognitive_engine.services.financial_impact import (
    IDEAL_PAID_SESSION_PCT,
    quantify_paid_dependency,
    zero_impact,
)
from cognitive_engine.services.ratios import pct, safe_div


PAID_CHANNELS: FrozenSet[str] = frozenset({
    "Cross-network",
    "Paid Search",
    "Paid Social",
    "Paid Shopping",
    "Paid Other",
    "Display",
})
ORGANIC_CHANNELS: FrozenSet[str] = frozenset({"Organic Search", "Organic Social"})
DIRECT_CHANNEL: str = "Direct"

PAID_HEAVY_PCT: float = 70.0
ORGANIC_STRONG_PCT: float = 40.0
ORGANIC_STRONG_MAX_PAID_PCT: float = 30.0
DIRECT_STRONG_PCT: float = 25.0

BEST_CHANNEL_MIN_SESSIONS: float = 50.0
BEST_CHANNEL_LIFT: float = 1.5


def analyze_composition(cube: DataCube) -> List[CognitiveFinding]:
    channels, ga4 = cube.channels, cube.ga4
    findings: List[CognitiveFinding] = []

    if not channels or ga4 is None:
        return findings

    total_sessions = sum(c.sessions for c in channels)
    if total_sessions == 0:
        return findings

    paid_sessions = sum(c.sessions for c in channels if c.channel in PAID_CHANNELS)
    organic_sessions = sum(c.sessions for c in channels if c.channel in ORGANIC_CHANNELS)
    direct_sessions = sum(c.sessions for c in channels if c.channel == DIRECT_CHANNEL)

    paid_pct = pct(paid_sessions, total_sessions)
    organic_pct = pct(organic_sessions, total_sessions)
    direct_pct = pct(direct_sessions, total_sessions)

    if paid_pct > PAID_HEAVY_PCT:
        ads = cube.account.ads if cube.account else 0.0
        avg_cps = safe_div(ads, paid_sessions)
        findings.append(make_finding(
            FindingKind.COMP_PAID_HEAVY,
            Severity.WARNING,
            title=f"{paid_pct:.0f}% of traffic is paid: high dependency",
            description=(
                f"Organic brings only {organic_pct:.0f}% of sessions. Investing in SEO can lower "
                "acquisition cost over time."
            ),
            metrics=FindingMetrics(current=paid_pct, target=IDEAL_PAID_SESSION_PCT),
            impact=quantify_paid_dependency(paid_pct, total_sessions, avg_cps),
            recommendations=[recommend(
                "Invest in SEO and content to grow organic traffic",
                ImpactLevel.HIGH, EffortLevel.HIGH,
                steps=[
                    "Optimize product pages for search",
                    "Publish content related to the catalog",
                    "Improve site speed",
                ],
            )],
        ))

    if organic_pct > ORGANIC_STRONG_PCT and paid_pct < ORGANIC_STRONG_MAX_PAID_PCT:
        findings.append(make_finding(
            FindingKind.COMP_ORGANIC_STRONG,
            Severity.SUCCESS,
            title=f"Strong organic base: {organic_pct:.0f}% of traffic",
            description=(
                "Organic traffic carries the site. More ads spend can capture incremental "
                "demand without creating dependency."
            ),
            metrics=FindingMetrics(current=organic_pct),
            impact=zero_impact(),
        ))

    if direct_pct > DIRECT_STRONG_PCT:
        findings.append(make_finding(
            FindingKind.COMP_DIRECT_STRONG,
            Severity.SUCCESS,
            title=f"{direct_pct:.0f}% direct traffic: brand recognition",
            description="Direct visits signal good brand recall and cost nothing to acquire.",
            metrics=FindingMetrics(current=direct_pct),
            impact=zero_impact(),
        ))

    converting = [
        c for c in channels
        if c.sessions > BEST_CHANNEL_MIN_SESSIONS and c.conversions > 0
    ]
    if len(converting) > 1 and cube.account is not None:
        best = max(converting, key=lambda c: c.conversionRate)
        best_rate = best.conversionRate * 100
        avg_rate = ga4.conversionRate * 100

        if best_rate > avg_rate * BEST_CHANNEL_LIFT:
            lift = safe_div(best_rate, avg_rate)
            findings.append(make_finding(
                FindingKind.COMP_BEST_CHANNEL,
                Severity.SUCCESS,
                title=f'Channel "{best.channel}" converts {best_rate:.2f}% ({lift:.1f}x the average)',
                description=(
                    f"Conversion rate of {best_rate:.2f}% against a blended {avg_rate:.2f}%. "
                    "Consider steering more budget to this channel."
                ),
                metrics=FindingMetrics(current=best_rate, target=avg_rate, entityName=best.channel),
                impact=zero_impact(),
                recommendations=[recommend(
                    f'Increase investment in "{best.channel}"', ImpactLevel.HIGH, EffortLevel.LOW,
                )],
            ))

    return findings
