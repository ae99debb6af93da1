"""
Device analyzer: mobile vs desktop vs tablet return on spend.
"""

from typing import Dict, List

from cognitive_engine.analyzers.base import make_finding, recommend
from cognitive_engine.models.enums import EffortLevel, FindingKind, ImpactLevel, Severity
from cognitive_engine.models.schemas import CognitiveFinding, DataCube, DeviceSlice, FindingMetrics
from cognitive_engine.services.financial_impact import (
    format_brl,
    quantify_budget_reallocation,
    quantify_underinvestment,
    quantify_wasted_spend,
)
from cognitive_engine.services.ratios import pct, safe_div


MOBILE_ROAS_RATIO_WARNING: float = 0.5
MOBILE_ROAS_RATIO_DANGER: float = 0.3
MOBILE_MIN_COST: float = 100.0
MOBILE_BID_CUT: float = 0.3

DESKTOP_MIN_ROAS: float = 7.0
DESKTOP_MAX_SHARE: float = 40.0
DESKTOP_TARGET_SHARE: float = 50.0

TABLET_MIN_COST: float = 100.0


def _by_device(devices: List[DeviceSlice]) -> Dict[str, DeviceSlice]:
    return {d.device.upper(): d for d in devices}


def analyze_devices(cube: DataCube) -> List[CognitiveFinding]:
    findings: List[CognitiveFinding] = []
    if not cube.devices:
        return findings

    devices = _by_device(cube.devices)
    mobile = devices.get("MOBILE")
    desktop = devices.get("DESKTOP")
    tablet = devices.get("TABLET")

    if mobile and desktop and desktop.roas > 0 and mobile.cost > MOBILE_MIN_COST:
        ratio = mobile.roas / desktop.roas
        if ratio < MOBILE_ROAS_RATIO_WARNING:
            findings.append(make_finding(
                FindingKind.DEV_MOBILE_LOW_ROAS,
                Severity.DANGER if ratio < MOBILE_ROAS_RATIO_DANGER else Severity.WARNING,
                title=f"Mobile ROAS {mobile.roas:.1f} vs desktop {desktop.roas:.1f}",
                description=(
                    f"Mobile brings {mobile.revenueShare:.0f}% of revenue at {ratio * 100:.0f}% "
                    "of the desktop ROAS. Consider shifting budget."
                ),
                metrics=FindingMetrics(
                    current=mobile.roas,
                    target=desktop.roas,
                    gap=pct(mobile.roas - desktop.roas, desktop.roas),
                    entityName="Mobile",
                ),
                impact=quantify_budget_reallocation(mobile.cost * MOBILE_BID_CUT, mobile.roas, desktop.roas),
                recommendations=[recommend(
                    "Lower mobile bids by 30% and move the budget to desktop",
                    ImpactLevel.HIGH, EffortLevel.LOW,
                    steps=[
                        "Set a -30% mobile bid adjustment on the main campaigns",
                        "Watch the effect for 7 days",
                    ],
                )],
            ))

    if desktop and desktop.roas > DESKTOP_MIN_ROAS and desktop.revenueShare < DESKTOP_MAX_SHARE:
        avg_spend = safe_div(sum(d.cost for d in cube.devices), len(cube.devices))
        findings.append(make_finding(
            FindingKind.DEV_DESKTOP_OPPORTUNITY,
            Severity.SUCCESS,
            title=(
                f"Desktop returns ROAS {desktop.roas:.1f} with only "
                f"{desktop.revenueShare:.0f}% of revenue"
            ),
            description="Desktop has the best return by device. More investment there can add revenue.",
            metrics=FindingMetrics(
                current=desktop.revenueShare, target=DESKTOP_TARGET_SHARE, entityName="Desktop",
            ),
            impact=quantify_underinvestment(desktop.cost, avg_spend, desktop.roas),
            recommendations=[recommend(
                "Raise desktop investment by 20-30%", ImpactLevel.HIGH, EffortLevel.LOW,
            )],
        ))

    if tablet and tablet.conversions == 0 and tablet.cost > TABLET_MIN_COST:
        findings.append(make_finding(
            FindingKind.DEV_TABLET_WASTE,
            Severity.WARNING,
            title=f"Tablet spending {format_brl(tablet.cost)} with no conversions",
            description="Tablet traffic produced no conversions in the period. Consider excluding it.",
            metrics=FindingMetrics(current=tablet.cost, entityName="Tablet"),
            impact=quantify_wasted_spend(tablet.cost, "tablet spend"),
            recommendations=[recommend(
                "Exclude tablets from campaigns or set a -100% bid adjustment",
                ImpactLevel.MEDIUM, EffortLevel.LOW,
            )],
        ))

    return findings
