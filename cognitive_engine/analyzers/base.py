"""
Shared building blocks for pattern analyzers.

An analyzer is a pure function `(DataCube) -> List[CognitiveFinding]`. It
reads the cube, applies a handful of threshold rules and returns findings; it
shares no state with other analyzers and may run in any order.
"""

from typing import Callable, List, Optional, Sequence

from cognitive_engine.models.enums import (
    EffortLevel,
    FindingKind,
    FindingSource,
    ImpactLevel,
    Severity,
)
from cognitive_engine.models.schemas import (
    CognitiveFinding,
    DataCube,
    FinancialImpact,
    FindingMetrics,
    Recommendation,
)


Analyzer = Callable[[DataCube], List[CognitiveFinding]]


def recommend(
    action: str,
    impact: ImpactLevel,
    effort: EffortLevel,
    steps: Optional[Sequence[str]] = None,
) -> Recommendation:
    return Recommendation(
        action=action,
        impact=impact,
        effort=effort,
        steps=list(steps) if steps else None,
    )


def make_finding(
    kind: FindingKind,
    severity: Severity,
    title: str,
    description: str,
    metrics: FindingMetrics,
    impact: FinancialImpact,
    recommendations: Sequence[Recommendation] = (),
    source: FindingSource = FindingSource.PATTERN,
    finding_id: Optional[str] = None,
) -> CognitiveFinding:
    """
    Build a finding whose category follows from its kind.

    The id defaults to the kind value; per-entity rules pass their own
    namespaced id.
    """
    return CognitiveFinding(
        id=finding_id or kind.value,
        kind=kind,
        category=kind.category,
        severity=severity,
        title=title,
        description=description,
        metrics=metrics,
        recommendations=list(recommendations),
        source=source,
        financialImpact=impact,
    )


def gap_severity(gap_pct: float, danger_below: float = -20.0) -> Severity:
    """Standard plan-gap severity: danger below the floor, warning below 0, success otherwise."""
    if gap_pct < danger_below:
        return Severity.DANGER
    if gap_pct < 0:
        return Severity.WARNING
    return Severity.SUCCESS
