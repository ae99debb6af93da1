"""
Decision Ranker.

    score = |netImpact| x confidence x urgency / mean effort

Urgency by severity: danger 3, warning 2, success 1.
Effort by level: low 1, medium 2, high 3; 2 when a finding has no
recommendations. Equal scores keep their input order.
"""

from typing import Dict, List

from cognitive_engine.models.enums import EffortLevel, Severity
from cognitive_engine.models.schemas import CognitiveFinding, RankedDecision, ScoreComponents
from cognitive_engine.services.ratios import mean, round2


URGENCY_BY_SEVERITY: Dict[Severity, int] = {
    Severity.DANGER: 3,
    Severity.WARNING: 2,
    Severity.SUCCESS: 1,
}

EFFORT_BY_LEVEL: Dict[EffortLevel, int] = {
    EffortLevel.LOW: 1,
    EffortLevel.MEDIUM: 2,
    EffortLevel.HIGH: 3,
}

DEFAULT_EFFORT: float = 2.0


def mean_effort(finding: CognitiveFinding) -> float:
    if not finding.recommendations:
        return DEFAULT_EFFORT
    return mean(EFFORT_BY_LEVEL[r.effort] for r in finding.recommendations)


def score_finding(finding: CognitiveFinding) -> ScoreComponents:
    return ScoreComponents(
        impactBRL=round2(abs(finding.financialImpact.netImpact)),
        confidence=finding.financialImpact.confidence,
        urgency=URGENCY_BY_SEVERITY[finding.severity],
        effort=mean_effort(finding),
    )


def rank_decisions(findings: List[CognitiveFinding]) -> List[RankedDecision]:
    """Rank findings by priority score, highest first, ranks starting at 1."""
    scored = []
    for finding in findings:
        components = score_finding(finding)
        score = (
            abs(finding.financialImpact.netImpact) * components.confidence * components.urgency
            / components.effort
        )
        scored.append((round2(score), components, finding))

    # sorted() is stable, so ties keep input order
    scored = sorted(scored, key=lambda item: -item[0])

    return [
        RankedDecision(rank=index, score=score, components=components, finding=finding)
        for index, (score, components, finding) in enumerate(scored, start=1)
    ]
