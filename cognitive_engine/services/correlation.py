"""
Correlation Engine.

Links findings into root-cause chains through a small table of declarative
causal patterns. Each pattern pairs a set of trigger kinds (with an optional
severity floor) with a set of evidence kinds. When both sides are present,
every trigger receives the pattern's root cause plus the evidence ids, and
every evidence finding receives a backward reference to the trigger.

Rules:
    - The first pattern (in declaration order) to claim a finding wins.
      Later patterns still use the finding as trigger or evidence but do not
      overwrite its annotation.
    - Findings that already carry a rootCause count as claimed, so running
      the engine on its own output changes nothing.
    - Unmatched findings pass through unchanged and in their original order.
"""

import logging
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional

from cognitive_engine.models.enums import FindingKind, Severity
from cognitive_engine.models.schemas import CognitiveFinding


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CausalPattern:
    id: str
    trigger_kinds: FrozenSet[FindingKind]
    evidence_kinds: FrozenSet[FindingKind]
    root_cause: str
    min_severity: Optional[Severity] = None

    def is_trigger(self, finding: CognitiveFinding) -> bool:
        if finding.kind not in self.trigger_kinds:
            return False
        if self.min_severity is None:
            return True
        return finding.severity.rank >= self.min_severity.rank

    def is_evidence(self, finding: CognitiveFinding) -> bool:
        return finding.kind in self.evidence_kinds


_WASTE_KINDS = frozenset({
    FindingKind.EFF_ZERO_CONV,
    FindingKind.EFF_ZERO_CONV_SKU,
    FindingKind.EFF_LOW_ROAS_CAMPAIGN,
    FindingKind.EFF_LOW_ROAS_SKU,
    FindingKind.EFF_BUDGET_DISTRIBUTION,
})

_RISK_KINDS = frozenset({
    FindingKind.RISK_ROAS_CRITICAL,
    FindingKind.RISK_PAUSE_SKUS,
    FindingKind.RISK_BOUNCE,
    FindingKind.RISK_CART_ABANDON,
    FindingKind.RISK_CONCENTRATION,
})


CAUSAL_PATTERNS: List[CausalPattern] = [
    CausalPattern(
        id="budget-misallocation",
        trigger_kinds=frozenset({FindingKind.PG_REVENUE, FindingKind.PG_ROAS}),
        evidence_kinds=_WASTE_KINDS,
        root_cause=(
            "Revenue is below target because part of the budget sits in "
            "low-return SKUs and campaigns"
        ),
        min_severity=Severity.WARNING,
    ),
    CausalPattern(
        id="traffic-quality",
        trigger_kinds=frozenset({FindingKind.RISK_BOUNCE}),
        evidence_kinds=frozenset({FindingKind.COMP_PAID_HEAVY}),
        root_cause=(
            "High bounce combined with dependency on paid traffic points to a "
            "traffic quality problem"
        ),
    ),
    CausalPattern(
        id="reallocation-opportunity",
        trigger_kinds=frozenset({FindingKind.OPP_UNDERINVESTED, FindingKind.OPP_SCALABLE}),
        evidence_kinds=_WASTE_KINDS | {FindingKind.EFF_HIGH_CPA_SKU},
        root_cause=(
            "High-potential SKUs are underinvested while budget is wasted on "
            "inefficient SKUs"
        ),
    ),
    CausalPattern(
        id="conversion-bottleneck",
        trigger_kinds=frozenset({FindingKind.RISK_CART_ABANDON}),
        evidence_kinds=frozenset({FindingKind.PG_REVENUE, FindingKind.PG_CONVERSION}),
        root_cause="A funnel conversion problem is feeding the revenue gap against plan",
    ),
    CausalPattern(
        id="device-inefficiency",
        trigger_kinds=frozenset({FindingKind.DEV_MOBILE_LOW_ROAS}),
        evidence_kinds=frozenset({
            FindingKind.EFF_BUDGET_DISTRIBUTION,
            FindingKind.EFF_LOW_ROAS_CAMPAIGN,
            FindingKind.EFF_LOW_ROAS_SKU,
        }),
        root_cause="Low-ROAS mobile budget is dragging overall efficiency down",
    ),
    CausalPattern(
        id="geo-concentration",
        trigger_kinds=frozenset({FindingKind.GEO_TOP_REGION}),
        evidence_kinds=_RISK_KINDS,
        root_cause="Geographic concentration amplifies the operation's dependency risk",
    ),
]


def correlate_findings(
    findings: List[CognitiveFinding],
    patterns: Optional[List[CausalPattern]] = None,
) -> List[CognitiveFinding]:
    """
    Attach root causes and cross references to correlated findings.

    Args:
        findings: Concatenated output of every analyzer
        patterns: Causal table, defaults to CAUSAL_PATTERNS

    Returns:
        New list in the same order; correlated findings are copies carrying
        rootCause, relatedFindingIds and correlationId.
    """
    table = CAUSAL_PATTERNS if patterns is None else patterns

    # id -> (rootCause, relatedFindingIds, correlationId); None marks pre-claimed
    claims: Dict[str, Optional[tuple]] = {
        f.id: None for f in findings if f.rootCause is not None
    }

    for pattern in table:
        triggers = [f for f in findings if pattern.is_trigger(f)]
        if not triggers:
            continue
        for trigger in triggers:
            evidence = [f for f in findings if pattern.is_evidence(f) and f.id != trigger.id]
            if not evidence:
                continue

            if trigger.id not in claims:
                claims[trigger.id] = (pattern.root_cause, [e.id for e in evidence], pattern.id)

            for item in evidence:
                if item.id not in claims:
                    claims[item.id] = (f"Related to: {trigger.title}", [trigger.id], pattern.id)

    correlated: List[CognitiveFinding] = []
    linked = 0
    for finding in findings:
        claim = claims.get(finding.id)
        if claim is None:
            correlated.append(finding)
            continue
        root_cause, related_ids, correlation_id = claim
        correlated.append(finding.model_copy(update={
            "rootCause": root_cause,
            "relatedFindingIds": related_ids,
            "correlationId": correlation_id,
        }))
        linked += 1

    if linked:
        logger.debug(f"Correlated {linked} of {len(findings)} findings")
    return correlated
