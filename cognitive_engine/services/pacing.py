"""
Pacing Projector.

Linear run-rate projection of plan metrics to month end:

    dailyRate  = current / dayOfMonth
    projected  = current + dailyRate * daysRemaining
    gap        = target - projected
    gapPct     = gap / target * 100

Scenario: on_track when gapPct <= 0, at_risk when gapPct <= 15, otherwise
off_track. Confidence grows from 0.4 to 0.9 as the month progresses.
"""

from dataclasses import dataclass
from typing import Callable, List, Optional

from cognitive_engine.models.enums import PacingScenario
from cognitive_engine.models.schemas import DataCube, PacingProjection
from cognitive_engine.services.ratios import round2, safe_div


AT_RISK_GAP_PCT: float = 15.0
BASE_CONFIDENCE: float = 0.4
CONFIDENCE_SPAN: float = 0.5
MAX_CONFIDENCE: float = 0.9


@dataclass(frozen=True)
class PacedMetric:
    metric: str
    label: str
    target: Callable[[DataCube], Optional[float]]
    current: Callable[[DataCube], Optional[float]]
    is_currency: bool = False


PACED_METRICS: List[PacedMetric] = [
    PacedMetric(
        "receita_captada", "Captured revenue",
        target=lambda c: c.planning.receita_captada,
        current=lambda c: c.account.revenue if c.account else None,
        is_currency=True,
    ),
    PacedMetric(
        "investimento", "Ads investment",
        target=lambda c: c.planning.investimento_ads,
        current=lambda c: c.account.ads if c.account else None,
        is_currency=True,
    ),
    PacedMetric(
        "sessoes", "Sessions",
        target=lambda c: c.planning.sessoes_totais,
        current=lambda c: c.ga4.sessions if c.ga4 else None,
    ),
    PacedMetric(
        "pedidos", "Captured orders",
        target=lambda c: c.planning.pedido_captado,
        current=lambda c: c.account.conversions if c.account else None,
    ),
]


def classify_pacing(gap_pct: float) -> PacingScenario:
    if gap_pct <= 0:
        return PacingScenario.ON_TRACK
    if gap_pct <= AT_RISK_GAP_PCT:
        return PacingScenario.AT_RISK
    return PacingScenario.OFF_TRACK


def project_metric(
    metric: str,
    label: str,
    current_value: float,
    target: float,
    day_of_month: int,
    days_in_month: int,
    is_currency: bool = False,
) -> Optional[PacingProjection]:
    """
    Project one metric to month end. Returns None when the target is not
    positive or no day of the month has elapsed.

    Example:
        >>> p = project_metric("receita_captada", "Revenue", 45000, 100000, 15, 30, True)
        >>> p.projectedEndOfMonth, p.scenario.value
        (90000.0, 'at_risk')
    """
    if target <= 0 or day_of_month <= 0:
        return None

    daily_rate = current_value / day_of_month
    remaining = max(days_in_month - day_of_month, 0)
    projected = current_value + daily_rate * remaining
    gap = target - projected
    gap_pct = safe_div(gap, target) * 100
    required = (target - current_value) / remaining if remaining > 0 else 0.0

    return PacingProjection(
        metric=metric,
        label=label,
        currentValue=round2(current_value),
        target=round2(target),
        dailyRate=round2(daily_rate),
        projectedEndOfMonth=round2(projected),
        gapToTarget=round2(gap),
        gapPct=round2(gap_pct),
        projectedGapBRL=round2(gap) if is_currency else None,
        requiredDailyRate=round2(required),
        scenario=classify_pacing(gap_pct),
        confidence=min(BASE_CONFIDENCE + day_of_month / days_in_month * CONFIDENCE_SPAN, MAX_CONFIDENCE),
    )


def compute_pacing_projections(cube: DataCube) -> List[PacingProjection]:
    """Project every plan metric that has both a target and a current value."""
    projections = []
    for paced in PACED_METRICS:
        target = paced.target(cube)
        current = paced.current(cube)
        if not target or current is None:
            continue
        projection = project_metric(
            paced.metric,
            paced.label,
            current,
            target,
            cube.meta.dayOfMonth,
            cube.meta.daysInMonth,
            paced.is_currency,
        )
        if projection is not None:
            projections.append(projection)
    return projections
