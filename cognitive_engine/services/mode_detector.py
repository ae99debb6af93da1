"""
Strategic Mode Detector.

Scores the account on up to six independent 0-100 signals and maps the
weighted average to one of four strategic modes:

    Signal                  Weight
    ROAS vs target          0.25
    Revenue pacing          0.25
    CPA vs target           0.15
    Spend margin            0.12
    SKU status mix          0.10
    Account trend           0.13

Signals whose inputs are missing are dropped and the average is normalized
by the weights that remain. Thresholds are inclusive:

    score >= 75  ESCALAR
    score >= 50  OTIMIZAR
    score >= 25  PROTEGER
    otherwise    REESTRUTURAR
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from cognitive_engine.models.enums import SkuStatus, StrategicMode, TrendClassification
from cognitive_engine.models.schemas import DataCube, ModeAssessment
from cognitive_engine.services.ratios import pct, round2, safe_div


logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

WEIGHT_ROAS: float = 0.25
WEIGHT_PACING: float = 0.25
WEIGHT_CPA: float = 0.15
WEIGHT_MARGIN: float = 0.12
WEIGHT_SKU_MIX: float = 0.10
WEIGHT_TREND: float = 0.13

DEFAULT_TARGET_CPA: float = 80.0

ESCALAR_THRESHOLD: float = 75.0
OTIMIZAR_THRESHOLD: float = 50.0
PROTEGER_THRESHOLD: float = 25.0

NEUTRAL_SCORE: float = 50.0
NEUTRAL_CONFIDENCE: float = 0.3

MODE_DESCRIPTIONS: Dict[StrategicMode, str] = {
    StrategicMode.ESCALAR: "Healthy performance: time to increase investment and capture growth",
    StrategicMode.OTIMIZAR: "Moderate performance: improve efficiency before scaling",
    StrategicMode.PROTEGER: "Below expectations: cut waste and protect margin",
    StrategicMode.REESTRUTURAR: "Critical performance: urgent action needed on several fronts",
}

TREND_SCORES: Dict[TrendClassification, float] = {
    TrendClassification.IMPROVING: 90.0,
    TrendClassification.STABLE: 60.0,
    TrendClassification.DECLINING: 20.0,
}


@dataclass
class Signal:
    label: str
    score: float
    weight: float

    def describe(self) -> str:
        return f"{self.label} → score {self.score:.0f}"


# =============================================================================
# Classification
# =============================================================================

def classify_mode(score: float) -> StrategicMode:
    """
    Map a weighted score to a mode. Boundaries belong to the upper mode.

    Example:
        >>> classify_mode(75)
        <StrategicMode.ESCALAR: 'ESCALAR'>
        >>> classify_mode(24.999)
        <StrategicMode.REESTRUTURAR: 'REESTRUTURAR'>
    """
    if score >= ESCALAR_THRESHOLD:
        return StrategicMode.ESCALAR
    if score >= OTIMIZAR_THRESHOLD:
        return StrategicMode.OTIMIZAR
    if score >= PROTEGER_THRESHOLD:
        return StrategicMode.PROTEGER
    return StrategicMode.REESTRUTURAR


def _step_up(value: float, steps: List[tuple], floor: float) -> float:
    """First score whose threshold value reaches (>=)."""
    for threshold, score in steps:
        if value >= threshold:
            return score
    return floor


def _step_down(value: float, steps: List[tuple], floor: float) -> float:
    """First score whose threshold value stays within (<=)."""
    for threshold, score in steps:
        if value <= threshold:
            return score
    return floor


# =============================================================================
# Signals
# =============================================================================

def _roas_signal(cube: DataCube) -> Optional[Signal]:
    account = cube.account
    if account is None:
        return None

    target = cube.planning.roas_captado
    if target:
        ratio = safe_div(account.roas, target)
        score = _step_up(ratio, [(1.0, 100), (0.8, 60), (0.6, 30)], 10)
        return Signal(f"ROAS {account.roas:.1f} vs target {target:.1f}", score, WEIGHT_ROAS)

    score = _step_up(account.roas, [(8.0, 100), (5.0, 60), (3.0, 30)], 10)
    return Signal(f"ROAS {account.roas:.1f} (no target set)", score, WEIGHT_ROAS)


def _pacing_signal(cube: DataCube) -> Optional[Signal]:
    target = cube.planning.receita_captada
    if cube.account is None or not target:
        return None

    expected = target * cube.meta.pace_ratio
    ratio = cube.account.revenue / expected if expected > 0 else 1.0
    score = _step_up(ratio, [(1.0, 100), (0.9, 70), (0.8, 40)], 15)
    return Signal(f"Revenue pacing: {ratio * 100:.0f}% of run rate", score, WEIGHT_PACING)


def _cpa_signal(cube: DataCube) -> Optional[Signal]:
    account = cube.account
    if account is None or account.conversions <= 0:
        return None

    target = cube.planning.cpa_geral or DEFAULT_TARGET_CPA
    ratio = account.cpa / target if target > 0 else 1.0
    score = _step_down(ratio, [(1.0, 100), (1.2, 60), (1.5, 30)], 10)
    return Signal(f"CPA R${account.cpa:.0f} vs target R${target:.0f}", score, WEIGHT_CPA)


def _margin_signal(cube: DataCube) -> Optional[Signal]:
    account = cube.account
    if account is None or account.revenue <= 0:
        return None

    margin = pct(account.revenue - account.ads, account.revenue)
    score = _step_up(margin, [(30.0, 100), (25.0, 70), (20.0, 40)], 15)
    return Signal(f"Gross margin after ads: {margin:.0f}%", score, WEIGHT_MARGIN)


def _sku_mix_signal(cube: DataCube) -> Optional[Signal]:
    if not cube.skus:
        return None

    total = len(cube.skus)
    scale = sum(1 for s in cube.skus if s.status == SkuStatus.ESCALAR)
    pause = sum(1 for s in cube.skus if s.status == SkuStatus.PAUSAR)
    health = (scale - pause) / total

    if health > 0.3:
        score = 100.0
    elif health > 0.1:
        score = 70.0
    elif health >= 0:
        score = 40.0
    else:
        score = 15.0
    return Signal(f"SKUs: {scale} to scale, {pause} to pause of {total}", score, WEIGHT_SKU_MIX)


def _trend_signal(cube: DataCube) -> Optional[Signal]:
    trend = cube.trends.account if cube.trends else None
    if trend is None:
        return None

    sign = "+" if trend.slopePct > 0 else ""
    return Signal(
        f"Trend: {trend.classification.value} ({sign}{trend.slopePct:.1f}%/day)",
        TREND_SCORES[trend.classification],
        WEIGHT_TREND,
    )


SIGNAL_BUILDERS = (
    _roas_signal,
    _pacing_signal,
    _cpa_signal,
    _margin_signal,
    _sku_mix_signal,
    _trend_signal,
)


# =============================================================================
# Detection
# =============================================================================

def collect_signals(cube: DataCube) -> List[Signal]:
    signals = []
    for build in SIGNAL_BUILDERS:
        signal = build(cube)
        if signal is not None:
            signals.append(signal)
    return signals


def detect_strategic_mode(cube: DataCube) -> ModeAssessment:
    """
    Classify the account into a strategic mode.

    With no computable signal the assessment is a neutral OTIMIZAR at score
    50 and confidence 0.3.
    """
    signals = collect_signals(cube)

    if not signals:
        logger.info(f"No mode signals for {cube.meta.tenantId}; using neutral assessment")
        return ModeAssessment(
            mode=StrategicMode.OTIMIZAR,
            score=NEUTRAL_SCORE,
            confidence=NEUTRAL_CONFIDENCE,
            signals=["Not enough data to classify the strategic mode"],
            description="Not enough data: default optimization mode",
        )

    total_weight = sum(s.weight for s in signals)
    weighted = sum(s.score * s.weight for s in signals) / total_weight
    mode = classify_mode(weighted)

    return ModeAssessment(
        mode=mode,
        score=round2(weighted),
        confidence=min(0.5 + len(signals) / 5 * 0.4, 0.9),
        signals=[s.describe() for s in signals],
        description=MODE_DESCRIPTIONS[mode],
    )
