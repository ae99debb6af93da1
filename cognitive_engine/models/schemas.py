"""
Pydantic models for the cognitive engine.

Three families live here:

- Input contract (AnalysisContext and its raw metric records): what the
  data-fetching layer hands to the engine for one tenant and period.
- DataCube and its slices: the normalized, derived-field-complete view every
  analyzer reads. Cube models are frozen; the only post-construction change is
  attaching trends, done through `model_copy`.
- Findings and response models: CognitiveFinding, FinancialImpact,
  RankedDecision, ModeAssessment, Bottleneck, BudgetPlan, PacingProjection and
  the CognitiveResponse envelope, plus the legacy insights projection.

Field names are camelCase to match the JSON contract consumed by the
dashboard. Plan metric keys keep their business names (receita_captada, ...).

All models use Pydantic v2 syntax.
"""

import math
from datetime import date as DateType, datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from cognitive_engine.models.enums import (
    BottleneckConstraint,
    DemographicType,
    EffortLevel,
    FindingCategory,
    FindingKind,
    FindingSource,
    ImpactLevel,
    KpiStatus,
    PacingScenario,
    Severity,
    SkuStatus,
    StrategicMode,
    Timeframe,
    TrendClassification,
)


# Share-of-total rounding slack per entity (each share is rounded to 0.01)
SHARE_ROUNDING_TOLERANCE: float = 0.005


# =============================================================================
# Input Contract - Raw Metric Records
# =============================================================================


class AccountMetrics(BaseModel):
    """Aggregate paid-media totals for the period."""
    ads: float = Field(default=0.0, ge=0, description="Ad spend in BRL")
    impressions: float = Field(default=0.0, ge=0, description="Ad impressions")
    clicks: float = Field(default=0.0, ge=0, description="Ad clicks")
    conversions: float = Field(default=0.0, ge=0, description="Attributed conversions")
    revenue: float = Field(default=0.0, ge=0, description="Attributed revenue in BRL")


class SkuMetrics(BaseModel):
    """Paid-media totals for one product."""
    sku: str = Field(..., min_length=1, description="Product SKU code")
    nome: str = Field(default="", description="Product display name")
    revenue: float = Field(default=0.0, ge=0)
    ads: float = Field(default=0.0, ge=0)
    impressions: float = Field(default=0.0, ge=0)
    clicks: float = Field(default=0.0, ge=0)
    conversions: float = Field(default=0.0, ge=0)
    status: Optional[SkuStatus] = Field(
        default=None,
        description="Operational tag; derived from performance when omitted",
    )


class CampaignMetrics(BaseModel):
    """Paid-media totals for one campaign."""
    campaignId: str = Field(..., description="Campaign identifier")
    campaignName: str = Field(default="", description="Campaign display name")
    channelType: str = Field(default="", description="Advertising channel type")
    status: str = Field(default="", description="Campaign serving status")
    costBRL: float = Field(default=0.0, ge=0)
    revenue: float = Field(default=0.0, ge=0)
    conversions: float = Field(default=0.0, ge=0)
    impressions: float = Field(default=0.0, ge=0)
    clicks: float = Field(default=0.0, ge=0)


class GA4Metrics(BaseModel):
    """Web-analytics funnel totals for the period."""
    sessions: float = Field(default=0.0, ge=0)
    users: float = Field(default=0.0, ge=0)
    purchases: float = Field(default=0.0, ge=0)
    purchaseRevenue: float = Field(default=0.0, ge=0)
    bounceRate: float = Field(default=0.0, ge=0, le=1, description="Bounce rate as a fraction")
    engagedSessions: float = Field(default=0.0, ge=0)
    cartAbandonmentRate: float = Field(
        default=0.0, ge=0, le=100, description="Cart abandonment as a percentage"
    )


class ChannelMetrics(BaseModel):
    """Session and conversion totals for one default channel group."""
    channel: str = Field(..., description="Channel group name, e.g. 'Organic Search'")
    sessions: float = Field(default=0.0, ge=0)
    users: float = Field(default=0.0, ge=0)
    conversions: float = Field(default=0.0, ge=0)
    revenue: float = Field(default=0.0, ge=0)


class PlanningSlice(BaseModel):
    """
    Monthly operating plan targets. Every target is optional; a missing
    target suppresses the rules and projections that compare against it.
    """
    model_config = ConfigDict(frozen=True)

    receita_captada: Optional[float] = Field(default=None, description="Captured revenue target")
    receita_faturada: Optional[float] = Field(default=None, description="Invoiced revenue target")
    receita_cancelada: Optional[float] = Field(default=None, description="Cancelled revenue ceiling")
    investimento_ads: Optional[float] = Field(default=None, description="Ad investment target")
    google_ads: Optional[float] = Field(default=None, description="Google Ads investment target")
    roas_captado: Optional[float] = Field(default=None, description="Captured ROAS target")
    roas_pago: Optional[float] = Field(default=None, description="Paid ROAS target")
    taxa_conversao_captado: Optional[float] = Field(
        default=None, description="Conversion rate target as a fraction of sessions"
    )
    cpa_geral: Optional[float] = Field(default=None, description="Blended CPA target")
    sessoes_totais: Optional[float] = Field(default=None, description="Monthly sessions target")
    pedido_captado: Optional[float] = Field(default=None, description="Monthly orders target")
    ticket_medio_captado: Optional[float] = Field(default=None, description="Average ticket target")
    pct_aprovacao_receita: Optional[float] = Field(
        default=None, description="Revenue approval rate target as a fraction"
    )


class SkuExtras(BaseModel):
    """Catalog attributes not present in ad platforms."""
    marginPct: float = Field(default=30.0, description="Gross margin in percent")
    stock: float = Field(default=0.0, ge=0, description="Units in stock")


class DeviceMetrics(BaseModel):
    """Paid-media totals for one device class (mobile, desktop, tablet)."""
    device: str
    cost: float = Field(default=0.0, ge=0)
    revenue: float = Field(default=0.0, ge=0)
    impressions: float = Field(default=0.0, ge=0)
    clicks: float = Field(default=0.0, ge=0)
    conversions: float = Field(default=0.0, ge=0)


class DemographicMetrics(BaseModel):
    """Paid-media totals for one age range or gender segment."""
    type: DemographicType
    segment: str = Field(..., description="Platform segment code, e.g. AGE_RANGE_25_34")
    cost: float = Field(default=0.0, ge=0)
    revenue: float = Field(default=0.0, ge=0)
    impressions: float = Field(default=0.0, ge=0)
    clicks: float = Field(default=0.0, ge=0)
    conversions: float = Field(default=0.0, ge=0)


class GeographicMetrics(BaseModel):
    """Paid-media totals for one region."""
    region: str
    cost: float = Field(default=0.0, ge=0)
    revenue: float = Field(default=0.0, ge=0)
    impressions: float = Field(default=0.0, ge=0)
    clicks: float = Field(default=0.0, ge=0)
    conversions: float = Field(default=0.0, ge=0)


class AnalysisContext(BaseModel):
    """
    Already-fetched metric slices for one tenant and period.

    Every source is optional: a missing source suppresses the analyzers and
    signals that depend on it.
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "tenantId": "acme",
                "periodStart": "2025-06-01",
                "periodEnd": "2025-06-15",
                "daysInPeriod": 15,
                "dayOfMonth": 15,
                "daysInMonth": 30,
                "account": {
                    "ads": 9000.0,
                    "impressions": 400000,
                    "clicks": 12000,
                    "conversions": 150,
                    "revenue": 45000.0,
                },
                "planning": {"receita_captada": 100000.0, "investimento_ads": 20000.0},
            }
        }
    )

    tenantId: str = Field(..., min_length=1, description="Tenant identifier")
    periodStart: DateType = Field(..., description="First day of the analyzed period")
    periodEnd: DateType = Field(..., description="Last day of the analyzed period")
    daysInPeriod: int = Field(..., ge=1, description="Number of days in the period")
    dayOfMonth: int = Field(..., ge=0, le=31, description="Elapsed days of the current month")
    daysInMonth: int = Field(..., ge=28, le=31, description="Days in the current month")
    account: Optional[AccountMetrics] = None
    skus: List[SkuMetrics] = Field(default_factory=list)
    campaigns: List[CampaignMetrics] = Field(default_factory=list)
    ga4: Optional[GA4Metrics] = None
    channels: List[ChannelMetrics] = Field(default_factory=list)
    planning: Optional[PlanningSlice] = None
    skuExtras: Dict[str, SkuExtras] = Field(default_factory=dict)
    devices: List[DeviceMetrics] = Field(default_factory=list)
    demographics: List[DemographicMetrics] = Field(default_factory=list)
    geographic: List[GeographicMetrics] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_calendar_and_keys(self) -> "AnalysisContext":
        if self.dayOfMonth > self.daysInMonth:
            raise ValueError(
                f"dayOfMonth ({self.dayOfMonth}) exceeds daysInMonth ({self.daysInMonth})"
            )
        if self.periodEnd < self.periodStart:
            raise ValueError("periodEnd precedes periodStart")
        seen = set()
        for item in self.skus:
            if item.sku in seen:
                raise ValueError(f"duplicate SKU in context: {item.sku}")
            seen.add(item.sku)
        return self


# =============================================================================
# Data Cube
# =============================================================================


class CubeMeta(BaseModel):
    """Tenant, period bounds and the calendar fields used for pacing math."""
    model_config = ConfigDict(frozen=True)

    tenantId: str
    periodStart: DateType
    periodEnd: DateType
    daysInPeriod: int
    dayOfMonth: int
    daysInMonth: int

    @property
    def days_remaining(self) -> int:
        return max(self.daysInMonth - self.dayOfMonth, 0)

    @property
    def pace_ratio(self) -> float:
        """Elapsed fraction of the month, 0 when the calendar is degenerate."""
        if self.daysInMonth <= 0:
            return 0.0
        return self.dayOfMonth / self.daysInMonth


class TrendData(BaseModel):
    """Direction of a historical series; absent when fewer than 3 points exist."""
    model_config = ConfigDict(frozen=True)

    classification: TrendClassification
    slopePct: float = Field(..., description="Daily % change from the OLS slope")
    movingAvg7d: float
    previousMovingAvg7d: float
    dataPoints: int = Field(..., ge=3)


class AccountSlice(BaseModel):
    model_config = ConfigDict(frozen=True)

    ads: float
    impressions: float
    clicks: float
    conversions: float
    revenue: float
    roas: float
    cpa: float
    ctr: float = Field(..., description="Click-through rate in percent")


class SkuSlice(BaseModel):
    """Per-product performance with profitability and share-of-total fields."""
    model_config = ConfigDict(frozen=True)

    sku: str
    nome: str
    revenue: float
    ads: float
    impressions: float
    clicks: float
    conversions: float
    roas: float
    cpa: float
    ctr: float = Field(..., description="Click-through rate in percent")
    convRate: float = Field(..., description="Conversions per click in percent")
    marginPct: float
    stock: float
    grossProfit: float
    profitAfterAds: float
    revenueShare: float = Field(..., description="Percent of total SKU revenue")
    adsShare: float = Field(..., description="Percent of total SKU spend")
    status: Optional[SkuStatus] = None
    trend: Optional[TrendData] = None


class CampaignSlice(BaseModel):
    model_config = ConfigDict(frozen=True)

    campaignId: str
    campaignName: str
    channelType: str
    status: str
    costBRL: float
    revenue: float
    roas: float
    cpa: float
    conversions: float
    impressions: float
    clicks: float


class GA4Slice(BaseModel):
    model_config = ConfigDict(frozen=True)

    sessions: float
    users: float
    purchases: float
    purchaseRevenue: float
    bounceRate: float
    engagedSessions: float
    cartAbandonmentRate: float
    conversionRate: float = Field(..., description="Purchases per session as a fraction")
    avgOrderValue: float


class ChannelSlice(BaseModel):
    model_config = ConfigDict(frozen=True)

    channel: str
    sessions: float
    users: float
    conversions: float
    revenue: float
    sessionShare: float = Field(..., description="Percent of total sessions")
    conversionRate: float = Field(..., description="Conversions per session as a fraction")


class DeviceSlice(BaseModel):
    model_config = ConfigDict(frozen=True)

    device: str
    cost: float
    revenue: float
    impressions: float
    clicks: float
    conversions: float
    roas: float
    cpa: float
    ctr: float
    convRate: float
    revenueShare: float


class DemographicSlice(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: DemographicType
    segment: str
    label: str
    cost: float
    revenue: float
    impressions: float
    clicks: float
    conversions: float
    roas: float
    cpa: float
    ctr: float
    revenueShare: float


class GeographicSlice(BaseModel):
    model_config = ConfigDict(frozen=True)

    region: str
    cost: float
    revenue: float
    impressions: float
    clicks: float
    conversions: float
    roas: float
    cpa: float
    ctr: float
    revenueShare: float


class CubeTrends(BaseModel):
    model_config = ConfigDict(frozen=True)

    account: Optional[TrendData] = None
    skus: Dict[str, TrendData] = Field(default_factory=dict)


class DataCube(BaseModel):
    """
    Aggregate root read by every analyzer.

    Share-of-total fields are recomputed on every build and must not add up
    beyond 100% (rounding slack aside). Derived ratios must be finite.
    Violations are programmer errors and fail construction.
    """
    model_config = ConfigDict(frozen=True)

    meta: CubeMeta
    account: Optional[AccountSlice] = None
    skus: List[SkuSlice] = Field(default_factory=list)
    campaigns: List[CampaignSlice] = Field(default_factory=list)
    channels: List[ChannelSlice] = Field(default_factory=list)
    ga4: Optional[GA4Slice] = None
    planning: PlanningSlice = Field(default_factory=PlanningSlice)
    devices: List[DeviceSlice] = Field(default_factory=list)
    demographics: List[DemographicSlice] = Field(default_factory=list)
    geographic: List[GeographicSlice] = Field(default_factory=list)
    trends: Optional[CubeTrends] = None

    @model_validator(mode="after")
    def _check_invariants(self) -> "DataCube":
        _check_share_total("skus.revenueShare", [s.revenueShare for s in self.skus])
        _check_share_total("skus.adsShare", [s.adsShare for s in self.skus])
        _check_share_total("channels.sessionShare", [c.sessionShare for c in self.channels])
        _check_share_total("devices.revenueShare", [d.revenueShare for d in self.devices])
        for dimension in DemographicType:
            _check_share_total(
                f"demographics[{dimension.value}].revenueShare",
                [d.revenueShare for d in self.demographics if d.type == dimension],
            )
        _check_share_total("geographic.revenueShare", [g.revenueShare for g in self.geographic])

        slices: List[BaseModel] = [
            *([self.account] if self.account else []),
            *([self.ga4] if self.ga4 else []),
            *self.skus, *self.campaigns, *self.channels,
            *self.devices, *self.demographics, *self.geographic,
        ]
        for item in slices:
            for name, value in item:
                if isinstance(value, float) and not math.isfinite(value):
                    raise ValueError(f"{type(item).__name__}.{name} is not finite")
        return self


def _check_share_total(label: str, shares: List[float]) -> None:
    limit = 100.0 + SHARE_ROUNDING_TOLERANCE * len(shares)
    total = sum(shares)
    if total > limit:
        raise ValueError(f"{label} sums to {total:.2f}%, above 100%")


class MetricSnapshot(BaseModel):
    """One day of flat numeric metrics for a scope (account or sku:<SKU>)."""
    date: DateType
    metrics: Dict[str, float] = Field(default_factory=dict)


# =============================================================================
# Findings
# =============================================================================


class Recommendation(BaseModel):
    model_config = ConfigDict(frozen=True)

    action: str
    impact: ImpactLevel
    effort: EffortLevel
    steps: Optional[List[str]] = None


class FindingMetrics(BaseModel):
    """Numbers backing a finding; which fields are required depends on category."""
    model_config = ConfigDict(frozen=True)

    current: Optional[float] = None
    target: Optional[float] = None
    gap: Optional[float] = None
    trendPct: Optional[float] = None
    previous: Optional[float] = None
    entityName: Optional[str] = None


class FinancialImpact(BaseModel):
    """
    Estimated monthly financial effect of acting on a finding.

    netImpact is always estimatedRevenueGain + estimatedCostSaving. When it is
    omitted on input it is derived; when supplied it must match.
    """
    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "estimatedRevenueGain": 0.0,
                "estimatedCostSaving": 1250.0,
                "netImpact": 1250.0,
                "confidence": 0.9,
                "timeframe": "immediate",
                "calculation": "Wasted spend: R$ 1.250,00 with no return",
            }
        },
    )

    estimatedRevenueGain: float = 0.0
    estimatedCostSaving: float = 0.0
    netImpact: float = 0.0
    confidence: float = Field(..., ge=0, le=1)
    timeframe: Timeframe
    calculation: str = ""

    @model_validator(mode="before")
    @classmethod
    def _derive_net(cls, data):
        if isinstance(data, dict) and data.get("netImpact") is None:
            data = dict(data)
            data["netImpact"] = data.get("estimatedRevenueGain", 0.0) + data.get(
                "estimatedCostSaving", 0.0
            )
        return data

    @model_validator(mode="after")
    def _check_net(self) -> "FinancialImpact":
        expected = self.estimatedRevenueGain + self.estimatedCostSaving
        if abs(self.netImpact - expected) > 1e-9:
            raise ValueError(
                f"netImpact {self.netImpact} != revenue gain + cost saving ({expected})"
            )
        return self


# Metric fields a finding must populate, by category
_REQUIRED_METRICS: Dict[FindingCategory, tuple] = {
    FindingCategory.PLANNING_GAP: ("current", "target"),
}
_DEFAULT_REQUIRED_METRICS: tuple = ("current",)


class CognitiveFinding(BaseModel):
    """
    A detected pattern with severity, narrative and quantified impact.

    `kind` names the rule that fired and must belong to `category`.
    `rootCause`, `relatedFindingIds` and `correlationId` are attached only by
    the correlation step.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    kind: FindingKind
    category: FindingCategory
    severity: Severity
    title: str
    description: str
    metrics: FindingMetrics = Field(default_factory=FindingMetrics)
    recommendations: List[Recommendation] = Field(default_factory=list)
    source: FindingSource = FindingSource.PATTERN
    financialImpact: FinancialImpact
    rootCause: Optional[str] = None
    relatedFindingIds: Optional[List[str]] = None
    correlationId: Optional[str] = None

    @model_validator(mode="after")
    def _check_schema(self) -> "CognitiveFinding":
        if self.kind.category != self.category:
            raise ValueError(
                f"finding kind {self.kind.value} belongs to {self.kind.category.value}, "
                f"not {self.category.value}"
            )
        required = _REQUIRED_METRICS.get(self.category, _DEFAULT_REQUIRED_METRICS)
        missing = [name for name in required if getattr(self.metrics, name) is None]
        if missing:
            raise ValueError(
                f"{self.category.value} finding {self.id} is missing metrics: {', '.join(missing)}"
            )
        return self


class ScoreComponents(BaseModel):
    impactBRL: float
    confidence: float
    urgency: int
    effort: float


class RankedDecision(BaseModel):
    """A finding with its priority rank and the components of its score."""
    rank: int = Field(..., ge=1)
    score: float
    components: ScoreComponents
    finding: CognitiveFinding


# =============================================================================
# Diagnostics
# =============================================================================


class ModeAssessment(BaseModel):
    mode: StrategicMode
    score: float = Field(..., ge=0, le=100)
    confidence: float = Field(..., ge=0, le=1)
    signals: List[str] = Field(default_factory=list)
    description: str


class Bottleneck(BaseModel):
    """
    Revenue factor with the largest simulated marginal impact.

    hasSufficientData is False for the placeholder returned when account or
    session data is missing; callers must not act on that placeholder.
    """
    constraint: BottleneckConstraint
    severity: float = Field(..., ge=0, le=1)
    explanation: str
    financialImpact: FinancialImpact
    unlockAction: str
    hasSufficientData: bool = True


class BudgetAllocation(BaseModel):
    entity: str
    entityName: str
    currentBudget: float
    recommendedBudget: float
    delta: float
    expectedRoas: float
    expectedRevenue: float
    rationale: str


class BudgetPlan(BaseModel):
    totalBudget: float
    allocations: List[BudgetAllocation] = Field(default_factory=list)
    expectedTotalRevenue: float
    expectedTotalRoas: float
    currentTotalRoas: float
    improvementBRL: float
    confidence: float = Field(..., ge=0, le=1)


class PacingProjection(BaseModel):
    metric: str
    label: str
    currentValue: float
    target: float
    dailyRate: float
    projectedEndOfMonth: float
    gapToTarget: float
    gapPct: float
    projectedGapBRL: Optional[float] = None
    requiredDailyRate: float
    scenario: PacingScenario
    confidence: float = Field(..., ge=0, le=1)


# =============================================================================
# Response
# =============================================================================


class KeyMetric(BaseModel):
    label: str
    value: str
    status: KpiStatus


class ExecutiveSummary(BaseModel):
    headline: str
    topAction: str
    keyMetrics: List[KeyMetric] = Field(default_factory=list)


class Segmentation(BaseModel):
    devices: List[DeviceSlice] = Field(default_factory=list)
    demographics: List[DemographicSlice] = Field(default_factory=list)
    geographic: List[GeographicSlice] = Field(default_factory=list)


class LegacyInsight(BaseModel):
    """Finding projection for consumers that predate financial impact."""
    id: str
    category: FindingCategory
    severity: Severity
    title: str
    description: str
    metrics: FindingMetrics
    recommendations: List[Recommendation]
    source: FindingSource


class IntelligenceSummary(BaseModel):
    healthScore: int = Field(..., ge=0, le=100)
    topPriority: Optional[LegacyInsight] = None
    quickWins: List[LegacyInsight] = Field(default_factory=list)


class LegacyIntelligenceResponse(BaseModel):
    insights: List[LegacyInsight]
    summary: IntelligenceSummary
    generatedAt: datetime


class CognitiveResponse(BaseModel):
    """Full output of one engine run."""
    mode: ModeAssessment
    bottleneck: Bottleneck
    healthScore: int = Field(..., ge=0, le=100)
    findings: List[RankedDecision]
    pacingProjections: List[PacingProjection]
    executiveSummary: ExecutiveSummary
    budgetPlan: Optional[BudgetPlan] = None
    accountTrend: Optional[TrendData] = None
    segmentation: Optional[Segmentation] = None
    insights: List[LegacyInsight]
    summary: IntelligenceSummary
    generatedAt: datetime
