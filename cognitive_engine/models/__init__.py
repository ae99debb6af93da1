"""
Package initialization file for cognitive engine models.

Re-exports every enumeration and pydantic schema so the rest of the package
can import from cognitive_engine.models directly.

Usage:
    from cognitive_engine.models import (
        AnalysisContext,
        DataCube,
        CognitiveFinding,
        FindingKind,
        Severity,
    )
"""

# =============================================================================
# Enums
# =============================================================================

from cognitive_engine.models.enums import (
    # Finding taxonomy
    FindingCategory,
    FindingKind,
    FindingSource,
    Severity,
    KIND_CATEGORY,
    # Recommendation levels
    ImpactLevel,
    EffortLevel,
    Timeframe,
    # Diagnostics
    TrendClassification,
    StrategicMode,
    BottleneckConstraint,
    PacingScenario,
    KpiStatus,
    # Catalog tags
    SkuStatus,
    DemographicType,
)

# =============================================================================
# Schemas
# =============================================================================

from cognitive_engine.models.schemas import (
    # Input contract
    AccountMetrics,
    SkuMetrics,
    CampaignMetrics,
    GA4Metrics,
    ChannelMetrics,
    PlanningSlice,
    SkuExtras,
    DeviceMetrics,
    DemographicMetrics,
    GeographicMetrics,
    AnalysisContext,
    # Data cube
    CubeMeta,
    TrendData,
    AccountSlice,
    SkuSlice,
    CampaignSlice,
    GA4Slice,
    ChannelSlice,
    DeviceSlice,
    DemographicSlice,
    GeographicSlice,
    CubeTrends,
    DataCube,
    MetricSnapshot,
    # Findings
    Recommendation,
    FindingMetrics,
    FinancialImpact,
    CognitiveFinding,
    ScoreComponents,
    RankedDecision,
    # Diagnostics
    ModeAssessment,
    Bottleneck,
    BudgetAllocation,
    BudgetPlan,
    PacingProjection,
    # Response
    KeyMetric,
    ExecutiveSummary,
    Segmentation,
    LegacyInsight,
    IntelligenceSummary,
    LegacyIntelligenceResponse,
    CognitiveResponse,
)

__all__ = [
    # Enums
    "FindingCategory",
    "FindingKind",
    "FindingSource",
    "Severity",
    "KIND_CATEGORY",
    "ImpactLevel",
    "EffortLevel",
    "Timeframe",
    "TrendClassification",
    "StrategicMode",
    "BottleneckConstraint",
    "PacingScenario",
    "KpiStatus",
    "SkuStatus",
    "DemographicType",
    # Input contract
    "AccountMetrics",
    "SkuMetrics",
    "CampaignMetrics",
    "GA4Metrics",
    "ChannelMetrics",
    "PlanningSlice",
    "SkuExtras",
    "DeviceMetrics",
    "DemographicMetrics",
    "GeographicMetrics",
    "AnalysisContext",
    # Data cube
    "CubeMeta",
    "TrendData",
    "AccountSlice",
    "SkuSlice",
    "CampaignSlice",
    "GA4Slice",
    "ChannelSlice",
    "DeviceSlice",
    "DemographicSlice",
    "GeographicSlice",
    "CubeTrends",
    "DataCube",
    "MetricSnapshot",
    # Findings
    "Recommendation",
    "FindingMetrics",
    "FinancialImpact",
    "CognitiveFinding",
    "ScoreComponents",
    "RankedDecision",
    # Diagnostics
    "ModeAssessment",
    "Bottleneck",
    "BudgetAllocation",
    "BudgetPlan",
    "PacingProjection",
    # Response
    "KeyMetric",
    "ExecutiveSummary",
    "Segmentation",
    "LegacyInsight",
    "IntelligenceSummary",
    "LegacyIntelligenceResponse",
    "CognitiveResponse",
]
