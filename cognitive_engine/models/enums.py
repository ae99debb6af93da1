"""
Enumeration definitions for the cognitive engine.

All enums inherit from both `str` and `Enum` so that pydantic models serialize
them as plain strings in API responses and accept plain strings on input.

Groups:
- Finding taxonomy: FindingCategory, FindingKind, Severity, FindingSource
- Recommendation levels: ImpactLevel, EffortLevel, Timeframe
- Diagnostics: TrendClassification, StrategicMode, BottleneckConstraint,
  PacingScenario, KpiStatus
- Catalog tags: SkuStatus, DemographicType
"""

from enum import Enum
from typing import Dict


# =============================================================================
# Finding Taxonomy
# =============================================================================

class FindingCategory(str, Enum):
    """
    Grouping of findings by the analyzer family that produced them.

    The correlation table and the executive summary read findings through
    this category; segmentation analyzers own the last three values.
    """
    PLANNING_GAP = "planning_gap"
    EFFICIENCY = "efficiency"
    OPPORTUNITY = "opportunity"
    RISK = "risk"
    COMPOSITION = "composition"
    DEVICE = "device"
    DEMOGRAPHIC = "demographic"
    GEOGRAPHIC = "geographic"


class Severity(str, Enum):
    """
    Traffic-light severity of a finding.

    `success` marks positive patterns worth reinforcing; `danger` marks
    problems that need action in the current cycle.
    """
    SUCCESS = "success"
    WARNING = "warning"
    DANGER = "danger"

    @property
    def rank(self) -> int:
        """Ordinal used for severity floors (success < warning < danger)."""
        return _SEVERITY_RANK[self.value]


_SEVERITY_RANK: Dict[str, int] = {"success": 0, "warning": 1, "danger": 2}


class FindingSource(str, Enum):
    """Where a finding originated: plan comparison, alert rule or pattern rule."""
    PLANNING = "planning"
    ALERT = "alert"
    PATTERN = "pattern"


class FindingKind(str, Enum):
    """
    Closed set of rules that can emit a finding.

    Every analyzer rule owns exactly one kind. The value doubles as the finding
    id for account-level rules; per-entity rules (SKU trend decline) build a
    namespaced id from the entity and keep the kind for matching. The
    correlation table is keyed on kinds, never on id strings.
    """
    # Planning gap
    PG_REVENUE = "pg-revenue-captada"
    PG_ROAS = "pg-roas"
    PG_BUDGET = "pg-budget"
    PG_CONVERSION = "pg-conversion"
    PG_TICKET = "pg-ticket"
    PG_SESSIONS = "pg-sessions"
    PG_CPA = "pg-cpa"
    # Efficiency
    EFF_ZERO_CONV = "eff-zero-conv"
    EFF_ZERO_CONV_SKU = "eff-zero-conv-sku"
    EFF_LOW_ROAS_CAMPAIGN = "eff-low-roas-camp"
    EFF_LOW_ROAS_SKU = "eff-low-roas-sku"
    EFF_HIGH_CPA_SKU = "eff-high-cpa-sku"
    EFF_BUDGET_DISTRIBUTION = "eff-budget-dist"
    # Opportunity
    OPP_UNDERINVESTED = "opp-underinvested"
    OPP_SCALABLE = "opp-scalable"
    OPP_GROWTH = "opp-growth"
    # Risk
    RISK_ROAS_CRITICAL = "risk-roas-critical"
    RISK_PAUSE_SKUS = "risk-pause-skus"
    RISK_BOUNCE = "risk-bounce"
    RISK_CART_ABANDON = "risk-cart-abandon"
    RISK_CONCENTRATION = "risk-concentration"
    SKU_TREND_DECLINE = "sku-trend-decline"
    # Composition
    COMP_PAID_HEAVY = "comp-paid-heavy"
    COMP_ORGANIC_STRONG = "comp-organic-strong"
    COMP_DIRECT_STRONG = "comp-direct-strong"
    COMP_BEST_CHANNEL = "comp-best-channel"
    # Device
    DEV_MOBILE_LOW_ROAS = "dev-mobile-low-roas"
    DEV_DESKTOP_OPPORTUNITY = "dev-desktop-opportunity"
    DEV_TABLET_WASTE = "dev-tablet-waste"
    # Demographic
    DEMO_AGE_HIGH_CPA = "demo-age-high-cpa"
    DEMO_AGE_BEST = "demo-age-best"
    DEMO_GENDER_GAP = "demo-gender-gap"
    # Geographic
    GEO_TOP_REGION = "geo-top-region"
    GEO_SCALE_BEST = "geo-scale-best"
    GEO_PAUSE_WORST = "geo-pause-worst"

    @property
    def category(self) -> FindingCategory:
        """Category this kind belongs to."""
        return KIND_CATEGORY[self]


_KIND_PREFIX_CATEGORY: Dict[str, FindingCategory] = {
    "pg-": FindingCategory.PLANNING_GAP,
    "eff-": FindingCategory.EFFICIENCY,
    "opp-": FindingCategory.OPPORTUNITY,
    "risk-": FindingCategory.RISK,
    "sku-": FindingCategory.RISK,
    "comp-": FindingCategory.COMPOSITION,
    "dev-": FindingCategory.DEVICE,
    "demo-": FindingCategory.DEMOGRAPHIC,
    "geo-": FindingCategory.GEOGRAPHIC,
}

KIND_CATEGORY: Dict[FindingKind, FindingCategory] = {
    kind: category
    for kind in FindingKind
    for prefix, category in _KIND_PREFIX_CATEGORY.items()
    if kind.value.startswith(prefix)
}


# =============================================================================
# Recommendation Levels
# =============================================================================

class ImpactLevel(str, Enum):
    """Qualitative impact of following a recommendation."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class EffortLevel(str, Enum):
    """Qualitative effort needed to execute a recommendation."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Timeframe(str, Enum):
    """
    When a financial impact is expected to materialize.

    - immediate: days (pausing spend, cutting waste)
    - short: within the current month
    - medium: beyond the current month
    """
    IMMEDIATE = "immediate"
    SHORT = "short"
    MEDIUM = "medium"


# =============================================================================
# Diagnostics
# =============================================================================

class TrendClassification(str, Enum):
    """Direction of a historical series after slope and moving-average checks."""
    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"


class StrategicMode(str, Enum):
    """
    Coarse strategic state of the account.

    - ESCALAR: healthy, increase investment
    - OTIMIZAR: moderate, improve efficiency before scaling
    - PROTEGER: below expectations, cut waste and protect margin
    - REESTRUTURAR: critical, urgent action on several fronts
    """
    ESCALAR = "ESCALAR"
    OTIMIZAR = "OTIMIZAR"
    PROTEGER = "PROTEGER"
    REESTRUTURAR = "REESTRUTURAR"


class BottleneckConstraint(str, Enum):
    """Revenue-decomposition factor that limits growth the most."""
    TRAFFIC = "traffic"
    CONVERSION = "conversion"
    AOV = "aov"
    MARGIN = "margin"
    BUDGET = "budget"


class PacingScenario(str, Enum):
    """Run-rate outcome of a plan metric at month end."""
    ON_TRACK = "on_track"
    AT_RISK = "at_risk"
    OFF_TRACK = "off_track"


class KpiStatus(str, Enum):
    """Status badge of an executive-summary key metric."""
    OK = "ok"
    WARN = "warn"
    DANGER = "danger"


# =============================================================================
# Catalog Tags
# =============================================================================

class SkuStatus(str, Enum):
    """
    Operational tag of a SKU in the catalog.

    - escalar: scale investment
    - manter: keep as is
    - pausar: pause spend
    """
    ESCALAR = "escalar"
    MANTER = "manter"
    PAUSAR = "pausar"


class DemographicType(str, Enum):
    """Dimension of a demographic slice."""
    AGE = "age"
    GENDER = "gender"
