"""
Services Module for the cognitive engine.

Stateless building blocks of the analysis pipeline. Each service is a pure
function of its inputs except snapshot_store, which owns the only database
access.

Services:
- ratios: zero-safe division and rounding helpers
- financial_impact: impact-estimation formulas shared by every analyzer
- cube_builder: AnalysisContext -> DataCube with all derived fields
- snapshot_store: historical snapshot reads and daily upserts (asyncpg)
- trend_analyzer: OLS slope + moving-average trend classification (numpy/pandas)
- correlation: causal-pattern linking of findings
- mode_detector: weighted strategic mode classification
- bottleneck: revenue-decomposition bottleneck detection
- budget_optimizer: greedy SKU budget reallocation
- ranker: priority scoring of findings
- pacing: month-end run-rate projections
- templates: executive summary strings

The orchestrator lives in cognitive_engine.services.engine and is imported
from there directly: it depends on the analyzers, which depend on this
package.
"""

# =============================================================================
# Ratio Helpers
# =============================================================================

from cognitive_engine.services.ratios import (
    safe_div,
    pct,
    round2,
    share,
    mean,
)

# =============================================================================
# Financial Impact Exports
# Formula library; every finding is quantified through one of these
# =============================================================================

from cognitive_engine.services.financial_impact import (
    format_brl,
    build_impact,
    zero_impact,
    quantify_revenue_gap,
    quantify_wasted_spend,
    quantify_budget_reallocation,
    quantify_underinvestment,
    quantify_pause_skus,
    quantify_conversion_improvement,
    quantify_concentration_risk,
    quantify_paid_dependency,
    quantify_bounce_impact,
    quantify_cart_abandonment,
    quantify_trend_decline,
)

# =============================================================================
# Data Cube Exports
# =============================================================================

from cognitive_engine.services.cube_builder import (
    build_data_cube,
    attach_trends,
    derive_sku_status,
)

# =============================================================================
# Historical Snapshot Exports
# Database-backed reads and writes plus the trend analysis built on them
# =============================================================================

from cognitive_engine.services.snapshot_store import (
    SnapshotFetcher,
    fetch_historical_snapshots,
    persist_daily_snapshot,
)

from cognitive_engine.services.trend_analyzer import (
    analyze_series,
    analyze_trend,
    analyze_trends,
    select_trend_skus,
    collect_trends,
)

# =============================================================================
# Diagnostics Exports
# =============================================================================

from cognitive_engine.services.correlation import (
    CausalPattern,
    CAUSAL_PATTERNS,
    correlate_findings,
)

from cognitive_engine.services.mode_detector import (
    classify_mode,
    detect_strategic_mode,
)

from cognitive_engine.services.bottleneck import (
    detect_bottleneck,
    insufficient_data_bottleneck,
)

from cognitive_engine.services.budget_optimizer import (
    optimize_budget,
    reduction_rate,
)

# =============================================================================
# Output Exports
# =============================================================================

from cognitive_engine.services.ranker import (
    rank_decisions,
    score_finding,
)

from cognitive_engine.services.pacing import (
    compute_pacing_projections,
    project_metric,
)

from cognitive_engine.services.templates import (
    executive_summary,
    describe_projection,
)


__all__ = [
    # Ratios
    'safe_div',
    'pct',
    'round2',
    'share',
    'mean',
    # Financial impact
    'format_brl',
    'build_impact',
    'zero_impact',
    'quantify_revenue_gap',
    'quantify_wasted_spend',
    'quantify_budget_reallocation',
    'quantify_underinvestment',
    'quantify_pause_skus',
    'quantify_conversion_improvement',
    'quantify_concentration_risk',
    'quantify_paid_dependency',
    'quantify_bounce_impact',
    'quantify_cart_abandonment',
    'quantify_trend_decline',
    # Data cube
    'build_data_cube',
    'attach_trends',
    'derive_sku_status',
    # Snapshots and trends
    'SnapshotFetcher',
    'fetch_historical_snapshots',
    'persist_daily_snapshot',
    'analyze_series',
    'analyze_trend',
    'analyze_trends',
    'select_trend_skus',
    'collect_trends',
    # Diagnostics
    'CausalPattern',
    'CAUSAL_PATTERNS',
    'correlate_findings',
    'classify_mode',
    'detect_strategic_mode',
    'detect_bottleneck',
    'insufficient_data_bottleneck',
    'optimize_budget',
    'reduction_rate',
    # Output
    'rank_decisions',
    'score_finding',
    'compute_pacing_projections',
    'project_metric',
    'executive_summary',
    'describe_projection',
]
