"""
Trend Analyzer Service.

Turns ordered daily snapshots into a TrendData classification for the account
and for the top-spend SKUs.

Algorithm Overview:
    1. Normalize the snapshot history with pandas: one row per date (last
       write wins), ascending, missing metric values read as 0.
    2. Ordinary least-squares slope over the index sequence 0..n-1, normalized
       as slope / mean(values) * 100 to get a %/day figure.
    3. 7-point trailing moving average, compared against the moving average
       7 points earlier. Series of 7 points or fewer compare against the
       first half of the series instead.
    4. Classification:
        - slopePct > 1.5 and MA >= 95% of previous MA   -> improving
        - slopePct < -1.5 and MA <= 105% of previous MA -> declining
        - otherwise                                     -> stable

    Fewer than 3 points yields None: the caller must treat the scope as
    "unknown", never as "stable".

Fan-out:
    collect_trends issues one historical fetch per scope (account plus top-N
    SKUs) concurrently and joins them. A failing scope is logged and simply
    has no trend; it never aborts the other scopes.

Dependencies:
    - numpy: OLS slope and moving averages
    - pandas: snapshot normalization (dedupe, ordering, missing metrics)
"""

import asyncio
import logging
from typing import Dict, List, Optional, Sequence

import numpy as np
import pandas as pd

from cognitive_engine.models.enums import TrendClassification
from cognitive_engine.models.schemas import CubeTrends, MetricSnapshot, SkuSlice, TrendData
from cognitive_engine.services.snapshot_store import SnapshotFetcher
from cognitive_engine.sql.snapshot_queries import ACCOUNT_SCOPE, DEFAULT_HISTORY_DAYS, sku_scope


logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

MIN_DATA_POINTS: int = 3

MOVING_AVERAGE_WINDOW: int = 7

# Daily slope (% of mean) beyond which a series is trending
SLOPE_THRESHOLD_PCT: float = 1.5

# Moving-average tolerance band around the previous window
IMPROVING_MA_FLOOR: float = 0.95
DECLINING_MA_CEILING: float = 1.05

DEFAULT_METRIC_KEY: str = "revenue"

DEFAULT_TOP_SKUS: int = 10


# =============================================================================
# Series Preparation
# =============================================================================

def snapshots_to_frame(snapshots: Sequence[MetricSnapshot]) -> pd.DataFrame:
    """
    Normalize snapshots into a date-indexed frame of metrics.

    Duplicate dates keep the last snapshot; rows are sorted ascending and
    missing metric values are filled with 0.

    Args:
        snapshots: Daily snapshots in any order

    Returns:
        DataFrame indexed by date with one column per metric key
    """
    if not snapshots:
        return pd.DataFrame()

    frame = pd.DataFrame(
        [s.metrics for s in snapshots],
        index=pd.Index([s.date for s in snapshots], name="date"),
    )
    frame = frame[~frame.index.duplicated(keep="last")].sort_index()
    return frame.fillna(0.0)


def metric_series(snapshots: Sequence[MetricSnapshot], metric_key: str) -> np.ndarray:
    """Ordered values of one metric; an absent metric reads as zeros."""
    frame = snapshots_to_frame(snapshots)
    if frame.empty:
        return np.array([], dtype=float)
    if metric_key not in frame.columns:
        return np.zeros(len(frame), dtype=float)
    return frame[metric_key].astype(float).to_numpy()


# =============================================================================
# Trend Computation
# =============================================================================

def ols_slope(values: np.ndarray) -> float:
    """
    Least-squares slope of values against their index.

    Returns 0.0 for fewer than 2 points.
    """
    n = len(values)
    if n < 2:
        return 0.0
    x = np.arange(n, dtype=float)
    x_mean = (n - 1) / 2
    y_mean = float(values.mean())
    denominator = float(((x - x_mean) ** 2).sum())
    if denominator == 0:
        return 0.0
    return float(((x - x_mean) * (values - y_mean)).sum() / denominator)


def classify_trend(slope_pct: float, moving_avg: float, previous_moving_avg: float) -> TrendClassification:
    """Map slope and moving-average comparison to a classification."""
    if slope_pct > SLOPE_THRESHOLD_PCT and moving_avg >= previous_moving_avg * IMPROVING_MA_FLOOR:
        return TrendClassification.IMPROVING
    if slope_pct < -SLOPE_THRESHOLD_PCT and moving_avg <= previous_moving_avg * DECLINING_MA_CEILING:
        return TrendClassification.DECLINING
    return TrendClassification.STABLE


def analyze_series(values: np.ndarray) -> Optional[TrendData]:
    """
    Classify a numeric series.

    Args:
        values: Ordered daily values, oldest first

    Returns:
        TrendData, or None with fewer than 3 points

    Example:
        >>> analyze_series(np.array([100, 110, 120, 130, 140, 150, 160, 170, 180, 190.0])).classification
        <TrendClassification.IMPROVING: 'improving'>
    """
    n = len(values)
    if n < MIN_DATA_POINTS:
        return None

    series_mean = float(values.mean())
    slope = ols_slope(values)
    slope_pct = slope / series_mean * 100 if series_mean != 0 else 0.0

    moving_avg = float(values[-MOVING_AVERAGE_WINDOW:].mean())
    if n > MOVING_AVERAGE_WINDOW:
        previous_window = values[:-MOVING_AVERAGE_WINDOW]
    else:
        previous_window = values[: n // 2]
    previous_window = previous_window[-MOVING_AVERAGE_WINDOW:]
    previous_moving_avg = float(previous_window.mean()) if len(previous_window) else moving_avg

    return TrendData(
        classification=classify_trend(slope_pct, moving_avg, previous_moving_avg),
        slopePct=round(slope_pct, 2),
        movingAvg7d=round(moving_avg, 2),
        previousMovingAvg7d=round(previous_moving_avg, 2),
        dataPoints=n,
    )


def analyze_trend(
    snapshots: Sequence[MetricSnapshot],
    metric_key: str = DEFAULT_METRIC_KEY,
) -> Optional[TrendData]:
    """Trend of one metric across a snapshot history; None below 3 points."""
    return analyze_series(metric_series(snapshots, metric_key))


def analyze_trends(
    account_snapshots: Optional[Sequence[MetricSnapshot]],
    sku_snapshots: Dict[str, Sequence[MetricSnapshot]],
    metric_key: str = DEFAULT_METRIC_KEY,
) -> CubeTrends:
    """
    Trends for the account and each SKU history provided.

    SKUs whose history is too short are left out of the map.
    """
    account_trend = analyze_trend(account_snapshots, metric_key) if account_snapshots else None

    sku_trends: Dict[str, TrendData] = {}
    for sku, snapshots in sku_snapshots.items():
        trend = analyze_trend(snapshots, metric_key)
        if trend is not None:
            sku_trends[sku] = trend

    return CubeTrends(account=account_trend, skus=sku_trends)


# =============================================================================
# Historical Fan-out
# =============================================================================

def select_trend_skus(skus: Sequence[SkuSlice], top_n: int = DEFAULT_TOP_SKUS) -> List[str]:
    """SKU codes of the top-N spenders (spend > 0), highest spend first."""
    spenders = sorted((s for s in skus if s.ads > 0), key=lambda s: s.ads, reverse=True)
    return [s.sku for s in spenders[:top_n]]


async def collect_trends(
    tenant_id: str,
    sku_ids: Sequence[str],
    fetch: SnapshotFetcher,
    days: int = DEFAULT_HISTORY_DAYS,
    metric_key: str = DEFAULT_METRIC_KEY,
) -> CubeTrends:
    """
    Fetch history for the account and the given SKUs concurrently and analyze it.

    Args:
        tenant_id: Tenant whose snapshots are read
        sku_ids: SKUs to enrich (typically from select_trend_skus)
        fetch: Async callable (tenant_id, scope, days) -> snapshots
        days: Look-back window
        metric_key: Metric analyzed in every scope

    Returns:
        CubeTrends; scopes whose fetch failed carry no trend
    """
    targets = [(ACCOUNT_SCOPE, None)] + [(sku_scope(sku), sku) for sku in sku_ids]
    results = await asyncio.gather(
        *(fetch(tenant_id, scope, days) for scope, _ in targets),
        return_exceptions=True,
    )

    account_snapshots: Optional[Sequence[MetricSnapshot]] = None
    sku_snapshots: Dict[str, Sequence[MetricSnapshot]] = {}
    failed = 0

    for (scope, sku), result in zip(targets, results):
        if isinstance(result, asyncio.CancelledError):
            raise result
        if isinstance(result, Exception):
            failed += 1
            logger.warning(
                f"Snapshot fetch failed for tenant={tenant_id} scope={scope}: {result}",
                exc_info=result,
            )
            continue
        if sku is None:
            account_snapshots = result
        else:
            sku_snapshots[sku] = result

    trends = analyze_trends(account_snapshots, sku_snapshots, metric_key)
    logger.info(
        f"Trends for tenant={tenant_id}: account={'yes' if trends.account else 'no'}, "
        f"skus={len(trends.skus)}/{len(sku_ids)}, failed_scopes={failed}"
    )
    return trends
