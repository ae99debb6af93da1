"""
Historical snapshot store.

Reads and writes daily metric snapshots in PostgreSQL through the shared
asyncpg pool. The engine core never calls this module directly: trend
enrichment receives fetch_historical_snapshots as an injected callable, and
persistence runs as a background job after the response is produced.

Operations:
    fetch_historical_snapshots(tenant_id, scope, days) -> ordered snapshots
    persist_daily_snapshot(tenant_id, snapshot_date, account, skus) -> rows written

Persistence is an idempotent upsert keyed by (tenant, date, scope). The
account is stored under scope 'account'; SKUs under 'sku:<SKU>', capped to the
top spenders and written in fixed-size batches.
"""

import json
import logging
from datetime import date
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from cognitive_engine.core.database import get_db_pool
from cognitive_engine.models.schemas import AccountSlice, MetricSnapshot, SkuSlice
from cognitive_engine.sql.snapshot_queries import (
    ACCOUNT_SCOPE,
    DEFAULT_HISTORY_DAYS,
    get_history_start,
    get_snapshot_history_query,
    get_snapshot_upsert_query,
    sku_scope,
)


logger = logging.getLogger(__name__)


# (tenant_id, scope, days) -> snapshots ordered by date ascending
SnapshotFetcher = Callable[[str, str, int], Awaitable[List[MetricSnapshot]]]


# =============================================================================
# Constants
# =============================================================================

SNAPSHOT_METRIC_KEYS: tuple = (
    "revenue", "ads", "roas", "cpa", "impressions", "clicks", "conversions", "ctr",
)

MAX_SKU_SCOPES: int = 50

UPSERT_BATCH_SIZE: int = 10


# =============================================================================
# Metric Extraction
# =============================================================================

def slice_metrics(item: Any) -> Dict[str, float]:
    """Flat snapshot metrics of an account or SKU slice."""
    return {key: float(getattr(item, key)) for key in SNAPSHOT_METRIC_KEYS}


def _decode_metrics(raw: Any) -> Dict[str, float]:
    # asyncpg returns jsonb as text unless a codec is registered
    if raw is None:
        return {}
    if isinstance(raw, str):
        raw = json.loads(raw)
    return {str(k): float(v) for k, v in raw.items() if v is not None}


# =============================================================================
# Read
# =============================================================================

async def fetch_historical_snapshots(
    tenant_id: str,
    scope: str,
    days: int = DEFAULT_HISTORY_DAYS,
    as_of: Optional[date] = None,
) -> List[MetricSnapshot]:
    """
    Fetch daily snapshots for one scope, oldest first.

    Args:
        tenant_id: Tenant identifier
        scope: 'account' or 'sku:<SKU>'
        days: Look-back window in days
        as_of: End of the window (defaults to today)

    Returns:
        Snapshots ordered by date ascending

    Raises:
        asyncpg.PostgresError: On query failure. Callers fanning out across
            scopes are expected to isolate this per scope.
    """
    since = get_history_start(as_of or date.today(), days)
    pool = await get_db_pool()

    async with pool.acquire() as conn:
        rows = await conn.fetch(get_snapshot_history_query(), tenant_id, scope, since)

    return [
        MetricSnapshot(date=row["snapshot_date"], metrics=_decode_metrics(row["metrics"]))
        for row in rows
    ]


# =============================================================================
# Write
# =============================================================================

async def persist_daily_snapshot(
    tenant_id: str,
    snapshot_date: date,
    account: Optional[AccountSlice] = None,
    skus: Sequence[SkuSlice] = (),
    sku_limit: int = MAX_SKU_SCOPES,
    batch_size: int = UPSERT_BATCH_SIZE,
) -> int:
    """
    Upsert the day's account and SKU snapshots.

    Args:
        tenant_id: Tenant identifier
        snapshot_date: Day the metrics describe
        account: Account slice; skipped when None
        skus: SKU slices; only the top `sku_limit` by spend are stored
        sku_limit: Maximum SKU scopes written
        batch_size: SKU rows per executemany call

    Returns:
        Number of rows upserted
    """
    query = get_snapshot_upsert_query()
    top_skus = sorted(skus, key=lambda s: s.ads, reverse=True)[:sku_limit]
    sku_rows = [
        (tenant_id, snapshot_date, sku_scope(s.sku), json.dumps(slice_metrics(s)))
        for s in top_skus
    ]

    written = 0
    pool = await get_db_pool()
    async with pool.acquire() as conn:
        if account is not None:
            await conn.execute(
                query, tenant_id, snapshot_date, ACCOUNT_SCOPE, json.dumps(slice_metrics(account))
            )
            written += 1

        for start in range(0, len(sku_rows), batch_size):
            batch = sku_rows[start:start + batch_size]
            await conn.executemany(query, batch)
            written += len(batch)

    logger.info(f"Persisted {written} snapshot rows for tenant={tenant_id} date={snapshot_date}")
    return written
