"""
Snapshot Queries Module for the cognitive engine.

Parameterized PostgreSQL statements for the metric_snapshots table, which
stores one row of flat numeric metrics per (tenant, day, scope):

- scope 'account' holds the account-level totals
- scope 'sku:<SKU>' holds one product's totals

The unique key (tenant_id, snapshot_date, scope) makes the daily upsert
idempotent: re-running a day overwrites that day's metrics.
"""

from datetime import date, timedelta


# =============================================================================
# CONSTANTS
# =============================================================================

SNAPSHOT_TABLE: str = "metric_snapshots"

ACCOUNT_SCOPE: str = "account"

SKU_SCOPE_PREFIX: str = "sku:"

# Default trend look-back in days
DEFAULT_HISTORY_DAYS: int = 30


def sku_scope(sku: str) -> str:
    """Scope key for one product's snapshot rows."""
    return f"{SKU_SCOPE_PREFIX}{sku}"


# =============================================================================
# DDL
# =============================================================================

def get_create_snapshot_table_query() -> str:
    """
    DDL for the snapshot table and its lookup index.

    Returns:
        PostgreSQL statement creating the table when missing.
    """
    return f"""
        CREATE TABLE IF NOT EXISTS {SNAPSHOT_TABLE} (
            tenant_id      TEXT        NOT NULL,
            snapshot_date  DATE        NOT NULL,
            scope          TEXT        NOT NULL,
            metrics        JSONB       NOT NULL DEFAULT '{{}}'::jsonb,
            updated_at     TIMESTAMPTZ NOT NULL DEFAULT now(),
            PRIMARY KEY (tenant_id, snapshot_date, scope)
        );
        CREATE INDEX IF NOT EXISTS idx_{SNAPSHOT_TABLE}_scope_date
            ON {SNAPSHOT_TABLE} (tenant_id, scope, snapshot_date);
    """


# =============================================================================
# READ
# =============================================================================

def get_history_start(as_of: date, days: int = DEFAULT_HISTORY_DAYS) -> date:
    """First date included in a look-back window ending on as_of."""
    return as_of - timedelta(days=days)


def get_snapshot_history_query() -> str:
    """
    Fetch snapshots for one tenant and scope since a start date.

    Parameters:
        $1 tenant_id (text), $2 scope (text), $3 start date (date)

    Returns:
        Query yielding (snapshot_date, metrics) ordered by date ascending.
    """
    return f"""
        SELECT snapshot_date, metrics
        FROM {SNAPSHOT_TABLE}
        WHERE tenant_id = $1
          AND scope = $2
          AND snapshot_date >= $3
        ORDER BY snapshot_date ASC
    """


# =============================================================================
# WRITE
# =============================================================================

def get_snapshot_upsert_query() -> str:
    """
    Upsert one snapshot row keyed by (tenant_id, snapshot_date, scope).

    Parameters:
        $1 tenant_id (text), $2 snapshot_date (date), $3 scope (text),
        $4 metrics (jsonb, passed as a JSON string)
    """
    return f"""
        INSERT INTO {SNAPSHOT_TABLE} (tenant_id, snapshot_date, scope, metrics, updated_at)
        VALUES ($1, $2, $3, $4::jsonb, now())
        ON CONFLICT (tenant_id, snapshot_date, scope)
        DO UPDATE SET metrics = EXCLUDED.metrics, updated_at = now()
    """
