"""
SQL Query Module for the cognitive engine.

Parameterized statements for the metric snapshot store, kept apart from the
services that run them.

Example usage:
    from cognitive_engine.sql import get_snapshot_history_query, sku_scope

    rows = await conn.fetch(
        get_snapshot_history_query(), tenant_id, sku_scope("27290BR-CP"), since
    )
"""

from cognitive_engine.sql.snapshot_queries import (
    get_create_snapshot_table_query,
    get_snapshot_history_query,
    get_snapshot_upsert_query,
    get_history_start,
    sku_scope,
    SNAPSHOT_TABLE,
    ACCOUNT_SCOPE,
    SKU_SCOPE_PREFIX,
    DEFAULT_HISTORY_DAYS,
)

__all__ = [
    'get_create_snapshot_table_query',
    'get_snapshot_history_query',
    'get_snapshot_upsert_query',
    'get_history_start',
    'sku_scope',
    'SNAPSHOT_TABLE',
    'ACCOUNT_SCOPE',
    'SKU_SCOPE_PREFIX',
    'DEFAULT_HISTORY_DAYS',
]
