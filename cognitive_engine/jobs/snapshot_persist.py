"""
Daily metric snapshot persistence job.

Stores the account and top SKU metrics of an analyzed context as the day's
historical snapshot, feeding future trend analysis. The API schedules it
through FastAPI BackgroundTasks after the response is built, so it never
delays or fails the request that produced the data.

Idempotency:
    The upsert is keyed by (tenant, date, scope); re-running for the same
    tenant and day overwrites the rows with the latest metrics.

Usage:
    from cognitive_engine.jobs.snapshot_persist import run_snapshot_persist

    background_tasks.add_task(run_snapshot_persist, context)

    # Or awaited directly
    result = await run_snapshot_persist(context, snapshot_date=date(2025, 6, 15))
    if not result['success']:
        print(result['error'])
"""

import logging
from datetime import date
from typing import Any, Dict, Optional

from cognitive_engine.core.config import get_settings
from cognitive_engine.models.schemas import AnalysisContext
from cognitive_engine.services.cube_builder import build_data_cube
from cognitive_engine.services.snapshot_store import persist_daily_snapshot


logger = logging.getLogger(__name__)


async def run_snapshot_persist(
    context: AnalysisContext,
    snapshot_date: Optional[date] = None,
) -> Dict[str, Any]:
    """
    Persist the day's snapshot for the context's tenant.

    Args:
        context: The analyzed metric slices
        snapshot_date: Day the metrics describe (default: the context's periodEnd)

    Returns:
        Dict with:
        - success: True if rows were written or the job was skipped
        - skipped: True when no snapshot database is configured
        - rows: Number of rows upserted (if written)
        - date: The snapshot date as string
        - error: Error message (if failed)

    Raises:
        No exceptions are raised - failures are logged and captured in the
        return dict.
    """
    settings = get_settings()
    target_date = snapshot_date or context.periodEnd

    if not settings.snapshots_enabled:
        return {
            'success': True,
            'skipped': True,
            'reason': 'DATABASE_URL not configured',
            'date': str(target_date),
        }

    if context.account is None and not context.skus:
        return {
            'success': True,
            'skipped': True,
            'reason': 'No account or SKU metrics to persist',
            'date': str(target_date),
        }

    try:
        cube = build_data_cube(context)
        rows = await persist_daily_snapshot(
            context.tenantId,
            target_date,
            account=cube.account,
            skus=cube.skus,
            sku_limit=settings.snapshot_sku_limit,
            batch_size=settings.snapshot_batch_size,
        )
    except Exception as e:
        logger.error(
            f"Snapshot persistence failed for tenant={context.tenantId} date={target_date}: {e}",
            exc_info=True,
        )
        return {
            'success': False,
            'error': f'Failed to persist snapshot: {str(e)}',
            'date': str(target_date),
        }

    logger.info(f"Snapshot job stored {rows} rows for tenant={context.tenantId} date={target_date}")
    return {
        'success': True,
        'rows': rows,
        'date': str(target_date),
    }
