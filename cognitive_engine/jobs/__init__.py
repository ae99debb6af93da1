"""
Background jobs for the cognitive engine.

- snapshot_persist: stores the day's account and SKU metrics as historical
  snapshots for trend analysis. Scheduled through FastAPI BackgroundTasks by
  the API; failures are logged and never reach the caller.

Idempotency:
    Snapshots are upserted by (tenant, date, scope), so re-running a day
    overwrites rather than duplicates.

Environment Requirements:
    DATABASE_URL: PostgreSQL DSN holding the metric_snapshots table. Without
    it the job reports itself as skipped.
"""

from cognitive_engine.jobs.snapshot_persist import run_snapshot_persist


__all__ = [
    "run_snapshot_persist",
]
