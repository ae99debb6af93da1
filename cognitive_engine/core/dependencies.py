"""
FastAPI dependency injection for the cognitive engine service.

Key Dependencies Provided:
- get_settings_dependency: Returns the cached Settings singleton
- SettingsDep: Type alias for injecting Settings into endpoints
- get_snapshot_fetcher: Returns the historical snapshot fetch callable
- SnapshotFetcherDep: Type alias for injecting the fetcher into endpoints

Overriding these in tests keeps endpoints free of database access:

    app.dependency_overrides[get_settings_dependency] = lambda: test_settings
    app.dependency_overrides[get_snapshot_fetcher] = lambda: fake_fetch
"""

from typing import Annotated

from fastapi import Depends

from cognitive_engine.core.config import Settings, get_settings
from cognitive_engine.services.snapshot_store import SnapshotFetcher, fetch_historical_snapshots


# =============================================================================
# Settings Dependency
# =============================================================================

def get_settings_dependency() -> Settings:
    """
    Return the Settings singleton instance.

    A thin wrapper around get_settings() so FastAPI's dependency override
    mechanism can swap settings in tests.
    """
    return get_settings()


# =============================================================================
# Snapshot Store Dependency
# =============================================================================

def get_snapshot_fetcher() -> SnapshotFetcher:
    """Return the callable used to fetch historical snapshots per scope."""
    return fetch_historical_snapshots


# =============================================================================
# Type Aliases for Dependency Injection
# =============================================================================

# Usage: async def endpoint(settings: SettingsDep)
SettingsDep = Annotated[Settings, Depends(get_settings_dependency)]

# Usage: async def endpoint(fetch: SnapshotFetcherDep)
SnapshotFetcherDep = Annotated[SnapshotFetcher, Depends(get_snapshot_fetcher)]
