"""
Core infrastructure package for the cognitive engine service.

Provides:
- Configuration management via pydantic-settings
- Async PostgreSQL connectivity via asyncpg (metric snapshot store)

FastAPI dependencies live in cognitive_engine.core.dependencies and are
imported from there; they depend on the services layer.

Usage:
    from cognitive_engine.core import get_settings, get_db_pool
"""

# =============================================================================
# Re-exports from cognitive_engine.core.config
# =============================================================================
from cognitive_engine.core.config import Settings, get_settings

# =============================================================================
# Re-exports from cognitive_engine.core.database
# =============================================================================
from cognitive_engine.core.database import init_db, close_db, get_db_pool

__all__ = [
    # Configuration management (from config.py)
    'Settings',
    'get_settings',
    # Database pool lifecycle (from database.py)
    'init_db',
    'close_db',
    'get_db_pool',
]
