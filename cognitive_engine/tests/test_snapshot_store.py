"""
Tests for the historical snapshot store and the database pool lifecycle.

All database access goes through the mock_db_pool fixture; no PostgreSQL
server is contacted.
"""

import json
from datetime import date
from unittest.mock import AsyncMock, patch

import pytest

from cognitive_engine.core import database
from cognitive_engine.core.config import Settings
from cognitive_engine.services.snapshot_store import (
    fetch_historical_snapshots,
    persist_daily_snapshot,
    slice_metrics,
)
from cognitive_engine.sql import (
    get_create_snapshot_table_query,
    get_history_start,
    get_snapshot_upsert_query,
    sku_scope,
)


pytestmark = pytest.mark.asyncio


def _conn(pool):
    return pool.acquire.return_value.__aenter__.return_value


class TestFetchHistoricalSnapshots:

    async def test_rows_become_snapshots(self, mock_database) -> None:
        _conn(mock_database).fetch.return_value = [
            {'snapshot_date': date(2025, 6, 1), 'metrics': json.dumps({'revenue': 100, 'ads': 20})},
            {'snapshot_date': date(2025, 6, 2), 'metrics': {'revenue': 120, 'ads': None}},
        ]

        snapshots = await fetch_historical_snapshots('acme', 'account', days=14, as_of=date(2025, 6, 15))

        assert [s.date for s in snapshots] == [date(2025, 6, 1), date(2025, 6, 2)]
        assert snapshots[0].metrics == {'revenue': 100.0, 'ads': 20.0}
        # Null metrics are dropped rather than read as zero
        assert snapshots[1].metrics == {'revenue': 120.0}

    async def test_query_parameters(self, mock_database) -> None:
        await fetch_historical_snapshots('acme', 'sku:A-100', days=14, as_of=date(2025, 6, 15))

        args = _conn(mock_database).fetch.call_args.args
        assert args[1:] == ('acme', 'sku:A-100', date(2025, 6, 1))

    async def test_empty_history(self, mock_database) -> None:
        assert await fetch_historical_snapshots('acme', 'account') == []

    async def test_query_errors_propagate(self, mock_database) -> None:
        _conn(mock_database).fetch.side_effect = ConnectionError('connection reset')

        with pytest.raises(ConnectionError):
            await fetch_historical_snapshots('acme', 'account')


class TestPersistDailySnapshot:

    async def test_account_and_skus_upserted(self, mock_database, cube_factory) -> None:
        cube = cube_factory(
            account={'ads': 1000, 'revenue': 5000},
            skus=[{'sku': f'S{i}', 'ads': 100 + i, 'revenue': 500} for i in range(12)],
        )

        rows = await persist_daily_snapshot(
            'acme', date(2025, 6, 15), account=cube.account, skus=cube.skus, batch_size=5,
        )

        conn = _conn(mock_database)
        assert rows == 13
        conn.execute.assert_awaited_once()
        assert conn.execute.call_args.args[1:4] == ('acme', date(2025, 6, 15), 'account')
        # 12 SKU rows in batches of 5
        assert [len(c.args[1]) for c in conn.executemany.call_args_list] == [5, 5, 2]

    async def test_top_spenders_only(self, mock_database, cube_factory) -> None:
        cube = cube_factory(skus=[
            {'sku': 'LOW', 'ads': 10},
            {'sku': 'HIGH', 'ads': 900},
            {'sku': 'MID', 'ads': 300},
        ])

        rows = await persist_daily_snapshot('acme', date(2025, 6, 15), skus=cube.skus, sku_limit=2)

        conn = _conn(mock_database)
        assert rows == 2
        conn.execute.assert_not_awaited()
        (batch,) = [c.args[1] for c in conn.executemany.call_args_list]
        assert [row[2] for row in batch] == [sku_scope('HIGH'), sku_scope('MID')]

    async def test_metrics_serialized_as_json(self, mock_database, cube_factory) -> None:
        cube = cube_factory(account={'ads': 1000, 'revenue': 5000, 'conversions': 20})

        await persist_daily_snapshot('acme', date(2025, 6, 15), account=cube.account)

        payload = json.loads(_conn(mock_database).execute.call_args.args[4])
        assert payload == slice_metrics(cube.account)
        assert payload['roas'] == 5.0

    async def test_nothing_to_write(self, mock_database) -> None:
        assert await persist_daily_snapshot('acme', date(2025, 6, 15)) == 0


class TestQueries:

    async def test_history_start(self) -> None:
        assert get_history_start(date(2025, 6, 15), 30) == date(2025, 5, 16)

    async def test_upsert_conflict_matches_primary_key(self) -> None:
        assert "PRIMARY KEY (tenant_id, snapshot_date, scope)" in get_create_snapshot_table_query()
        assert "ON CONFLICT (tenant_id, snapshot_date, scope)" in get_snapshot_upsert_query()


class TestDatabaseLifecycle:

    @pytest.fixture(autouse=True)
    def reset_pool(self):
        database._pool = None
        yield
        database._pool = None

    async def test_init_requires_database_url(self) -> None:
        with patch('cognitive_engine.core.database.get_settings', return_value=Settings(database_url=None)):
            with pytest.raises(RuntimeError):
                await database.init_db()

    async def test_pool_created_once(self, settings_with_db, mock_db_pool) -> None:
        create_pool = AsyncMock(return_value=mock_db_pool)
        with patch('cognitive_engine.core.database.get_settings', return_value=settings_with_db), \
                patch('cognitive_engine.core.database.asyncpg.create_pool', new=create_pool):
            first = await database.get_db_pool()
            second = await database.get_db_pool()

        assert first is second is mock_db_pool
        create_pool.assert_awaited_once()
        assert create_pool.call_args.kwargs['dsn'] == settings_with_db.database_url

    async def test_close_is_idempotent(self, mock_db_pool) -> None:
        database._pool = mock_db_pool

        await database.close_db()
        await database.close_db()

        mock_db_pool.close.assert_awaited_once()
        assert database._pool is None
