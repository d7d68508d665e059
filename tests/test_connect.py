"""Unit tests for the lazily created database pool."""

import asyncio

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from database import connect


@pytest.fixture(autouse=True)
def reset_pool():
    connect._pool = None
    connect._pool_lock = asyncio.Lock()
    yield
    connect._pool = None


@pytest.fixture
def configured(monkeypatch):
    monkeypatch.setattr(connect.settings, "DB_HOST", "localhost")
    monkeypatch.setattr(connect.settings, "DB_NAME", "records")
    monkeypatch.setattr(connect.settings, "DB_USER", "reader")


@pytest.mark.asyncio
class TestPool:

    async def test_missing_credentials_raise(self, monkeypatch):
        monkeypatch.setattr(connect.settings, "DB_HOST", None)
        with pytest.raises(RuntimeError):
            await connect.get_db_pool()

    async def test_concurrent_first_use_creates_one_pool(self, configured):
        pool = MagicMock()

        async def create_pool(**kwargs):
            await asyncio.sleep(0.01)
            return pool

        with patch("database.connect.asyncpg.create_pool", AsyncMock(side_effect=create_pool)) as create:
            pools = await asyncio.gather(*(connect.get_db_pool() for _ in range(5)))

        assert all(p is pool for p in pools)
        create.assert_awaited_once()

    async def test_close_resets_pool(self, configured):
        pool = MagicMock()
        pool.close = AsyncMock()
        with patch("database.connect.asyncpg.create_pool", AsyncMock(return_value=pool)):
            await connect.get_db_pool()
            await connect.close_db_pool()

        pool.close.assert_awaited_once()
        assert connect._pool is None
