"""Unit-specific fixtures (no I/O beyond in-memory SQLite)."""

from __future__ import annotations

import aiosqlite
import pytest

from procvicka_offline.cache import SqliteCacheStorage


@pytest.fixture()
async def sqlite_storage():
    """In-memory SQLite cache storage for unit tests."""
    async with aiosqlite.connect(":memory:") as db:
        storage = SqliteCacheStorage(db)
        await storage.init_db()
        yield storage
