"""Integration test fixtures.

Provides a fully wired, installed and activated worker on top of a mocked
origin. The ``router`` fixture stays active for the whole test, so tests add
their own routes to it and flip them between online and offline.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import aiosqlite
import httpx
import pytest
import respx

from procvicka_offline.cache import SqliteCacheStorage
from procvicka_offline.fetcher import HttpxFetcher
from procvicka_offline.worker import OfflineWorker

if TYPE_CHECKING:
    from procvicka_offline.config import Settings
    from procvicka_offline.storage import CacheStorage


@pytest.fixture()
def router():
    with respx.mock(assert_all_called=False) as mock:
        yield mock


async def install_and_activate(
    settings: Settings,
    storage: CacheStorage,
    router: respx.MockRouter,
    client: httpx.AsyncClient,
    **kwargs,
) -> OfflineWorker:
    for path in settings.precache.static + settings.precache.images:
        router.get(settings.resolve(path)).mock(
            return_value=httpx.Response(200, content=f"asset {path}".encode())
        )
    worker = OfflineWorker(settings, storage, HttpxFetcher(client), **kwargs)
    assert await worker.on_install()
    await worker.on_activate()
    return worker


@pytest.fixture()
def installer():
    return install_and_activate


@pytest.fixture()
async def worker(settings, storage, router, clients, notifications) -> OfflineWorker:
    """Worker for the current generation, backed by in-memory storage."""
    async with httpx.AsyncClient() as client:
        yield await install_and_activate(
            settings, storage, router, client, clients=clients, notifications=notifications
        )


@pytest.fixture()
async def sqlite_worker(settings, router) -> OfflineWorker:
    """Worker backed by an in-memory SQLite database."""
    async with aiosqlite.connect(":memory:") as db, httpx.AsyncClient() as client:
        storage = SqliteCacheStorage(db)
        await storage.init_db()
        yield await install_and_activate(settings, storage, router, client)


@pytest.fixture()
def subprocess_env(tmp_path) -> dict[str, str]:
    """Environment for running the CLI in a subprocess with isolated storage."""
    env = {
        key: value for key, value in os.environ.items() if not key.startswith("PROCVICKA__")
    }
    env["PROCVICKA__STORAGE__DB_PATH"] = str(tmp_path / "offline-cache.db")
    env["PROCVICKA__LOGGING__FORMAT"] = "json"
    return env
