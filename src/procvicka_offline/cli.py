"""Command-line entry point: prime the offline cache for one generation.

Runs install then activate against the configured origin, exactly as the
browser would on a fresh deployment, and logs how many entries each store
holds afterwards. Exit status is 0 when install succeeded, 1 otherwise.
"""

from __future__ import annotations

import asyncio
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING

import aiosqlite
import structlog

from procvicka_offline.cache import SqliteCacheStorage
from procvicka_offline.config import Settings
from procvicka_offline.fetcher import HttpxFetcher, build_http_client
from procvicka_offline.logs import configure_logging
from procvicka_offline.storage import MemoryCacheStorage
from procvicka_offline.worker import OfflineWorker

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from procvicka_offline.config import StorageSettings
    from procvicka_offline.storage import CacheStorage

log = structlog.get_logger()


@asynccontextmanager
async def open_storage(settings: StorageSettings) -> AsyncIterator[CacheStorage]:
    if settings.backend == "memory":
        yield MemoryCacheStorage()
        return

    db_path = Path(settings.db_path).expanduser()
    db_path.parent.mkdir(parents=True, exist_ok=True)
    async with aiosqlite.connect(db_path) as db:
        storage = SqliteCacheStorage(db)
        await storage.init_db()
        yield storage


async def prime(settings: Settings) -> int:
    async with (
        open_storage(settings.storage) as storage,
        build_http_client(settings.fetcher) as client,
    ):
        worker = OfflineWorker(settings, storage, HttpxFetcher(client))
        if not await worker.on_install():
            return 1
        await worker.on_activate()

        for name in sorted(settings.generation.store_names):
            if not await storage.has(name):
                log.info("store_summary", store=name, entries=0)
                continue
            store = await storage.open(name)
            log.info("store_summary", store=name, entries=len(await store.keys()))
    return 0


def main() -> None:
    # Invalid configuration raises ValidationError here, before anything starts.
    settings = Settings()
    configure_logging(settings.logging)
    log.info(
        "prime_starting",
        origin=settings.origin.base_url,
        version=settings.generation.version,
        storage=settings.storage.backend,
    )
    sys.exit(asyncio.run(prime(settings)))
