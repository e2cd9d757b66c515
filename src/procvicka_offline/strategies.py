"""Caching strategies executed against named stores.

Only ok (2xx) network responses are ever written. Every write stores a clone
of the response, so the copy handed back to the caller and the stored copy
are independent.

Stale-while-revalidate refreshes in a background task. Those tasks are kept
in ``_pending`` until they finish, both to hold a strong reference and so the
host can wait for them with ``wait_until_idle()``.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import structlog

from procvicka_offline.errors import ErrorCode, ProcvickaError
from procvicka_offline.models.routing import StoreKind, StrategyName

if TYPE_CHECKING:
    from procvicka_offline.config import GenerationSettings
    from procvicka_offline.fetcher import Fetcher
    from procvicka_offline.models.http import Request, Response
    from procvicka_offline.models.routing import Route
    from procvicka_offline.storage import CacheStorage, Store

log = structlog.get_logger()


class StrategyExecutor:
    def __init__(
        self,
        storage: CacheStorage,
        fetcher: Fetcher,
        generation: GenerationSettings,
    ) -> None:
        self._storage = storage
        self._fetcher = fetcher
        self._store_names = {
            StoreKind.STATIC: generation.static_store,
            StoreKind.DYNAMIC: generation.dynamic_store,
            StoreKind.IMAGES: generation.image_store,
        }
        self._pending: set[asyncio.Task[Response | None]] = set()

    def store_name(self, kind: StoreKind) -> str:
        return self._store_names[kind]

    async def run(self, route: Route, request: Request) -> Response:
        """Execute ``route`` for ``request``. Raises ``ProcvickaError`` on total failure."""
        store_name = self.store_name(route.store)
        if route.strategy is StrategyName.CACHE_FIRST:
            return await self.cache_first(request, store_name)
        if route.strategy is StrategyName.NETWORK_FIRST:
            return await self.network_first(request, store_name)
        return await self.stale_while_revalidate(request, store_name)

    # ------------------------------------------------------------------
    # Strategies
    # ------------------------------------------------------------------

    async def cache_first(self, request: Request, store_name: str) -> Response:
        store = await self._storage.open(store_name)
        cached = await store.get(request.cache_key)
        if cached is not None:
            log.debug("cache_hit", strategy=StrategyName.CACHE_FIRST, url=request.url)
            return cached

        response = await self._fetcher.fetch(request)
        await self._store_if_ok(store, request, response)
        return response

    async def network_first(self, request: Request, store_name: str) -> Response:
        store = await self._storage.open(store_name)
        try:
            response = await self._fetcher.fetch(request)
        except ProcvickaError:
            cached = await store.get(request.cache_key)
            if cached is not None:
                log.info("network_first_served_from_cache", url=request.url)
                return cached
            raise

        await self._store_if_ok(store, request, response)
        return response

    async def stale_while_revalidate(self, request: Request, store_name: str) -> Response:
        store = await self._storage.open(store_name)
        cached = await store.get(request.cache_key)

        task = asyncio.create_task(self._revalidate(store, request))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

        if cached is not None:
            return cached

        response = await task
        if response is None:
            raise ProcvickaError(
                ErrorCode.NETWORK_ERROR,
                f"No cached entry and network unavailable for {request.url}",
                recoverable=True,
            )
        return response

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def wait_until_idle(self) -> None:
        """Wait for every in-flight background revalidation to finish."""
        while self._pending:
            await asyncio.gather(*self._pending)

    @property
    def pending_revalidations(self) -> int:
        return len(self._pending)

    async def _revalidate(self, store: Store, request: Request) -> Response | None:
        try:
            response = await self._fetcher.fetch(request)
        except ProcvickaError:
            log.debug("revalidate_failed", url=request.url, exc_info=True)
            return None
        except Exception:
            log.warning("revalidate_failed", url=request.url, exc_info=True)
            return None
        await self._store_if_ok(store, request, response)
        return response

    async def _store_if_ok(self, store: Store, request: Request, response: Response) -> None:
        if not response.ok:
            log.debug("cache_skip_not_ok", url=request.url, status=response.status)
            return
        await store.put(request.cache_key, response.clone())
