"""The offline worker: one coroutine per host event.

The host dispatches ``install`` once, then ``activate``, then any number of
``fetch``/``sync``/``push``/``notificationclick`` events. Each ``on_*``
coroutine finishes only when all of its work is done, so awaiting it is the
host's way of holding the event open.

The worker does not intercept traffic until activation has finished: before
that, ``on_fetch`` returns ``None`` and the host goes to the network.
"""

from __future__ import annotations

import asyncio
from enum import StrEnum
from typing import TYPE_CHECKING

import structlog

from procvicka_offline.classifier import classify, should_intercept
from procvicka_offline.errors import ErrorCode, ProcvickaError
from procvicka_offline.fallback import offline_fallback
from procvicka_offline.models.http import Request, Response
from procvicka_offline.models.notifications import NotificationAction, NotificationOptions
from procvicka_offline.strategies import StrategyExecutor

if TYPE_CHECKING:
    from procvicka_offline.config import Settings
    from procvicka_offline.fetcher import Fetcher
    from procvicka_offline.host import ClientRegistry, NotificationCenter, NotificationHandle
    from procvicka_offline.storage import CacheStorage

log = structlog.get_logger()

SYNC_GAME_DATA_TAG = "sync-game-data"


class WorkerState(StrEnum):
    PARSED = "parsed"
    INSTALLING = "installing"
    INSTALLED = "installed"
    ACTIVATING = "activating"
    ACTIVATED = "activated"


class OfflineWorker:
    """Caching worker for one cache generation."""

    def __init__(
        self,
        settings: Settings,
        storage: CacheStorage,
        fetcher: Fetcher,
        clients: ClientRegistry | None = None,
        notifications: NotificationCenter | None = None,
    ) -> None:
        self.settings = settings
        self.state = WorkerState.PARSED
        self.skip_waiting = False
        self._storage = storage
        self._fetcher = fetcher
        self._clients = clients
        self._notifications = notifications
        self._executor = StrategyExecutor(storage, fetcher, settings.generation)

    @property
    def version(self) -> str:
        return self.settings.generation.version

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def on_install(self) -> bool:
        """Pre-populate the static and image stores.

        Returns True on success. Failures are logged, not raised: the worker
        goes back to ``PARSED`` and the host may dispatch install again.
        """
        if self.state is not WorkerState.PARSED:
            raise ProcvickaError(
                ErrorCode.INVALID_STATE, f"Cannot install a worker in state {self.state}"
            )

        log.info("sw_installing", version=self.version)
        self.state = WorkerState.INSTALLING
        generation = self.settings.generation
        precache = self.settings.precache

        results = await asyncio.gather(
            self._precache(generation.static_store, precache.static),
            self._precache(generation.image_store, precache.images),
            return_exceptions=True,
        )
        failures = [result for result in results if isinstance(result, BaseException)]
        if failures:
            self.state = WorkerState.PARSED
            for failure in failures:
                if not isinstance(failure, ProcvickaError):
                    raise failure
                log.error("sw_install_failed", code=failure.code, error=failure.message)
            return False

        self.state = WorkerState.INSTALLED
        self.skip_waiting = True
        log.info("sw_install_complete", version=self.version)
        return True

    async def on_activate(self) -> list[str]:
        """Delete every store outside the current generation and claim clients.

        Deletions run in parallel and each one is independent: a failure is
        logged and the others still complete. Returns the deleted names.
        """
        if self.state not in (WorkerState.INSTALLED, WorkerState.ACTIVATED):
            raise ProcvickaError(
                ErrorCode.INVALID_STATE, f"Cannot activate a worker in state {self.state}"
            )

        log.info("sw_activating", version=self.version)
        previous_state = self.state
        if previous_state is WorkerState.INSTALLED:
            self.state = WorkerState.ACTIVATING

        allowed = self.settings.generation.store_names
        try:
            names = await self._storage.list_store_names()
        except ProcvickaError:
            log.error("sw_activation_failed", version=self.version, exc_info=True)
            self.state = previous_state
            raise

        stale = [name for name in names if name not in allowed]
        results = await asyncio.gather(
            *(self._delete_store(name) for name in stale),
            return_exceptions=True,
        )

        deleted: list[str] = []
        for name, result in zip(stale, results, strict=True):
            if isinstance(result, BaseException):
                log.error("sw_cache_delete_failed", store=name, error=str(result))
            elif result:
                deleted.append(name)

        if self._clients is not None:
            await self._clients.claim()

        self.state = WorkerState.ACTIVATED
        log.info("sw_activation_complete", version=self.version, deleted=deleted)
        return deleted

    # ------------------------------------------------------------------
    # Fetch
    # ------------------------------------------------------------------

    async def on_fetch(self, request: Request) -> Response | None:
        """Answer ``request`` from cache and/or network.

        Returns ``None`` when the request is not intercepted. Never raises
        ``ProcvickaError``: total failures are answered by the offline
        fallback.
        """
        if self.state is not WorkerState.ACTIVATED or not should_intercept(request):
            return None

        route = classify(request.url)
        try:
            return await self._executor.run(route, request)
        except ProcvickaError as exc:
            log.warning(
                "sw_fetch_failed",
                url=request.url,
                strategy=route.strategy,
                code=exc.code,
                error=exc.message,
            )
            return await self._fallback(request)

    async def wait_until_idle(self) -> None:
        """Wait for background revalidations started by earlier fetches."""
        await self._executor.wait_until_idle()

    @property
    def pending_revalidations(self) -> int:
        return self._executor.pending_revalidations

    # ------------------------------------------------------------------
    # Auxiliary events
    # ------------------------------------------------------------------

    async def on_sync(self, tag: str) -> None:
        log.info("sw_background_sync", tag=tag)
        if tag == SYNC_GAME_DATA_TAG:
            await self._sync_game_data()

    async def on_push(self, data: bytes | str | None = None) -> None:
        log.info("sw_push_received")
        if self._notifications is None:
            log.warning("sw_push_no_notification_center")
            return

        config = self.settings.notifications
        if isinstance(data, bytes):
            data = data.decode("utf-8", errors="replace")
        options = NotificationOptions(
            body=data if data is not None else config.default_body,
            icon=config.icon,
            badge=config.badge,
            tag=config.tag,
            actions=[
                NotificationAction(action="open", title=config.open_title),
                NotificationAction(action="close", title=config.close_title),
            ],
        )
        await self._notifications.show_notification(config.title, options)

    async def on_notification_click(
        self, notification: NotificationHandle, action: str | None = None
    ) -> None:
        log.info("sw_notification_clicked", action=action)
        notification.close()

        if action not in (None, "", "open"):
            return
        if self._clients is None:
            log.warning("sw_notification_click_no_clients")
            return

        windows = await self._clients.match_all(type="window")
        if windows:
            await windows[0].focus()
            return
        await self._clients.open_window(self.settings.notifications.start_url)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _precache(self, store_name: str, paths: list[str]) -> None:
        """Fetch every path, then write them all. Nothing is written on failure."""
        requests = [Request(url=self.settings.resolve(path)) for path in paths]
        store = await self._storage.open(store_name)

        results = await asyncio.gather(
            *(self._fetcher.fetch(request) for request in requests),
            return_exceptions=True,
        )
        entries: list[tuple[str, Response]] = []
        for request, result in zip(requests, results, strict=True):
            if isinstance(result, BaseException):
                raise result
            if not result.ok:
                raise ProcvickaError(
                    ErrorCode.PRECACHE_FAILED,
                    f"Precache of {request.url} returned HTTP {result.status}",
                    recoverable=True,
                )
            entries.append((request.cache_key, result))

        await store.put_all(entries)
        log.info("sw_precached", store=store_name, count=len(entries))

    async def _delete_store(self, name: str) -> bool:
        log.info("sw_cache_deleting", store=name)
        return await self._storage.delete_store(name)

    async def _fallback(self, request: Request) -> Response:
        try:
            return await offline_fallback(request, self._storage, self.settings)
        except ProcvickaError:
            log.warning("sw_fallback_storage_error", url=request.url, exc_info=True)
            return Response.offline(
                content_type="text/plain" if request.is_navigation else None
            )

    async def _sync_game_data(self) -> None:
        # Pending game results are not queued offline yet, so there is nothing
        # to replay. The event still completes cleanly.
        log.info("sw_sync_game_data_skipped")
