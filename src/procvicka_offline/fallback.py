from __future__ import annotations

from typing import TYPE_CHECKING

from procvicka_offline.models.http import Response

if TYPE_CHECKING:
    from procvicka_offline.config import Settings
    from procvicka_offline.models.http import Request
    from procvicka_offline.storage import CacheStorage


async def offline_fallback(request: Request, storage: CacheStorage, settings: Settings) -> Response:
    """Degraded response for a request the strategies could not answer.

    Navigations get the cached root document so the app shell still loads.
    Sub-resources always get a plain 503.
    """
    if request.is_navigation:
        store = await storage.open(settings.generation.static_store)
        root = await store.get(settings.resolve("/"))
        if root is not None:
            return root
        return Response.offline(content_type="text/plain")

    return Response.offline()
