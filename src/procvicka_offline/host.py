"""Collaborators provided by the host runtime.

The worker never creates windows or notifications itself; it asks the host
through these protocols. Hosts that have no such surface simply pass
``None`` to ``OfflineWorker`` and the related events become no-ops.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal, Protocol

if TYPE_CHECKING:
    from procvicka_offline.models.notifications import NotificationOptions


class WindowClient(Protocol):
    async def focus(self) -> None: ...


class ClientRegistry(Protocol):
    async def match_all(self, type: Literal["window", "all"] = "window") -> list[WindowClient]: ...

    async def open_window(self, url: str) -> WindowClient | None: ...

    async def claim(self) -> None:
        """Take control of every open client without waiting for a reload."""
        ...


class NotificationHandle(Protocol):
    def close(self) -> None: ...


class NotificationCenter(Protocol):
    async def show_notification(self, title: str, options: NotificationOptions) -> None: ...
