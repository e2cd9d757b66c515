"""Cache storage capability interface and the in-memory implementation.

The worker only ever talks to ``CacheStorage`` and ``Store``. Two
implementations ship with the package:

- ``MemoryCacheStorage``: process-local dicts, used by tests and by hosts
  that do not need persistence.
- ``procvicka_offline.cache.SqliteCacheStorage``: aiosqlite-backed, survives
  restarts.

Entry reads and writes (``get``/``put``) are on the request path and must
never block a response. Lifecycle operations (``put_all``,
``list_store_names``, ``delete_store``) raise ``ProcvickaError`` with
``STORAGE_ERROR`` so install and activate can report them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Iterable

    from procvicka_offline.models.http import Response


class Store(Protocol):
    """One named key → response mapping."""

    name: str

    async def get(self, key: str) -> Response | None: ...

    async def put(self, key: str, response: Response) -> None: ...

    async def put_all(self, entries: Iterable[tuple[str, Response]]) -> None:
        """Write every entry or none of them."""
        ...

    async def delete(self, key: str) -> bool: ...

    async def keys(self) -> list[str]: ...


class CacheStorage(Protocol):
    """Registry of named stores."""

    async def open(self, name: str) -> Store:
        """Return the store called ``name``, creating it if needed."""
        ...

    async def has(self, name: str) -> bool: ...

    async def list_store_names(self) -> list[str]: ...

    async def delete_store(self, name: str) -> bool:
        """Delete a store with all its entries. Returns False if it did not exist."""
        ...


class MemoryStore:
    """Dict-backed store. Entries are cloned on the way in and on the way out."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._entries: dict[str, Response] = {}

    async def get(self, key: str) -> Response | None:
        response = self._entries.get(key)
        return response.clone() if response is not None else None

    async def put(self, key: str, response: Response) -> None:
        self._entries[key] = response.clone()

    async def put_all(self, entries: Iterable[tuple[str, Response]]) -> None:
        staged = {key: response.clone() for key, response in entries}
        self._entries.update(staged)

    async def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    async def keys(self) -> list[str]:
        return list(self._entries)


class MemoryCacheStorage:
    """In-memory ``CacheStorage``."""

    def __init__(self) -> None:
        self._stores: dict[str, MemoryStore] = {}

    async def open(self, name: str) -> MemoryStore:
        store = self._stores.get(name)
        if store is None:
            store = self._stores[name] = MemoryStore(name)
        return store

    async def has(self, name: str) -> bool:
        return name in self._stores

    async def list_store_names(self) -> list[str]:
        return list(self._stores)

    async def delete_store(self, name: str) -> bool:
        return self._stores.pop(name, None) is not None
