"""SQLite-backed cache storage.

Entry reads and writes catch ``aiosqlite.Error`` internally and degrade
gracefully: read failures return ``None`` (treated as a cache miss by the
strategies), write failures are logged and ignored (the fetched response is
still returned). A broken database must never stop the worker from answering.

Lifecycle operations are different: install has to know whether
pre-population really landed, and activate has to know which deletions
failed. Those raise ``ProcvickaError(STORAGE_ERROR)``. Errors are always
logged with ``exc_info=True`` so they remain observable via stderr.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import aiosqlite
import structlog

from procvicka_offline.errors import ErrorCode, ProcvickaError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from procvicka_offline.models.http import Response

log = structlog.get_logger()

_CREATE_STORE_TABLE = """
CREATE TABLE IF NOT EXISTS cache_stores (
    name        TEXT PRIMARY KEY,
    created_at  TEXT NOT NULL
)
"""

_CREATE_ENTRY_TABLE = """
CREATE TABLE IF NOT EXISTS cache_entries (
    store_name   TEXT NOT NULL REFERENCES cache_stores(name) ON DELETE CASCADE,
    cache_key    TEXT NOT NULL,
    status       INTEGER NOT NULL,
    status_text  TEXT NOT NULL,
    headers      TEXT NOT NULL DEFAULT '{}',
    body         BLOB NOT NULL,
    url          TEXT NOT NULL DEFAULT '',
    stored_at    TEXT NOT NULL,
    PRIMARY KEY (store_name, cache_key)
)
"""

_UPSERT_ENTRY = (
    "INSERT OR REPLACE INTO cache_entries "
    "(store_name, cache_key, status, status_text, headers, body, url, stored_at) "
    "VALUES (?, ?, ?, ?, ?, ?, ?, ?)"
)


def _entry_row(store_name: str, key: str, response: Response) -> tuple[object, ...]:
    return (
        store_name,
        key,
        response.status,
        response.status_text,
        json.dumps(response.headers),
        response.body,
        response.url,
        datetime.now(UTC).isoformat(),
    )


class SqliteStore:
    """One named store inside the ``cache_entries`` table."""

    def __init__(self, db: aiosqlite.Connection, name: str) -> None:
        self._db = db
        self.name = name

    async def get(self, key: str) -> Response | None:
        """Read an entry. Returns ``None`` on cache miss or read failure."""
        try:
            cursor = await self._db.execute(
                "SELECT status, status_text, headers, body, url "
                "FROM cache_entries WHERE store_name = ? AND cache_key = ?",
                (self.name, key),
            )
            row = await cursor.fetchone()
            if row is None:
                return None

            from procvicka_offline.models.http import Response

            return Response(
                status=row[0],
                status_text=row[1],
                headers=json.loads(row[2]),
                body=bytes(row[3]),
                url=row[4],
            )
        except (aiosqlite.Error, ValueError):
            log.warning("cache_read_error", store=self.name, key=key, exc_info=True)
            return None

    async def put(self, key: str, response: Response) -> None:
        """Write an entry. Non-fatal on failure."""
        try:
            await self._db.execute(_UPSERT_ENTRY, _entry_row(self.name, key, response))
            await self._db.commit()
        except aiosqlite.Error:
            log.warning("cache_write_error", store=self.name, key=key, exc_info=True)

    async def put_all(self, entries: Iterable[tuple[str, Response]]) -> None:
        """Write all entries in one transaction. Raises on failure."""
        rows = [_entry_row(self.name, key, response) for key, response in entries]
        try:
            await self._db.executemany(_UPSERT_ENTRY, rows)
            await self._db.commit()
        except aiosqlite.Error as exc:
            await self._db.rollback()
            log.warning("cache_bulk_write_error", store=self.name, count=len(rows), exc_info=True)
            raise ProcvickaError(
                ErrorCode.STORAGE_ERROR,
                f"Could not write {len(rows)} entries into {self.name!r}",
            ) from exc

    async def delete(self, key: str) -> bool:
        try:
            cursor = await self._db.execute(
                "DELETE FROM cache_entries WHERE store_name = ? AND cache_key = ?",
                (self.name, key),
            )
            await self._db.commit()
            return cursor.rowcount > 0
        except aiosqlite.Error:
            log.warning("cache_delete_error", store=self.name, key=key, exc_info=True)
            return False

    async def keys(self) -> list[str]:
        try:
            cursor = await self._db.execute(
                "SELECT cache_key FROM cache_entries WHERE store_name = ? ORDER BY cache_key",
                (self.name,),
            )
            rows = await cursor.fetchall()
            return [row[0] for row in rows]
        except aiosqlite.Error:
            log.warning("cache_read_error", store=self.name, exc_info=True)
            return []


class SqliteCacheStorage:
    """SQLite-backed ``CacheStorage``."""

    def __init__(self, db: aiosqlite.Connection) -> None:
        self._db = db

    async def init_db(self) -> None:
        """Create tables and set WAL mode. Called once at startup."""
        await self._db.execute("PRAGMA journal_mode = WAL")
        await self._db.execute("PRAGMA foreign_keys = ON")
        await self._db.execute(_CREATE_STORE_TABLE)
        await self._db.execute(_CREATE_ENTRY_TABLE)
        await self._db.commit()

    async def open(self, name: str) -> SqliteStore:
        try:
            await self._db.execute(
                "INSERT OR IGNORE INTO cache_stores (name, created_at) VALUES (?, ?)",
                (name, datetime.now(UTC).isoformat()),
            )
            await self._db.commit()
        except aiosqlite.Error as exc:
            log.warning("cache_open_error", store=name, exc_info=True)
            raise ProcvickaError(ErrorCode.STORAGE_ERROR, f"Could not open {name!r}") from exc
        return SqliteStore(self._db, name)

    async def has(self, name: str) -> bool:
        return name in await self.list_store_names()

    async def list_store_names(self) -> list[str]:
        try:
            cursor = await self._db.execute("SELECT name FROM cache_stores ORDER BY created_at")
            rows = await cursor.fetchall()
        except aiosqlite.Error as exc:
            log.warning("cache_list_error", exc_info=True)
            raise ProcvickaError(ErrorCode.STORAGE_ERROR, "Could not list cache stores") from exc
        return [row[0] for row in rows]

    async def delete_store(self, name: str) -> bool:
        try:
            # Entries first, in case foreign keys are disabled on this connection.
            await self._db.execute("DELETE FROM cache_entries WHERE store_name = ?", (name,))
            cursor = await self._db.execute("DELETE FROM cache_stores WHERE name = ?", (name,))
            await self._db.commit()
        except aiosqlite.Error as exc:
            log.warning("cache_delete_store_error", store=name, exc_info=True)
            raise ProcvickaError(ErrorCode.STORAGE_ERROR, f"Could not delete {name!r}") from exc
        return cursor.rowcount > 0
