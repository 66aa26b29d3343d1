"""Key-value persistence on a local SQLite file."""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from pathlib import Path
from typing import Any, TypeVar

import aiosqlite
from pydantic import TypeAdapter, ValidationError

from eventsaround.results import StorageError

log = logging.getLogger(__name__)

T = TypeVar("T")


class PersistentStore:
    """Durable ``key -> JSON text`` records.

    Every call completes its I/O before returning. Writes raise
    :class:`StorageError` on failure; reads of a corrupt payload log a warning
    and return ``None``.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self._lock = asyncio.Lock()
        self._ready = False

    async def _connect(self) -> aiosqlite.Connection:
        db = await aiosqlite.connect(self.path)
        await db.execute("PRAGMA journal_mode=WAL")
        return db

    async def init(self) -> None:
        """Create the schema if needed."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            async with aiosqlite.connect(self.path) as db:
                await db.execute("""
                    CREATE TABLE IF NOT EXISTS kv (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL,
                        updated_at TEXT DEFAULT (datetime('now'))
                    )
                """)
                await db.commit()
        except (OSError, sqlite3.Error) as exc:
            raise StorageError(f"Cannot open store at {self.path}: {exc}") from exc
        self._ready = True

    async def _ensure_ready(self) -> None:
        if not self._ready:
            await self.init()

    def transaction(self) -> asyncio.Lock:
        """Lock held by callers around a read-modify-write cycle.

        ``set`` and ``remove`` take the same lock, so callers already holding
        it pass ``locked=True``.
        """
        return self._lock

    # ------------------------------------------------------------------
    # Raw text access
    # ------------------------------------------------------------------

    async def get_text(self, key: str) -> str | None:
        await self._ensure_ready()
        try:
            db = await self._connect()
            try:
                cursor = await db.execute("SELECT value FROM kv WHERE key = ?", (key,))
                row = await cursor.fetchone()
            finally:
                await db.close()
        except sqlite3.Error as exc:
            raise StorageError(f"Cannot read {key!r}: {exc}") from exc
        return row[0] if row else None

    async def _write(self, sql: str, params: tuple) -> None:
        await self._ensure_ready()
        try:
            db = await self._connect()
            try:
                await db.execute(sql, params)
                await db.commit()
            finally:
                await db.close()
        except sqlite3.Error as exc:
            raise StorageError(f"Write failed: {exc}") from exc

    async def set_text(self, key: str, value: str, *, locked: bool = False) -> None:
        sql = """
            INSERT INTO kv (key, value) VALUES (?, ?)
            ON CONFLICT(key) DO UPDATE SET
                value = excluded.value,
                updated_at = datetime('now')
        """
        if locked:
            await self._write(sql, (key, value))
        else:
            async with self._lock:
                await self._write(sql, (key, value))

    # ------------------------------------------------------------------
    # Typed access
    # ------------------------------------------------------------------

    async def get(self, key: str, type_: type[T] | Any) -> T | None:
        """Read *key* as *type_*; absent or corrupt payloads read as ``None``."""
        text = await self.get_text(key)
        if text is None:
            return None
        try:
            return TypeAdapter(type_).validate_json(text)
        except ValidationError as exc:
            log.warning("Discarding corrupt %r record: %s", key, exc.errors()[:1])
            return None

    async def set(
        self, key: str, value: Any, type_: Any = None, *, locked: bool = False
    ) -> None:
        adapter = TypeAdapter(type_ if type_ is not None else type(value))
        payload = adapter.dump_json(value, by_alias=True).decode()
        await self.set_text(key, payload, locked=locked)

    async def remove(self, key: str, *, locked: bool = False) -> None:
        if locked:
            await self._write("DELETE FROM kv WHERE key = ?", (key,))
        else:
            async with self._lock:
                await self._write("DELETE FROM kv WHERE key = ?", (key,))

    async def keys(self) -> list[str]:
        await self._ensure_ready()
        try:
            db = await self._connect()
            try:
                cursor = await db.execute("SELECT key FROM kv ORDER BY key")
                rows = await cursor.fetchall()
            finally:
                await db.close()
        except sqlite3.Error as exc:
            raise StorageError(f"Cannot list keys: {exc}") from exc
        return [row[0] for row in rows]
