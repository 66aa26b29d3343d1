"""Favorited events, held in memory and written through to the store."""

from __future__ import annotations

import logging

from eventsaround.models import Event
from eventsaround.results import ErrorKind, Failure, FetchResult, StorageError, Success
from eventsaround.store import PersistentStore

log = logging.getLogger(__name__)

FAVORITES_KEY = "favorites"

_FavoritesMap = dict[str, Event]


class FavoritesCache:
    """Map of ``event id -> Event`` snapshot.

    A mutation persists the new map first and only then replaces the in-memory
    copy, so a failed write leaves both copies as they were.
    """

    def __init__(self, store: PersistentStore) -> None:
        self.store = store
        self._favorites: _FavoritesMap = {}

    async def load(self) -> FetchResult[None]:
        try:
            stored = await self.store.get(FAVORITES_KEY, _FavoritesMap)
        except StorageError as exc:
            log.error("Cannot load favorites: %s", exc)
            return Failure(ErrorKind.STORAGE, str(exc))
        self._favorites = stored or {}
        log.debug("Loaded %d favorites", len(self._favorites))
        return Success(None)

    async def _commit(self, favorites: _FavoritesMap) -> None:
        # Caller holds the store lock
        if favorites:
            await self.store.set(FAVORITES_KEY, favorites, _FavoritesMap, locked=True)
        else:
            await self.store.remove(FAVORITES_KEY, locked=True)
        self._favorites = favorites

    async def _add(self, event: Event) -> None:
        await self._commit({**self._favorites, event.id: event})
        log.debug("Added %s to favorites (%d total)", event.id, len(self._favorites))

    async def _remove(self, event_id: str) -> None:
        if event_id not in self._favorites:
            return
        remaining = {k: v for k, v in self._favorites.items() if k != event_id}
        await self._commit(remaining)
        log.debug("Removed %s from favorites (%d left)", event_id, len(self._favorites))

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def add(self, event: Event) -> FetchResult[None]:
        try:
            async with self.store.transaction():
                await self._add(event)
        except StorageError as exc:
            return Failure(ErrorKind.STORAGE, f"Could not save favorite: {exc}")
        return Success(None)

    async def remove(self, event_id: str) -> FetchResult[None]:
        try:
            async with self.store.transaction():
                await self._remove(event_id)
        except StorageError as exc:
            return Failure(ErrorKind.STORAGE, f"Could not remove favorite: {exc}")
        return Success(None)

    async def toggle(self, event: Event) -> FetchResult[bool]:
        """Flip favorite state; ``Success(True)`` when *event* is now a favorite."""
        try:
            async with self.store.transaction():
                if event.id in self._favorites:
                    await self._remove(event.id)
                    return Success(False)
                await self._add(event)
                return Success(True)
        except StorageError as exc:
            return Failure(ErrorKind.STORAGE, f"Could not update favorite: {exc}")

    async def clear(self) -> FetchResult[None]:
        try:
            async with self.store.transaction():
                await self._commit({})
        except StorageError as exc:
            return Failure(ErrorKind.STORAGE, f"Could not clear favorites: {exc}")
        log.debug("Cleared all favorites")
        return Success(None)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def is_favorite(self, event_id: str) -> bool:
        return event_id in self._favorites

    def get(self, event_id: str) -> Event | None:
        return self._favorites.get(event_id)

    def all(self) -> list[Event]:
        return list(self._favorites.values())

    def count(self) -> int:
        return len(self._favorites)
