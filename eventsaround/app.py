"""Wiring: build each component once and hand references to consumers."""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator

import httpx

from eventsaround.coordinator import DetailsCoordinator, SearchCoordinator
from eventsaround.favorites import FavoritesCache
from eventsaround.gateway import EventGateway
from eventsaround.history import SearchHistory
from eventsaround.store import PersistentStore
from eventsaround.settings import Settings


@dataclass
class App:
    settings: Settings
    gateway: EventGateway
    store: PersistentStore
    favorites: FavoritesCache
    history: SearchHistory

    def search_coordinator(self) -> SearchCoordinator:
        return SearchCoordinator(
            self.gateway,
            self.favorites,
            self.history,
            debounce=self.settings.debounce_ms / 1000,
        )

    def details_coordinator(self) -> DetailsCoordinator:
        return DetailsCoordinator(self.gateway, self.favorites)


@asynccontextmanager
async def open_app(
    settings: Settings | None = None,
    client: httpx.AsyncClient | None = None,
) -> AsyncIterator[App]:
    """Open the store, load favorites and yield a wired :class:`App`."""
    settings = settings or Settings.from_env()
    store = PersistentStore(settings.db_path)
    await store.init()
    favorites = FavoritesCache(store)
    await favorites.load()
    gateway = EventGateway(settings, client=client)
    try:
        yield App(
            settings=settings,
            gateway=gateway,
            store=store,
            favorites=favorites,
            history=SearchHistory(store),
        )
    finally:
        await gateway.aclose()
