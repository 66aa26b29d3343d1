"""Recent search keywords and the last submitted query."""

from __future__ import annotations

import logging

from eventsaround.query import SearchQuery
from eventsaround.results import ErrorKind, Failure, FetchResult, StorageError, Success
from eventsaround.store import PersistentStore

log = logging.getLogger(__name__)

HISTORY_KEY = "search_history"
LAST_SEARCH_KEY = "last_search"
MAX_HISTORY = 10


def push_keyword(history: list[str], keyword: str, limit: int = MAX_HISTORY) -> list[str]:
    """Return *history* with *keyword* moved (or added) to the front, capped at *limit*."""
    keyword = keyword.strip()
    if not keyword:
        return list(history)
    rest = [k for k in history if k != keyword]
    return [keyword, *rest][:limit]


class SearchHistory:
    """Most-recent-first keyword list plus the last validated query."""

    def __init__(self, store: PersistentStore, limit: int = MAX_HISTORY) -> None:
        self.store = store
        self.limit = limit

    async def entries(self) -> list[str]:
        try:
            return (await self.store.get(HISTORY_KEY, list[str])) or []
        except StorageError as exc:
            log.warning("Cannot read search history: %s", exc)
            return []

    async def add(self, keyword: str) -> FetchResult[list[str]]:
        try:
            async with self.store.transaction():
                current = (await self.store.get(HISTORY_KEY, list[str])) or []
                updated = push_keyword(current, keyword, self.limit)
                await self.store.set(HISTORY_KEY, updated, list[str], locked=True)
        except StorageError as exc:
            return Failure(ErrorKind.STORAGE, f"Could not save search history: {exc}")
        return Success(updated)

    async def clear(self) -> FetchResult[None]:
        try:
            await self.store.remove(HISTORY_KEY)
        except StorageError as exc:
            return Failure(ErrorKind.STORAGE, f"Could not clear search history: {exc}")
        return Success(None)

    async def save_last_search(self, query: SearchQuery) -> FetchResult[None]:
        try:
            await self.store.set(LAST_SEARCH_KEY, query, SearchQuery)
        except StorageError as exc:
            return Failure(ErrorKind.STORAGE, f"Could not save last search: {exc}")
        return Success(None)

    async def last_search(self) -> SearchQuery | None:
        try:
            return await self.store.get(LAST_SEARCH_KEY, SearchQuery)
        except StorageError as exc:
            log.warning("Cannot read last search: %s", exc)
            return None
