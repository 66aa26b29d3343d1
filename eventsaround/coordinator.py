"""Search, suggestion and event-detail lifecycles.

Each lifecycle stamps its requests with a generation number. A response is
published only if its generation is still the newest one when it arrives, so
results follow initiation order rather than completion order.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum

from eventsaround.favorites import FavoritesCache
from eventsaround.gateway import EventGateway
from eventsaround.history import SearchHistory
from eventsaround.models import Album, Artist, Event, EventDetails, VenueDetails
from eventsaround.query import RawSearchInput, SearchQuery, validate
from eventsaround.results import Failure, FetchResult, Success

log = logging.getLogger(__name__)

DEBOUNCE_SECONDS = 0.3
MIN_SUGGEST_LENGTH = 2


class SearchState(str, Enum):
    IDLE = "idle"
    SEARCHING = "searching"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class SearchCoordinator:
    """Publishes search results, favorite annotations and keyword suggestions."""

    def __init__(
        self,
        gateway: EventGateway,
        favorites: FavoritesCache,
        history: SearchHistory | None = None,
        debounce: float = DEBOUNCE_SECONDS,
        min_suggest_length: int = MIN_SUGGEST_LENGTH,
    ) -> None:
        self.gateway = gateway
        self.favorites = favorites
        self.history = history
        self.debounce = debounce
        self.min_suggest_length = min_suggest_length

        self.state = SearchState.IDLE
        self.query: SearchQuery | None = None
        self.results: list[Event] = []
        self.failure: Failure | None = None
        self.favorite_states: dict[str, bool] = {}
        self.suggestions: list[str] = []

        self._search_generation = 0
        self._suggest_generation = 0
        self._suggest_task: asyncio.Task | None = None

    @property
    def error(self) -> str | None:
        return self.failure.message if self.failure else None

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    async def _resolve_position(self, raw: RawSearchInput) -> RawSearchInput:
        if not raw.use_current_location or not raw.keyword.strip():
            return raw
        if raw.latitude is not None and raw.longitude is not None:
            return raw
        located = await self.gateway.get_current_location()
        if isinstance(located, Failure):
            return raw
        lat, lng = located.value
        return raw.model_copy(update={"latitude": lat, "longitude": lng})

    async def search(self, raw: RawSearchInput) -> FetchResult[list[Event]]:
        """Run a search; only the newest call may change published state."""
        self._search_generation += 1
        generation = self._search_generation
        self.failure = None

        raw = await self._resolve_position(raw)
        if generation != self._search_generation:
            return Success([])

        validated = validate(raw)
        if isinstance(validated, Failure):
            self._fail(validated)
            return validated
        query = validated.value

        self.state = SearchState.SEARCHING
        log.debug("Starting search #%d for %r", generation, query.keyword)
        result = await self.gateway.search_events(query)

        if generation != self._search_generation:
            log.debug("Discarding stale search #%d", generation)
            return result
        if isinstance(result, Failure):
            self._fail(result)
            return result

        self.query = query
        self.results = result.value
        self.state = SearchState.SUCCEEDED
        self.refresh_favorite_states()
        await self._remember(query)
        return result

    def _fail(self, failure: Failure) -> None:
        self.failure = failure
        self.results = []
        self.favorite_states = {}
        self.state = SearchState.FAILED
        log.info("Search failed: %s", failure.message)

    async def _remember(self, query: SearchQuery) -> None:
        if self.history is None:
            return
        for outcome in (
            await self.history.add(query.keyword),
            await self.history.save_last_search(query),
        ):
            if isinstance(outcome, Failure):
                log.warning(outcome.message)

    def refresh_favorite_states(self) -> None:
        self.favorite_states = {e.id: self.favorites.is_favorite(e.id) for e in self.results}

    async def toggle_favorite(self, event: Event) -> FetchResult[bool]:
        result = await self.favorites.toggle(event)
        if isinstance(result, Success):
            self.favorite_states = {**self.favorite_states, event.id: result.value}
        return result

    def clear_error(self) -> None:
        self.failure = None

    def clear_results(self) -> None:
        self._search_generation += 1
        self.query = None
        self.results = []
        self.favorite_states = {}
        self.failure = None
        self.state = SearchState.IDLE

    # ------------------------------------------------------------------
    # Debounced suggestions
    # ------------------------------------------------------------------

    def on_keyword_changed(self, text: str) -> None:
        """Restart the debounce timer for *text*; must run inside the event loop."""
        self._suggest_generation += 1
        generation = self._suggest_generation
        self._cancel_pending()

        text = text.strip()
        if len(text) < self.min_suggest_length:
            self.suggestions = []
            return
        self._suggest_task = asyncio.get_running_loop().create_task(
            self._suggest_after_delay(text, generation)
        )

    async def _suggest_after_delay(self, text: str, generation: int) -> None:
        await asyncio.sleep(self.debounce)
        if generation != self._suggest_generation:
            return
        result = await self.gateway.get_autocomplete_suggestions(text)
        if generation != self._suggest_generation:
            log.debug("Discarding stale suggestions for %r", text)
            return
        self.suggestions = result.unwrap_or([])

    async def wait_for_suggestions(self) -> None:
        task = self._suggest_task
        if task is not None:
            await asyncio.wait({task})

    def _cancel_pending(self) -> None:
        if self._suggest_task is not None and not self._suggest_task.done():
            self._suggest_task.cancel()
        self._suggest_task = None

    def close(self) -> None:
        self._suggest_generation += 1
        self._cancel_pending()


class DetailsCoordinator:
    """Loads one event's details, then enriches them on a best-effort basis.

    Artist, album and venue lookups never fail the details view: any failure
    leaves the corresponding field empty.
    """

    def __init__(self, gateway: EventGateway, favorites: FavoritesCache) -> None:
        self.gateway = gateway
        self.favorites = favorites

        self.state = SearchState.IDLE
        self.details: EventDetails | None = None
        self.failure: Failure | None = None
        self.is_favorite = False
        self.artist: Artist | None = None
        self.albums: list[Album] = []
        self.venue: VenueDetails | None = None

        self._generation = 0

    @property
    def error(self) -> str | None:
        return self.failure.message if self.failure else None

    async def load(self, event_id: str) -> FetchResult[EventDetails]:
        self._generation += 1
        generation = self._generation
        self.state = SearchState.SEARCHING
        self.failure = None
        self.details = None
        self.is_favorite = False
        self.artist = None
        self.albums = []
        self.venue = None

        result = await self.gateway.get_event_details(event_id)
        if generation != self._generation:
            return result
        if isinstance(result, Failure):
            self.failure = result
            self.state = SearchState.FAILED
            return result

        self.details = result.value
        self.is_favorite = self.favorites.is_favorite(event_id)
        self.state = SearchState.SUCCEEDED
        await self._enrich(result.value, generation)
        return result

    async def _enrich(self, details: EventDetails, generation: int) -> None:
        artist_name = self._music_artist(details)
        venue = details.venue
        (artist, albums), venue_details = await asyncio.gather(
            self._load_artist(artist_name),
            self._load_venue(venue.name if venue else None),
        )
        if generation != self._generation:
            return
        self.artist = artist
        self.albums = albums
        self.venue = venue_details

    @staticmethod
    def _music_artist(details: EventDetails) -> str | None:
        is_music_event = details.category_path[:1] == ["Music"]
        for attraction in details.attractions:
            if attraction.name and (is_music_event or attraction.is_music):
                return attraction.name
        return None

    async def _load_artist(self, name: str | None) -> tuple[Artist | None, list[Album]]:
        if not name:
            return None, []
        found = await self.gateway.search_artist(name)
        if isinstance(found, Failure):
            log.info("Artist lookup for %r failed: %s", name, found.message)
            return None, []
        if found.value is None:
            return None, []
        albums = await self.gateway.get_artist_albums(found.value.id)
        if isinstance(albums, Failure):
            log.info("Album lookup for %r failed: %s", name, albums.message)
        return found.value, albums.unwrap_or([])

    async def _load_venue(self, name: str | None) -> VenueDetails | None:
        if not name:
            return None
        found = await self.gateway.get_venue_details(name)
        if isinstance(found, Failure):
            log.info("Venue lookup for %r failed: %s", name, found.message)
            return None
        return found.value

    async def toggle_favorite(self) -> FetchResult[bool] | None:
        """Toggle the loaded event; ``None`` when nothing is loaded."""
        if self.details is None:
            return None
        result = await self.favorites.toggle(self.details.to_event())
        if isinstance(result, Success):
            self.is_favorite = result.value
        return result
