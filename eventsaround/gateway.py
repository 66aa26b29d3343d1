"""Async façade over the events backend, with retries on transport errors.

Every public coroutine returns a :data:`~eventsaround.results.FetchResult`;
httpx exceptions never escape the gateway.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any
from urllib.parse import quote

import httpx
from pydantic import TypeAdapter, ValidationError

from eventsaround.models import Album, Artist, Event, EventDetails, VenueDetails
from eventsaround.query import SearchQuery, to_query_parameters
from eventsaround.results import ErrorKind, Failure, FetchResult, Success
from eventsaround.settings import DEFAULT_COORDINATES, Settings

log = logging.getLogger(__name__)

_EVENTS = TypeAdapter(list[Event])
_ALBUMS = TypeAdapter(list[Album])


class EventGateway:
    """Client for the search, details, autocomplete and enrichment endpoints."""

    def __init__(
        self,
        settings: Settings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self._client = client
        # Injected clients belong to the caller
        self._owns_client = client is None

    # ------------------------------------------------------------------
    # HTTP helpers
    # ------------------------------------------------------------------

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.settings.api_base_url,
                headers={"Accept": "application/json"},
                follow_redirects=True,
                timeout=self.settings.timeout,
            )
            self._owns_client = True
        return self._client

    async def aclose(self) -> None:
        if self._owns_client and self._client and not self._client.is_closed:
            await self._client.aclose()

    async def __aenter__(self) -> EventGateway:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _get(
        self, url: str, params: dict[str, str] | None = None
    ) -> FetchResult[httpx.Response]:
        """GET *url*, retrying transport errors; non-2xx becomes a Failure."""
        client = await self._ensure_client()
        attempts = max(1, self.settings.max_retries)
        last_exc: httpx.TransportError | None = None
        for attempt in range(1, attempts + 1):
            try:
                log.debug("GET %s %s (attempt %d)", url, params or {}, attempt)
                resp = await client.get(url, params=params)
            except httpx.TransportError as exc:
                last_exc = exc
                if attempt < attempts:
                    await asyncio.sleep(self.settings.retry_backoff * attempt)
                continue
            except httpx.HTTPError as exc:
                # Redirect loops and undecodable bodies fail without a retry
                log.warning("GET %s failed: %r", url, exc)
                return Failure(ErrorKind.TRANSPORT, f"Network error: {exc}")
            if resp.is_success:
                return Success(resp)
            kind = ErrorKind.NOT_FOUND if resp.status_code == 404 else ErrorKind.API_ERROR
            return Failure(
                kind,
                f"API Error: {resp.status_code} {resp.reason_phrase}".rstrip(),
                status=resp.status_code,
            )
        log.warning("GET %s failed after %d attempts: %s", url, attempts, last_exc)
        return Failure(ErrorKind.TRANSPORT, f"Network error: {last_exc}")

    @staticmethod
    def _json(resp: httpx.Response) -> FetchResult[Any]:
        if not resp.content.strip():
            return Success(None)
        try:
            return Success(resp.json())
        except ValueError:
            return Failure(ErrorKind.API_ERROR, "Malformed response body", status=resp.status_code)

    async def _get_json(
        self, url: str, params: dict[str, str] | None = None
    ) -> FetchResult[Any]:
        result = await self._get(url, params)
        if isinstance(result, Failure):
            return result
        return self._json(result.value)

    # ------------------------------------------------------------------
    # Primary calls: failures are reported precisely
    # ------------------------------------------------------------------

    async def search_events(self, query: SearchQuery) -> FetchResult[list[Event]]:
        log.debug("Searching events: %s", query.keyword)
        result = await self._get_json("api/search", to_query_parameters(query))
        if isinstance(result, Failure):
            if result.kind is ErrorKind.NOT_FOUND:
                result = Failure(ErrorKind.API_ERROR, result.message, status=result.status)
            log.warning("Search for %r failed: %s", query.keyword, result.message)
            return result

        data = result.value if isinstance(result.value, dict) else {}
        embedded = data.get("_embedded")
        if not isinstance(embedded, dict):
            embedded = {}
        try:
            events = _EVENTS.validate_python(embedded.get("events") or [])
        except ValidationError as exc:
            return Failure(ErrorKind.API_ERROR, f"Malformed search response: {exc.error_count()} error(s)")
        log.debug("Found %d events", len(events))
        return Success(events)

    async def get_event_details(self, event_id: str) -> FetchResult[EventDetails]:
        result = await self._get_json(f"api/events/{quote(event_id, safe='')}")
        if isinstance(result, Failure):
            if result.kind is ErrorKind.NOT_FOUND:
                return Failure(ErrorKind.NOT_FOUND, "Event details not found", status=404)
            return result
        if not result.value:
            return Failure(ErrorKind.NOT_FOUND, "Event details not found")
        try:
            return Success(EventDetails.model_validate(result.value))
        except ValidationError:
            return Failure(ErrorKind.API_ERROR, "Malformed event details response")

    # ------------------------------------------------------------------
    # Advisory calls
    # ------------------------------------------------------------------

    async def get_autocomplete_suggestions(self, keyword: str) -> FetchResult[list[str]]:
        """Suggestion names for *keyword*; any failure reads as no suggestions."""
        if not keyword.strip():
            return Success([])
        result = await self._get_json("api/autocomplete", {"keyword": keyword})
        if isinstance(result, Failure):
            log.debug("Autocomplete for %r failed softly: %s", keyword, result.message)
            return Success([])
        data = result.value if isinstance(result.value, dict) else {}
        embedded = data.get("_embedded")
        attractions = embedded.get("attractions") or [] if isinstance(embedded, dict) else []
        names = [a["name"] for a in attractions if isinstance(a, dict) and a.get("name")]
        return Success(names)

    async def search_artist(self, name: str) -> FetchResult[Artist | None]:
        result = await self._get_json("api/spotify/artist", {"name": name})
        if isinstance(result, Failure):
            return Success(None) if result.kind is ErrorKind.NOT_FOUND else result
        if not result.value:
            return Success(None)
        try:
            return Success(Artist.model_validate(result.value))
        except ValidationError:
            return Failure(ErrorKind.API_ERROR, "Malformed artist response")

    async def get_artist_albums(self, artist_id: str) -> FetchResult[list[Album]]:
        """Albums for *artist_id*, newest release first."""
        result = await self._get_json(f"api/spotify/artist/{quote(artist_id, safe='')}/albums")
        if isinstance(result, Failure):
            return Success([]) if result.kind is ErrorKind.NOT_FOUND else result
        data = result.value
        items = data.get("items") if isinstance(data, dict) else data
        try:
            albums = _ALBUMS.validate_python(items or [])
        except ValidationError:
            return Failure(ErrorKind.API_ERROR, "Malformed albums response")
        albums.sort(key=lambda a: a.release_date, reverse=True)
        return Success(albums)

    async def get_venue_details(self, name: str) -> FetchResult[VenueDetails | None]:
        result = await self._get_json("api/venue", {"name": name})
        if isinstance(result, Failure):
            return Success(None) if result.kind is ErrorKind.NOT_FOUND else result
        if not result.value:
            return Success(None)
        try:
            return Success(VenueDetails.model_validate(result.value))
        except ValidationError:
            return Failure(ErrorKind.API_ERROR, "Malformed venue response")

    async def get_current_location(self) -> FetchResult[tuple[float, float]]:
        """Approximate device position from its IP; defaults to Los Angeles."""
        params = {"token": self.settings.ipinfo_token} if self.settings.ipinfo_token else None
        result = await self._get_json(self.settings.ipinfo_url, params)
        if isinstance(result, Success) and isinstance(result.value, dict):
            loc = result.value.get("loc") or ""
            parts = loc.split(",")
            if len(parts) == 2:
                try:
                    return Success((float(parts[0]), float(parts[1])))
                except ValueError:
                    pass
        log.info("Could not resolve current location, using default")
        return Success(DEFAULT_COORDINATES)
