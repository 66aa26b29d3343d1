"""Shared fixtures: mocked HTTP transport, temporary stores, sample events."""
from typing import Callable

import httpx
import pytest

from eventsaround.gateway import EventGateway
from eventsaround.models import Event
from eventsaround.settings import Settings
from eventsaround.store import PersistentStore


def make_event(event_id: str, name: str = "Concert", **extra) -> Event:
    """Build an Event the way the search endpoint returns one."""
    payload = {
        "id": event_id,
        "name": name,
        "url": f"https://tickets.example.com/{event_id}",
        "dates": {"start": {"localDate": "2026-11-20", "localTime": "19:30:00"}},
        "classifications": [
            {"segment": {"name": "Music"}, "genre": {"name": "Rock"}, "subGenre": {"name": "Pop"}}
        ],
        "_embedded": {
            "venues": [
                {
                    "id": "V1",
                    "name": "Hollywood Bowl",
                    "city": {"name": "Los Angeles"},
                    "state": {"name": "California", "stateCode": "CA"},
                    "location": {"latitude": "34.1122", "longitude": "-118.3391"},
                }
            ],
            "attractions": [{"id": "A1", "name": "Taylor Swift"}],
        },
    }
    payload.update(extra)
    return Event.model_validate(payload)


def event_payload(event_id: str, name: str = "Concert") -> dict:
    return make_event(event_id, name).model_dump(by_alias=True, exclude_none=True)


@pytest.fixture
def settings(tmp_path):
    """Settings with no retry delay and a throwaway database."""
    return Settings(
        api_base_url="http://backend.test/",
        ipinfo_url="http://ipinfo.test/json",
        db_path=tmp_path / "events.db",
        max_retries=2,
        retry_backoff=0,
        debounce_ms=20,
    )


@pytest.fixture
def store(tmp_path):
    return PersistentStore(tmp_path / "store.db")


@pytest.fixture
def gateway_factory(settings) -> Callable[..., EventGateway]:
    """Return a builder that wires an EventGateway to a MockTransport handler."""

    def build(handler) -> EventGateway:
        client = httpx.AsyncClient(
            transport=httpx.MockTransport(handler),
            base_url=settings.api_base_url,
        )
        return EventGateway(settings, client=client)

    return build
