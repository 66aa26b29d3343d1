"""Client-side data layer for event search, enrichment and favorites."""

from eventsaround.coordinator import DetailsCoordinator, SearchCoordinator, SearchState
from eventsaround.favorites import FavoritesCache
from eventsaround.gateway import EventGateway
from eventsaround.history import SearchHistory
from eventsaround.models import Event, EventDetails
from eventsaround.query import Category, RawSearchInput, SearchQuery
from eventsaround.results import ErrorKind, Failure, FetchResult, Success
from eventsaround.store import PersistentStore

__all__ = [
    "Category",
    "DetailsCoordinator",
    "ErrorKind",
    "Event",
    "EventDetails",
    "EventGateway",
    "Failure",
    "FavoritesCache",
    "FetchResult",
    "PersistentStore",
    "RawSearchInput",
    "SearchCoordinator",
    "SearchHistory",
    "SearchQuery",
    "SearchState",
    "Success",
]
