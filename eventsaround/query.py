"""Search query validation and query-parameter construction."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict

from eventsaround.results import ErrorKind, Failure, FetchResult, Success

DEFAULT_RADIUS = 10


class Category(str, Enum):
    ALL = "All"
    MUSIC = "Music"
    SPORTS = "Sports"
    ARTS = "Arts & Theatre"
    FILM = "Film"
    MISCELLANEOUS = "Miscellaneous"

    @property
    def segment_id(self) -> str | None:
        return _SEGMENT_IDS.get(self)

    @classmethod
    def parse(cls, value: str | Category | None) -> Category | None:
        """Resolve a category by value or member name; ``None`` if unknown."""
        if isinstance(value, Category):
            return value
        text = (value or "").strip().lower()
        if text in ("", "all", "none", "default"):
            return cls.ALL
        for member in cls:
            if text in (member.value.lower(), member.name.lower()):
                return member
        return None


_SEGMENT_IDS = {
    Category.MUSIC: "KZFzniwnSyZfZ7v7nJ",
    Category.SPORTS: "KZFzniwnSyZfZ7v7nE",
    Category.ARTS: "KZFzniwnSyZfZ7v7na",
    Category.FILM: "KZFzniwnSyZfZ7v7nn",
    Category.MISCELLANEOUS: "KZFzniwnSyZfZ7v7n1",
}


class RawSearchInput(BaseModel):
    """Unvalidated form input as the UI collects it."""

    keyword: str = ""
    radius: int | str | None = DEFAULT_RADIUS
    category: str | Category | None = Category.ALL
    use_current_location: bool = False
    latitude: float | None = None
    longitude: float | None = None
    location: str = ""


class SearchQuery(BaseModel):
    """A validated, immutable search query.

    Exactly one of ``coordinates`` and ``location`` is set.
    """

    model_config = ConfigDict(frozen=True)

    keyword: str
    radius: int = DEFAULT_RADIUS
    category: Category = Category.ALL
    coordinates: tuple[float, float] | None = None
    location: str | None = None

    @property
    def uses_current_position(self) -> bool:
        return self.coordinates is not None


def _invalid(reason: str, message: str) -> Failure:
    return Failure(ErrorKind.VALIDATION, message, reason=reason)


def validate(raw: RawSearchInput) -> FetchResult[SearchQuery]:
    """Validate *raw* input into a :class:`SearchQuery`.

    Never touches the network. Failures carry ``ErrorKind.VALIDATION`` and a
    ``reason`` of ``InvalidKeyword``, ``InvalidLocation``, ``InvalidRadius``
    or ``InvalidCategory``.
    """
    keyword = (raw.keyword or "").strip()
    if not keyword:
        return _invalid("InvalidKeyword", "Keyword is required")

    try:
        radius = DEFAULT_RADIUS if raw.radius in (None, "") else int(raw.radius)
    except (TypeError, ValueError):
        return _invalid("InvalidRadius", f"Invalid distance: {raw.radius!r}")
    if radius <= 0:
        return _invalid("InvalidRadius", "Distance must be a positive number")

    category = Category.parse(raw.category)
    if category is None:
        return _invalid("InvalidCategory", f"Unknown category: {raw.category!r}")

    coordinates = None
    location = None
    if raw.use_current_location:
        if raw.latitude is None or raw.longitude is None:
            return _invalid("InvalidLocation", "Current location is not available")
        coordinates = (raw.latitude, raw.longitude)
    else:
        location = (raw.location or "").strip()
        if not location:
            return _invalid("InvalidLocation", "Location is required")

    return Success(
        SearchQuery(
            keyword=keyword,
            radius=radius,
            category=category,
            coordinates=coordinates,
            location=location,
        )
    )


def to_query_parameters(query: SearchQuery) -> dict[str, str]:
    """Build the ordered query-string mapping for the search endpoint."""
    params = {"keyword": query.keyword, "radius": str(query.radius)}
    if query.category.segment_id:
        params["segmentId"] = query.category.segment_id
    if query.coordinates is not None:
        lat, lng = query.coordinates
        params["lat"] = str(lat)
        params["lng"] = str(lng)
    else:
        params["location"] = query.location or ""
    return params
