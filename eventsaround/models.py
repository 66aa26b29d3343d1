"""Pydantic models for the events API payloads.

Field aliases follow the Ticketmaster Discovery shapes the backend passes
through (``_embedded``, ``priceRanges``, ``subGenre``...). Models are dumped
with ``by_alias=True`` when persisted so a stored snapshot parses back the same
way a fresh API response does.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class Image(ApiModel):
    url: str = ""
    ratio: str | None = None
    width: int | None = None
    height: int | None = None


class NamedRef(ApiModel):
    id: str | None = None
    name: str | None = None


class Classification(ApiModel):
    segment: NamedRef | None = None
    genre: NamedRef | None = None
    sub_genre: NamedRef | None = Field(None, alias="subGenre")
    type: NamedRef | None = None
    sub_type: NamedRef | None = Field(None, alias="subType")

    def path(self) -> list[str]:
        """Segment -> genre -> subgenre names, skipping blanks and "Undefined"."""
        names = []
        for ref in (self.segment, self.genre, self.sub_genre):
            if ref and ref.name and ref.name != "Undefined" and ref.name not in names:
                names.append(ref.name)
        return names


class City(ApiModel):
    name: str | None = None


class State(ApiModel):
    name: str | None = None
    state_code: str | None = Field(None, alias="stateCode")


class Coordinates(ApiModel):
    latitude: str | None = None
    longitude: str | None = None


class Address(ApiModel):
    line1: str | None = None


class Venue(ApiModel):
    id: str = ""
    name: str = ""
    url: str | None = None
    city: City | None = None
    state: State | None = None
    location: Coordinates | None = None
    address: Address | None = None
    postal_code: str | None = Field(None, alias="postalCode")
    images: list[Image] = Field(default_factory=list)

    @property
    def coordinates(self) -> tuple[float, float] | None:
        if not self.location:
            return None
        try:
            return float(self.location.latitude), float(self.location.longitude)
        except (TypeError, ValueError):
            return None

    def full_address(self) -> str | None:
        parts = [
            self.address.line1 if self.address else None,
            self.city.name if self.city else None,
            self.state.state_code or self.state.name if self.state else None,
            self.postal_code,
        ]
        return ", ".join(p for p in parts if p) or None


class BoxOfficeInfo(ApiModel):
    phone_number_detail: str | None = Field(None, alias="phoneNumberDetail")
    open_hours_detail: str | None = Field(None, alias="openHoursDetail")


class GeneralInfo(ApiModel):
    general_rule: str | None = Field(None, alias="generalRule")
    child_rule: str | None = Field(None, alias="childRule")


class VenueDetails(Venue):
    box_office_info: BoxOfficeInfo | None = Field(None, alias="boxOfficeInfo")
    parking_detail: str | None = Field(None, alias="parkingDetail")
    general_info: GeneralInfo | None = Field(None, alias="generalInfo")


class Attraction(ApiModel):
    id: str = ""
    name: str = ""
    url: str | None = None
    images: list[Image] = Field(default_factory=list)
    classifications: list[Classification] = Field(default_factory=list)

    @property
    def is_music(self) -> bool:
        return any(
            c.segment and (c.segment.name or "").lower() == "music"
            for c in self.classifications
        )


class StartDate(ApiModel):
    local_date: str | None = Field(None, alias="localDate")
    local_time: str | None = Field(None, alias="localTime")
    date_time: str | None = Field(None, alias="dateTime")


class DateStatus(ApiModel):
    code: str | None = None


class EventDates(ApiModel):
    start: StartDate | None = None
    status: DateStatus | None = None
    timezone: str | None = None


class PriceRange(ApiModel):
    type: str | None = None
    currency: str | None = None
    min: float | None = None
    max: float | None = None


class SeatMap(ApiModel):
    static_url: str | None = Field(None, alias="staticUrl")


class EventEmbedded(ApiModel):
    venues: list[Venue] = Field(default_factory=list)
    attractions: list[Attraction] = Field(default_factory=list)


class Event(ApiModel):
    """Canonical event record, keyed by ``id``."""

    id: str = ""
    name: str = ""
    url: str | None = None
    images: list[Image] = Field(default_factory=list)
    dates: EventDates | None = None
    classifications: list[Classification] = Field(default_factory=list)
    embedded: EventEmbedded | None = Field(None, alias="_embedded")
    price_ranges: list[PriceRange] | None = Field(None, alias="priceRanges")
    seatmap: SeatMap | None = None

    @property
    def venue(self) -> Venue | None:
        if self.embedded and self.embedded.venues:
            return self.embedded.venues[0]
        return None

    @property
    def attractions(self) -> list[Attraction]:
        return self.embedded.attractions if self.embedded else []

    @property
    def category_path(self) -> list[str]:
        if not self.classifications:
            return []
        return self.classifications[0].path()

    @property
    def image_url(self) -> str | None:
        # Prefer the widest 16:9 image, fall back to the first one
        wide = [i for i in self.images if i.url and i.ratio == "16_9"]
        if wide:
            return max(wide, key=lambda i: i.width or 0).url
        return self.images[0].url if self.images else None

    @property
    def start_time(self) -> datetime | None:
        start = self.dates.start if self.dates else None
        if not start:
            return None
        try:
            if start.date_time:
                return datetime.fromisoformat(start.date_time.replace("Z", "+00:00"))
            if start.local_date and start.local_time:
                return datetime.fromisoformat(f"{start.local_date}T{start.local_time}")
            if start.local_date:
                return datetime.fromisoformat(start.local_date)
        except ValueError:
            return None
        return None

    @property
    def price(self) -> str | None:
        if not self.price_ranges:
            return None
        pr = self.price_ranges[0]
        currency = pr.currency or "USD"
        if pr.min is not None and pr.max is not None:
            return f"{currency} {pr.min:.0f}-{pr.max:.0f}"
        if pr.min is not None:
            return f"From {currency} {pr.min:.0f}"
        return None


class EventDetails(Event):
    """Event detail payload; convertible to a plain ``Event`` snapshot."""

    def to_event(self) -> Event:
        return Event.model_validate(self.model_dump(by_alias=True))


class Followers(ApiModel):
    total: int = 0


class ExternalUrls(ApiModel):
    spotify: str | None = None


class Artist(ApiModel):
    id: str
    name: str
    followers: Followers = Field(default_factory=Followers)
    popularity: int = 0
    genres: list[str] = Field(default_factory=list)
    images: list[Image] = Field(default_factory=list)
    external_urls: ExternalUrls = Field(default_factory=ExternalUrls)


class Album(ApiModel):
    id: str
    name: str
    release_date: str = ""
    total_tracks: int = 0
    images: list[Image] = Field(default_factory=list)
    external_urls: ExternalUrls = Field(default_factory=ExternalUrls)
