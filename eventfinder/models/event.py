"""Pydantic v2 models for event listings and event queries.

All models are frozen.  ``EventRecord`` and its nested models serialize in
camelCase (``ticketStatus``, ``priceRange``) to match the JSON the client
components consume, and accept either camelCase or snake_case on input.

``EventRecord.from_ticketmaster`` normalizes one element of a Ticketmaster
Discovery ``_embedded.events`` array into a flat record.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from eventfinder.utils.geo import KM_TO_MILES, km_to_miles, round_half_up

_UNDEFINED = "Undefined"
_PREFERRED_RATIO = "16_9"
_PREFERRED_MIN_WIDTH = 500

_CAMEL_CONFIG = ConfigDict(
    frozen=True,
    alias_generator=to_camel,
    populate_by_name=True,
)


class TicketStatus(str, Enum):
    """Sale status shown on a card."""

    ONSALE = "onsale"
    OFFSALE = "offsale"


class DistanceUnit(str, Enum):
    KM = "km"
    MILES = "miles"


class Venue(BaseModel):
    """Where an event takes place.  Coordinates are optional upstream."""

    model_config = _CAMEL_CONFIG

    name: str = Field(default="", description="Venue name.")
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    address: str | None = None
    city: str | None = None

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None


class EventImage(BaseModel):
    model_config = _CAMEL_CONFIG

    url: str
    width: int | None = None
    ratio: str | None = None


class PriceRange(BaseModel):
    model_config = _CAMEL_CONFIG

    min: float | None = None
    max: float | None = None
    currency: str | None = None


class EventRecord(BaseModel):
    """A single upcoming event, as shown on a result card and a map marker."""

    model_config = _CAMEL_CONFIG

    id: str = Field(description="Provider event id; also the marker key.")
    name: str = Field(description="Event title.")
    venue: Venue = Field(default_factory=Venue)
    artists: list[str] = Field(default_factory=list)
    images: list[EventImage] = Field(default_factory=list)
    ticket_status: TicketStatus = TicketStatus.OFFSALE
    price_range: PriceRange | None = None
    genre: str | None = None
    subgenre: str | None = None
    url: str | None = None
    start_date: str | None = Field(
        default=None,
        description="ISO-8601 start (date-time when known, otherwise local date).",
    )

    @property
    def has_coordinates(self) -> bool:
        return self.venue.has_coordinates

    @property
    def preferred_image(self) -> EventImage | None:
        """First 16:9 image wider than 500 px, otherwise the first image."""
        for image in self.images:
            if image.ratio == _PREFERRED_RATIO and (image.width or 0) > _PREFERRED_MIN_WIDTH:
                return image
        return self.images[0] if self.images else None

    @classmethod
    def from_ticketmaster(cls, item: dict[str, Any]) -> EventRecord:
        """Normalize one Ticketmaster Discovery event.

        Raises ``KeyError``/``ValueError`` (including pydantic's
        ``ValidationError``) when required fields are missing or malformed;
        the provider skips such items.
        """
        embedded = item.get("_embedded") or {}
        venues = embedded.get("venues") or [{}]
        raw_venue = venues[0]
        location = raw_venue.get("location") or {}

        venue = Venue(
            name=raw_venue.get("name", ""),
            latitude=location.get("latitude"),
            longitude=location.get("longitude"),
            address=(raw_venue.get("address") or {}).get("line1"),
            city=(raw_venue.get("city") or {}).get("name"),
        )

        classification = (item.get("classifications") or [{}])[0]
        genre = (classification.get("genre") or {}).get("name")
        subgenre = (classification.get("subGenre") or {}).get("name")

        price_ranges = item.get("priceRanges") or []
        price_range = None
        if price_ranges:
            first = price_ranges[0]
            price_range = PriceRange(
                min=first.get("min"),
                max=first.get("max"),
                currency=first.get("currency"),
            )

        dates = item.get("dates") or {}
        start = dates.get("start") or {}
        status_code = (dates.get("status") or {}).get("code")

        return cls(
            id=item["id"],
            name=item["name"],
            venue=venue,
            artists=[a["name"] for a in embedded.get("attractions", []) if a.get("name")],
            images=[
                EventImage(url=img["url"], width=img.get("width"), ratio=img.get("ratio"))
                for img in item.get("images", [])
                if img.get("url")
            ],
            ticket_status=(
                TicketStatus.ONSALE if status_code == "onsale" else TicketStatus.OFFSALE
            ),
            price_range=price_range,
            genre=genre if genre and genre != _UNDEFINED else None,
            subgenre=subgenre if subgenre and subgenre != _UNDEFINED else None,
            url=item.get("url"),
            start_date=start.get("dateTime") or start.get("localDate"),
        )


class EventQuery(BaseModel):
    """Coordinates plus radius: everything that determines an events lookup."""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    radius: float = Field(gt=0, description="Search radius in ``unit``.")
    unit: DistanceUnit = DistanceUnit.KM

    def to_miles(self) -> int:
        """Radius in whole miles, as the upstream events provider expects."""
        if self.unit is DistanceUnit.MILES:
            return round_half_up(self.radius)
        return km_to_miles(self.radius)

    def to_km(self) -> float:
        if self.unit is DistanceUnit.KM:
            return float(self.radius)
        return self.radius / KM_TO_MILES
