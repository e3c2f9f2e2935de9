"""Pydantic v2 models for places: the selected location and geocode candidates.

All models are frozen (immutable).  A ``Location`` is the single "current
location" value of a client session; a ``GeocodeSuggestion`` is one candidate
returned by a free-text geocode lookup.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Location(BaseModel):
    """A selected place: coordinates plus a human-readable name."""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    latitude: float = Field(ge=-90, le=90, description="Latitude in degrees.")
    longitude: float = Field(ge=-180, le=180, description="Longitude in degrees.")
    display_name: str = Field(description="Name shown in the search box and popups.")

    @classmethod
    def from_coordinates(cls, latitude: float, longitude: float) -> Location:
        """Build a location named after its own coordinates (six decimals)."""
        return cls(
            latitude=latitude,
            longitude=longitude,
            display_name=f"{latitude:.6f}, {longitude:.6f}",
        )


class GeocodeSuggestion(BaseModel):
    """One candidate place from a geocode lookup.

    Field names follow the public ``/api/locations`` wire format
    (``display_name``, ``lat``, ``lon``, ``place_id``).
    """

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    display_name: str
    lat: float = Field(ge=-90, le=90)
    lon: float = Field(ge=-180, le=180)
    place_id: str | None = None

    @field_validator("place_id", mode="before")
    @classmethod
    def _stringify_place_id(cls, value: Any) -> Any:
        # Nominatim sends numeric ids; keep them as strings.
        if value is None:
            return None
        return str(value)

    @classmethod
    def from_nominatim(cls, item: dict[str, Any]) -> GeocodeSuggestion:
        """Parse one element of a Nominatim ``/search`` JSON array.

        Nominatim returns ``lat``/``lon`` as strings; pydantic coerces them.
        """
        return cls(
            display_name=item["display_name"],
            lat=item["lat"],
            lon=item["lon"],
            place_id=item.get("place_id"),
        )

    def to_location(self) -> Location:
        """Convert to the ``Location`` a selection of this suggestion produces."""
        return Location(
            latitude=self.lat,
            longitude=self.lon,
            display_name=self.display_name,
        )
