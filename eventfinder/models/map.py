"""Pydantic v2 models for the map marker layer."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

CENTER_MARKER_KEY = "center"


class MarkerKind(str, Enum):
    CENTER = "center"
    EVENT = "event"


class Marker(BaseModel):
    """A single map marker: the selected location or one event venue."""

    model_config = ConfigDict(frozen=True)

    key: str = Field(description="Event id, or 'center' for the location marker.")
    latitude: float
    longitude: float
    kind: MarkerKind = MarkerKind.EVENT
    title: str = ""
    popup_html: str = ""
