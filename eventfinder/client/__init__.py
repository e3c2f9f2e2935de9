"""Headless client: the page's components driven by an asyncio loop."""

from eventfinder.client.api_client import EventFinderAPIClient
from eventfinder.client.bus import EventBus
from eventfinder.client.distance_annotator import DistanceAnnotator
from eventfinder.client.location_selector import LocationSelector
from eventfinder.client.map_layer import MapMarkerLayer
from eventfinder.client.results_renderer import ResultsRenderer
from eventfinder.client.session import ClientSession
from eventfinder.client.state import AppState

__all__ = [
    "AppState",
    "ClientSession",
    "DistanceAnnotator",
    "EventBus",
    "EventFinderAPIClient",
    "LocationSelector",
    "MapMarkerLayer",
    "ResultsRenderer",
]
