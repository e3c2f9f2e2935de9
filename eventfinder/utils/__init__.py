"""Shared utilities: errors, logging, geo math and timing primitives."""

from eventfinder.utils.concurrency import Debouncer, RequestSequencer
from eventfinder.utils.errors import (
    ConfigurationError,
    EventFinderError,
    GeolocationError,
    GeolocationErrorCode,
    InputValidationError,
    ProviderError,
    ProviderResponseError,
    ProviderUnavailableError,
    RenderError,
)
from eventfinder.utils.geo import (
    clamp_radius,
    format_distance,
    haversine_km,
    km_to_miles,
    validate_coordinates,
)
from eventfinder.utils.logging import configure_logging, get_logger

__all__ = [
    "ConfigurationError",
    "Debouncer",
    "EventFinderError",
    "GeolocationError",
    "GeolocationErrorCode",
    "InputValidationError",
    "ProviderError",
    "ProviderResponseError",
    "ProviderUnavailableError",
    "RenderError",
    "RequestSequencer",
    "clamp_radius",
    "configure_logging",
    "format_distance",
    "get_logger",
    "haversine_km",
    "km_to_miles",
    "validate_coordinates",
]
