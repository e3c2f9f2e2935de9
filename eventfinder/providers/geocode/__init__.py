"""Geocoding provider implementations."""

from eventfinder.providers.geocode.nominatim_provider import NominatimProvider

__all__ = ["NominatimProvider"]
