"""Abstract base class for geocoding service providers.

Defines the contract for turning free text into candidate places and
coordinates back into a display name.  Implementations may wrap Nominatim,
the eventfinder server's own ``/api/locations`` endpoints, or a test fake.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from eventfinder.models.location import GeocodeSuggestion, Location


# Concrete implementations: NominatimProvider (eventfinder/providers/geocode/),
# EventFinderAPIClient (eventfinder/client/api_client.py).
class IGeocodeProvider(ABC):
    """Contract for forward and reverse geocode lookups."""

    @abstractmethod
    async def search(self, query: str, limit: int = 10) -> list[GeocodeSuggestion]:
        """Return up to *limit* candidate places for a free-text query.

        Parameters
        ----------
        query:
            Free-text place name, e.g. ``"Amsterdam"``.
        limit:
            Maximum number of candidates.

        Returns
        -------
        list[GeocodeSuggestion]
            Candidates in provider relevance order; empty when nothing matches.

        Raises
        ------
        eventfinder.utils.errors.InputValidationError
            If the query is empty, before any network call.
        eventfinder.utils.errors.ProviderError
            If the provider is unreachable or answers with an error.
        """

    @abstractmethod
    async def reverse(self, latitude: float, longitude: float) -> Location:
        """Resolve coordinates to a ``Location`` with a display name.

        When the provider knows no name for the point, the name falls back
        to ``"<lat>, <lon>"`` with six decimals.

        Raises
        ------
        eventfinder.utils.errors.InputValidationError
            If the coordinates are not finite or out of range.
        eventfinder.utils.errors.ProviderError
            If the provider is unreachable or answers with an error.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier, e.g. ``"nominatim"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured for use."""
