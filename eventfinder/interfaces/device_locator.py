"""Abstract base class for device geolocation.

The headless equivalent of a browser's geolocation API: one call, one
position or one ``GeolocationError``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class IDeviceLocator(ABC):
    """Contract for looking up the current device position."""

    @abstractmethod
    async def locate(self) -> tuple[float, float]:
        """Return the device position as ``(latitude, longitude)``.

        Raises
        ------
        eventfinder.utils.errors.GeolocationError
            With a code describing why no position is available.
        """

    @abstractmethod
    def is_supported(self) -> bool:
        """Return ``False`` when this device cannot report a position at all."""
