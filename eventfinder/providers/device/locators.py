"""Device geolocation implementations.

A server process has no GPS, so the device position comes from
configuration (``DEVICE_LATITUDE`` / ``DEVICE_LONGITUDE``) or, in tests,
from any callable.  ``CachedDeviceLocator`` adds the "maximum cache age"
behavior and ``locate_with_timeout`` the bounded wait, mirroring the two
options a browser geolocation request takes.
"""

from __future__ import annotations

import asyncio
import time
from typing import Callable

from eventfinder.config.settings import Settings
from eventfinder.interfaces.device_locator import IDeviceLocator
from eventfinder.utils.errors import (
    ConfigurationError,
    GeolocationError,
    GeolocationErrorCode,
    InputValidationError,
)
from eventfinder.utils.geo import validate_coordinates
from eventfinder.utils.logging import get_logger

_logger = get_logger(__name__)


class StaticDeviceLocator(IDeviceLocator):
    """Reports a fixed position, or UNSUPPORTED when none is configured."""

    def __init__(
        self, latitude: float | None = None, longitude: float | None = None
    ) -> None:
        self._position: tuple[float, float] | None = None
        if latitude is not None and longitude is not None:
            try:
                self._position = validate_coordinates(latitude, longitude)
            except InputValidationError as exc:
                raise ConfigurationError(
                    f"Invalid device position: {exc.message}"
                ) from exc

    @classmethod
    def from_settings(cls, settings: Settings) -> StaticDeviceLocator:
        return cls(settings.device_latitude, settings.device_longitude)

    async def locate(self) -> tuple[float, float]:
        if self._position is None:
            raise GeolocationError(GeolocationErrorCode.UNSUPPORTED)
        return self._position

    def is_supported(self) -> bool:
        return self._position is not None


class CachedDeviceLocator(IDeviceLocator):
    """Wraps another locator and reuses a position younger than ``maximum_age``.

    Failures are never cached.
    """

    def __init__(
        self,
        inner: IDeviceLocator,
        maximum_age: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._inner = inner
        self._maximum_age = maximum_age
        self._clock = clock
        self._cached: tuple[float, float] | None = None
        self._cached_at = 0.0

    async def locate(self) -> tuple[float, float]:
        now = self._clock()
        if self._cached is not None and now - self._cached_at <= self._maximum_age:
            return self._cached
        position = await self._inner.locate()
        self._cached = position
        self._cached_at = now
        return position

    def is_supported(self) -> bool:
        return self._inner.is_supported()


async def locate_with_timeout(
    locator: IDeviceLocator, timeout: float
) -> tuple[float, float]:
    """Run ``locator.locate()`` bounded by *timeout* seconds.

    Raises ``GeolocationError(UNSUPPORTED)`` without calling the locator when
    it cannot report a position, ``GeolocationError(TIMEOUT)`` when the wait
    runs out, and wraps any other non-geolocation failure as ``UNKNOWN``.
    """
    if not locator.is_supported():
        raise GeolocationError(GeolocationErrorCode.UNSUPPORTED)
    try:
        return await asyncio.wait_for(locator.locate(), timeout=timeout)
    except asyncio.TimeoutError as exc:
        _logger.info("geolocation_timeout", timeout=timeout)
        raise GeolocationError(GeolocationErrorCode.TIMEOUT) from exc
    except GeolocationError:
        raise
    except Exception as exc:
        _logger.warning("geolocation_failed", error=str(exc))
        raise GeolocationError(GeolocationErrorCode.UNKNOWN) from exc
