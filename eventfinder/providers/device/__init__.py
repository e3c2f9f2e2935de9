"""Device geolocation implementations."""

from eventfinder.providers.device.locators import (
    CachedDeviceLocator,
    StaticDeviceLocator,
    locate_with_timeout,
)

__all__ = ["CachedDeviceLocator", "StaticDeviceLocator", "locate_with_timeout"]
