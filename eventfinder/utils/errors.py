"""Custom exception hierarchy for eventfinder.

All application exceptions inherit from :class:`EventFinderError`, which
carries an optional ``provider_name`` so error handlers can tell which
external service (e.g. "nominatim", "ticketmaster") caused the failure.

    EventFinderError  (base)
    +-- InputValidationError      (bad coordinates, short query, bad radius)
    +-- ProviderError             (any upstream failure)
    |   +-- ProviderUnavailableError  (network error / unreachable)
    |   +-- ProviderResponseError     (non-2xx status or malformed payload)
    +-- GeolocationError          (device location denied / timed out / ...)
    +-- RenderError               (missing view container, unrenderable data)
    +-- ConfigurationError        (startup / missing config)

Each class also declares a ``public_code`` and ``public_message``: the only
parts of an error that ever reach a user.  ``ProviderUnavailableError`` and
``ProviderResponseError`` share both, so an unreachable provider and one that
answered with an error status look identical from the outside.
"""

from __future__ import annotations

from enum import Enum

GENERIC_PROVIDER_MESSAGE = (
    "Something went wrong while contacting the service. Please try again later."
)


class EventFinderError(Exception):
    """Base exception for all eventfinder errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name``.  ``__str__`` prefixes the provider name in brackets,
    e.g. ``[ticketmaster] HTTP 503``.
    """

    public_code = "internal_error"
    http_status = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    @property
    def public_message(self) -> str:
        """Text that is safe to show to a user."""
        return "An unexpected error occurred."

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------------


class InputValidationError(EventFinderError):
    """Raised when input is rejected before any network call is made."""

    public_code = "validation_error"
    http_status = 400

    def __init__(
        self,
        message: str = "Invalid input",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)

    @property
    def public_message(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Upstream provider errors
# ---------------------------------------------------------------------------


class ProviderError(EventFinderError):
    """Base for every failure of an upstream geocoding or events provider."""

    public_code = "provider_error"
    http_status = 502

    def __init__(
        self,
        message: str = "Upstream provider failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)

    @property
    def public_message(self) -> str:
        return GENERIC_PROVIDER_MESSAGE


class ProviderUnavailableError(ProviderError):
    """Raised when an external provider cannot be reached at all."""

    def __init__(
        self,
        message: str = "External service is unavailable",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ProviderResponseError(ProviderError):
    """Raised when a provider answers with an error status or a malformed body."""

    def __init__(
        self,
        message: str = "External service returned an invalid response",
        provider_name: str | None = None,
        status_code: int | None = None,
    ) -> None:
        self._status_code = status_code
        super().__init__(message=message, provider_name=provider_name)

    @property
    def status_code(self) -> int | None:
        return self._status_code


# ---------------------------------------------------------------------------
# Device geolocation
# ---------------------------------------------------------------------------


class GeolocationErrorCode(str, Enum):
    """Failure codes of a device location lookup."""

    PERMISSION_DENIED = "PERMISSION_DENIED"
    POSITION_UNAVAILABLE = "POSITION_UNAVAILABLE"
    TIMEOUT = "TIMEOUT"
    UNSUPPORTED = "UNSUPPORTED"
    UNKNOWN = "UNKNOWN"


_GEOLOCATION_MESSAGES: dict[GeolocationErrorCode, str] = {
    GeolocationErrorCode.PERMISSION_DENIED: "Location access was denied by the user.",
    GeolocationErrorCode.POSITION_UNAVAILABLE: "Location information is unavailable.",
    GeolocationErrorCode.TIMEOUT: "The request to get user location timed out.",
    GeolocationErrorCode.UNSUPPORTED: "Geolocation is not supported on this device.",
    GeolocationErrorCode.UNKNOWN: "An unknown error occurred.",
}


class GeolocationError(EventFinderError):
    """Raised when the device position cannot be determined."""

    public_code = "geolocation_error"
    http_status = 400

    def __init__(
        self,
        code: GeolocationErrorCode = GeolocationErrorCode.UNKNOWN,
        message: str | None = None,
        provider_name: str | None = None,
    ) -> None:
        self._code = code
        super().__init__(
            message=message or _GEOLOCATION_MESSAGES[code],
            provider_name=provider_name,
        )

    @property
    def code(self) -> GeolocationErrorCode:
        return self._code

    @property
    def public_message(self) -> str:
        return _GEOLOCATION_MESSAGES[self._code]


# ---------------------------------------------------------------------------
# Rendering / configuration
# ---------------------------------------------------------------------------


class RenderError(EventFinderError):
    """Raised when a view cannot be rendered (missing container, bad data)."""

    public_code = "render_error"

    def __init__(
        self,
        message: str = "Rendering failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ConfigurationError(EventFinderError):
    """Raised when configuration is invalid or missing."""

    public_code = "configuration_error"

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)

    @property
    def public_message(self) -> str:
        return "The service is not configured correctly."
