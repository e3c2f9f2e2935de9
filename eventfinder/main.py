"""eventfinder FastAPI application entry point.

Wires providers and routes together via ``app.state``.  Loads configuration
from ``.env`` and ``config/config.yaml`` and configures structured logging.

Run with ``python -m eventfinder.main`` or ``uvicorn eventfinder.main:app``.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import httpx
import structlog
import uvicorn
from fastapi import FastAPI

from eventfinder.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
    register_exception_handlers,
)
from eventfinder.api.routes import APP_VERSION
from eventfinder.api.routes import router as api_router
from eventfinder.config.loader import load_config
from eventfinder.config.settings import Settings
from eventfinder.providers.event.ticketmaster_provider import TicketmasterProvider
from eventfinder.providers.geocode.nominatim_provider import NominatimProvider
from eventfinder.utils.logging import configure_logging, get_logger

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()
config = load_config(settings=settings)

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# DI assembly
# ---------------------------------------------------------------------------


def _build_all(app_settings: Settings) -> dict[str, Any]:
    """Construct every provider for the application.

    Returns a flat dict of named components to be stored on ``app.state``.
    """
    http_client = httpx.AsyncClient(
        timeout=app_settings.http_timeout,
        headers={"User-Agent": app_settings.http_user_agent},
    )
    geocoder = NominatimProvider(http_client=http_client, settings=app_settings)
    events_provider = TicketmasterProvider(http_client=http_client, settings=app_settings)

    if not events_provider.is_available():
        _logger.warning(
            "events_provider_unconfigured",
            provider=events_provider.get_provider_name(),
            hint="set TICKETMASTER_API_KEY",
        )

    return {
        "http_client": http_client,
        "settings": app_settings,
        "config": config,
        "geocoder": geocoder,
        "events_provider": events_provider,
    }


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Initialise providers on startup, close the shared HTTP client on shutdown."""
    components = _build_all(settings)

    for key, value in components.items():
        setattr(application.state, key, value)

    _logger.info(
        "app_startup",
        version=APP_VERSION,
        environment=settings.app_env,
        providers=settings.get_available_providers(),
    )

    yield

    http_client: httpx.AsyncClient = components["http_client"]
    await http_client.aclose()
    _logger.info("app_shutdown", message="HTTP client closed")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="eventfinder API",
        version=APP_VERSION,
        description=(
            "Search a place, then list and map upcoming events around it. "
            "Geocoding by Nominatim, events by the Ticketmaster Discovery API."
        ),
        lifespan=_lifespan,
    )

    # Last added runs first: logging wraps error handling.
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application)
    register_exception_handlers(application)

    application.include_router(api_router)
    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "eventfinder.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
