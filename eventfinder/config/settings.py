"""Application settings loaded from environment variables via pydantic-settings.

Settings are read from two sources, highest priority first:

  1. Environment variables, e.g. ``TICKETMASTER_API_KEY=abc123``
  2. A ``.env`` file in the working directory

Field ``ticketmaster_api_key`` maps to ``TICKETMASTER_API_KEY``.  Defaults
apply when neither source defines a value.  See ``.env.example``.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """eventfinder application settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # === Events provider (Ticketmaster Discovery) ===
    # Empty string = "not configured"; the provider reports itself unavailable.
    ticketmaster_api_key: str = ""
    ticketmaster_base_url: str = "https://app.ticketmaster.com"
    ticketmaster_page_size: int = 50
    ticketmaster_window_days: int = 7

    # === Geocoding provider (Nominatim) ===
    nominatim_base_url: str = "https://nominatim.openstreetmap.org"

    # === Shared HTTP client ===
    # Nominatim's usage policy requires an identifying User-Agent.
    http_user_agent: str = "eventfinder/0.1.0"
    http_timeout: float = 10.0

    # === Search radius (km) ===
    radius_min: int = 1
    radius_max: int = 160
    radius_default: int = 40

    # === Location selector ===
    suggestion_limit: int = 10
    input_debounce_ms: int = 500

    # === Results renderer ===
    query_debounce_ms: int = 300

    # === Device geolocation ===
    geolocation_timeout_s: float = 10.0
    geolocation_max_age_s: float = 60.0
    distance_timeout_s: float = 5.0
    # Fixed device position; leave unset to report geolocation as unsupported.
    device_latitude: float | None = None
    device_longitude: float | None = None

    # === Default map location (Amsterdam) ===
    default_latitude: float = 52.3676
    default_longitude: float = 4.9041
    default_location_name: str = "Amsterdam"

    # === Client state persistence ===
    state_db_path: str = "data/client_state.db"

    # === Map viewport (pixels) ===
    map_width_px: int = 800
    map_height_px: int = 600

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"

    def has_device_location(self) -> bool:
        """Return True when a fixed device position is configured."""
        return self.device_latitude is not None and self.device_longitude is not None

    def get_available_providers(self) -> list[str]:
        """Return the names of upstream providers that are usable with this config."""
        providers: list[str] = ["nominatim"]
        if self.ticketmaster_api_key:
            providers.append("ticketmaster")
        return providers
