"""YAML configuration loader with environment variable overrides.

Configuration is loaded in layers, later layers overriding earlier ones:

  1. ``config/config.yaml``: static defaults checked into the repo
  2. ``.env`` file: local developer overrides (not committed)
  3. Environment variables: set at deploy time

``load_config()`` reads the YAML file first, then deep-merges the
environment-based values on top, so a default in config.yaml can be
overridden per environment.

``_deep_merge`` merges recursively::

    base = {"map": {"default_zoom": 13}}
    overrides = {"map": {"width_px": 1024}}
    result = {"map": {"default_zoom": 13, "width_px": 1024}}
"""

from pathlib import Path

import yaml

from eventfinder.config.settings import Settings


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Environment variables (via Settings) override YAML values where keys overlap.

    Args:
        path: Path to the YAML configuration file.
        settings: Settings to merge; a fresh ``Settings()`` when omitted.

    Returns:
        Fully resolved configuration dictionary.
    """
    config_path = Path(path)
    if config_path.exists():
        with open(config_path) as f:
            yaml_config = yaml.safe_load(f) or {}
    else:
        yaml_config = {}

    settings = settings or Settings()
    env_overrides = {
        "app": {
            "host": settings.app_host,
            "port": settings.app_port,
            "env": settings.app_env,
        },
        "providers": {
            "ticketmaster_base_url": settings.ticketmaster_base_url,
            "nominatim_base_url": settings.nominatim_base_url,
            "available": settings.get_available_providers(),
        },
        "radius": {
            "min": settings.radius_min,
            "max": settings.radius_max,
            "default": settings.radius_default,
        },
        "map": {
            "width_px": settings.map_width_px,
            "height_px": settings.map_height_px,
        },
        "logging": {
            "level": settings.log_level,
        },
    }

    _deep_merge(yaml_config, env_overrides)
    return yaml_config


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
