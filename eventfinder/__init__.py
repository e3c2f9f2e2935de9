"""eventfinder: find upcoming events around a place."""

__version__ = "0.1.0"
