"""Concrete adapters for the interfaces in ``eventfinder.interfaces``."""
