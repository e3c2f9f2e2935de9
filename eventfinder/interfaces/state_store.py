"""Abstract base class for client-side key/value persistence.

Stores small JSON-serializable values (e.g. the last selected location under
``savedLocation``) so a client session can pick up where it left off.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class IStateStore(ABC):
    """Contract for a tiny persistent key/value store."""

    @abstractmethod
    def get(self, key: str) -> Any | None:
        """Return the stored value for *key*, or ``None`` if absent.

        Raises ``ValueError`` if the stored value cannot be decoded.
        """

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Store a JSON-serializable *value* under *key*, replacing any old value."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove *key*; a missing key is not an error."""
