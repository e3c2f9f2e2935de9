"""In-process key/value state store.

Used for tests and one-shot CLI sessions where nothing should outlive the
process.  Values are stored JSON-encoded so behavior (including decode
failures) matches the SQLite store.
"""

from __future__ import annotations

import json
from typing import Any

from eventfinder.interfaces.state_store import IStateStore


class MemoryStateStore(IStateStore):
    """Dict-backed IStateStore."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def get(self, key: str) -> Any | None:
        raw = self._data.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value)

    def set_raw(self, key: str, raw: str) -> None:
        """Store an already-encoded string as-is (no validation)."""
        self._data[key] = raw

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def get_provider_name(self) -> str:
        return "memory_state_store"
