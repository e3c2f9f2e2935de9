"""Client state persistence implementations."""

from eventfinder.providers.state.memory_state_store import MemoryStateStore
from eventfinder.providers.state.sqlite_state_store import SQLiteStateStore

__all__ = ["MemoryStateStore", "SQLiteStateStore"]
