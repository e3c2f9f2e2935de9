"""Interface definitions for every external service eventfinder talks to.

Concrete adapters implement these ABCs and are injected at runtime, so the
client components and API routes never depend on a specific provider.

    Interface          ->  Concrete implementations
    ------------------------------------------------------------------
    IGeocodeProvider   ->  NominatimProvider, EventFinderAPIClient
    IEventProvider     ->  TicketmasterProvider, EventFinderAPIClient
    IDeviceLocator     ->  StaticDeviceLocator, CachedDeviceLocator
    IStateStore        ->  MemoryStateStore, SQLiteStateStore
"""

from eventfinder.interfaces.device_locator import IDeviceLocator
from eventfinder.interfaces.event_provider import IEventProvider
from eventfinder.interfaces.geocode_provider import IGeocodeProvider
from eventfinder.interfaces.state_store import IStateStore

__all__ = [
    "IDeviceLocator",
    "IEventProvider",
    "IGeocodeProvider",
    "IStateStore",
]
