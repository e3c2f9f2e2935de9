"""Event-listing provider implementations."""

from eventfinder.providers.event.ticketmaster_provider import TicketmasterProvider

__all__ = ["TicketmasterProvider"]
