"""Server-side HTML for event cards, map popups and full pages.

Every value that comes from a provider is escaped with ``html.escape``
before it is placed in markup.  The fragments carry ``data-*`` attributes
(``data-event-card``, ``data-event-id``, ``data-lat``/``data-lon``,
``data-distance``) that client-side scripts and tests can select on.
"""

from __future__ import annotations

import html
from datetime import datetime
from typing import Iterable
from urllib.parse import quote

from eventfinder.models.event import EventRecord, PriceRange, TicketStatus
from eventfinder.models.location import Location
from eventfinder.utils.errors import RenderError
from eventfinder.utils.logging import get_logger

_logger = get_logger(__name__)

CALCULATING_LABEL = "Calculating..."
EMPTY_RESULTS_TEXT = "No upcoming events found in this area."
ERROR_RESULTS_TEXT = "Error loading events. Please try again later."
TICKETS_AVAILABLE_TEXT = "Tickets Available"
TICKETS_UNAVAILABLE_TEXT = "Tickets Unavailable"


def _esc(value: object) -> str:
    return html.escape(str(value), quote=True)


def event_detail_path(event_id: str) -> str:
    return f"/event/{quote(event_id, safe='')}"


def format_start_date(value: str | None) -> str:
    """Human-readable start, e.g. ``"Fri 2 May 2025, 20:00"``; raw text if unparseable."""
    if not value:
        return "Date to be announced"
    try:
        moment = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value
    if "T" not in value:
        return f"{moment:%a} {moment.day} {moment:%b %Y}"
    return f"{moment:%a} {moment.day} {moment:%b %Y, %H:%M}"


def format_price_range(price: PriceRange | None) -> str:
    if price is None or (price.min is None and price.max is None):
        return ""
    currency = f"{price.currency} " if price.currency else ""
    if price.min is not None and price.max is not None and price.min != price.max:
        return f"{currency}{price.min:.2f} - {price.max:.2f}"
    amount = price.min if price.min is not None else price.max
    return f"{currency}{amount:.2f}"


def _ticket_status_html(event: EventRecord, css_prefix: str) -> str:
    available = event.ticket_status is TicketStatus.ONSALE
    state = "available" if available else "unavailable"
    text = TICKETS_AVAILABLE_TEXT if available else TICKETS_UNAVAILABLE_TEXT
    return f'<p class="{css_prefix} {state}">{text}</p>'


def _require_renderable(event: EventRecord) -> None:
    if not event.id or not event.name:
        raise RenderError(f"Event without id or name cannot be rendered: {event.id!r}")


# ---------------------------------------------------------------------------
# Fragments
# ---------------------------------------------------------------------------


def render_event_card(event: EventRecord, distance_label: str = CALCULATING_LABEL) -> str:
    """Render one result card.

    The header is the click target that toggles ``expanded``; the link and
    ticket button inside the details are interactive sub-elements.
    """
    _require_renderable(event)
    venue = event.venue
    image = event.preferred_image

    parts = [
        f'<article class="event-card" data-event-card data-event-id="{_esc(event.id)}">',
        '<header class="event-card-header" data-event-card-header>',
    ]
    if image is not None:
        parts.append(
            f'<img class="event-card-image" src="{_esc(image.url)}" alt="{_esc(event.name)}" loading="lazy">'
        )
    parts.append(f'<h3 class="event-card-title">{_esc(event.name)}</h3>')
    parts.append(f'<p class="event-card-date">{_esc(format_start_date(event.start_date))}</p>')
    if venue.name:
        parts.append(f'<p class="event-card-venue">{_esc(venue.name)}</p>')
    parts.append(
        f'<span class="event-card-distance" data-distance>{_esc(distance_label or CALCULATING_LABEL)}</span>'
    )
    parts.append("</header>")

    parts.append('<div class="event-card-details" data-event-card-details>')
    if event.artists:
        parts.append(f'<p class="event-card-artists">{_esc(", ".join(event.artists))}</p>')
    genres = [g for g in (event.genre, event.subgenre) if g]
    if genres:
        parts.append(f'<p class="event-card-genre">{_esc(" / ".join(genres))}</p>')
    price = format_price_range(event.price_range)
    if price:
        parts.append(f'<p class="event-card-price">{_esc(price)}</p>')
    parts.append(_ticket_status_html(event, "ticket-status"))
    address = ", ".join(p for p in (venue.address, venue.city) if p)
    if address:
        parts.append(f'<p class="event-card-address">{_esc(address)}</p>')
    if venue.has_coordinates:
        parts.append(
            f'<span class="venue-coordinates" data-lat="{venue.latitude}" data-lon="{venue.longitude}" hidden></span>'
        )
    parts.append(
        f'<a class="event-link" href="{_esc(event_detail_path(event.id))}">More info</a>'
    )
    if event.url:
        parts.append(
            f'<a class="ticket-button" href="{_esc(event.url)}" target="_blank" rel="noopener">Buy tickets</a>'
        )
    parts.append("</div>")
    parts.append("</article>")
    return "".join(parts)


def render_map_popup(event: EventRecord) -> str:
    """Render the popup bound to an event marker."""
    _require_renderable(event)
    parts = [
        '<div class="event-popup">',
        f"<h4>{_esc(event.name)}</h4>",
    ]
    if event.venue.name:
        parts.append(f"<p><strong>{_esc(event.venue.name)}</strong></p>")
    if event.artists:
        parts.append(f"<p>{_esc(', '.join(event.artists))}</p>")
    parts.append(_ticket_status_html(event, "ticket-status-popup"))
    parts.append(
        f'<a href="{_esc(event_detail_path(event.id))}" class="view-event-btn" '
        f'data-event-id="{_esc(event.id)}">View Details</a>'
    )
    parts.append("</div>")
    return "".join(parts)


def render_location_popup(location: Location) -> str:
    return f'<div class="location-popup">{_esc(location.display_name)}</div>'


# ---------------------------------------------------------------------------
# Pages
# ---------------------------------------------------------------------------


def _page(title: str, body: str) -> str:
    return (
        "<!DOCTYPE html>"
        '<html lang="en"><head><meta charset="utf-8">'
        '<meta name="viewport" content="width=device-width, initial-scale=1">'
        f"<title>{_esc(title)}</title>"
        '<link rel="stylesheet" href="https://unpkg.com/leaflet@1.9.4/dist/leaflet.css">'
        "</head><body>"
        f"{body}"
        "</body></html>"
    )


def render_event_detail_page(event: EventRecord) -> str:
    """Full detail page for ``GET /event/{id}``."""
    _require_renderable(event)
    venue = event.venue
    image = event.preferred_image

    parts = ['<main class="event-detail">', '<a class="back-link" href="/">Back to events</a>']
    if image is not None:
        parts.append(f'<img class="event-detail-image" src="{_esc(image.url)}" alt="{_esc(event.name)}">')
    parts.append(f"<h1>{_esc(event.name)}</h1>")
    parts.append(f'<p class="event-detail-date">{_esc(format_start_date(event.start_date))}</p>')
    if venue.name:
        parts.append(f'<h2 class="event-detail-venue">{_esc(venue.name)}</h2>')
    address = ", ".join(p for p in (venue.address, venue.city) if p)
    if address:
        parts.append(f'<p class="event-detail-address">{_esc(address)}</p>')
    if event.artists:
        items = "".join(f"<li>{_esc(a)}</li>" for a in event.artists)
        parts.append(f'<ul class="event-detail-artists">{items}</ul>')
    genres = [g for g in (event.genre, event.subgenre) if g]
    if genres:
        parts.append(f'<p class="event-detail-genre">{_esc(" / ".join(genres))}</p>')
    price = format_price_range(event.price_range)
    if price:
        parts.append(f'<p class="event-detail-price">{_esc(price)}</p>')
    parts.append(_ticket_status_html(event, "ticket-status"))
    if event.url:
        parts.append(
            f'<a class="ticket-button" href="{_esc(event.url)}" target="_blank" rel="noopener">Buy tickets</a>'
        )
    if venue.has_coordinates:
        parts.append(
            f'<div class="leaflet-map-container" data-map-view data-lat="{venue.latitude}" '
            f'data-lon="{venue.longitude}" data-name="{_esc(venue.name)}"></div>'
        )
    parts.append("</main>")
    return _page(event.name, "".join(parts))


def render_index_page(
    location: Location,
    radius: int,
    radius_min: int,
    radius_max: int,
    events: Iterable[EventRecord] | None = None,
    error_message: str | None = None,
) -> str:
    """Home page: search form, map container and (optionally) result cards.

    ``events=None`` means no search has run yet; an empty iterable renders
    the empty-state text.
    """
    form = (
        '<form class="location-form" data-location-form action="/" method="get">'
        f'<input type="search" name="name" list="location-options" data-location-search-input '
        f'value="{_esc(location.display_name)}" placeholder="Search a city or address" minlength="2">'
        '<datalist id="location-options"></datalist>'
        f'<input type="hidden" name="lat" value="{location.latitude}">'
        f'<input type="hidden" name="lon" value="{location.longitude}">'
        f'<label>Radius (km) <input type="number" name="radius" data-radius-input '
        f'min="{radius_min}" max="{radius_max}" value="{radius}"></label>'
        '<button type="button" data-geolocation-button>Use my location</button>'
        '<button type="submit">Search</button>'
        "</form>"
    )
    map_div = (
        f'<div id="map" class="leaflet-map-container" data-map-view data-lat="{location.latitude}" '
        f'data-lon="{location.longitude}" data-name="{_esc(location.display_name)}"></div>'
    )

    results = ['<section class="events-overview" data-events-overview>']
    if error_message:
        results.append(f'<p class="events-error">{_esc(error_message)}</p>')
    elif events is not None:
        cards = []
        for event in events:
            try:
                cards.append(render_event_card(event))
            except RenderError as exc:
                _logger.warning("event_card_skipped", event_id=event.id, error=str(exc))
        results.append(f'<p class="events-count" data-events-count>{len(cards)}</p>')
        if cards:
            results.append('<div class="events-list">' + "".join(cards) + "</div>")
        else:
            results.append(f'<p class="events-empty">{EMPTY_RESULTS_TEXT}</p>')
    results.append("</section>")

    return _page("Event Finder", form + map_div + "".join(results))
