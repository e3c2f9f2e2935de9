"""HTML rendering for cards, popups and pages."""

from eventfinder.rendering.html import (
    CALCULATING_LABEL,
    EMPTY_RESULTS_TEXT,
    render_event_card,
    render_event_detail_page,
    render_index_page,
    render_location_popup,
    render_map_popup,
)

__all__ = [
    "CALCULATING_LABEL",
    "EMPTY_RESULTS_TEXT",
    "render_event_card",
    "render_event_detail_page",
    "render_index_page",
    "render_location_popup",
    "render_map_popup",
]
