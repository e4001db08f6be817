# src/tracking/__init__.py
# Collector-side view tracking
# - context: the view (instance, seq) of the request being handled
# - middleware: X-Track-View parsing and API call recording
# - client_id / instance: client ID cookie and app instance creation

from tracking.context import (
    get_current_view,
    set_current_view,
    clear_current_view,
    view_context,
)

__all__ = [
    "get_current_view",
    "set_current_view",
    "clear_current_view",
    "view_context",
]
