# src/tracker/__init__.py
# Client-side view tracker
# Assigns a sequence number to every navigation, reports each view to the
# collector, and stamps every outgoing request with "<instance> <seq>"

from tracker.view import (
    VIEW_HEADER,
    ViewID,
    ViewState,
    ViewHeaderError,
    format_view_header,
    parse_view_header,
)
from tracker.identity import SessionIdentity, ClientConfig
from tracker.sequencer import ViewSequencer
from tracker.reporter import ViewReporter
from tracker.interceptor import ViewHeaderAdapter, install_view_header
from tracker.navigation import StateNavigator, StateNotFoundError, track_navigation
from tracker.bootstrap import start_tracking

__all__ = [
    "VIEW_HEADER",
    "ViewID",
    "ViewState",
    "ViewHeaderError",
    "format_view_header",
    "parse_view_header",
    "SessionIdentity",
    "ClientConfig",
    "ViewSequencer",
    "ViewReporter",
    "ViewHeaderAdapter",
    "install_view_header",
    "StateNavigator",
    "StateNotFoundError",
    "track_navigation",
    "start_tracking",
]
