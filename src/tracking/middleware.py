# src/tracking/middleware.py
# Flask middleware that reads the X-Track-View header and records API calls
#
# Every request from a tracked client carries "<instance> <seq>". We parse it
# before the request is handled so that:
# - API calls can be stored against the view they were made from
# - every log line written while handling the request shows the view

from functools import wraps

from flask import request, g, jsonify
from db.pool import get_connection
from logger import get_logger
from metrics import VIEW_HEADERS_REJECTED_TOTAL
from service.calls import insert_call
from service.models import Call
from tracker.view import VIEW_HEADER, ViewHeaderError, parse_view_header
from tracking.context import set_current_view, clear_current_view

logger = get_logger(__name__)

# Operational endpoints answer whatever view header they are sent
UNTRACKED_ENDPOINTS = frozenset({"health", "readiness", "metrics", "static"})


def setup_view_tracking(app, untracked_endpoints=UNTRACKED_ENDPOINTS):
    """
    Set up view header parsing for a Flask app.

    This middleware:
    1. Parses the X-Track-View header, if present
    2. Rejects the request with 400 if the header is malformed
    3. Stores the ViewID in flask.g and in the request context variable
    4. Clears the context variable when the request is torn down

    A header whose instance is the "-" placeholder (client had no identity)
    is accepted and treated as "no view". Requests to untracked_endpoints
    skip the header entirely.

    Args:
        app: Flask application instance
        untracked_endpoints: Endpoint names the header is ignored on
    """

    @app.before_request
    def parse_view_header_before_request():
        g.track_view = None
        if request.endpoint in untracked_endpoints:
            return None

        value = request.headers.get(VIEW_HEADER)
        if not value:
            return None

        try:
            view = parse_view_header(value)
        except ViewHeaderError as e:
            VIEW_HEADERS_REJECTED_TOTAL.inc()
            logger.warning(f"Rejecting {request.method} {request.path}: {e}")
            return jsonify({
                "error": "Bad request",
                "message": str(e),
            }), 400

        if view is None:
            logger.debug(f"{VIEW_HEADER} header has no instance; request is not tied to a view")

        g.track_view = view
        set_current_view(view)
        return None

    @app.teardown_request
    def clear_view_after_request(exc):
        clear_current_view()

    logger.info(f"View tracking middleware enabled: {VIEW_HEADER} header supported")


def _request_uri() -> str:
    query = request.query_string.decode("utf-8", errors="replace")
    return f"{request.path}?{query}" if query else request.path


def track_call(handler):
    """
    Decorator recording a Call for every request to an API endpoint.

    The call is stored before the handler runs. Storage failures are logged
    and the handler still runs; tracking never fails an API call.

    Example:
        @app.route('/api/contacts/<int:id>')
        @track_call
        def get_contact(id):
            ...
    """
    @wraps(handler)
    def wrapper(*args, **kwargs):
        view = g.get("track_view")
        call = Call(
            instance=view.instance if view else None,
            seq=view.seq if view else None,
            request_uri=_request_uri(),
            route=request.endpoint or "",
            route_params=dict(request.view_args or {}),
            query_params=request.args.to_dict(flat=False),
        )

        try:
            with get_connection() as conn:
                insert_call(conn, call)
        except Exception as e:
            logger.error(f"Failed to store call {call.route} {call.request_uri}: {e}", exc_info=True)

        return handler(*args, **kwargs)

    return wrapper
