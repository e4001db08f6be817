# src/tracking/instance.py
# Creating an app instance each time the host page is served
#
# An instance is one load of the application in one browser window. The page
# handler is wrapped with instantiate_app, which:
# 1. Reuses the client ID cookie, or allocates a new client ID
# 2. Stores a new instance row (URL, referrer, IP, user agent, user)
# 3. Makes the instance available to the handler as g.track_instance
# 4. Sets the client ID cookie on the response if it was just allocated
#
# The handler then injects the instance ID and the collector config into the
# page, where the client tracker reads them as its SessionIdentity.

from functools import wraps
from typing import Any, Dict
from urllib.parse import unquote

from flask import current_app, g, make_response, request, url_for
from db.pool import get_connection
from logger import get_logger
from service.instances import insert_instance, next_client_id
from service.models import Instance
from tracker.identity import CLIENT_CONFIG_KEY, CLIENT_DATA_KEY, INSTANCE_PLACEHOLDER
from tracking.client_id import read_client_id, set_client_id_cookie

logger = get_logger(__name__)

# Optional app.config entry: callable(request) -> user ID string or None
CURRENT_USER_CONFIG_KEY = "TRACK_CURRENT_USER"

# Endpoint name of the view report route (see api.app)
CREATE_VIEW_ENDPOINT = "create_view"


def _current_user():
    loader = current_app.config.get(CURRENT_USER_CONFIG_KEY)
    if loader is None:
        return None
    return loader(request) or None


def instantiate_app(handler):
    """
    Decorator for handlers that serve the application's base page.

    Errors while creating the instance propagate (the page cannot be
    tracked without one) and end up in the app's 500 handler.
    """
    @wraps(handler)
    def wrapper(*args, **kwargs):
        client_id = read_client_id(request)
        new_client = client_id is None

        with get_connection() as conn:
            if new_client:
                client_id = next_client_id(conn)

            instance = insert_instance(conn, Instance(
                client_id=client_id,
                user=_current_user(),
                url=request.full_path.rstrip("?"),
                referrer_url=request.referrer or "",
                ip_address=request.remote_addr or "",
                user_agent=request.user_agent.string,
            ))

        g.track_instance = instance

        response = make_response(handler(*args, **kwargs))
        if new_client:
            set_client_id_cookie(response, client_id)
        return response

    return wrapper


def make_client_config() -> Dict[str, Any]:
    """
    Build the __trackClientConfig value for the client.

    NewViewURL is the view report route with the ":instance" token in place
    of the instance ID; the client substitutes its own identity.
    Must be called inside an app or request context.
    """
    new_view_url = unquote(url_for(CREATE_VIEW_ENDPOINT, instance=INSTANCE_PLACEHOLDER))
    return {"NewViewURL": new_view_url}


def make_client_data() -> Dict[str, Any]:
    """
    Build the __trackClientData value for the client.

    Uses the instance created by instantiate_app for this request.
    """
    instance = g.get("track_instance")
    if instance is None:
        logger.warning(
            f"No instance set for request {request.path!r} "
            f"(is the page handler wrapped with instantiate_app?)"
        )
        return {"Instance": None}
    return {"Instance": instance.id}


def client_globals() -> Dict[str, Any]:
    """
    The globals the host page injects for the client tracker.
    """
    return {
        CLIENT_CONFIG_KEY: make_client_config(),
        CLIENT_DATA_KEY: make_client_data(),
    }
