# src/api/app.py
# The collector: a Flask application that receives view reports from the
# client tracker and serves the stored instances, views and calls back out

from typing import Optional

from flask import Flask, request, jsonify
from logger import get_logger
from config import settings

from service import (
    View,
    insert_view,
    query_views,
    get_view,
    query_calls,
    get_instance,
    InstanceNotFoundError,
    ViewNotFoundError,
    DuplicateViewError,
)

from db.pool import get_connection, get_pool_status

from monitoring import setup_metrics_endpoint, setup_request_monitoring

from tracking.middleware import setup_view_tracking
from tracking.instance import instantiate_app, client_globals

logger = get_logger(__name__)


def create_app():
    """
    Create and configure the collector Flask application.

    Returns:
        Configured Flask application instance
    """
    app = Flask(__name__)

    app.config['DEBUG'] = settings.app.debug
    app.json.sort_keys = False

    # Request monitoring goes first so every request is timed, including
    # those rejected by the view header check
    setup_request_monitoring(app)
    setup_view_tracking(app)

    register_routes(app)
    register_error_handlers(app)
    setup_metrics_endpoint(app)

    logger.info(f"Collector application created: debug={settings.app.debug}")
    logger.info(f"View reports accepted at {settings.tracker.api_prefix}/instances/<instance>/views")

    return app


def _parse_id(value: str, minimum: int) -> Optional[int]:
    """Parse a route segment as an integer >= minimum; None if it is not one."""
    try:
        parsed = int(value)
    except ValueError:
        return None
    return parsed if parsed >= minimum else None


def _bad_request(message: str):
    return jsonify({
        "error": "Bad request",
        "message": message,
    }), 400


def _not_found(message: str):
    return jsonify({
        "error": "Not found",
        "message": message,
    }), 404


def _internal_error():
    return jsonify({
        "error": "Internal server error",
        "message": "An unexpected error occurred"
    }), 500


def register_routes(app: Flask):
    """
    Register the collector routes.

    Args:
        app: Flask application instance
    """
    prefix = settings.tracker.api_prefix

    # ============================================
    # Health Check Endpoints
    # ============================================

    @app.route('/health', methods=['GET'])
    def health():
        """Liveness: the process is up and answering."""
        return jsonify({
            "status": "healthy",
            "service": "view-track-collector"
        }), 200

    @app.route('/health/ready', methods=['GET'])
    def readiness():
        """
        Readiness: the database is reachable.

        The collector cannot store anything without it, so it is critical.
        """
        database = check_database()
        ready = database["status"] == "healthy"
        return jsonify({
            "status": "ready" if ready else "not_ready",
            "checks": {"database": database}
        }), 200 if ready else 503

    # ============================================
    # App bootstrap
    # ============================================

    @app.route('/bootstrap', methods=['GET'])
    @instantiate_app
    def bootstrap():
        """
        Create an app instance and return the globals the client injects.

        Returns:
            {"__trackClientConfig": {"NewViewURL": ...},
             "__trackClientData": {"Instance": ...}}
        """
        return jsonify(client_globals())

    # ============================================
    # Views
    # ============================================

    @app.route(f'{prefix}/instances/<instance>/views', methods=['POST'])
    def create_view(instance):
        """
        Store a view reported by the client tracker.

        Request Body (JSON):
            {"instanceID": 17, "sequence": 3, "stateName": "contacts.detail",
             "stateParams": {"id": "42"}, "requestURI": "/contacts/42"}

        Returns:
            201 with the stored view, 400 on a bad instance or body,
            409 if this sequence number was already reported
        """
        instance_id = _parse_id(instance, minimum=1)
        if instance_id is None:
            return _bad_request(f"Invalid instance: {instance!r}")

        body = request.get_json(silent=True)
        if body is None:
            return _bad_request("Request body must be JSON")

        try:
            view = View.from_report(body)
        except ValueError as e:
            logger.warning(f"Invalid view report for instance {instance_id}: {e}")
            return _bad_request(str(e))

        if view.instance != instance_id:
            logger.warning(
                f"View instanceID ({view.instance}) != instance route parameter ({instance_id})"
            )
            return _bad_request("instanceID does not match the instance in the URL")

        try:
            with get_connection() as conn:
                insert_view(conn, view)
        except DuplicateViewError as e:
            return jsonify({
                "error": "Conflict",
                "message": str(e),
            }), 409
        except Exception as e:
            logger.error(f"Error storing view {instance_id}/{view.seq}: {e}", exc_info=True)
            return _internal_error()

        return jsonify(view.to_dict()), 201

    @app.route(f'{prefix}/instances/<instance>/views', methods=['GET'])
    def list_views(instance):
        """List an instance's views in sequence order."""
        instance_id = _parse_id(instance, minimum=1)
        if instance_id is None:
            return _bad_request(f"Invalid instance: {instance!r}")

        try:
            with get_connection() as conn:
                views = query_views(conn, instance_id)
        except Exception as e:
            logger.error(f"Error querying views of instance {instance_id}: {e}", exc_info=True)
            return _internal_error()

        return jsonify([v.to_dict() for v in views]), 200

    @app.route(f'{prefix}/instances/<instance>/views/<seq>', methods=['GET'])
    def show_view(instance, seq):
        instance_id = _parse_id(instance, minimum=1)
        seq_num = _parse_id(seq, minimum=0)
        if instance_id is None or seq_num is None:
            return _bad_request(f"Invalid view: {instance!r}/{seq!r}")

        try:
            with get_connection() as conn:
                view = get_view(conn, instance_id, seq_num)
        except ViewNotFoundError as e:
            return _not_found(str(e))
        except Exception as e:
            logger.error(f"Error getting view {instance_id}/{seq_num}: {e}", exc_info=True)
            return _internal_error()

        return jsonify(view.to_dict()), 200

    @app.route(f'{prefix}/instances/<instance>/views/<seq>/calls', methods=['GET'])
    def list_calls(instance, seq):
        """List the API calls made while a view was active."""
        instance_id = _parse_id(instance, minimum=1)
        seq_num = _parse_id(seq, minimum=0)
        if instance_id is None or seq_num is None:
            return _bad_request(f"Invalid view: {instance!r}/{seq!r}")

        try:
            with get_connection() as conn:
                calls = query_calls(conn, instance_id, seq_num)
        except Exception as e:
            logger.error(f"Error querying calls of view {instance_id}/{seq_num}: {e}", exc_info=True)
            return _internal_error()

        return jsonify([c.to_dict() for c in calls]), 200

    # ============================================
    # Instances
    # ============================================

    @app.route(f'{prefix}/instances/<instance>', methods=['GET'])
    def show_instance(instance):
        instance_id = _parse_id(instance, minimum=1)
        if instance_id is None:
            return _bad_request(f"Invalid instance: {instance!r}")

        try:
            with get_connection() as conn:
                found = get_instance(conn, instance_id)
        except InstanceNotFoundError as e:
            return _not_found(str(e))
        except Exception as e:
            logger.error(f"Error getting instance {instance_id}: {e}", exc_info=True)
            return _internal_error()

        return jsonify(found.to_dict()), 200


def register_error_handlers(app: Flask):
    """
    Make sure clients always get JSON, even for errors Flask raises itself.

    Args:
        app: Flask application instance
    """

    @app.errorhandler(404)
    def not_found(error):
        return _not_found("The requested endpoint does not exist")

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({
            "error": "Method not allowed",
            "message": "The HTTP method is not allowed for this endpoint"
        }), 405

    @app.errorhandler(500)
    def internal_error(error):
        logger.error(f"Internal server error: {error}", exc_info=True)
        return _internal_error()


def check_database():
    """
    Check if the database is accessible.

    Returns:
        Dictionary with check status and details
    """
    try:
        with get_connection() as conn:
            with conn.cursor() as cursor:
                cursor.execute("SELECT 1")
                cursor.fetchone()

        return {
            "status": "healthy",
            "message": "Database is accessible",
            "pool": get_pool_status()
        }
    except Exception as e:
        logger.warning(f"Database health check failed: {e}")
        return {
            "status": "unhealthy",
            "message": f"Database is not accessible: {str(e)}"
        }
