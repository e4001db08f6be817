# src/monitoring/metrics_endpoint.py
# Exposes the Prometheus metrics of the collector (and of any tracker running
# in the same process) at /metrics

from flask import Response
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from logger import get_logger

logger = get_logger(__name__)


def setup_metrics_endpoint(app):
    """
    Register the /metrics endpoint for Prometheus to scrape.

    Example output:
        # HELP track_views_stored_total Total number of views stored by the collector
        # TYPE track_views_stored_total counter
        track_views_stored_total 42.0

    Args:
        app: Flask application instance
    """
    @app.route('/metrics', methods=['GET'])
    def metrics():
        try:
            return Response(generate_latest(), mimetype=CONTENT_TYPE_LATEST)

        except Exception as e:
            # A broken exporter must not take the collector down
            logger.error(f"Error generating metrics: {e}", exc_info=True)
            return Response(
                f"Error generating metrics: {str(e)}",
                status=500,
                mimetype='text/plain'
            )

    logger.info("Prometheus metrics endpoint registered at /metrics")
