# src/monitoring/middleware.py
# Flask middleware that counts collector requests and measures their latency

import time
from flask import request, g
from prometheus_client import Counter, Histogram
from logger import get_logger

logger = get_logger(__name__)

COLLECTOR_REQUESTS_TOTAL = Counter(
    "collector_requests_total",
    "Total number of requests handled by the collector",
    ["method", "endpoint", "status_code"]
)

COLLECTOR_REQUEST_DURATION_SECONDS = Histogram(
    "collector_request_duration_seconds",
    "Duration of collector requests in seconds",
    ["method", "endpoint"]
)

# Requests slower than this are logged at warning level
SLOW_REQUEST_SECONDS = 1.0


def setup_request_monitoring(app):
    """
    Set up request monitoring middleware for Flask.

    Register this before any middleware that may short-circuit a request
    (e.g. the view header check) so every request gets a start time.

    Args:
        app: Flask application instance
    """

    @app.before_request
    def start_request_timer():
        g.start_time = time.time()

    @app.after_request
    def record_request_metrics(response):
        duration = time.time() - g.get("start_time", time.time())

        # Unmatched URLs have no endpoint; fall back to the path
        endpoint = request.endpoint or request.path

        COLLECTOR_REQUESTS_TOTAL.labels(
            method=request.method,
            endpoint=endpoint,
            status_code=response.status_code
        ).inc()

        COLLECTOR_REQUEST_DURATION_SECONDS.labels(
            method=request.method,
            endpoint=endpoint
        ).observe(duration)

        if duration > SLOW_REQUEST_SECONDS:
            logger.warning(
                f"Slow request: {request.method} {request.path} took {duration:.2f}s"
            )

        return response

    logger.info("Request monitoring middleware enabled")
