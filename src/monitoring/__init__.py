# src/monitoring/__init__.py
# Request metrics middleware and the Prometheus scrape endpoint

from .metrics_endpoint import setup_metrics_endpoint
from .middleware import setup_request_monitoring

__all__ = [
    "setup_metrics_endpoint",
    "setup_request_monitoring",
]
