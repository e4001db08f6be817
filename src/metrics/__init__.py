# src/metrics/__init__.py
# Re-exports every metric so callers can do "from metrics import X"

from .metrics import (
    VIEWS_RECORDED_TOTAL,
    VIEW_REPORTS_SENT_TOTAL,
    VIEW_REPORTS_FAILED_TOTAL,
    REQUESTS_STAMPED_TOTAL,
    INSTANCES_CREATED_TOTAL,
    VIEWS_STORED_TOTAL,
    CALLS_STORED_TOTAL,
    VIEW_HEADERS_REJECTED_TOTAL,
    DB_CONNECTION_ERRORS_TOTAL,
    DB_QUERIES_TOTAL,
)

__all__ = [
    "VIEWS_RECORDED_TOTAL",
    "VIEW_REPORTS_SENT_TOTAL",
    "VIEW_REPORTS_FAILED_TOTAL",
    "REQUESTS_STAMPED_TOTAL",
    "INSTANCES_CREATED_TOTAL",
    "VIEWS_STORED_TOTAL",
    "CALLS_STORED_TOTAL",
    "VIEW_HEADERS_REJECTED_TOTAL",
    "DB_CONNECTION_ERRORS_TOTAL",
    "DB_QUERIES_TOTAL",
]
