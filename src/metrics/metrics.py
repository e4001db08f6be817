# src/metrics/metrics.py
# Prometheus metrics for the tracker client and the collector
# Counters only go up; Prometheus computes rates from them

from prometheus_client import Counter

# ============================================
# Client-side tracker
# ============================================

# One increment per record_view call (i.e. per navigation-start event)
VIEWS_RECORDED_TOTAL = Counter(
    "track_views_recorded_total",
    "Total number of views recorded by the view sequencer",
)

# Report POSTs that reached the collector with a 2xx response
VIEW_REPORTS_SENT_TOTAL = Counter(
    "track_view_reports_sent_total",
    "Total number of view reports accepted by the collector",
)

# Report POSTs that failed; they are dropped, never retried
VIEW_REPORTS_FAILED_TOTAL = Counter(
    "track_view_reports_failed_total",
    "Total number of view reports that failed to deliver",
    ["reason"]  # Label: http_status, transport, no_url, overflow, closed
)

# Outgoing requests stamped with the X-Track-View header
REQUESTS_STAMPED_TOTAL = Counter(
    "track_requests_stamped_total",
    "Total number of outgoing requests stamped with the view header",
)

# ============================================
# Collector
# ============================================

INSTANCES_CREATED_TOTAL = Counter(
    "track_instances_created_total",
    "Total number of app instances created",
)

VIEWS_STORED_TOTAL = Counter(
    "track_views_stored_total",
    "Total number of views stored by the collector",
)

CALLS_STORED_TOTAL = Counter(
    "track_calls_stored_total",
    "Total number of API calls stored by the collector",
)

# Requests refused because the X-Track-View header could not be parsed
VIEW_HEADERS_REJECTED_TOTAL = Counter(
    "track_view_headers_rejected_total",
    "Total number of requests rejected for a malformed view header",
)

# ============================================
# Database
# ============================================

DB_CONNECTION_ERRORS_TOTAL = Counter(
    "db_connection_errors_total",
    "Total number of database connection errors",
)

DB_QUERIES_TOTAL = Counter(
    "db_queries_total",
    "Total number of database queries executed",
)
