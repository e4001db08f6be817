# src/tracker/reporter.py
# Fire-and-forget delivery of view reports to the collector
#
# Reports are best-effort telemetry: they never block navigation, are never
# retried, and their failures are only logged at debug level and counted.

import threading
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Any, Dict, Optional
from urllib.parse import urljoin

import requests

from logger import get_logger
from config import settings
from metrics import VIEW_REPORTS_SENT_TOTAL, VIEW_REPORTS_FAILED_TOTAL
from tracker.identity import ClientConfig

logger = get_logger(__name__)


class ViewReporter:
    """
    POSTs view payloads to the collector on background workers.

    Every report is an independent POST. Reports are handed to the workers
    in the order they are queued, but a slow or hung report only holds up
    its own worker. Once max_pending reports are queued or in flight, new
    reports are dropped until some finish.

    Args:
        config: Injected client config holding the NewViewURL template
        session: HTTP session used for the POSTs (normally stamped with the view header)
        collector_url: Base URL that relative NewViewURL values are resolved against
        timeout: Optional request timeout in seconds (None = transport default)
        executor: Executor running the POSTs (defaults to TRACK_REPORT_WORKERS threads)
        max_pending: Limit on queued plus in-flight reports (defaults to TRACK_REPORT_MAX_PENDING)
    """

    def __init__(
        self,
        config: ClientConfig,
        session: Optional[requests.Session] = None,
        collector_url: Optional[str] = None,
        timeout: Optional[float] = None,
        executor: Optional[Executor] = None,
        max_pending: Optional[int] = None,
    ):
        self._config = config
        self._session = session or requests.Session()
        self._collector_url = collector_url or settings.tracker.collector_url
        self._timeout = timeout if timeout is not None else settings.tracker.report_timeout
        self._executor = executor or ThreadPoolExecutor(
            max_workers=settings.tracker.report_workers,
            thread_name_prefix="view-report",
        )
        self._max_pending = max_pending or settings.tracker.report_max_pending
        self._pending = 0
        self._pending_lock = threading.Lock()

    @property
    def pending(self) -> int:
        """Number of reports queued or in flight."""
        with self._pending_lock:
            return self._pending

    def report(self, payload: Dict[str, Any]) -> None:
        """
        Queue a view report. Returns immediately.

        Args:
            payload: Snapshot of the ViewState (see ViewState.to_payload)
        """
        url = self._config.view_url(payload.get("instanceID"))
        if url is None:
            # The missing config was already logged when it was first read
            VIEW_REPORTS_FAILED_TOTAL.labels(reason="no_url").inc()
            logger.debug(f"Skipping report of view {payload.get('sequence')}: no NewViewURL configured")
            return

        with self._pending_lock:
            if self._pending >= self._max_pending:
                VIEW_REPORTS_FAILED_TOTAL.labels(reason="overflow").inc()
                logger.debug(
                    f"Dropping report of view {payload.get('sequence')}: "
                    f"{self._pending} reports already pending"
                )
                return
            self._pending += 1

        try:
            self._executor.submit(self._send, urljoin(self._collector_url, url), payload)
        except RuntimeError as e:
            # Executor already shut down
            self._done()
            VIEW_REPORTS_FAILED_TOTAL.labels(reason="closed").inc()
            logger.debug(f"Dropping report of view {payload.get('sequence')}: {e}")

    def _send(self, url: str, payload: Dict[str, Any]) -> None:
        try:
            response = self._session.post(url, json=payload, timeout=self._timeout)
        except requests.RequestException as e:
            VIEW_REPORTS_FAILED_TOTAL.labels(reason="transport").inc()
            logger.debug(f"View report to {url} failed: {e}")
            return
        finally:
            self._done()

        if not response.ok:
            VIEW_REPORTS_FAILED_TOTAL.labels(reason="http_status").inc()
            logger.debug(f"View report to {url} returned HTTP {response.status_code}")
            return

        VIEW_REPORTS_SENT_TOTAL.inc()

    def _done(self) -> None:
        with self._pending_lock:
            self._pending -= 1

    def close(self, wait: bool = True) -> None:
        """
        Stop the workers. With wait=True, pending reports are sent first.
        """
        self._executor.shutdown(wait=wait)
        self._session.close()
