# src/tracker/sequencer.py
# Assigns a sequence number to every navigation and reports it
#
# The ViewSequencer is the only writer of the ViewState. Everything else
# (request stamping, UI code) reads copies through current_view() or
# header_value(). All access holds one lock, so each record_view is exactly
# one increment and the sequence forms a total order over navigations even
# when a host calls in from several threads.

import threading
from typing import Any, Callable, Mapping, Optional

from logger import get_logger
from config import settings
from metrics import VIEWS_RECORDED_TOTAL
from tracker.identity import SessionIdentity
from tracker.view import ViewState

logger = get_logger(__name__)

# href(state_name, state_params) -> URI, used to derive ViewState.request_uri
HrefFunc = Callable[[str, Mapping[str, Any]], Optional[str]]


class ViewSequencer:
    """
    Owns the current ViewState and records each navigation.

    Args:
        identity: Session identity; its instance is copied into the ViewState once
        reporter: Receives a payload per recorded view (anything with report(payload));
                  None disables reporting
        href: Optional function deriving the request URI of a state
        baseline: Sequence value before the first view (the first view is baseline + 1)

    Example:
        sequencer = ViewSequencer(identity, reporter)
        sequencer.record_view("contacts", {})
        sequencer.header_value()  # "17 1"
    """

    def __init__(
        self,
        identity: SessionIdentity,
        reporter=None,
        href: Optional[HrefFunc] = None,
        baseline: Optional[int] = None,
    ):
        if baseline is None:
            baseline = settings.tracker.sequence_baseline

        self._lock = threading.Lock()
        self._reporter = reporter
        self._href = href
        self._view = ViewState(instance_id=identity.instance, sequence=baseline)

    def record_view(self, state_name: Optional[str], state_params: Optional[Mapping[str, Any]] = None) -> None:
        """
        Record a navigation to state_name.

        Increments the sequence by exactly one, replaces the state name and
        parameters, derives the request URI, then queues a report of the new
        view. Reporting never blocks and never raises into the caller.

        Args:
            state_name: Destination state; a missing name is recorded as ""
            state_params: Navigation parameters (copied; may be None or empty)
        """
        if not state_name:
            logger.warning("Navigation event has no destination state name; recording it as ''")
            state_name = ""
        params = dict(state_params or {})
        request_uri = self._derive_request_uri(state_name, params)

        with self._lock:
            self._view.sequence += 1
            self._view.state_name = state_name
            self._view.state_params = params
            self._view.request_uri = request_uri
            payload = self._view.to_payload()

            VIEWS_RECORDED_TOTAL.inc()
            logger.debug(f"Recorded view {payload['sequence']}: {state_name} {params}")

            # Queued while holding the lock so reports reach the workers in sequence order
            if self._reporter is not None:
                try:
                    self._reporter.report(payload)
                except Exception as e:
                    logger.debug(f"Failed to queue report for view {payload['sequence']}: {e}")

    def current_view(self) -> ViewState:
        """Return a copy of the current ViewState."""
        with self._lock:
            return ViewState(
                instance_id=self._view.instance_id,
                sequence=self._view.sequence,
                state_name=self._view.state_name,
                state_params=dict(self._view.state_params),
                request_uri=self._view.request_uri,
            )

    def header_value(self) -> str:
        """The X-Track-View value for a request dispatched right now."""
        with self._lock:
            return self._view.header_value()

    @property
    def reporter(self):
        return self._reporter

    def close(self, wait: bool = True) -> None:
        """
        Shut down the reporter, if it can be shut down.

        Call once when the host application exits. With wait=True the
        reports still pending are sent first.
        """
        close = getattr(self._reporter, "close", None)
        if close is not None:
            close(wait=wait)

    def _derive_request_uri(self, state_name: str, params: Mapping[str, Any]) -> Optional[str]:
        # Only parameters in the state's own URL template end up in the URI;
        # extra query parameters are not captured.
        if self._href is None or not state_name:
            return None
        try:
            return self._href(state_name, params)
        except Exception as e:
            logger.debug(f"Could not derive request URI for state {state_name!r}: {e}")
            return None
