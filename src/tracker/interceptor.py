# src/tracker/interceptor.py
# Stamps every outgoing request with the view that is active when it is sent
#
# requests calls HTTPAdapter.add_headers() from inside send(), right before
# the request goes on the wire. Reading the ViewState there means the header
# reflects the view at dispatch time, not when the request was prepared.

import requests
from requests.adapters import HTTPAdapter

from logger import get_logger
from metrics import REQUESTS_STAMPED_TOTAL
from tracker.view import VIEW_HEADER

logger = get_logger(__name__)


class ViewHeaderAdapter(HTTPAdapter):
    """
    Transport adapter that adds the X-Track-View header on dispatch.

    It only reads from the sequencer and never fails the request: if the
    header cannot be computed the request is sent without it.

    Args:
        sequencer: Source of the current header value (ViewSequencer)
        **kwargs: Passed through to HTTPAdapter (pool sizes, retries, ...)
    """

    def __init__(self, sequencer, **kwargs):
        self._sequencer = sequencer
        super().__init__(**kwargs)

    def add_headers(self, request, **kwargs):
        try:
            request.headers[VIEW_HEADER] = self._sequencer.header_value()
        except Exception as e:
            logger.debug(f"Could not stamp {VIEW_HEADER} on {request.url}: {e}")
            return
        REQUESTS_STAMPED_TOTAL.inc()


def install_view_header(session: requests.Session, sequencer, **adapter_kwargs) -> ViewHeaderAdapter:
    """
    Mount a ViewHeaderAdapter on a session for both http:// and https://.

    Every request made through the session afterwards carries the header.

    Args:
        session: The HTTP session the host application uses
        sequencer: The ViewSequencer to read the current view from

    Returns:
        The mounted adapter
    """
    adapter = ViewHeaderAdapter(sequencer, **adapter_kwargs)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return adapter
