# src/tracker/bootstrap.py
# Wires the tracker together for a host application

from typing import Any, Mapping, Optional

import requests

from logger import get_logger
from tracker.identity import ClientConfig, SessionIdentity
from tracker.interceptor import install_view_header
from tracker.navigation import StateNavigator, track_navigation
from tracker.reporter import ViewReporter
from tracker.sequencer import ViewSequencer

logger = get_logger(__name__)


def start_tracking(
    injected: Optional[Mapping[str, Any]],
    navigator: StateNavigator,
    session: Optional[requests.Session] = None,
    collector_url: Optional[str] = None,
    baseline: Optional[int] = None,
) -> ViewSequencer:
    """
    Set up view tracking for one app instance.

    Steps:
    1. Read the injected identity and client config
    2. Create the reporter with its own session (stamped like any other)
    3. Create the sequencer, deriving request URIs from the navigator
    4. Subscribe the sequencer to navigation-start events
    5. Stamp the host's session, if given

    Args:
        injected: Injected globals (__trackClientConfig, __trackClientData)
        navigator: The host's state navigator
        session: The host's HTTP session to stamp with X-Track-View
        collector_url: Base URL for relative NewViewURL values
        baseline: Sequence before the first view (defaults to settings)

    Returns:
        The ViewSequencer owning the current view. Call its close() at
        shutdown to send the reports still pending.
    """
    identity = SessionIdentity(injected)
    config = ClientConfig(injected)

    report_session = requests.Session()
    reporter = ViewReporter(config, session=report_session, collector_url=collector_url)

    sequencer = ViewSequencer(identity, reporter, href=navigator.href, baseline=baseline)
    install_view_header(report_session, sequencer)
    track_navigation(navigator, sequencer)

    if session is not None:
        install_view_header(session, sequencer)

    logger.info(f"View tracking started for instance {identity.instance}")
    return sequencer
