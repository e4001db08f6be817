#!/usr/bin/env python3
"""
Example host application using the view tracker against a running collector.

It plays the role of the single-page app: loads the page (GET /bootstrap),
registers its states, starts tracking, then navigates and makes API calls.
Every navigation is reported to the collector and every request carries
the X-Track-View header.

Usage:
    python scripts/example_server.py --initdb    # in another terminal
    python scripts/example_client.py --collector-url http://localhost:8000
"""

import sys
import os
import argparse

import requests

# Add src directory to path so we can import our modules
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from logger import get_logger
from config import settings
from tracker import StateNavigator, start_tracking

logger = get_logger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Drive the view tracker against a collector")
    parser.add_argument("--collector-url", default=settings.tracker.collector_url,
                        help="Base URL of the collector")
    parser.add_argument("--contacts", type=int, default=3,
                        help="Number of contact detail views to visit")
    args = parser.parse_args()

    session = requests.Session()

    # "Load the page": the collector creates an instance and returns the
    # globals a real page would inject into window.*
    response = session.get(f"{args.collector_url}/bootstrap")
    response.raise_for_status()
    injected = response.json()
    logger.info(f"Injected globals: {injected}")

    navigator = StateNavigator()
    navigator.state("contacts", "/contacts")
    navigator.state("contacts.detail", "/{id}")

    sequencer = start_tracking(injected, navigator, session=session, collector_url=args.collector_url)

    navigator.go("contacts")
    session.get(f"{args.collector_url}/api/contacts")
    for contact_id in range(1, args.contacts + 1):
        navigator.go("contacts.detail", {"id": str(contact_id)})
        view = sequencer.current_view()
        logger.info(f"View {view.sequence}: {view.state_name} {view.request_uri}")

        # Any request through the session is stamped with the current view
        session.get(f"{args.collector_url}/api/contacts/{contact_id}")

    # Send the reports still pending before reading the views back
    sequencer.close(wait=True)

    instance = injected["__trackClientData"]["Instance"]
    base = f"{args.collector_url}{settings.tracker.api_prefix}/instances/{instance}/views"
    for view in session.get(base).json():
        calls = session.get(f"{base}/{view['sequence']}/calls").json()
        logger.info(
            f"Collector has view {view['sequence']}: {view['stateName']} {view['stateParams']}, "
            f"calls: {[c['requestURI'] for c in calls]}"
        )


if __name__ == "__main__":
    main()
