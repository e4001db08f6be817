#!/usr/bin/env python3
"""
Example application server: the collector plus a small contacts API.

Every contacts request is recorded as a call against the view it was made
from (the X-Track-View header), so after running scripts/example_client.py
the calls show up under
    GET /api/track/instances/<instance>/views/<seq>/calls

Usage:
    python scripts/example_server.py --initdb
"""

import sys
import os
import argparse

from flask import jsonify

# Add src directory to path so we can import our modules
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from logger import get_logger
from config import settings
from db.pool import initialize_pool, close_pool
from api import create_app
from main import prepare_database
from tracking.middleware import track_call

logger = get_logger(__name__)

CONTACTS = {
    1: {"id": 1, "name": "Ada Lovelace", "email": "ada@example.com"},
    2: {"id": 2, "name": "Grace Hopper", "email": "grace@example.com"},
    3: {"id": 3, "name": "Alan Turing", "email": "alan@example.com"},
}


def create_example_app():
    app = create_app()

    @app.route('/api/contacts', methods=['GET'])
    @track_call
    def list_contacts():
        return jsonify(list(CONTACTS.values())), 200

    @app.route('/api/contacts/<int:contact_id>', methods=['GET'])
    @track_call
    def get_contact(contact_id):
        contact = CONTACTS.get(contact_id)
        if contact is None:
            return jsonify({"error": "Not found", "message": f"Contact {contact_id} not found"}), 404
        return jsonify(contact), 200

    return app


def main():
    parser = argparse.ArgumentParser(description="Run the collector with an example contacts API")
    parser.add_argument("--initdb", action="store_true",
                        help="create the tracking schema and tables before running")
    args = parser.parse_args()

    try:
        initialize_pool()
        prepare_database(drop=False, init=args.initdb)

        app = create_example_app()
        logger.info(f"Example server on {settings.app.api_host}:{settings.app.api_port}")
        app.run(host=settings.app.api_host, port=settings.app.api_port, debug=settings.app.debug)

    except KeyboardInterrupt:
        logger.info("Received shutdown signal (Ctrl+C)")

    finally:
        close_pool()


if __name__ == "__main__":
    main()
