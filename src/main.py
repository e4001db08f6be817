# src/main.py
# Entry point of the collector service
# 1. Initializes the database pool (and optionally the schema)
# 2. Creates the Flask application
# 3. Starts the web server
# 4. Releases resources on shutdown

import argparse

from logger import get_logger
from config import settings
from db.pool import initialize_pool, close_pool, get_connection
from service import init_schema, drop_schema
from api import create_app

logger = get_logger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="View tracking collector")
    parser.add_argument("--dropdb", action="store_true",
                        help="drop the tracking schema before initializing it")
    parser.add_argument("--initdb", action="store_true",
                        help="create the tracking schema and tables before running")
    return parser.parse_args(argv)


def prepare_database(drop: bool, init: bool):
    """
    Drop and/or create the tracking schema, as requested on the command line.
    """
    if not (drop or init):
        return

    with get_connection() as conn:
        if drop:
            drop_schema(conn)
        if init:
            init_schema(conn)


def main(argv=None):
    """
    Run the collector until interrupted.

    In production run the app under a WSGI server instead, e.g.:
        gunicorn -w 4 -b 0.0.0.0:8000 'api:create_app()'
    """
    args = parse_args(argv)

    logger.info("=" * 60)
    logger.info("Starting View Track Collector")
    logger.info(f"Environment: {settings.app.environment}")
    logger.info(f"Debug mode: {settings.app.debug}")
    logger.info("=" * 60)

    try:
        initialize_pool()
        prepare_database(drop=args.dropdb, init=args.initdb)

        app = create_app()

        logger.info(f"Starting collector on {settings.app.api_host}:{settings.app.api_port}")
        app.run(
            host=settings.app.api_host,
            port=settings.app.api_port,
            debug=settings.app.debug,
        )

    except KeyboardInterrupt:
        logger.info("Received shutdown signal (Ctrl+C)")

    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        raise

    finally:
        close_pool()
        logger.info("Collector shutdown complete")


if __name__ == "__main__":
    main()
