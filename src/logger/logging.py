# src/logger/logging.py
# Centralized logging configuration
# Every module gets its logger through get_logger(__name__), and every
# record is stamped with the view ("instance seq") of the request being served
# Note: the folder is named 'logger' so it does not shadow the built-in 'logging'

import logging
import sys
from typing import Optional


class TrackViewFilter(logging.Filter):
    """
    Logging filter that adds the current tracked view to all log records.

    The collector learns the view from the X-Track-View header of each
    request. Putting it on every record lets us line up server logs with
    the client navigation that caused them.
    """

    def filter(self, record):
        """
        Add the current view to the log record, or "-" if there is none.

        Returns:
            True (always allow the log record)
        """
        try:
            from tracking.context import get_current_view
            view = get_current_view()
            record.track_view = f"{view.instance} {view.seq}" if view else "-"
        except ImportError:
            record.track_view = "-"

        return True


def setup_logging(level: Optional[str] = None):
    """
    Configure logging for the entire application.

    Called once on import; calling it again with a level changes the root level.

    Args:
        level: The logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
               If None, uses level from centralized config
    """
    # Config may not be importable yet (e.g. while config itself is loading)
    try:
        from config import settings
        log_level = level or settings.app.log_level
    except ImportError:
        log_level = level or "INFO"

    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    # %(track_view)s is added by TrackViewFilter
    formatter = logging.Formatter(
        '%(asctime)s - [%(track_view)s] - %(name)s - %(levelname)s - %(message)s'
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    handler.addFilter(TrackViewFilter())

    logging.basicConfig(
        level=numeric_level,
        handlers=[handler]
    )


def get_logger(name: Optional[str] = None):
    """
    Get a logger instance for a specific module.

    Args:
        name: Name of the logger (usually __name__ from the calling module)
              If None, returns the root logger

    Returns:
        A logger object that can be used to write log messages
    """
    return logging.getLogger(name)


# Configure logging as soon as the package is imported
setup_logging()
