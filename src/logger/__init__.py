# src/logger/__init__.py
# Exports the logging helpers used by every other package
# Note: named 'logger' instead of 'logging' to avoid clashing with the built-in module

from .logging import setup_logging, get_logger, TrackViewFilter

__all__ = [
    "setup_logging",
    "get_logger",
    "TrackViewFilter",
]
