# src/config/__init__.py
# Exports the settings object that other modules import

from .settings import settings

__all__ = [
    "settings",
]
