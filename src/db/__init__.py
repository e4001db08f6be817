# src/db/__init__.py
# Exports the PostgreSQL connection pool helpers

from .pool import (
    initialize_pool,
    close_pool,
    get_connection,
    get_pool_status,
)

__all__ = [
    "initialize_pool",     # Initialize connection pool (call at startup)
    "close_pool",          # Close connection pool (call at shutdown)
    "get_connection",      # Borrow a connection from the pool
    "get_pool_status",     # Pool status (for health checks)
]
