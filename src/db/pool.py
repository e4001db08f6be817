# src/db/pool.py
# PostgreSQL connection pooling for the collector
# Every request borrows a connection and hands it back when done, instead of
# opening a new connection per request

import psycopg2
from psycopg2 import pool, extensions
from contextlib import contextmanager
from typing import Generator, Optional
from logger import get_logger
from config import settings
from metrics import DB_CONNECTION_ERRORS_TOTAL

logger = get_logger(__name__)

# One pool for the whole process
_connection_pool: Optional[pool.ThreadedConnectionPool] = None


def initialize_pool():
    """
    Initialize the database connection pool.

    Call once at startup. A second call logs a warning and does nothing.
    """
    global _connection_pool

    if _connection_pool is not None:
        logger.warning("Connection pool already initialized")
        return

    logger.info(
        f"Initializing database connection pool: "
        f"min={settings.db.min_connections}, max={settings.db.max_connections}"
    )

    try:
        # ThreadedConnectionPool is safe to share between request threads
        _connection_pool = pool.ThreadedConnectionPool(
            minconn=settings.db.min_connections,
            maxconn=settings.db.max_connections,
            host=settings.db.host,
            port=settings.db.port,
            dbname=settings.db.name,
            user=settings.db.user,
            password=settings.db.password,
        )

        logger.info("Database connection pool initialized successfully")

    except Exception as e:
        logger.error(f"Failed to initialize connection pool: {e}")
        raise


def close_pool():
    """
    Close the database connection pool. Call at shutdown.
    """
    global _connection_pool

    if _connection_pool is not None:
        logger.info("Closing database connection pool")
        _connection_pool.closeall()
        _connection_pool = None
        logger.info("Database connection pool closed")


@contextmanager
def get_connection() -> Generator[psycopg2.extensions.connection, None, None]:
    """
    Borrow a database connection from the pool.

    An open transaction is committed when the block exits normally and
    rolled back if it raises. The connection always goes back to the pool.

    Example:
        with get_connection() as conn:
            views = query_views(conn, instance=17)

    Raises:
        RuntimeError: If the pool is not initialized
        pool.PoolError: If no connections are available
    """
    if _connection_pool is None:
        raise RuntimeError("Connection pool not initialized. Call initialize_pool() first.")

    conn = None
    try:
        conn = _connection_pool.getconn()
        logger.debug("Got connection from pool")

        yield conn

        # Service functions may have committed already
        if conn.status == extensions.STATUS_IN_TRANSACTION:
            conn.commit()
            logger.debug("Committed transaction, returning connection to pool")
    except pool.PoolError as e:
        DB_CONNECTION_ERRORS_TOTAL.inc()
        logger.error(f"Failed to get connection from pool: {e}")
        raise

    except Exception:
        if conn:
            conn.rollback()
            logger.debug("Rolled back transaction due to error")
        raise

    finally:
        if conn:
            _connection_pool.putconn(conn)
            logger.debug("Returned connection to pool")


def get_pool_status():
    """
    Report how many pooled connections are in use.

    Returns:
        Dictionary with pool status information
    """
    if _connection_pool is None:
        return {
            "initialized": False,
            "min_connections": settings.db.min_connections,
            "max_connections": settings.db.max_connections,
        }

    # _used maps in-use connections; the pool exposes no public counter
    used_connections = len(_connection_pool._used)
    return {
        "initialized": True,
        "min_connections": settings.db.min_connections,
        "max_connections": settings.db.max_connections,
        "current_connections": used_connections,
        "available_connections": _connection_pool.maxconn - used_connections,
    }
