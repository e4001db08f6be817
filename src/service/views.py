# src/service/views.py
# Storing and querying the views reported by clients

from typing import List
from psycopg2 import IntegrityError
from psycopg2.extras import RealDictCursor, Json
from logger import get_logger
from metrics import VIEWS_STORED_TOTAL, DB_QUERIES_TOTAL
from service.models import View
from service.schema import qualified

logger = get_logger(__name__)


class ViewNotFoundError(Exception):
    pass


class DuplicateViewError(Exception):
    """Raised when a view with the same (instance, seq) was already stored."""
    pass


SQL_INSERT_VIEW = """
INSERT INTO {schema}.view (instance, seq, state, params, request_uri)
VALUES (%(instance)s, %(seq)s, %(state)s, %(params)s, %(request_uri)s)
RETURNING date;
"""

SQL_QUERY_VIEWS = """
SELECT instance, seq, state, params, request_uri, date
FROM {schema}.view
WHERE instance = %(instance)s
ORDER BY seq;
"""

SQL_GET_VIEW = """
SELECT instance, seq, state, params, request_uri, date
FROM {schema}.view
WHERE instance = %(instance)s AND seq = %(seq)s;
"""


def insert_view(conn, view: View) -> View:
    """
    Store a reported view.

    Args:
        conn: Database connection object
        view: The view to store; date is set by the database

    Returns:
        The same view with date populated

    Raises:
        DuplicateViewError: If this instance already reported this sequence number
    """
    try:
        with conn.cursor(cursor_factory=RealDictCursor) as cursor:
            cursor.execute(qualified(SQL_INSERT_VIEW), {
                "instance": view.instance,
                "seq": view.seq,
                "state": view.state,
                "params": Json(view.params),
                "request_uri": view.request_uri,
            })
            DB_QUERIES_TOTAL.inc()
            row = cursor.fetchone()
        conn.commit()
    except IntegrityError as e:
        conn.rollback()
        raise DuplicateViewError(
            f"View {view.seq} of instance {view.instance} already exists"
        ) from e

    view.date = row["date"]
    VIEWS_STORED_TOTAL.inc()
    logger.info(f"Stored view {view.instance}/{view.seq}: {view.state}")
    return view


def query_views(conn, instance: int) -> List[View]:
    """
    List the views of an instance in sequence order.

    Returns:
        List of views (empty if the instance has none)
    """
    with conn.cursor(cursor_factory=RealDictCursor) as cursor:
        cursor.execute(qualified(SQL_QUERY_VIEWS), {"instance": instance})
        DB_QUERIES_TOTAL.inc()
        rows = cursor.fetchall()
    return [View.from_row(row) for row in rows]


def get_view(conn, instance: int, seq: int) -> View:
    """
    Look up one view.

    Raises:
        ViewNotFoundError: If the view was never reported
    """
    with conn.cursor(cursor_factory=RealDictCursor) as cursor:
        cursor.execute(qualified(SQL_GET_VIEW), {"instance": instance, "seq": seq})
        DB_QUERIES_TOTAL.inc()
        row = cursor.fetchone()

    if row is None:
        raise ViewNotFoundError(f"View {seq} of instance {instance} not found")
    return View.from_row(row)
