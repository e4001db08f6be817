# src/service/calls.py
# Storing and querying API calls made by clients

from typing import List
from psycopg2.extras import RealDictCursor, Json
from logger import get_logger
from metrics import CALLS_STORED_TOTAL, DB_QUERIES_TOTAL
from service.models import Call
from service.schema import qualified

logger = get_logger(__name__)

SQL_INSERT_CALL = """
INSERT INTO {schema}.call (instance, seq, request_uri, route, route_params, query_params)
VALUES (%(instance)s, %(seq)s, %(request_uri)s, %(route)s, %(route_params)s, %(query_params)s)
RETURNING id, date;
"""

SQL_QUERY_CALLS = """
SELECT id, instance, seq, request_uri, route, route_params, query_params, date
FROM {schema}.call
WHERE instance = %(instance)s AND seq = %(seq)s
ORDER BY id;
"""


def insert_call(conn, call: Call) -> Call:
    """
    Store an API call.

    Args:
        conn: Database connection object
        call: The call to store; id and date are set by the database

    Returns:
        The same call with id and date populated
    """
    with conn.cursor(cursor_factory=RealDictCursor) as cursor:
        cursor.execute(qualified(SQL_INSERT_CALL), {
            "instance": call.instance,
            "seq": call.seq,
            "request_uri": call.request_uri,
            "route": call.route,
            "route_params": Json(call.route_params),
            "query_params": Json(call.query_params),
        })
        DB_QUERIES_TOTAL.inc()
        row = cursor.fetchone()
    conn.commit()

    call.id = row["id"]
    call.date = row["date"]
    CALLS_STORED_TOTAL.inc()
    logger.debug(f"Stored call {call.id}: {call.route} {call.request_uri}")
    return call


def query_calls(conn, instance: int, seq: int) -> List[Call]:
    """
    List the calls made during one view, oldest first.
    """
    with conn.cursor(cursor_factory=RealDictCursor) as cursor:
        cursor.execute(qualified(SQL_QUERY_CALLS), {"instance": instance, "seq": seq})
        DB_QUERIES_TOTAL.inc()
        rows = cursor.fetchall()
    return [Call.from_row(row) for row in rows]
