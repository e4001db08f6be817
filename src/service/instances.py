# src/service/instances.py
# Client IDs and app instances

from psycopg2.extras import RealDictCursor
from logger import get_logger
from metrics import INSTANCES_CREATED_TOTAL, DB_QUERIES_TOTAL
from service.models import Instance
from service.schema import qualified

logger = get_logger(__name__)


class InstanceNotFoundError(Exception):
    pass


SQL_NEXT_CLIENT_ID = """
SELECT nextval('{schema}.client_id_sequence'::regclass) AS client_id;
"""

SQL_INSERT_INSTANCE = """
INSERT INTO {schema}.instance (client_id, "user", url, referrer_url, ip_address, user_agent)
VALUES (%(client_id)s, %(user)s, %(url)s, %(referrer_url)s, %(ip_address)s, %(user_agent)s)
RETURNING id, start;
"""

SQL_GET_INSTANCE = """
SELECT id, client_id, "user", url, referrer_url, ip_address, user_agent, start
FROM {schema}.instance
WHERE id = %(id)s;
"""


def next_client_id(conn) -> int:
    """
    Allocate a new client ID from the PostgreSQL sequence.

    Args:
        conn: Database connection object

    Returns:
        The new client ID
    """
    with conn.cursor(cursor_factory=RealDictCursor) as cursor:
        cursor.execute(qualified(SQL_NEXT_CLIENT_ID))
        DB_QUERIES_TOTAL.inc()
        row = cursor.fetchone()
    return row["client_id"]


def insert_instance(conn, instance: Instance) -> Instance:
    """
    Store a new instance and fill in its id and start time.

    Args:
        conn: Database connection object
        instance: Instance to store (id and start are set by the database)

    Returns:
        The same instance, with id and start populated
    """
    with conn.cursor(cursor_factory=RealDictCursor) as cursor:
        cursor.execute(qualified(SQL_INSERT_INSTANCE), {
            "client_id": instance.client_id,
            "user": instance.user,
            "url": instance.url,
            "referrer_url": instance.referrer_url,
            "ip_address": instance.ip_address,
            "user_agent": instance.user_agent,
        })
        DB_QUERIES_TOTAL.inc()
        row = cursor.fetchone()
    conn.commit()

    instance.id = row["id"]
    instance.start = row["start"]
    INSTANCES_CREATED_TOTAL.inc()
    logger.info(f"Created instance {instance.id} for client {instance.client_id}")
    return instance


def get_instance(conn, instance_id: int) -> Instance:
    """
    Look up an instance by ID.

    Raises:
        InstanceNotFoundError: If no instance has this ID
    """
    with conn.cursor(cursor_factory=RealDictCursor) as cursor:
        cursor.execute(qualified(SQL_GET_INSTANCE), {"id": instance_id})
        DB_QUERIES_TOTAL.inc()
        row = cursor.fetchone()

    if row is None:
        raise InstanceNotFoundError(f"Instance {instance_id} not found")
    return Instance.from_row(row)
