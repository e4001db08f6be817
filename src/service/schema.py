# src/service/schema.py
# DDL for the collector's tables and a helper to qualify statements with
# the configured schema name

from psycopg2 import sql
from logger import get_logger
from config import settings

logger = get_logger(__name__)


def qualified(statement: str) -> sql.Composed:
    """
    Fill the {schema} placeholder of a statement with the quoted schema name.

    Query parameters (%(name)s) are left alone for cursor.execute().
    """
    return sql.SQL(statement).format(schema=sql.Identifier(settings.db.schema))


SQL_CREATE_SCHEMA = """
CREATE SCHEMA IF NOT EXISTS {schema};

CREATE SEQUENCE IF NOT EXISTS {schema}.client_id_sequence;

CREATE TABLE IF NOT EXISTS {schema}.instance (
  id serial NOT NULL,
  client_id bigint NOT NULL,
  "user" text NULL,
  url text NOT NULL,
  referrer_url text NOT NULL,
  ip_address text NOT NULL,
  user_agent text NOT NULL,
  start timestamp(3) NOT NULL DEFAULT now(),
  CONSTRAINT instance_pkey PRIMARY KEY (id)
);

CREATE TABLE IF NOT EXISTS {schema}.view (
  instance integer NOT NULL,
  seq integer NOT NULL,
  state text NOT NULL,
  params json NOT NULL,
  request_uri text NULL,
  date timestamp(3) NOT NULL DEFAULT now(),
  CONSTRAINT view_pkey PRIMARY KEY (instance, seq)
);

CREATE TABLE IF NOT EXISTS {schema}.call (
  id serial NOT NULL,
  instance integer NULL,
  seq integer NULL,
  request_uri text NOT NULL,
  route text NOT NULL,
  route_params json NOT NULL,
  query_params json NOT NULL,
  date timestamp(3) NOT NULL DEFAULT now(),
  CONSTRAINT call_pkey PRIMARY KEY (id)
);

CREATE INDEX IF NOT EXISTS call_view ON {schema}.call (instance, seq);
"""

SQL_DROP_SCHEMA = """
DROP SCHEMA IF EXISTS {schema} CASCADE;
"""


def init_schema(conn):
    """
    Create the schema, sequence and tables if they do not exist yet.

    Args:
        conn: Database connection object
    """
    with conn.cursor() as cursor:
        cursor.execute(qualified(SQL_CREATE_SCHEMA))
    conn.commit()
    logger.info(f"Initialized tracking schema {settings.db.schema!r}")


def drop_schema(conn):
    """
    Drop the schema and everything in it.

    Args:
        conn: Database connection object
    """
    with conn.cursor() as cursor:
        cursor.execute(qualified(SQL_DROP_SCHEMA))
    conn.commit()
    logger.warning(f"Dropped tracking schema {settings.db.schema!r}")
