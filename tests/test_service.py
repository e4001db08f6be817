from __future__ import annotations

from datetime import datetime

import psycopg2
import pytest
from psycopg2 import sql

from config import settings
from service import (
    Call,
    DuplicateViewError,
    Instance,
    InstanceNotFoundError,
    View,
    ViewNotFoundError,
    drop_schema,
    get_instance,
    get_view,
    init_schema,
    insert_call,
    insert_instance,
    insert_view,
    next_client_id,
    query_calls,
    query_views,
)
from service.schema import qualified

NOW = datetime(2026, 3, 14, 15, 9, 26)


# ============================================
# Models
# ============================================

def test_view_from_report() -> None:
    view = View.from_report({
        "instanceID": 17,
        "sequence": 3,
        "stateName": "contacts.detail",
        "stateParams": {"id": "42"},
        "requestURI": "/contacts/42",
    })

    assert view == View(instance=17, seq=3, state="contacts.detail", params={"id": "42"},
                        request_uri="/contacts/42")


def test_view_from_report_defaults() -> None:
    view = View.from_report({"instanceID": 17, "sequence": 1, "stateParams": None})

    assert view.state == ""
    assert view.params == {}
    assert view.request_uri is None


@pytest.mark.parametrize("body", [
    [],
    {"sequence": 1},
    {"instanceID": 17},
    {"instanceID": False, "sequence": 1},
    {"instanceID": 17, "sequence": 1.5},
])
def test_view_from_report_rejects(body) -> None:
    with pytest.raises(ValueError):
        View.from_report(body)


def test_instance_to_dict() -> None:
    instance = Instance(client_id=46656, url="/", user="alice", id=17, start=NOW)

    assert instance.to_dict() == {
        "id": 17,
        "clientID": 46656,
        "user": "alice",
        "url": "/",
        "referrerURL": "",
        "ipAddress": "",
        "userAgent": "",
        "start": NOW.isoformat(),
    }


def test_call_to_dict_without_view() -> None:
    call = Call(request_uri="/api/contacts", route="list_contacts")

    assert call.to_dict()["instanceID"] is None
    assert call.to_dict()["date"] is None


# ============================================
# Schema
# ============================================

def test_qualified_quotes_schema_name() -> None:
    statement = qualified("SELECT * FROM {schema}.view WHERE instance = %(instance)s")

    assert isinstance(statement, sql.Composed)
    assert sql.Identifier(settings.db.schema) in statement.seq


def test_init_schema_executes_and_commits(conn, cursor) -> None:
    init_schema(conn)

    assert isinstance(cursor.execute.call_args.args[0], sql.Composed)
    conn.commit.assert_called_once()


def test_drop_schema_executes_and_commits(conn, cursor) -> None:
    drop_schema(conn)

    cursor.execute.assert_called_once()
    conn.commit.assert_called_once()


# ============================================
# Instances
# ============================================

def test_next_client_id(conn, cursor) -> None:
    cursor.fetchone.return_value = {"client_id": 7}

    assert next_client_id(conn) == 7


def test_insert_instance_fills_id_and_start(conn, cursor) -> None:
    cursor.fetchone.return_value = {"id": 17, "start": NOW}

    instance = insert_instance(conn, Instance(client_id=7, url="/app", user_agent="test"))

    assert (instance.id, instance.start) == (17, NOW)
    assert cursor.execute.call_args.args[1]["user_agent"] == "test"
    conn.commit.assert_called_once()


def test_get_instance_not_found(conn, cursor) -> None:
    cursor.fetchone.return_value = None

    with pytest.raises(InstanceNotFoundError):
        get_instance(conn, 17)


# ============================================
# Views
# ============================================

def test_insert_view_fills_date(conn, cursor) -> None:
    cursor.fetchone.return_value = {"date": NOW}

    view = insert_view(conn, View(instance=17, seq=1, state="contacts"))

    assert view.date == NOW
    assert cursor.execute.call_args.args[1]["params"].adapted == {}
    conn.commit.assert_called_once()


def test_insert_view_duplicate(conn, cursor) -> None:
    cursor.execute.side_effect = psycopg2.IntegrityError("duplicate key")

    with pytest.raises(DuplicateViewError):
        insert_view(conn, View(instance=17, seq=1, state="contacts"))

    conn.rollback.assert_called_once()
    conn.commit.assert_not_called()


def test_query_views_in_sequence_order(conn, cursor) -> None:
    cursor.fetchall.return_value = [
        {"instance": 17, "seq": 1, "state": "a", "params": {}, "request_uri": None, "date": NOW},
        {"instance": 17, "seq": 2, "state": "b", "params": {}, "request_uri": None, "date": NOW},
    ]

    views = query_views(conn, 17)

    assert [v.seq for v in views] == [1, 2]


def test_get_view_not_found(conn, cursor) -> None:
    cursor.fetchone.return_value = None

    with pytest.raises(ViewNotFoundError):
        get_view(conn, 17, 1)


# ============================================
# Calls
# ============================================

def test_insert_call(conn, cursor) -> None:
    cursor.fetchone.return_value = {"id": 5, "date": NOW}
    call = Call(request_uri="/api/contacts/42", route="get_contact", route_params={"contact_id": 42},
                instance=17, seq=2)

    insert_call(conn, call)

    assert (call.id, call.date) == (5, NOW)
    params = cursor.execute.call_args.args[1]
    assert params["route_params"].adapted == {"contact_id": 42}
    assert params["query_params"].adapted == {}
    conn.commit.assert_called_once()


def test_query_calls(conn, cursor) -> None:
    cursor.fetchall.return_value = [
        {"id": 5, "instance": 17, "seq": 2, "request_uri": "/api/contacts", "route": "list_contacts",
         "route_params": None, "query_params": None, "date": NOW},
    ]

    calls = query_calls(conn, 17, 2)

    assert calls[0].route_params == {}
    assert calls[0].query_params == {}
    assert cursor.execute.call_args.args[1] == {"instance": 17, "seq": 2}
