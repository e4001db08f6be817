from __future__ import annotations

import logging
from datetime import datetime

import pytest
from flask import g, jsonify

from logger import TrackViewFilter
from tracker.view import ViewID
from tracking import get_current_view, view_context
from tracking.middleware import track_call


@pytest.fixture
def tracked_client(app, cursor):
    seen = {}

    @app.route("/api/contacts/<int:contact_id>")
    @track_call
    def get_contact(contact_id):
        seen["g"] = g.track_view
        seen["context"] = get_current_view()
        return jsonify({"id": contact_id})

    cursor.fetchone.return_value = {"id": 1, "date": datetime(2026, 3, 14)}
    client = app.test_client()
    client.seen = seen
    return client


def test_call_is_stored_against_its_view(tracked_client, cursor) -> None:
    response = tracked_client.get("/api/contacts/42?sort=name&tag=a&tag=b", headers={"X-Track-View": "17 3"})

    assert response.status_code == 200
    params = cursor.execute.call_args.args[1]
    assert (params["instance"], params["seq"]) == (17, 3)
    assert params["request_uri"] == "/api/contacts/42?sort=name&tag=a&tag=b"
    assert params["route"] == "get_contact"
    assert params["route_params"].adapted == {"contact_id": 42}
    assert params["query_params"].adapted == {"sort": ["name"], "tag": ["a", "b"]}


def test_handler_sees_view_in_g_and_context(tracked_client) -> None:
    tracked_client.get("/api/contacts/42", headers={"X-Track-View": "17 3"})

    assert tracked_client.seen["g"] == ViewID(17, 3)
    assert tracked_client.seen["context"] == ViewID(17, 3)


def test_view_is_cleared_after_request(tracked_client) -> None:
    tracked_client.get("/api/contacts/42", headers={"X-Track-View": "17 3"})

    assert get_current_view() is None


def test_call_without_header_has_no_view(tracked_client, cursor) -> None:
    response = tracked_client.get("/api/contacts/42")

    assert response.status_code == 200
    params = cursor.execute.call_args.args[1]
    assert (params["instance"], params["seq"]) == (None, None)
    assert params["request_uri"] == "/api/contacts/42"


def test_placeholder_instance_is_accepted_as_no_view(tracked_client, cursor) -> None:
    response = tracked_client.get("/api/contacts/42", headers={"X-Track-View": "- 2"})

    assert response.status_code == 200
    assert tracked_client.seen["g"] is None
    params = cursor.execute.call_args.args[1]
    assert (params["instance"], params["seq"]) == (None, None)


@pytest.mark.parametrize("value", ["17", "17 3 4", "seventeen 3"])
def test_malformed_header_is_rejected_before_handler(tracked_client, cursor, value) -> None:
    response = tracked_client.get("/api/contacts/42", headers={"X-Track-View": value})

    assert response.status_code == 400
    assert response.get_json()["error"] == "Bad request"
    assert "g" not in tracked_client.seen
    cursor.execute.assert_not_called()


def test_call_storage_failure_does_not_fail_request(tracked_client, cursor, caplog) -> None:
    cursor.execute.side_effect = RuntimeError("database is down")

    with caplog.at_level(logging.ERROR, logger="tracking.middleware"):
        response = tracked_client.get("/api/contacts/42", headers={"X-Track-View": "17 3"})

    assert response.status_code == 200
    assert response.get_json() == {"id": 42}
    assert any("Failed to store call" in r.getMessage() for r in caplog.records)


def _record() -> logging.LogRecord:
    return logging.LogRecord("test", logging.INFO, __file__, 1, "message", None, None)


def test_log_filter_stamps_current_view() -> None:
    record = _record()

    with view_context(ViewID(17, 3)):
        assert TrackViewFilter().filter(record) is True

    assert record.track_view == "17 3"


def test_log_filter_without_view() -> None:
    record = _record()

    TrackViewFilter().filter(record)

    assert record.track_view == "-"


def test_view_context_restores_previous_view() -> None:
    with view_context(ViewID(17, 3)):
        with view_context(ViewID(17, 4)) as inner:
            assert inner == ViewID(17, 4)
            assert get_current_view() == ViewID(17, 4)
        assert get_current_view() == ViewID(17, 3)

    assert get_current_view() is None
