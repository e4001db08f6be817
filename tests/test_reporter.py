from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock

import requests

from tracker.identity import ClientConfig
from tracker.reporter import ViewReporter

PAYLOAD = {"instanceID": 17, "sequence": 1, "stateName": "contacts", "stateParams": {}}


def _config(url="/api/track/instances/:instance/views") -> ClientConfig:
    return ClientConfig({"__trackClientConfig": {"NewViewURL": url}})


def _session(status=201):
    session = MagicMock(spec=requests.Session)
    response = MagicMock()
    response.ok = 200 <= status < 300
    response.status_code = status
    session.post.return_value = response
    return session


def test_posts_payload_to_substituted_url(immediate_executor) -> None:
    session = _session()
    reporter = ViewReporter(_config(), session=session, collector_url="http://collector:8000",
                            executor=immediate_executor)

    reporter.report(PAYLOAD)

    session.post.assert_called_once_with(
        "http://collector:8000/api/track/instances/17/views", json=PAYLOAD, timeout=None
    )


def test_absolute_new_view_url_wins_over_collector_url(immediate_executor) -> None:
    session = _session()
    reporter = ViewReporter(_config("https://track.example.com/i/:instance/views"), session=session,
                            collector_url="http://collector:8000", executor=immediate_executor)

    reporter.report(PAYLOAD)

    assert session.post.call_args.args[0] == "https://track.example.com/i/17/views"


def test_timeout_is_passed_when_configured(immediate_executor) -> None:
    session = _session()
    reporter = ViewReporter(_config(), session=session, collector_url="http://c", timeout=2.5,
                            executor=immediate_executor)

    reporter.report(PAYLOAD)

    assert session.post.call_args.kwargs["timeout"] == 2.5


def test_non_2xx_response_is_ignored(immediate_executor, caplog) -> None:
    reporter = ViewReporter(_config(), session=_session(status=500), collector_url="http://c",
                            executor=immediate_executor)

    with caplog.at_level(logging.DEBUG, logger="tracker.reporter"):
        reporter.report(PAYLOAD)

    assert any("returned HTTP 500" in r.getMessage() for r in caplog.records)


def test_transport_error_is_dropped(immediate_executor, caplog) -> None:
    session = _session()
    session.post.side_effect = requests.ConnectionError("refused")
    reporter = ViewReporter(_config(), session=session, collector_url="http://c",
                            executor=immediate_executor)

    with caplog.at_level(logging.DEBUG, logger="tracker.reporter"):
        reporter.report(PAYLOAD)

    assert session.post.call_count == 1
    assert any("failed" in r.getMessage() for r in caplog.records)


def test_missing_url_skips_report(immediate_executor) -> None:
    session = _session()
    reporter = ViewReporter(ClientConfig({}), session=session, collector_url="http://c",
                            executor=immediate_executor)

    reporter.report(PAYLOAD)

    session.post.assert_not_called()


def test_missing_instance_posts_to_placeholder_url(immediate_executor) -> None:
    session = _session()
    reporter = ViewReporter(_config(), session=session, collector_url="http://c",
                            executor=immediate_executor)

    reporter.report(dict(PAYLOAD, instanceID=None))

    assert session.post.call_args.args[0] == "http://c/api/track/instances/-/views"


def test_background_reports_keep_order_and_drain_on_close() -> None:
    session = _session()
    reporter = ViewReporter(_config(), session=session, collector_url="http://c",
                            executor=ThreadPoolExecutor(max_workers=1))

    for seq in range(1, 21):
        reporter.report(dict(PAYLOAD, sequence=seq))
    reporter.close(wait=True)

    sent = [c.kwargs["json"]["sequence"] for c in session.post.call_args_list]
    assert sent == list(range(1, 21))
    session.close.assert_called_once()


def test_report_returns_before_delivery() -> None:
    session = _session()
    executor = MagicMock()
    reporter = ViewReporter(_config(), session=session, collector_url="http://c", executor=executor)

    reporter.report(PAYLOAD)

    executor.submit.assert_called_once()
    session.post.assert_not_called()


def test_hung_report_does_not_hold_up_later_reports() -> None:
    release = threading.Event()
    delivered = threading.Event()
    sent = []

    def post(url, json, timeout):
        if json["sequence"] == 1:
            release.wait(timeout=5)
        sent.append(json["sequence"])
        if len(sent) == 2:
            delivered.set()
        return MagicMock(ok=True, status_code=201)

    session = _session()
    session.post.side_effect = post
    reporter = ViewReporter(_config(), session=session, collector_url="http://c",
                            executor=ThreadPoolExecutor(max_workers=4))

    for seq in (1, 2, 3):
        reporter.report(dict(PAYLOAD, sequence=seq))

    try:
        assert delivered.wait(timeout=5)
        assert sorted(sent) == [2, 3]
    finally:
        release.set()
        reporter.close(wait=True)

    assert sorted(sent) == [1, 2, 3]
    assert reporter.pending == 0


def test_reports_past_the_pending_limit_are_dropped(caplog) -> None:
    executor = MagicMock()
    reporter = ViewReporter(_config(), session=_session(), collector_url="http://c",
                            executor=executor, max_pending=2)

    with caplog.at_level(logging.DEBUG, logger="tracker.reporter"):
        for seq in (1, 2, 3):
            reporter.report(dict(PAYLOAD, sequence=seq))

    assert executor.submit.call_count == 2
    assert reporter.pending == 2
    assert any("already pending" in r.getMessage() for r in caplog.records)


def test_pending_count_drops_after_each_send(immediate_executor) -> None:
    session = _session()
    session.post.side_effect = [requests.ConnectionError("refused"), session.post.return_value]
    reporter = ViewReporter(_config(), session=session, collector_url="http://c",
                            executor=immediate_executor, max_pending=1)

    reporter.report(dict(PAYLOAD, sequence=1))
    reporter.report(dict(PAYLOAD, sequence=2))

    assert session.post.call_count == 2
    assert reporter.pending == 0


def test_report_after_close_is_dropped() -> None:
    session = _session()
    reporter = ViewReporter(_config(), session=session, collector_url="http://c",
                            executor=ThreadPoolExecutor(max_workers=1))
    reporter.close(wait=True)

    reporter.report(PAYLOAD)

    session.post.assert_not_called()
    assert reporter.pending == 0
