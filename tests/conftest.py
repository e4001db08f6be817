from __future__ import annotations

from contextlib import contextmanager
from unittest.mock import MagicMock

import pytest

from api import create_app


class FakeReporter:
    """Collects view payloads instead of POSTing them."""

    def __init__(self):
        self.payloads: list[dict] = []
        self.closed_with = None

    def report(self, payload):
        self.payloads.append(payload)

    def close(self, wait=True):
        self.closed_with = {"wait": wait}


class ImmediateExecutor:
    """Runs submitted work inline so reporter tests need no threads."""

    def __init__(self):
        self.shut_down = False

    def submit(self, fn, *args, **kwargs):
        fn(*args, **kwargs)

    def shutdown(self, wait=True):
        self.shut_down = True


@pytest.fixture
def reporter() -> FakeReporter:
    return FakeReporter()


@pytest.fixture
def immediate_executor() -> ImmediateExecutor:
    return ImmediateExecutor()


@pytest.fixture
def conn():
    return MagicMock(name="conn")


@pytest.fixture
def cursor(conn):
    return conn.cursor.return_value.__enter__.return_value


@pytest.fixture
def db(monkeypatch, conn):
    """Route every get_connection() in the collector to the mock connection."""

    @contextmanager
    def fake_get_connection():
        yield conn

    for module in ("api.app", "tracking.middleware", "tracking.instance"):
        monkeypatch.setattr(f"{module}.get_connection", fake_get_connection)
    return conn


@pytest.fixture
def app(db):
    app = create_app()
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()
