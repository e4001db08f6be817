from __future__ import annotations

import logging

import pytest

from tracker.identity import SessionIdentity
from tracker.navigation import StateNavigator, StateNotFoundError, track_navigation
from tracker.sequencer import ViewSequencer


@pytest.fixture
def navigator() -> StateNavigator:
    return (
        StateNavigator()
        .state("contacts", "/contacts")
        .state("contacts.detail", "/{id}")
        .state("contacts.detail.item", "/item/:item")
    )


def test_href_joins_parent_templates(navigator) -> None:
    assert navigator.href("contacts") == "/contacts"
    assert navigator.href("contacts.detail", {"id": "42"}) == "/contacts/42"
    assert navigator.href("contacts.detail.item", {"id": 42, "item": "b"}) == "/contacts/42/item/b"


def test_href_ignores_parameters_not_in_template(navigator) -> None:
    assert navigator.href("contacts", {"sort": "name"}) == "/contacts"


def test_href_uses_empty_string_for_missing_parameter(navigator) -> None:
    assert navigator.href("contacts.detail", {}) == "/contacts/"


def test_href_quotes_parameter_values(navigator) -> None:
    assert navigator.href("contacts.detail", {"id": "a b/c"}) == "/contacts/a%20b%2Fc"


def test_href_unknown_state(navigator) -> None:
    with pytest.raises(StateNotFoundError):
        navigator.href("settings")


def test_go_notifies_listeners_before_state_changes(navigator) -> None:
    seen = []
    navigator.on_start(lambda name, params: seen.append(("first", name, params, navigator.current)))
    navigator.on_start(lambda name, params: seen.append(("second", name, params, navigator.current)))

    navigator.go("contacts")
    navigator.go("contacts.detail", {"id": "42"})

    assert seen == [
        ("first", "contacts", {}, None),
        ("second", "contacts", {}, None),
        ("first", "contacts.detail", {"id": "42"}, "contacts"),
        ("second", "contacts.detail", {"id": "42"}, "contacts"),
    ]
    assert navigator.current == "contacts.detail"
    assert navigator.current_params == {"id": "42"}


def test_go_to_unknown_state_notifies_nobody(navigator) -> None:
    seen = []
    navigator.on_start(lambda name, params: seen.append(name))

    with pytest.raises(StateNotFoundError):
        navigator.go("settings")

    assert seen == []
    assert navigator.current is None


def test_track_navigation_records_each_navigation(navigator, reporter) -> None:
    identity = SessionIdentity({"__trackClientData": {"Instance": "abc123"}})
    sequencer = ViewSequencer(identity, reporter, href=navigator.href, baseline=0)
    track_navigation(navigator, sequencer)

    navigator.go("contacts", {})
    navigator.go("contacts.detail", {"id": "42"})

    assert sequencer.header_value() == "abc123 2"
    assert reporter.payloads == [
        {
            "instanceID": "abc123",
            "sequence": 1,
            "stateName": "contacts",
            "stateParams": {},
            "requestURI": "/contacts",
        },
        {
            "instanceID": "abc123",
            "sequence": 2,
            "stateName": "contacts.detail",
            "stateParams": {"id": "42"},
            "requestURI": "/contacts/42",
        },
    ]


def test_track_navigation_never_blocks_navigation(navigator, caplog) -> None:
    class BrokenSequencer:
        def record_view(self, state_name, state_params):
            raise RuntimeError("boom")

    track_navigation(navigator, BrokenSequencer())

    with caplog.at_level(logging.ERROR, logger="tracker.navigation"):
        navigator.go("contacts")

    assert navigator.current == "contacts"
    assert any("Failed to record view" in r.getMessage() for r in caplog.records)
