# src/tracker/navigation.py
# Minimal state navigator and the hook that feeds navigations to the tracker
#
# The host application registers its states (with URL templates) and calls
# go() to navigate. Navigation-start listeners are called synchronously, in
# registration order, before the current state changes.

import re
from typing import Any, Callable, Dict, List, Mapping, Optional
from urllib.parse import quote

from logger import get_logger

logger = get_logger(__name__)

# Matches "{id}" and ":id" placeholders in state URL templates
_PARAM_PATTERN = re.compile(r"\{(\w+)\}|:(\w+)")

# listener(state_name, state_params)
StartListener = Callable[[str, Dict[str, Any]], None]


class StateNotFoundError(Exception):
    """Raised when navigating to, or building a URL for, an unregistered state."""


class StateNavigator:
    """
    Registry of named states and the navigation-start event source.

    Dotted state names are nested: "contacts.detail" is a child of
    "contacts" and its URL is the parent's URL followed by its own.

    Example:
        nav = StateNavigator()
        nav.state("contacts", "/contacts")
        nav.state("contacts.detail", "/{id}")
        nav.href("contacts.detail", {"id": "42"})  # "/contacts/42"
    """

    def __init__(self):
        self._states: Dict[str, str] = {}
        self._start_listeners: List[StartListener] = []
        self.current: Optional[str] = None
        self.current_params: Dict[str, Any] = {}

    def state(self, name: str, url: str = "") -> "StateNavigator":
        """Register a state. Returns self so registrations can be chained."""
        self._states[name] = url
        return self

    def on_start(self, listener: StartListener) -> None:
        """Register a navigation-start listener."""
        self._start_listeners.append(listener)

    def go(self, name: str, params: Optional[Mapping[str, Any]] = None) -> None:
        """
        Navigate to a state.

        Raises:
            StateNotFoundError: If the state is not registered (no listener runs)
        """
        if name not in self._states:
            raise StateNotFoundError(f"No such state: {name!r}")

        params = dict(params or {})
        for listener in self._start_listeners:
            listener(name, params)

        self.current = name
        self.current_params = params

    def href(self, name: str, params: Optional[Mapping[str, Any]] = None) -> str:
        """
        Build the URL of a state from its template chain.

        Only parameters named in the templates are used; any other
        parameters are ignored. Missing parameters become empty strings.

        Raises:
            StateNotFoundError: If the state (or an ancestor) is not registered
        """
        params = params or {}
        url = "".join(self._template(n) for n in self._lineage(name))

        def substitute(match):
            key = match.group(1) or match.group(2)
            value = params.get(key)
            return "" if value is None else quote(str(value), safe="")

        return _PARAM_PATTERN.sub(substitute, url)

    def _lineage(self, name: str) -> List[str]:
        parts = name.split(".")
        return [".".join(parts[:i]) for i in range(1, len(parts) + 1)]

    def _template(self, name: str) -> str:
        try:
            return self._states[name]
        except KeyError:
            raise StateNotFoundError(f"No such state: {name!r}") from None


def track_navigation(navigator: StateNavigator, sequencer) -> None:
    """
    Subscribe the sequencer to the navigator's navigation-start events.

    Call once at startup. Tracking failures are logged and never stop
    the navigation.
    """
    def on_navigation_start(state_name, state_params):
        try:
            sequencer.record_view(state_name, state_params)
        except Exception as e:
            logger.error(f"Failed to record view for state {state_name!r}: {e}", exc_info=True)

    navigator.on_start(on_navigation_start)
    logger.info("View tracking subscribed to navigation-start events")
