# src/tracker/identity.py
# Read-only accessors for the values the host page injects at load time
#
# The host hands the tracker a mapping of "injected globals" (the collector's
# /bootstrap response, or a window.* dictionary in an embedded runtime):
#   __trackClientConfig = {"NewViewURL": "/api/track/instances/:instance/views"}
#   __trackClientData   = {"Instance": 17}
#
# Both values are read once, on first access, and never change afterwards.
# A missing value is logged once and the tracker carries on without it.

import threading
from typing import Any, Mapping, Optional, Tuple

from logger import get_logger
from tracker.view import UNKNOWN_INSTANCE

logger = get_logger(__name__)

CLIENT_CONFIG_KEY = "__trackClientConfig"
CLIENT_DATA_KEY = "__trackClientData"

# Token in NewViewURL replaced by the instance identity
INSTANCE_PLACEHOLDER = ":instance"

_MISSING = object()


class _InjectedValue:
    """
    Lazily reads one field of one injected global and caches the result.

    The configuration-missing error is logged at most once per accessor.
    A global that is not a mapping, or a field that is not one of the
    accepted types, counts as missing.
    """

    def __init__(
        self,
        injected: Optional[Mapping[str, Any]],
        key: str,
        field_name: str,
        label: str,
        types: Tuple[type, ...],
    ):
        self._injected = injected
        self._key = key
        self._field_name = field_name
        self._label = label
        self._types = types
        self._value: Any = _MISSING
        self._lock = threading.Lock()

    def get(self) -> Optional[Any]:
        with self._lock:
            if self._value is _MISSING:
                self._value = self._read()
            return self._value

    def _read(self) -> Optional[Any]:
        injected = self._injected if isinstance(self._injected, Mapping) else {}
        data = injected.get(self._key)
        if not data:
            logger.error(f"Missing {self._label} ({self._key} is not set)")
            return None
        if not isinstance(data, Mapping):
            logger.error(f"Missing {self._label} ({self._key} is a {type(data).__name__}, not an object)")
            return None

        value = data.get(self._field_name)
        if value is None or value == "":
            logger.error(f"Missing {self._label} ({self._key}.{self._field_name} is not set)")
            return None
        # bool is an int subclass
        if isinstance(value, bool) or not isinstance(value, self._types):
            logger.error(
                f"Missing {self._label} ({self._key}.{self._field_name} has unusable value {value!r})"
            )
            return None
        return value


class SessionIdentity:
    """
    Identity of this browser instance (tab/window), as injected by the host page.

    There is no way to change the identity once it has been read.

    Example:
        identity = SessionIdentity({"__trackClientData": {"Instance": 17}})
        identity.instance  # 17
    """

    def __init__(self, injected: Optional[Mapping[str, Any]]):
        self._instance = _InjectedValue(injected, CLIENT_DATA_KEY, "Instance", "TrackClientData", (str, int))

    @property
    def instance(self) -> Optional[Any]:
        """The instance identifier, or None if the host did not inject one."""
        return self._instance.get()


class ClientConfig:
    """
    Tracker settings injected by the host page.

    Only NewViewURL is used: the URL template views are POSTed to.
    """

    def __init__(self, injected: Optional[Mapping[str, Any]]):
        self._new_view_url = _InjectedValue(injected, CLIENT_CONFIG_KEY, "NewViewURL", "TrackClientConfig", (str,))

    @property
    def new_view_url(self) -> Optional[str]:
        return self._new_view_url.get()

    def view_url(self, instance: Optional[Any]) -> Optional[str]:
        """
        Substitute the instance into the NewViewURL template.

        Returns:
            The report URL, or None if no template was injected
        """
        template = self.new_view_url
        if template is None:
            return None
        instance_str = UNKNOWN_INSTANCE if instance is None else str(instance)
        return template.replace(INSTANCE_PLACEHOLDER, instance_str)
