# src/tracker/view.py
# The "current view" record and the X-Track-View header format
#
# The header is shared by both halves of the system:
# - the client stamps "<instance> <seq>" on every outgoing request
# - the collector parses it to attach each API call to the view it came from

from dataclasses import dataclass, field
from typing import Any, Dict, NamedTuple, Optional

# HTTP header carrying the instance and sequence of the active view
VIEW_HEADER = "X-Track-View"

# Stands in for the instance when the host page did not inject one
UNKNOWN_INSTANCE = "-"


class ViewHeaderError(ValueError):
    """Raised when an X-Track-View header value cannot be parsed."""


class ViewID(NamedTuple):
    """Identifies one view: the instance (browser window) and its sequence number."""
    instance: int
    seq: int


@dataclass
class ViewState:
    """
    The mutable "current view" record owned by the ViewSequencer.

    Attributes:
        instance_id: Identity of this browser instance (None if not injected)
        sequence: Sequence number of the current view
        state_name: Name of the navigation target
        state_params: Navigation parameters of the current view
        request_uri: URI derived from the state's URL template, if known
    """
    instance_id: Optional[Any] = None
    sequence: int = 0
    state_name: str = ""
    state_params: Dict[str, Any] = field(default_factory=dict)
    request_uri: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        """
        Build the JSON body POSTed to the collector for this view.

        requestURI is omitted when no URI could be derived.
        """
        payload = {
            "instanceID": self.instance_id,
            "sequence": self.sequence,
            "stateName": self.state_name,
            "stateParams": dict(self.state_params),
        }
        if self.request_uri is not None:
            payload["requestURI"] = self.request_uri
        return payload

    def header_value(self) -> str:
        return format_view_header(self.instance_id, self.sequence)


def format_view_header(instance: Optional[Any], sequence: int) -> str:
    """
    Format the X-Track-View header value: "<instance> <sequence>".

    A missing instance is written as the "-" placeholder so the header
    always has two fields.
    """
    instance_str = UNKNOWN_INSTANCE if instance is None or instance == "" else str(instance)
    return f"{instance_str} {sequence}"


def parse_view_header(value: str) -> Optional[ViewID]:
    """
    Parse an X-Track-View header value.

    Args:
        value: Raw header value, e.g. "17 3"

    Returns:
        The ViewID, or None if the client had no instance identity ("- 3")

    Raises:
        ViewHeaderError: If the value does not hold exactly two integers
    """
    values = value.strip().split(" ")
    if len(values) != 2:
        raise ViewHeaderError(
            f"{VIEW_HEADER} header has {len(values)} values; must have exactly 2"
        )

    instance_str, seq_str = values
    if instance_str == UNKNOWN_INSTANCE:
        return None

    try:
        return ViewID(instance=int(instance_str), seq=int(seq_str))
    except ValueError as e:
        raise ViewHeaderError(f"{VIEW_HEADER} header value {value!r} is not numeric") from e
