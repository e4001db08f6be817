# src/service/models.py
# Records stored by the collector
# Each dataclass knows how to build itself from a database row and how to
# render itself as the JSON the API returns

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


@dataclass
class Instance:
    """
    One load of the application in a browser window.

    Created when the host page is served; every view and call from that
    window carries its ID.
    """
    client_id: int
    url: str
    referrer_url: str = ""
    ip_address: str = ""
    user_agent: str = ""
    user: Optional[str] = None
    id: Optional[int] = None
    start: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Instance":
        return cls(
            id=row["id"],
            client_id=row["client_id"],
            user=row["user"],
            url=row["url"],
            referrer_url=row["referrer_url"],
            ip_address=row["ip_address"],
            user_agent=row["user_agent"],
            start=row["start"],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "clientID": self.client_id,
            "user": self.user,
            "url": self.url,
            "referrerURL": self.referrer_url,
            "ipAddress": self.ip_address,
            "userAgent": self.user_agent,
            "start": _iso(self.start),
        }


@dataclass
class View:
    """
    A client viewing an application state: the body of a view report plus
    the time the collector received it.
    """
    instance: int
    seq: int
    state: str
    params: Dict[str, Any] = field(default_factory=dict)
    request_uri: Optional[str] = None
    date: Optional[datetime] = None

    @classmethod
    def from_report(cls, body: Dict[str, Any]) -> "View":
        """
        Build a View from a report POST body.

        Raises:
            ValueError: If a required field is missing or has the wrong type
        """
        if not isinstance(body, dict):
            raise ValueError("view report must be a JSON object")

        instance = body.get("instanceID")
        seq = body.get("sequence")
        state = body.get("stateName", "")
        params = body.get("stateParams") or {}
        request_uri = body.get("requestURI")

        # bool is an int subclass; reject it explicitly
        if not isinstance(instance, int) or isinstance(instance, bool):
            raise ValueError(f"instanceID must be an integer, got {instance!r}")
        if not isinstance(seq, int) or isinstance(seq, bool):
            raise ValueError(f"sequence must be an integer, got {seq!r}")
        if not isinstance(state, str):
            raise ValueError(f"stateName must be a string, got {state!r}")
        if not isinstance(params, dict):
            raise ValueError(f"stateParams must be an object, got {params!r}")
        if request_uri is not None and not isinstance(request_uri, str):
            raise ValueError(f"requestURI must be a string, got {request_uri!r}")

        return cls(instance=instance, seq=seq, state=state, params=params, request_uri=request_uri)

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "View":
        return cls(
            instance=row["instance"],
            seq=row["seq"],
            state=row["state"],
            params=row["params"] or {},
            request_uri=row["request_uri"],
            date=row["date"],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "instanceID": self.instance,
            "sequence": self.seq,
            "stateName": self.state,
            "stateParams": self.params,
            "requestURI": self.request_uri,
            "date": _iso(self.date),
        }


@dataclass
class Call:
    """
    An API call made by a client, tied to the view that was active when
    the client sent it (None when the request carried no view header).
    """
    request_uri: str
    route: str
    route_params: Dict[str, Any] = field(default_factory=dict)
    query_params: Dict[str, Any] = field(default_factory=dict)
    instance: Optional[int] = None
    seq: Optional[int] = None
    id: Optional[int] = None
    date: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Call":
        return cls(
            id=row["id"],
            instance=row["instance"],
            seq=row["seq"],
            request_uri=row["request_uri"],
            route=row["route"],
            route_params=row["route_params"] or {},
            query_params=row["query_params"] or {},
            date=row["date"],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "instanceID": self.instance,
            "sequence": self.seq,
            "requestURI": self.request_uri,
            "route": self.route,
            "routeParams": self.route_params,
            "queryParams": self.query_params,
            "date": _iso(self.date),
        }
