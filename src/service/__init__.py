# src/service/__init__.py
# Collector storage operations

from .models import Instance, View, Call
from .schema import init_schema, drop_schema
from .instances import next_client_id, insert_instance, get_instance, InstanceNotFoundError
from .views import insert_view, query_views, get_view, ViewNotFoundError, DuplicateViewError
from .calls import insert_call, query_calls

__all__ = [
    "Instance",
    "View",
    "Call",
    "init_schema",
    "drop_schema",
    "next_client_id",
    "insert_instance",
    "get_instance",
    "InstanceNotFoundError",
    "insert_view",
    "query_views",
    "get_view",
    "ViewNotFoundError",
    "DuplicateViewError",
    "insert_call",
    "query_calls",
]
