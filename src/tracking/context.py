# src/tracking/context.py
# Request-scoped storage for the view a request was issued from
#
# The collector reads the X-Track-View header once per request and keeps the
# parsed ViewID here, so services, call recording and the log filter can all
# see it without passing it around.

from typing import Optional, ContextManager
from contextvars import ContextVar

from tracker.view import ViewID

# ContextVar keeps the value per thread and per asyncio task, so concurrent
# requests never see each other's view
_current_view: ContextVar[Optional[ViewID]] = ContextVar('track_view', default=None)


def get_current_view() -> Optional[ViewID]:
    """
    Get the view of the request being handled.

    Returns:
        The ViewID if the request carried a usable X-Track-View header, None otherwise
    """
    return _current_view.get()


def set_current_view(view: Optional[ViewID]) -> None:
    """
    Set the view for the current request context.

    Args:
        view: The parsed ViewID (or None for "no view")
    """
    _current_view.set(view)


def clear_current_view() -> None:
    """
    Clear the view from the current context once the request is finished.
    """
    _current_view.set(None)


def view_context(view: Optional[ViewID]) -> ContextManager[Optional[ViewID]]:
    """
    Context manager that sets the current view within a scope.

    The previous value is restored on exit, which makes it safe to nest
    (e.g. in background work started on behalf of a request).

    Example:
        with view_context(ViewID(17, 3)):
            record_something()  # logs show "[17 3]"
    """
    class ViewContext:
        def __init__(self, v: Optional[ViewID]):
            self.view = v
            self.token = None

        def __enter__(self) -> Optional[ViewID]:
            self.token = _current_view.set(self.view)
            return self.view

        def __exit__(self, exc_type, exc_val, exc_tb):
            _current_view.reset(self.token)

    return ViewContext(view)
