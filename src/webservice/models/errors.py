from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .request import WireRequest


class WebServiceError(Exception):
    """Base class for errors delivered by the web service layer."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class TransportError(WebServiceError):
    """Raised by a transport when a request could not be completed.

    The error is never raised across a ``ServiceTask``; it is handed to the
    registered error handlers. The underlying client exception, when there
    is one, is available as ``__cause__``.
    """

    def __init__(self, message: str, request: Optional["WireRequest"] = None):
        self.request = request
        super().__init__(message)


class TaskCancelledError(TransportError):
    """Delivered to error handlers when a task is cancelled before it completes."""

    def __init__(self, request: Optional["WireRequest"] = None):
        url = request.url if request is not None else "request"
        super().__init__(f"Task for {url} was cancelled", request=request)
