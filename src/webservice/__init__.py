"""Declarative HTTP requests with chainable response handlers.

Describe a request with ``WebService.get`` and friends, then register
``response``, ``response_json`` and ``response_error`` handlers on the
returned ``ServiceTask``.
"""

from ._config import Config
from ._services import (
    HttpxTransport,
    HttpxTransportTask,
    ServiceTask,
    TaskState,
    Transport,
    TransportTask,
)
from ._utils import DeferredQueue, InlineExecutor
from ._web_service import WebService
from .models import (
    CachePolicy,
    ContentType,
    Headers,
    Method,
    Option,
    ParameterEncoding,
    Request,
    TaskCancelledError,
    TransportError,
    WebServiceError,
    WireRequest,
)

__all__ = [
    "CachePolicy",
    "Config",
    "ContentType",
    "DeferredQueue",
    "Headers",
    "HttpxTransport",
    "HttpxTransportTask",
    "InlineExecutor",
    "Method",
    "Option",
    "ParameterEncoding",
    "Request",
    "ServiceTask",
    "TaskCancelledError",
    "TaskState",
    "Transport",
    "TransportError",
    "TransportTask",
    "WebService",
    "WebServiceError",
    "WireRequest",
]
