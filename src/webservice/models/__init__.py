from .errors import TaskCancelledError, TransportError, WebServiceError
from .request import (
    CachePolicy,
    CachePolicyOption,
    ContentType,
    HeaderOption,
    Headers,
    Method,
    Option,
    ParameterEncoding,
    ParameterEncodingOption,
    Request,
    WireRequest,
)

__all__ = [
    "CachePolicy",
    "CachePolicyOption",
    "ContentType",
    "HeaderOption",
    "Headers",
    "Method",
    "Option",
    "ParameterEncoding",
    "ParameterEncodingOption",
    "Request",
    "TaskCancelledError",
    "TransportError",
    "WebServiceError",
    "WireRequest",
]
