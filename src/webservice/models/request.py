from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Iterable, Mapping, Optional

from .._utils._encoding import encode_json_body, encode_percent_body, encode_url
from .._utils.constants import (
    CONTENT_TYPE_FORM_ENCODED,
    CONTENT_TYPE_JSON,
    HEADER_ACCEPT,
    HEADER_CACHE_CONTROL,
    HEADER_CONTENT_LENGTH,
    HEADER_CONTENT_TYPE,
    HEADER_USER_AGENT,
)


class Method(str, Enum):
    """HTTP methods supported by the web service."""

    GET = "GET"
    HEAD = "HEAD"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"

    @property
    def encodes_query(self) -> bool:
        """Whether parameters for this method belong in the query string."""
        return self in (Method.GET, Method.HEAD, Method.DELETE)


class ParameterEncoding(str, Enum):
    """How request parameters are encoded."""

    PERCENT = "percent"
    JSON = "json"

    def encode_url(self, url: str, parameters: Mapping[str, Any]) -> Optional[str]:
        """Return ``url`` with ``parameters`` appended as a query string.

        Query strings are always percent encoded; JSON has no query form.
        """
        return encode_url(url, parameters)

    def encode_body(self, parameters: Mapping[str, Any]) -> Optional[bytes]:
        """Return ``parameters`` encoded as a request body, or ``None``."""
        match self:
            case ParameterEncoding.JSON:
                return encode_json_body(parameters)
            case _:
                return encode_percent_body(parameters)


class CachePolicy(str, Enum):
    """Cache policy carried with a request for the transport to honor."""

    USE_PROTOCOL_CACHE_POLICY = "use_protocol_cache_policy"
    RELOAD_IGNORING_LOCAL_CACHE_DATA = "reload_ignoring_local_cache_data"
    RELOAD_IGNORING_LOCAL_AND_REMOTE_CACHE_DATA = (
        "reload_ignoring_local_and_remote_cache_data"
    )
    RETURN_CACHE_DATA_ELSE_LOAD = "return_cache_data_else_load"
    RETURN_CACHE_DATA_DONT_LOAD = "return_cache_data_dont_load"
    RELOAD_REVALIDATING_CACHE_DATA = "reload_revalidating_cache_data"


class Headers:
    """HTTP header field names."""

    USER_AGENT = HEADER_USER_AGENT
    CONTENT_TYPE = HEADER_CONTENT_TYPE
    CONTENT_LENGTH = HEADER_CONTENT_LENGTH
    ACCEPT = HEADER_ACCEPT
    CACHE_CONTROL = HEADER_CACHE_CONTROL


class ContentType:
    """Supported ``Content-Type`` header values."""

    FORM_ENCODED = CONTENT_TYPE_FORM_ENCODED
    JSON = CONTENT_TYPE_JSON


def find_header(headers: Mapping[str, str], name: str) -> Optional[str]:
    """Case-insensitive header lookup."""
    lowered = name.lower()
    for key, value in headers.items():
        if key.lower() == lowered:
            return value
    return None


@dataclass(frozen=True)
class Option:
    """A rule for encoding part of a ``Request``.

    Build options with the constructors below and pass them, in order, to a
    verb method of ``WebService``. Later options override earlier ones that
    touch the same field.

    Examples:
        ```python
        service.post(
            "/users",
            parameters={"name": "ada"},
            options=[
                Option.parameter_encoding(ParameterEncoding.JSON),
                Option.header("X-Trace", "abc"),
            ],
        )
        ```
    """

    @staticmethod
    def parameter_encoding(encoding: ParameterEncoding) -> "ParameterEncodingOption":
        return ParameterEncodingOption(encoding)

    @staticmethod
    def header(name: str, value: str) -> "HeaderOption":
        return HeaderOption(name, value)

    @staticmethod
    def cache_policy(policy: CachePolicy) -> "CachePolicyOption":
        return CachePolicyOption(policy)


@dataclass(frozen=True)
class ParameterEncodingOption(Option):
    encoding: ParameterEncoding


@dataclass(frozen=True)
class HeaderOption(Option):
    name: str
    value: str


@dataclass(frozen=True)
class CachePolicyOption(Option):
    policy: CachePolicy


@dataclass(frozen=True)
class WireRequest:
    """A fully resolved HTTP request, ready for a transport."""

    url: str
    method: Method
    headers: Mapping[str, str] = field(default_factory=dict)
    body: Optional[bytes] = None
    cache_policy: CachePolicy = CachePolicy.USE_PROTOCOL_CACHE_POLICY

    def header(self, name: str) -> Optional[str]:
        return find_header(self.headers, name)


@dataclass(frozen=True)
class Request:
    """Encapsulates the data required to send an HTTP request.

    A ``Request`` is a plain value: ``encode_options`` returns a new value and
    ``wire_request`` compiles it without side effects, so the same descriptor
    always compiles to the same ``WireRequest``.

    Attributes:
        method: The HTTP method.
        url: Absolute URL string of the request.
        parameters: Parameters encoded into the query string for GET, HEAD and
            DELETE, or into the body for POST and PUT.
        headers: Header fields; setting a name again replaces its value.
        cache_policy: Cache policy carried through to the transport.
        parameter_encoding: Encoding used for body parameters.
        content_type_derived: Whether the ``Content-Type`` header was derived
            from ``parameter_encoding`` rather than set explicitly.
    """

    method: Method
    url: str
    parameters: Mapping[str, Any] = field(default_factory=dict)
    headers: Mapping[str, str] = field(default_factory=dict)
    cache_policy: CachePolicy = CachePolicy.USE_PROTOCOL_CACHE_POLICY
    parameter_encoding: ParameterEncoding = ParameterEncoding.PERCENT
    content_type_derived: bool = False

    @property
    def content_type(self) -> Optional[str]:
        return find_header(self.headers, HEADER_CONTENT_TYPE)

    @property
    def user_agent(self) -> Optional[str]:
        return find_header(self.headers, HEADER_USER_AGENT)

    def encode_options(self, options: Iterable[Option]) -> "Request":
        """Return a copy of this request with ``options`` applied in order."""
        request = self

        for option in options:
            if isinstance(option, ParameterEncodingOption):
                request = request._with_parameter_encoding(option.encoding)
            elif isinstance(option, HeaderOption):
                request = request._with_header(option.name, option.value)
            elif isinstance(option, CachePolicyOption):
                request = replace(request, cache_policy=option.policy)
            else:
                raise TypeError(f"Unsupported request option: {option!r}")

        return request

    def wire_request(self) -> WireRequest:
        """Compile this descriptor into a ``WireRequest``."""
        request = self._with_derived_content_type()
        url = request.url
        body = None
        headers = dict(request.headers)

        if request.method.encodes_query:
            if request.parameters:
                encoded_url = request.parameter_encoding.encode_url(
                    url, request.parameters
                )
                if encoded_url is not None:
                    url = encoded_url
        elif request.parameters:
            body = request.parameter_encoding.encode_body(request.parameters)
            if body is not None and find_header(headers, HEADER_CONTENT_TYPE) is None:
                headers[HEADER_CONTENT_TYPE] = CONTENT_TYPE_FORM_ENCODED

        return WireRequest(
            url=url,
            method=request.method,
            headers=headers,
            body=body,
            cache_policy=request.cache_policy,
        )

    def _with_header(self, name: str, value: str) -> "Request":
        headers = {
            key: current
            for key, current in self.headers.items()
            if key.lower() != name.lower()
        }
        headers[name] = value
        derived = self.content_type_derived
        if name.lower() == HEADER_CONTENT_TYPE.lower():
            derived = False
        return replace(self, headers=headers, content_type_derived=derived)

    def _with_parameter_encoding(self, encoding: ParameterEncoding) -> "Request":
        request = replace(self, parameter_encoding=encoding)

        if encoding is ParameterEncoding.JSON:
            request = replace(
                request._with_header(HEADER_CONTENT_TYPE, CONTENT_TYPE_JSON),
                content_type_derived=True,
            )
        elif self.content_type_derived:
            headers = {
                key: value
                for key, value in request.headers.items()
                if key.lower() != HEADER_CONTENT_TYPE.lower()
            }
            request = replace(request, headers=headers, content_type_derived=False)

        return request

    def _with_derived_content_type(self) -> "Request":
        # JSON encoding implies a JSON content type unless one is already set.
        if (
            self.parameter_encoding is ParameterEncoding.JSON
            and self.content_type is None
        ):
            return replace(
                self._with_header(HEADER_CONTENT_TYPE, CONTENT_TYPE_JSON),
                content_type_derived=True,
            )
        return self
