from concurrent.futures import Executor
from logging import getLogger
from os import environ as env
from typing import Any, Mapping, Optional, Sequence

from dotenv import load_dotenv
from httpx import URL

from ._config import Config
from ._services import HttpxTransport, ServiceTask, Transport
from ._utils import setup_logging
from ._utils.constants import ENV_BASE_URL, ENV_TIMEOUT
from .models.request import Method, Option, Request

load_dotenv()


class WebService:
    """A concise API for describing HTTP requests and handling their responses.

    Every verb method resolves its path against ``base_url_string``, encodes
    the parameters and options into a ``Request``, and returns a
    ``ServiceTask``. Tasks are resumed right away unless
    ``start_tasks_immediately`` is False.

    Examples:
        ```python
        from webservice import WebService

        service = WebService("https://httpbin.org/")

        service.get("/get", parameters={"q": "search"}) \\
            .response(lambda data, response: print(response.status_code)) \\
            .response_error(lambda error: print(error))
        ```
    """

    def __init__(
        self,
        base_url_string: Optional[str] = None,
        *,
        start_tasks_immediately: bool = True,
        transport: Optional[Transport] = None,
        completion_queue: Optional[Executor] = None,
        timeout: Optional[float] = None,
        debug: bool = False,
    ) -> None:
        """Initialize a web service.

        Args:
            base_url_string (Optional[str]): URL string that relative request paths
                are resolved against. If not provided, it is read from the
                ``WEBSERVICE_BASE_URL`` environment variable.
            start_tasks_immediately (bool): Resume new tasks as soon as they are created.
            transport (Optional[Transport]): Performs the network calls. Defaults to an
                ``HttpxTransport`` owned by this service.
            completion_queue (Optional[Executor]): Queue for handlers registered without
                one. Defaults to running handlers on the thread that completes the request.
            timeout (Optional[float]): Request timeout in seconds for the default
                transport. Falls back to ``WEBSERVICE_TIMEOUT``.
            debug (bool): Enable debug logging.
        """
        config_values: dict[str, Any] = {
            # Config validation rejects a missing base URL.
            "base_url": base_url_string or env.get(ENV_BASE_URL),
            "start_tasks_immediately": start_tasks_immediately,
        }
        timeout_value = timeout or env.get(ENV_TIMEOUT)
        if timeout_value is not None:
            config_values["timeout"] = timeout_value

        self._config = Config(**config_values)
        self._logger = getLogger("webservice")

        setup_logging(debug)

        self._owns_transport = transport is None
        self.transport: Transport = transport or HttpxTransport(self._config)
        self.completion_queue = completion_queue
        self.start_tasks_immediately = self._config.start_tasks_immediately

    @property
    def base_url_string(self) -> str:
        return self._config.base_url

    def get(
        self,
        path: str,
        parameters: Optional[Mapping[str, Any]] = None,
        options: Optional[Sequence[Option]] = None,
    ) -> ServiceTask:
        """Create a service task for a ``GET`` request.

        Args:
            path (str): Request path, relative to the base URL string or absolute.
            parameters (Optional[Mapping[str, Any]]): Encoded as a query string.
            options (Optional[Sequence[Option]]): Options used to configure the request.

        Returns:
            ServiceTask: The task processing the request.
        """
        return self.request(Method.GET, path, parameters=parameters, options=options)

    def post(
        self,
        path: str,
        parameters: Optional[Mapping[str, Any]] = None,
        options: Optional[Sequence[Option]] = None,
    ) -> ServiceTask:
        """Create a service task for a ``POST`` request.

        Args:
            path (str): Request path, relative to the base URL string or absolute.
            parameters (Optional[Mapping[str, Any]]): Encoded as the request body.
            options (Optional[Sequence[Option]]): Options used to configure the request.

        Returns:
            ServiceTask: The task processing the request.
        """
        return self.request(Method.POST, path, parameters=parameters, options=options)

    def put(
        self,
        path: str,
        parameters: Optional[Mapping[str, Any]] = None,
        options: Optional[Sequence[Option]] = None,
    ) -> ServiceTask:
        """Create a service task for a ``PUT`` request.

        Parameters are encoded as the request body.
        """
        return self.request(Method.PUT, path, parameters=parameters, options=options)

    def delete(
        self,
        path: str,
        parameters: Optional[Mapping[str, Any]] = None,
        options: Optional[Sequence[Option]] = None,
    ) -> ServiceTask:
        """Create a service task for a ``DELETE`` request.

        Parameters are encoded as a query string.
        """
        return self.request(Method.DELETE, path, parameters=parameters, options=options)

    def head(
        self,
        path: str,
        parameters: Optional[Mapping[str, Any]] = None,
        options: Optional[Sequence[Option]] = None,
    ) -> ServiceTask:
        """Create a service task for a ``HEAD`` request.

        Parameters are encoded as a query string.
        """
        return self.request(Method.HEAD, path, parameters=parameters, options=options)

    GET = get
    POST = post
    PUT = put
    DELETE = delete
    HEAD = head

    def request(
        self,
        method: Method,
        path: str,
        parameters: Optional[Mapping[str, Any]] = None,
        options: Optional[Sequence[Option]] = None,
    ) -> ServiceTask:
        """Create a service task for any supported HTTP method."""
        request = self.encode_request(
            Method(method),
            self.absolute_url_string(path),
            parameters=parameters,
            options=options,
        )
        return self.service_task(request)

    def encode_request(
        self,
        method: Method,
        url: str,
        parameters: Optional[Mapping[str, Any]] = None,
        options: Optional[Sequence[Option]] = None,
    ) -> Request:
        request = Request(method, url, parameters=dict(parameters or {}))

        if options:
            request = request.encode_options(options)

        return request

    def service_task(self, request: Request) -> ServiceTask:
        """Compile ``request`` and create its task, resuming it if configured to."""
        wire_request = request.wire_request()
        self._logger.debug(f"Request: {wire_request.method.value} {wire_request.url}")
        self._logger.debug(f"HEADERS: {dict(wire_request.headers)}")

        task = ServiceTask(
            wire_request, self.transport, default_queue=self.completion_queue
        )

        if self.start_tasks_immediately:
            task.resume()

        return task

    def absolute_url_string(self, string: str) -> str:
        """Return ``string`` resolved against ``base_url_string``.

        Absolute URL strings are returned as they are.
        """
        return self.construct_url_string(string, self.base_url_string)

    @staticmethod
    def construct_url_string(string: str, relative_to: str) -> str:
        return str(URL(relative_to).join(string))

    def close(self) -> None:
        """Close the transport if this service created it."""
        if self._owns_transport and isinstance(self.transport, HttpxTransport):
            self.transport.close()

    def __enter__(self) -> "WebService":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
