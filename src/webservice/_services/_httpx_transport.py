import threading
from concurrent.futures import Future, ThreadPoolExecutor
from importlib.metadata import PackageNotFoundError, version
from logging import getLogger
from typing import Optional

from httpx import Client, HTTPError, InvalidURL, Response

from .._config import Config
from .._utils.constants import HEADER_CACHE_CONTROL, HEADER_USER_AGENT, PACKAGE_NAME
from ..models.errors import TaskCancelledError, TransportError
from ..models.request import CachePolicy, WireRequest, find_header
from ._transport import CompletionHandler, TaskState

logger = getLogger(__name__)

CACHE_CONTROL_DIRECTIVES: dict[CachePolicy, str] = {
    CachePolicy.RELOAD_IGNORING_LOCAL_CACHE_DATA: "no-cache",
    CachePolicy.RELOAD_IGNORING_LOCAL_AND_REMOTE_CACHE_DATA: "no-cache",
    CachePolicy.RETURN_CACHE_DATA_ELSE_LOAD: "max-stale",
    CachePolicy.RETURN_CACHE_DATA_DONT_LOAD: "only-if-cached",
    CachePolicy.RELOAD_REVALIDATING_CACHE_DATA: "max-age=0",
}


def user_agent_value() -> str:
    try:
        package_version = version(PACKAGE_NAME)
    except PackageNotFoundError:
        package_version = "0.0.0"
    return f"WebService.Python/{package_version}"


def request_headers(request: WireRequest) -> dict[str, str]:
    """Headers to send for ``request``, with transport defaults filled in."""
    headers = dict(request.headers)

    if find_header(headers, HEADER_USER_AGENT) is None:
        headers[HEADER_USER_AGENT] = user_agent_value()

    directive = CACHE_CONTROL_DIRECTIVES.get(request.cache_policy)
    if directive is not None and find_header(headers, HEADER_CACHE_CONTROL) is None:
        headers[HEADER_CACHE_CONTROL] = directive

    return headers


class HttpxTransportTask:
    """A single request performed with an ``httpx.Client`` on a worker thread.

    Suspending and cancelling are best effort: a request already on the wire
    cannot be suspended, and cancelling it only replaces its outcome with a
    ``TaskCancelledError``.
    """

    def __init__(
        self,
        client: Client,
        executor: ThreadPoolExecutor,
        request: WireRequest,
        on_complete: CompletionHandler,
    ) -> None:
        self._client = client
        self._executor = executor
        self._request = request
        self._on_complete = on_complete
        self._lock = threading.Lock()
        self._state = TaskState.SUSPENDED
        self._future: Optional[Future] = None

    @property
    def state(self) -> TaskState:
        with self._lock:
            return self._state

    def resume(self) -> None:
        with self._lock:
            if self._state is not TaskState.SUSPENDED:
                return
            self._future = self._executor.submit(self._perform)
            self._state = TaskState.RUNNING
        logger.debug(f"Resumed: {self._request.method.value} {self._request.url}")

    def suspend(self) -> None:
        with self._lock:
            if self._state is not TaskState.RUNNING or self._future is None:
                return
            if not self._future.cancel():
                logger.debug(f"Request already in flight: {self._request.url}")
                return
            self._future = None
            self._state = TaskState.SUSPENDED
        logger.debug(f"Suspended: {self._request.method.value} {self._request.url}")

    def cancel(self) -> None:
        with self._lock:
            if self._state in (TaskState.CANCELING, TaskState.COMPLETED):
                return
            self._state = TaskState.CANCELING
            not_started = self._future is None or self._future.cancel()
        logger.debug(f"Cancelled: {self._request.method.value} {self._request.url}")

        if not_started:
            self._finish(None, None, TaskCancelledError(self._request))

    def _perform(self) -> None:
        request = self._request
        logger.debug(f"Request: {request.method.value} {request.url}")

        try:
            response = self._client.request(
                request.method.value,
                request.url,
                headers=request_headers(request),
                content=request.body,
            )
        except Exception as e:
            # httpx errors as well as failures building the request, such as
            # header values that cannot be encoded.
            if not isinstance(e, (HTTPError, InvalidURL)):
                logger.debug(f"Unexpected transport failure: {request.url}: {e!r}")
            error = TransportError(str(e) or type(e).__name__, request=request)
            error.__cause__ = e
            self._finish(None, None, error)
            return

        self._finish(response.content, response, None)

    def _finish(
        self,
        data: Optional[bytes],
        response: Optional[Response],
        error: Optional[BaseException],
    ) -> None:
        with self._lock:
            if self._state is TaskState.COMPLETED:
                return
            if self._state is TaskState.CANCELING and not isinstance(
                error, TaskCancelledError
            ):
                data, response = None, None
                error = TaskCancelledError(self._request)
            self._state = TaskState.COMPLETED

        self._on_complete(data, response, error)


class HttpxTransport:
    """Default transport: an ``httpx.Client`` session shared by all tasks.

    Requests run on a bounded thread pool so resuming a task never blocks the
    caller. One transport may serve any number of tasks concurrently.
    """

    def __init__(self, config: Config, client: Optional[Client] = None) -> None:
        self._config = config
        self._owns_client = client is None
        self.client = client or Client(
            timeout=config.timeout, follow_redirects=config.follow_redirects
        )
        self._executor = ThreadPoolExecutor(
            max_workers=config.max_workers, thread_name_prefix="webservice"
        )

    def create_task(
        self, request: WireRequest, on_complete: CompletionHandler
    ) -> HttpxTransportTask:
        return HttpxTransportTask(self.client, self._executor, request, on_complete)

    def close(self) -> None:
        """Wait for in-flight requests, then release the thread pool and session."""
        self._executor.shutdown(wait=True)
        if self._owns_client:
            self.client.close()

    def __enter__(self) -> "HttpxTransport":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
