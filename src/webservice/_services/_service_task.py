import json
import threading
from concurrent.futures import Executor
from dataclasses import dataclass
from enum import Enum
from logging import getLogger
from typing import Any, Callable, Optional

from .._utils._dispatch import InlineExecutor, log_handler_failure
from ..models.request import WireRequest
from ._transport import TaskState, Transport

logger = getLogger(__name__)

ResponseHandler = Callable[[Optional[bytes], Optional[Any]], Any]
JSONHandler = Callable[[Any], Any]
ErrorHandler = Callable[[BaseException], Any]


class HandlerKind(str, Enum):
    RESPONSE = "response"
    JSON = "json"
    ERROR = "error"


@dataclass(frozen=True)
class _Subscription:
    queue: Executor
    kind: HandlerKind
    handler: Callable[..., Any]


@dataclass(frozen=True)
class _Completion:
    data: Optional[bytes]
    response: Optional[Any]
    error: Optional[BaseException]


_NO_JSON = object()


def _decode_json(data: Optional[bytes]) -> Any:
    if data is None:
        return _NO_JSON
    try:
        return json.loads(data)
    except (ValueError, UnicodeDecodeError) as e:
        logger.debug(f"Response body is not valid JSON: {e}")
        return _NO_JSON


class ServiceTask:
    """The lifetime of one request and the handlers waiting on its response.

    Handlers are registered with ``response``, ``response_json`` and
    ``response_error``; each call returns the task so registrations chain.
    When the transport completes, every matching handler runs once, in
    registration order per kind, on the queue it was registered with:

    - on error, only error handlers run, even if data came back as well;
    - otherwise response handlers receive ``(data, response)`` and JSON
      handlers receive the decoded body. A body that is not valid JSON skips
      the JSON handlers without reporting an error.

    A handler registered after completion is dispatched right away with the
    stored outcome. Exceptions raised by handlers are logged and never
    propagate.

    Examples:
        ```python
        service.get("/users", parameters={"page": 2}) \\
            .response_json(lambda users: print(users)) \\
            .response_error(lambda error: print("failed:", error))
        ```
    """

    def __init__(
        self,
        request: WireRequest,
        transport: Transport,
        *,
        default_queue: Optional[Executor] = None,
    ) -> None:
        self.request = request
        self._default_queue = (
            default_queue if default_queue is not None else InlineExecutor()
        )
        self._lock = threading.Lock()
        self._subscriptions: list[_Subscription] = []
        self._completion: Optional[_Completion] = None
        self._finished = threading.Event()
        self._task = transport.create_task(request, self._complete)

    @property
    def state(self) -> TaskState:
        return self._task.state

    def resume(self) -> "ServiceTask":
        self._task.resume()
        return self

    def suspend(self) -> "ServiceTask":
        self._task.suspend()
        return self

    def cancel(self) -> "ServiceTask":
        self._task.cancel()
        return self

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the response has been dispatched to all handlers.

        Handlers bound to a deferred queue may still be waiting to run.

        Returns:
            bool: False if ``timeout`` elapsed first.
        """
        return self._finished.wait(timeout)

    def response(
        self, handler: ResponseHandler, queue: Optional[Executor] = None
    ) -> "ServiceTask":
        """Call ``handler(data, response)`` when the request succeeds."""
        return self._subscribe(HandlerKind.RESPONSE, handler, queue)

    def response_json(
        self, handler: JSONHandler, queue: Optional[Executor] = None
    ) -> "ServiceTask":
        """Call ``handler(json)`` with the decoded body when the request succeeds.

        Each JSON handler receives its own decoded copy of the body.
        """
        return self._subscribe(HandlerKind.JSON, handler, queue)

    def response_error(
        self, handler: ErrorHandler, queue: Optional[Executor] = None
    ) -> "ServiceTask":
        """Call ``handler(error)`` when the request fails."""
        return self._subscribe(HandlerKind.ERROR, handler, queue)

    def _subscribe(
        self,
        kind: HandlerKind,
        handler: Callable[..., Any],
        queue: Optional[Executor],
    ) -> "ServiceTask":
        if queue is None:
            queue = self._default_queue
        subscription = _Subscription(queue, kind, handler)

        with self._lock:
            completion = self._completion
            if completion is None:
                self._subscriptions.append(subscription)

        if completion is not None:
            self._dispatch(completion, [subscription])

        return self

    def _complete(
        self,
        data: Optional[bytes],
        response: Optional[Any],
        error: Optional[BaseException],
    ) -> None:
        with self._lock:
            if self._completion is not None:
                logger.warning(
                    f"Ignoring repeated completion for {self.request.method.value} "
                    f"{self.request.url}"
                )
                return
            completion = _Completion(data, response, error)
            self._completion = completion
            subscriptions, self._subscriptions = self._subscriptions, []

        if error is not None:
            logger.debug(f"Request failed: {self.request.url}: {error}")

        try:
            self._dispatch(completion, subscriptions)
        finally:
            self._finished.set()

    def _dispatch(
        self, completion: _Completion, subscriptions: list[_Subscription]
    ) -> None:
        if completion.error is not None:
            for subscription in subscriptions:
                if subscription.kind is HandlerKind.ERROR:
                    self._submit(subscription, completion.error)
            return

        for subscription in subscriptions:
            if subscription.kind is HandlerKind.RESPONSE:
                self._submit(subscription, completion.data, completion.response)

        for subscription in subscriptions:
            if subscription.kind is not HandlerKind.JSON:
                continue
            # Decoded per handler so one handler cannot mutate what another sees.
            decoded = _decode_json(completion.data)
            if decoded is _NO_JSON:
                return
            self._submit(subscription, decoded)

    def _submit(self, subscription: _Subscription, *args: Any) -> None:
        try:
            future = subscription.queue.submit(subscription.handler, *args)
        except RuntimeError as e:
            # Executor was shut down.
            logger.error(f"Unable to dispatch {subscription.kind.value} handler: {e}")
            return
        future.add_done_callback(log_handler_failure)
