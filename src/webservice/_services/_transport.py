"""The transport capability a ServiceTask depends on."""

from enum import Enum
from typing import Any, Callable, Optional, Protocol, runtime_checkable

from ..models.request import WireRequest


class TaskState(str, Enum):
    SUSPENDED = "suspended"
    RUNNING = "running"
    CANCELING = "canceling"
    COMPLETED = "completed"


CompletionHandler = Callable[
    [Optional[bytes], Optional[Any], Optional[BaseException]], None
]


@runtime_checkable
class TransportTask(Protocol):
    """Handle on a single request owned by a transport."""

    @property
    def state(self) -> TaskState: ...

    def resume(self) -> None: ...

    def suspend(self) -> None: ...

    def cancel(self) -> None: ...


@runtime_checkable
class Transport(Protocol):
    """Performs network calls on behalf of ``ServiceTask`` objects.

    ``create_task`` returns a suspended task. Once resumed, the transport must
    call ``on_complete`` exactly once, from any thread, with
    ``(data, response, error)``: the body bytes and response metadata on
    success, or an error on failure. Implementations must be safe to use for
    independent requests from many threads at once.
    """

    def create_task(
        self, request: WireRequest, on_complete: CompletionHandler
    ) -> TransportTask: ...
