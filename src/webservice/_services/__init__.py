from ._httpx_transport import HttpxTransport, HttpxTransportTask
from ._service_task import HandlerKind, ServiceTask
from ._transport import CompletionHandler, TaskState, Transport, TransportTask

__all__ = [
    "CompletionHandler",
    "HandlerKind",
    "HttpxTransport",
    "HttpxTransportTask",
    "ServiceTask",
    "TaskState",
    "Transport",
    "TransportTask",
]
