from typing import Any, Optional

import pytest

from webservice import TaskState, WebService, WireRequest
from webservice._services import CompletionHandler


class FakeTransportTask:
    """Transport task whose completion is triggered by the test."""

    def __init__(self, request: WireRequest, on_complete: CompletionHandler) -> None:
        self.request = request
        self._on_complete = on_complete
        self.state = TaskState.SUSPENDED
        self.calls: list[str] = []

    def resume(self) -> None:
        self.calls.append("resume")
        if self.state is TaskState.SUSPENDED:
            self.state = TaskState.RUNNING

    def suspend(self) -> None:
        self.calls.append("suspend")
        if self.state is TaskState.RUNNING:
            self.state = TaskState.SUSPENDED

    def cancel(self) -> None:
        self.calls.append("cancel")
        if self.state is not TaskState.COMPLETED:
            self.state = TaskState.CANCELING

    def complete(
        self,
        data: Optional[bytes] = None,
        response: Optional[Any] = None,
        error: Optional[BaseException] = None,
    ) -> None:
        self.state = TaskState.COMPLETED
        self._on_complete(data, response, error)


class FakeTransport:
    """In-memory transport that records every task it creates."""

    def __init__(self) -> None:
        self.tasks: list[FakeTransportTask] = []

    @property
    def requests(self) -> list[WireRequest]:
        return [task.request for task in self.tasks]

    @property
    def last_task(self) -> FakeTransportTask:
        return self.tasks[-1]

    def create_task(
        self, request: WireRequest, on_complete: CompletionHandler
    ) -> FakeTransportTask:
        task = FakeTransportTask(request, on_complete)
        self.tasks.append(task)
        return task


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Clean environment variables before each test."""
    monkeypatch.delenv("WEBSERVICE_BASE_URL", raising=False)
    monkeypatch.delenv("WEBSERVICE_TIMEOUT", raising=False)


@pytest.fixture
def base_url() -> str:
    return "https://test.example.com/"


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def service(base_url: str, transport: FakeTransport) -> WebService:
    return WebService(base_url, transport=transport)
