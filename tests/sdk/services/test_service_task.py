import json
import logging
from unittest.mock import Mock

import pytest

from tests.conftest import FakeTransport
from webservice import (
    DeferredQueue,
    Method,
    ServiceTask,
    TaskCancelledError,
    TaskState,
    TransportError,
    WireRequest,
)


@pytest.fixture
def wire_request() -> WireRequest:
    return WireRequest(url="https://test.example.com/get", method=Method.GET)


@pytest.fixture
def task(wire_request: WireRequest, transport: FakeTransport) -> ServiceTask:
    return ServiceTask(wire_request, transport)


class TestServiceTask:
    class TestLifecycle:
        def test_creates_one_transport_task(
            self,
            task: ServiceTask,
            transport: FakeTransport,
            wire_request: WireRequest,
        ):
            assert transport.requests == [wire_request]
            assert task.request is wire_request

        def test_starts_suspended(self, task: ServiceTask):
            assert task.state is TaskState.SUSPENDED

        def test_resume_suspend_and_cancel_are_forwarded(
            self, task: ServiceTask, transport: FakeTransport
        ):
            assert task.resume() is task
            assert task.state is TaskState.RUNNING

            task.suspend()
            assert task.state is TaskState.SUSPENDED

            task.resume().cancel()
            assert task.state is TaskState.CANCELING
            assert transport.last_task.calls == ["resume", "suspend", "resume", "cancel"]

        def test_cancellation_reaches_error_handlers(
            self, task: ServiceTask, transport: FakeTransport, wire_request: WireRequest
        ):
            errors = []
            task.response_error(errors.append).resume().cancel()

            error = TaskCancelledError(wire_request)
            transport.last_task.complete(error=error)

            assert errors == [error]
            assert task.state is TaskState.COMPLETED

        def test_wait(self, task: ServiceTask, transport: FakeTransport):
            assert task.wait(timeout=0) is False

            transport.last_task.complete(data=b"", response=Mock())

            assert task.wait(timeout=0) is True

    class TestSuccess:
        def test_response_handlers_run_in_registration_order(
            self, task: ServiceTask, transport: FakeTransport
        ):
            calls = []
            response = Mock(status_code=200)

            task.response(lambda data, resp: calls.append(("first", data, resp)))
            task.response(lambda data, resp: calls.append(("second", data, resp)))

            transport.last_task.complete(data=b"payload", response=response)

            assert calls == [
                ("first", b"payload", response),
                ("second", b"payload", response),
            ]

        def test_json_handlers_receive_decoded_body(
            self, task: ServiceTask, transport: FakeTransport
        ):
            first, second = [], []
            task.response_json(first.append).response_json(second.append)

            transport.last_task.complete(
                data=json.dumps({"args": {"foo": "bar"}}).encode(), response=Mock()
            )

            assert first == [{"args": {"foo": "bar"}}]
            assert second == [{"args": {"foo": "bar"}}]

        def test_json_handlers_receive_separate_objects(
            self, task: ServiceTask, transport: FakeTransport
        ):
            received = []

            def mutate(value):
                value["args"]["foo"] = "changed"
                received.append(value)

            task.response_json(mutate).response_json(received.append)

            transport.last_task.complete(
                data=json.dumps({"args": {"foo": "bar"}}).encode(), response=Mock()
            )

            assert received == [
                {"args": {"foo": "changed"}},
                {"args": {"foo": "bar"}},
            ]
            assert received[0] is not received[1]

        def test_error_handlers_do_not_run(
            self, task: ServiceTask, transport: FakeTransport
        ):
            on_error = Mock()
            on_response = Mock()
            task.response(on_response).response_error(on_error)

            transport.last_task.complete(data=b"{}", response=Mock())

            on_response.assert_called_once()
            on_error.assert_not_called()

    class TestInvalidJSON:
        def test_json_handler_is_skipped_silently(
            self,
            task: ServiceTask,
            transport: FakeTransport,
            caplog: pytest.LogCaptureFixture,
        ):
            on_json = Mock()
            on_error = Mock()
            on_response = Mock()
            task.response_json(on_json).response_error(on_error).response(on_response)

            with caplog.at_level(logging.ERROR, logger="webservice"):
                transport.last_task.complete(data=b"<html>not json</html>", response=Mock())

            on_json.assert_not_called()
            on_error.assert_not_called()
            on_response.assert_called_once()
            assert caplog.records == []

        def test_missing_body_skips_json_handler(
            self, task: ServiceTask, transport: FakeTransport
        ):
            on_json = Mock()
            task.response_json(on_json)

            transport.last_task.complete(data=None, response=Mock())

            on_json.assert_not_called()

        def test_non_utf8_body_skips_json_handler(
            self, task: ServiceTask, transport: FakeTransport
        ):
            on_json = Mock()
            task.response_json(on_json)

            transport.last_task.complete(data=b"\xff\xfe\xfa", response=Mock())

            on_json.assert_not_called()

    class TestError:
        def test_only_error_handlers_run(
            self, task: ServiceTask, transport: FakeTransport, wire_request: WireRequest
        ):
            on_response = Mock()
            on_json = Mock()
            errors = []
            task.response(on_response).response_json(on_json).response_error(
                errors.append
            )

            error = TransportError("connection refused", request=wire_request)
            transport.last_task.complete(data=b"{}", response=Mock(), error=error)

            assert errors == [error]
            on_response.assert_not_called()
            on_json.assert_not_called()

        def test_every_error_handler_runs_once(
            self, task: ServiceTask, transport: FakeTransport
        ):
            first, second = Mock(), Mock()
            task.response_error(first).response_error(second)

            error = TransportError("boom")
            transport.last_task.complete(error=error)

            first.assert_called_once_with(error)
            second.assert_called_once_with(error)

        def test_no_error_handler_is_not_a_failure(
            self, task: ServiceTask, transport: FakeTransport
        ):
            transport.last_task.complete(error=TransportError("boom"))

            assert task.wait(timeout=0) is True

    class TestQueues:
        def test_handlers_run_on_their_queue(
            self, task: ServiceTask, transport: FakeTransport
        ):
            queue = DeferredQueue()
            calls = []

            task.response(lambda data, resp: calls.append("queued"), queue)
            task.response(lambda data, resp: calls.append("inline"))
            task.response_json(lambda value: calls.append("queued json"), queue)

            transport.last_task.complete(data=b"[]", response=Mock())

            assert calls == ["inline"]

            queue.run_pending()

            assert calls == ["inline", "queued", "queued json"]

        def test_default_queue(
            self, wire_request: WireRequest, transport: FakeTransport
        ):
            queue = DeferredQueue()
            on_error = Mock()
            ServiceTask(wire_request, transport, default_queue=queue).response_error(
                on_error
            )

            transport.last_task.complete(error=TransportError("boom"))

            on_error.assert_not_called()
            assert queue.run_pending() == 1
            on_error.assert_called_once()

    class TestAfterCompletion:
        def test_late_handler_runs_immediately(
            self, task: ServiceTask, transport: FakeTransport
        ):
            response = Mock()
            transport.last_task.complete(data=b'{"late": true}', response=response)

            calls = []
            task.response(lambda data, resp: calls.append((data, resp)))
            task.response_json(calls.append)

            assert calls == [(b'{"late": true}', response), {"late": True}]

        def test_late_error_handler_receives_stored_error(
            self, task: ServiceTask, transport: FakeTransport
        ):
            error = TransportError("boom")
            transport.last_task.complete(error=error)

            on_error, on_response = Mock(), Mock()
            task.response_error(on_error).response(on_response)

            on_error.assert_called_once_with(error)
            on_response.assert_not_called()

        def test_repeated_completion_is_ignored(
            self,
            task: ServiceTask,
            transport: FakeTransport,
            caplog: pytest.LogCaptureFixture,
        ):
            on_response = Mock()
            task.response(on_response)

            with caplog.at_level(logging.WARNING, logger="webservice"):
                transport.last_task.complete(data=b"1", response=Mock())
                transport.last_task.complete(data=b"2", response=Mock())

            on_response.assert_called_once()
            assert any(
                "Ignoring repeated completion" in record.message
                for record in caplog.records
            )

    class TestHandlerFailures:
        def test_failing_handler_does_not_stop_others(
            self,
            task: ServiceTask,
            transport: FakeTransport,
            caplog: pytest.LogCaptureFixture,
        ):
            def broken(data, response):
                raise RuntimeError("handler broke")

            on_response = Mock()
            task.response(broken).response(on_response)

            with caplog.at_level(logging.ERROR, logger="webservice"):
                transport.last_task.complete(data=b"", response=Mock())

            on_response.assert_called_once()
            assert any(
                "Response handler raised an exception" in record.message
                for record in caplog.records
            )
