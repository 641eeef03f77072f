"""Executors that ServiceTask handlers can be bound to."""

import logging
import threading
from collections import deque
from concurrent.futures import Executor, Future
from typing import Any, Callable

logger = logging.getLogger(__name__)


class InlineExecutor(Executor):
    """Runs submitted callables immediately on the submitting thread."""

    def submit(self, fn: Callable[..., Any], /, *args: Any, **kwargs: Any) -> Future:
        future: Future = Future()
        try:
            result = fn(*args, **kwargs)
        except BaseException as e:
            future.set_exception(e)
        else:
            future.set_result(result)
        return future


class DeferredQueue(Executor):
    """Collects submitted callables until its owner drains them.

    Useful as the completion queue of an application with its own main loop:
    transport threads enqueue handlers and the loop calls ``run_pending``.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._pending: deque[tuple[Future, Callable[..., Any], tuple, dict]] = deque()

    def submit(self, fn: Callable[..., Any], /, *args: Any, **kwargs: Any) -> Future:
        future: Future = Future()
        with self._lock:
            self._pending.append((future, fn, args, kwargs))
        return future

    def __len__(self) -> int:
        with self._lock:
            return len(self._pending)

    def run_pending(self) -> int:
        """Run every queued callable in FIFO order and return how many ran."""
        count = 0
        while True:
            with self._lock:
                if not self._pending:
                    return count
                future, fn, args, kwargs = self._pending.popleft()

            if not future.set_running_or_notify_cancel():
                continue
            try:
                result = fn(*args, **kwargs)
            except BaseException as e:
                future.set_exception(e)
            else:
                future.set_result(result)
            count += 1


def log_handler_failure(future: Future) -> None:
    """Done-callback that logs an exception raised by a response handler."""
    if future.cancelled():
        return
    error = future.exception()
    if error is not None:
        logger.error("Response handler raised an exception", exc_info=error)
