"""Serialization gate: runs database operations one at a time, in order."""

from __future__ import annotations

import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from typing import TypeVar

T = TypeVar("T")


class SerialGate:
    """Queue of blocking tasks executed by a single worker thread.

    ``run`` blocks the caller until its task has finished and returns the
    task's result (or raises its exception). Tasks run in submission order.

    A task that calls ``run`` again from inside the worker (a statement
    issued from a transaction or savepoint body) runs immediately: the
    outer task already holds the gate, and queueing would deadlock.
    """

    def __init__(self, name: str = "sqlgate") -> None:
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=name)
        self._local = threading.local()

    @property
    def inside(self) -> bool:
        """True when called from a task the gate is currently running."""
        return getattr(self._local, "inside", False)

    def run(self, task: Callable[[], T]) -> T:
        if self.inside:
            return task()
        return self._executor.submit(self._enter, task).result()

    def _enter(self, task: Callable[[], T]) -> T:
        self._local.inside = True
        try:
            return task()
        finally:
            self._local.inside = False

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
