from __future__ import annotations

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable


class AdmissionController:
    """Runs submitted work on a thread pool, at most `limit` at a time.

    submit() blocks the caller while `limit` tasks are in flight and
    returns once the new task has a slot. A slot is released when its task
    finishes, whether it returned or raised.
    """

    def __init__(self, limit: int) -> None:
        if limit < 1:
            raise ValueError("limit must be >= 1")
        self._executor = ThreadPoolExecutor(max_workers=limit, thread_name_prefix="friendrank")

        self._lock = threading.Lock()
        self._cv = threading.Condition(self._lock)

        self._limit = limit
        self._active = 0
        self._running = True

    def submit(self, fn: Callable[..., Any], *args: Any) -> Future:
        """Submit fn(*args), blocking while the controller is at its limit."""
        with self._cv:
            while self._running and self._active >= self._limit:
                self._cv.wait(timeout=0.5)

            if not self._running:
                raise RuntimeError("AdmissionController is stopped")

            self._active += 1

        return self._executor.submit(self._wrap_task, fn, *args)

    def _wrap_task(self, fn: Callable[..., Any], *args: Any) -> Any:
        try:
            return fn(*args)
        finally:
            with self._cv:
                self._active = max(0, self._active - 1)
                self._cv.notify_all()

    def stop(self, wait: bool = True) -> None:
        with self._cv:
            self._running = False
            self._cv.notify_all()
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> "AdmissionController":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.stop(wait=True)

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def active(self) -> int:
        with self._cv:
            return self._active
