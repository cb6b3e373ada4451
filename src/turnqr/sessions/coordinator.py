from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator


class EmployeeLocks:
    """Serialize clock transitions per employee within this process.

    The unique open-session index in the store covers other processes.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[str, threading.RLock] = {}

    @contextmanager
    def hold(self, employee_id: str) -> Iterator[None]:
        with self._guard:
            lock = self._locks.setdefault(employee_id, threading.RLock())
        with lock:
            yield
