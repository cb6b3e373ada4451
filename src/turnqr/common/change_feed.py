from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChangeEvent:
    table: str
    action: str
    record_id: Optional[str] = None


Listener = Callable[[ChangeEvent], None]


class ChangeFeed:
    """In-process publish/subscribe of data changes, keyed by table name.

    Only read views (dashboard caches) listen; writes never depend on it.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._listeners: dict[str, list[Listener]] = {}

    def subscribe(self, table: str, listener: Listener) -> Callable[[], None]:
        with self._lock:
            self._listeners.setdefault(table, []).append(listener)

        def unsubscribe() -> None:
            with self._lock:
                listeners = self._listeners.get(table, [])
                if listener in listeners:
                    listeners.remove(listener)

        return unsubscribe

    def publish(self, table: str, action: str, record_id: Optional[str] = None) -> None:
        event = ChangeEvent(table=table, action=action, record_id=record_id)
        with self._lock:
            listeners = list(self._listeners.get(table, []))
        for listener in listeners:
            try:
                listener(event)
            except Exception:
                # Listener errors never reach the publishing write.
                logger.exception("change listener failed for %s/%s", table, action)
