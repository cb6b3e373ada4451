from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from ...sessions.model import WorkSession


class DurationCalculator(ABC):
    """Calculator interface (Strategy Pattern for range clipping)."""

    @abstractmethod
    def hours(self, session: WorkSession, *, range_start: datetime, range_end: datetime, now: datetime) -> float:
        raise NotImplementedError


def _hours_between(start: datetime, end: datetime) -> float:
    return max(0.0, (end - start).total_seconds() / 3600)
