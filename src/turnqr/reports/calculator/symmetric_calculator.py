from __future__ import annotations

from datetime import datetime

from ...sessions.model import WorkSession
from .base import DurationCalculator, _hours_between


class SymmetricCalculator(DurationCalculator):
    """Count only the part of the session inside [range_start, range_end]."""

    def hours(self, session: WorkSession, *, range_start: datetime, range_end: datetime, now: datetime) -> float:
        effective_start = max(session.clock_in, range_start)
        effective_end = min(session.clock_out or now, range_end)
        return _hours_between(effective_start, effective_end)
