from __future__ import annotations

from datetime import datetime

from ...sessions.model import WorkSession
from .base import DurationCalculator, _hours_between


class EndClippedCalculator(DurationCalculator):
    """Historical rule: end = min(clock_out or now, range_end); start is not clipped."""

    def hours(self, session: WorkSession, *, range_start: datetime, range_end: datetime, now: datetime) -> float:
        effective_end = min(session.clock_out or now, range_end)
        return _hours_between(session.clock_in, effective_end)
