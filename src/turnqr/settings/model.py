from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.constants import DEFAULT_MAX_SHIFT_HOURS, DEFAULT_OPENING_TIME


@dataclass(frozen=True)
class AppSettings:
    """Process-wide settings row (id=1).

    ``updated_at`` is None until the row is first saved; it is the version
    checked on every update.
    """

    business_name: str = ""
    opening_time: str = DEFAULT_OPENING_TIME
    max_shift_hours: float = float(DEFAULT_MAX_SHIFT_HOURS)
    qr_token: Optional[str] = None
    selected_location_id: Optional[str] = None
    updated_at: Optional[datetime] = None
