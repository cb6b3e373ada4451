from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from .model import AppSettings


class SettingsRepository(Protocol):
    def get(self) -> Optional[AppSettings]:
        raise NotImplementedError

    def save(self, settings: AppSettings, *, expected_updated_at: Optional[datetime], updated_at: datetime) -> bool:
        """Write only if the stored version still equals ``expected_updated_at``.

        ``expected_updated_at=None`` means the row must not exist yet.
        Returns False when another writer got there first.
        """
        raise NotImplementedError
