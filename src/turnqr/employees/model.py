from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import JobTitle


@dataclass(frozen=True)
class Employee:
    """Domain entity: an employee profile.

    ``employee_id`` is the id of the authenticated account. ``location_ids``
    keeps assignment order; the first one is the primary location.
    """

    employee_id: str
    name: str
    job_title: JobTitle
    is_active: bool = True
    location_ids: tuple[str, ...] = ()

    @property
    def primary_location_id(self) -> Optional[str]:
        return self.location_ids[0] if self.location_ids else None

    def is_assigned_to(self, location_id: str) -> bool:
        return location_id in self.location_ids
