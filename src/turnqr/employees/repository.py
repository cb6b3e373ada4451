from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import JobTitle
from .model import Employee


class EmployeeRepository(Protocol):
    """Repository port for employee profiles and their location assignments."""

    def get_by_id(self, employee_id: str) -> Optional[Employee]:
        raise NotImplementedError

    def list_all(self) -> Sequence[Employee]:
        raise NotImplementedError

    def list_for_location(self, location_id: str) -> Sequence[Employee]:
        raise NotImplementedError

    def create(self, *, employee_id: str, name: str, job_title: JobTitle) -> None:
        raise NotImplementedError

    def update_job_title(self, employee_id: str, job_title: JobTitle) -> bool:
        raise NotImplementedError

    def set_active(self, employee_id: str, *, is_active: bool) -> bool:
        raise NotImplementedError

    def set_locations(self, employee_id: str, location_ids: Sequence[str]) -> None:
        raise NotImplementedError

    def delete_by_id(self, employee_id: str) -> bool:
        raise NotImplementedError
