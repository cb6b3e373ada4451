from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..common.change_feed import ChangeFeed
from ..common.validators import require_non_empty
from ..core.enums import JobTitle, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..locations.repository import LocationRepository
from .model import Employee
from .repository import EmployeeRepository

logger = logging.getLogger(__name__)


def _require_admin(current_role: Role) -> None:
    if current_role != Role.ADMIN:
        raise AuthorizationError("No tienes permiso")


class EmployeeService:
    """Use cases: employee profiles (fail-safe creation, admin management)."""

    def __init__(
        self,
        employees: EmployeeRepository,
        locations: LocationRepository,
        *,
        change_feed: Optional[ChangeFeed] = None,
    ):
        self._employees = employees
        self._locations = locations
        self._feed = change_feed

    def _publish(self, action: str, employee_id: str) -> None:
        if self._feed:
            self._feed.publish("employees", action, employee_id)

    def get(self, employee_id: str) -> Employee:
        employee = self._employees.get_by_id(employee_id)
        if not employee:
            raise NotFoundError("Empleado no encontrado")
        return employee

    def ensure_profile(self, *, employee_id: str, email: Optional[str], full_name: Optional[str] = None) -> Employee:
        """Make sure the authenticated principal has an employee row."""
        existing = self._employees.get_by_id(employee_id)
        if existing:
            return existing

        name = (full_name or "").strip()
        if not name and email:
            name = email.split("@")[0]
        name = name or "Nuevo Empleado"

        self._employees.create(employee_id=employee_id, name=name, job_title=JobTitle.EMPLOYEE)
        logger.info("created missing employee profile %s", employee_id)
        self._publish("insert", employee_id)
        return self.get(employee_id)

    def list_all(self) -> Sequence[Employee]:
        return sorted(self._employees.list_all(), key=lambda e: e.name.casefold())

    def list_for_location(self, location_id: str) -> Sequence[Employee]:
        return self._employees.list_for_location(location_id)

    def change_job_title(self, *, current_role: Role, employee_id: str, job_title: str) -> None:
        _require_admin(current_role)
        try:
            title = JobTitle(require_non_empty(job_title, "Puesto"))
        except ValueError:
            raise ValidationError("Puesto no válido") from None

        if not self._employees.update_job_title(employee_id, title):
            raise NotFoundError("Empleado no encontrado")
        logger.info("employee %s job title -> %s", employee_id, title.value)
        self._publish("update", employee_id)

    def set_active(self, *, current_role: Role, employee_id: str, is_active: bool) -> None:
        _require_admin(current_role)
        if not self._employees.set_active(employee_id, is_active=is_active):
            raise NotFoundError("Empleado no encontrado")
        self._publish("update", employee_id)

    def assign_locations(self, *, current_role: Role, employee_id: str, location_ids: Sequence[str]) -> None:
        _require_admin(current_role)
        self.get(employee_id)

        ordered: list[str] = []
        for location_id in location_ids:
            if location_id in ordered:
                continue
            if not self._locations.get_by_id(location_id):
                raise ValidationError(f"Local no encontrado: {location_id}")
            ordered.append(location_id)

        self._employees.set_locations(employee_id, ordered)
        logger.info("employee %s assigned to %s", employee_id, ordered)
        self._publish("update", employee_id)

    def delete_employee(self, *, current_role: Role, current_user_id: str, employee_id: str) -> None:
        """Remove the profile. Session history is kept."""
        _require_admin(current_role)
        if employee_id == current_user_id:
            raise ValidationError("No puedes eliminar tu propio perfil")
        if not self._employees.delete_by_id(employee_id):
            raise NotFoundError("Empleado no encontrado")
        logger.info("deleted employee %s", employee_id)
        self._publish("delete", employee_id)
