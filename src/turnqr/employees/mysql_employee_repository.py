from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from ..core.enums import JobTitle
from ..core.exceptions import BackendError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, require_field
from .model import Employee
from .repository import EmployeeRepository

_SELECT = """
    SELECT e.employee_id, e.name, e.job_title, e.is_active,
           GROUP_CONCAT(el.location_id ORDER BY el.position, el.location_id SEPARATOR ',') AS location_ids
    FROM employees e
    LEFT JOIN employee_locations el ON el.employee_id = e.employee_id
"""


def _to_employee(r: Dict[str, Any]) -> Employee:
    raw_title = r.get("job_title") or JobTitle.EMPLOYEE.value
    try:
        job_title = JobTitle(raw_title)
    except ValueError:
        raise BackendError(f"Unknown job title {raw_title!r} for employee {r.get('employee_id')!r}") from None
    locations = r.get("location_ids") or ""
    return Employee(
        employee_id=str(require_field(r, "employee_id")),
        name=str(r.get("name") or ""),
        job_title=job_title,
        is_active=bool(r.get("is_active", 1)),
        location_ids=tuple(x for x in locations.split(",") if x),
    )


class MySQLEmployeeRepository(EmployeeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, employee_id: str) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE e.employee_id=%s GROUP BY e.employee_id", (employee_id,))
            r = fetchone(cur)
            return _to_employee(r) if r else None

    def list_all(self) -> Sequence[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " GROUP BY e.employee_id ORDER BY e.name")
            return [_to_employee(r) for r in fetchall(cur)]

    def list_for_location(self, location_id: str) -> Sequence[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT
                + """
                WHERE e.employee_id IN (
                    SELECT employee_id FROM employee_locations WHERE location_id=%s
                )
                GROUP BY e.employee_id
                ORDER BY e.name
                """,
                (location_id,),
            )
            return [_to_employee(r) for r in fetchall(cur)]

    def create(self, *, employee_id: str, name: str, job_title: JobTitle) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT IGNORE INTO employees (employee_id, name, job_title) VALUES (%s, %s, %s)",
                (employee_id, name, job_title.value),
            )

    def update_job_title(self, employee_id: str, job_title: JobTitle) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE employees SET job_title=%s WHERE employee_id=%s", (job_title.value, employee_id))
            return cur.rowcount > 0

    def set_active(self, employee_id: str, *, is_active: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE employees SET is_active=%s WHERE employee_id=%s", (1 if is_active else 0, employee_id))
            return cur.rowcount > 0

    def set_locations(self, employee_id: str, location_ids: Sequence[str]) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM employee_locations WHERE employee_id=%s", (employee_id,))
            for position, location_id in enumerate(location_ids):
                cur.execute(
                    "INSERT INTO employee_locations (employee_id, location_id, position) VALUES (%s, %s, %s)",
                    (employee_id, location_id, position),
                )

    def delete_by_id(self, employee_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM employees WHERE employee_id=%s", (employee_id,))
            return cur.rowcount > 0
