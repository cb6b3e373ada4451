from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Account role used for authorization."""

    ADMIN = "admin"
    EMPLOYEE = "employee"


class JobTitle(str, Enum):
    """Job titles an administrator can assign to an employee."""

    HEAD_CHEF = "Jefe de cocina"
    COOK = "Cocinero"
    WAITER = "Camarero"
    SHIFT_MANAGER = "Encargado de turno"
    OTHER = "Otros"
    EMPLOYEE = "Empleado"


class SessionStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


class RejectionReason(str, Enum):
    """Why a presented QR token was not accepted."""

    UNCONFIGURED = "unconfigured"
    ABSENT = "absent"
    MISMATCHED = "mismatched"
    UNASSIGNED_LOCATION = "unassigned_location"


class ClipMode(str, Enum):
    """How a session is clipped to a report range.

    END_ONLY keeps the historical report behaviour (start not clipped).
    """

    END_ONLY = "end"
    SYMMETRIC = "symmetric"


class AuditAction(str, Enum):
    MANUAL_CREATE = "manual_create"
    EDIT = "edit"
    DELETE = "delete"


class ClockAction(str, Enum):
    IN = "in"
    OUT = "out"
