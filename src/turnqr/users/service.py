from __future__ import annotations

import logging
import uuid
from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.validators import require_min_length, require_non_empty
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, ValidationError
from ..employees.service import EmployeeService
from .model import Principal
from .repository import AccountRepository

logger = logging.getLogger(__name__)


def _normalize_email(email: str) -> str:
    email = require_non_empty(email, "Email").lower()
    if "@" not in email:
        raise ValidationError("Email no válido")
    return email


class AuthService:
    """Use case: authenticate accounts and register new employees."""

    def __init__(self, accounts: AccountRepository, employees: EmployeeService):
        self._accounts = accounts
        self._employees = employees

    def authenticate(self, email: str, password: str) -> Principal:
        account = self._accounts.get_by_email((email or "").strip().lower())
        if not account or not account.is_active:
            raise AuthenticationError("Email o contraseña incorrectos")

        try:
            ok = check_password_hash(account.password_hash, password or "")
        except ValueError:
            # e.g. placeholder hashes like 'CHANGE_ME' or corrupted values
            ok = False

        if not ok:
            raise AuthenticationError("Email o contraseña incorrectos")

        employee = self._employees.ensure_profile(employee_id=account.user_id, email=account.email)
        logger.info("login %s", account.user_id)
        return Principal(user_id=account.user_id, email=account.email, name=employee.name, role=account.role)

    def signup(self, *, email: str, password: str, full_name: Optional[str] = None) -> Principal:
        email = _normalize_email(email)
        require_min_length(password, "Contraseña", 6)

        if self._accounts.get_by_email(email):
            raise ValidationError("Ya existe una cuenta con ese email")

        user_id = str(uuid.uuid4())
        self._accounts.create(
            user_id=user_id,
            email=email,
            password_hash=generate_password_hash(password),
            role=Role.EMPLOYEE,
        )
        employee = self._employees.ensure_profile(employee_id=user_id, email=email, full_name=full_name)
        logger.info("signup %s", user_id)
        return Principal(user_id=user_id, email=email, name=employee.name, role=Role.EMPLOYEE)
