from __future__ import annotations

from typing import Any, Dict, Optional

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, require_field
from .model import Account
from .repository import AccountRepository


def _to_account(r: Dict[str, Any]) -> Account:
    return Account(
        user_id=str(require_field(r, "user_id")),
        email=str(require_field(r, "email")),
        password_hash=str(r.get("password_hash") or ""),
        role=Role(r.get("role") or Role.EMPLOYEE.value),
        is_active=bool(r.get("is_active", 1)),
    )


class MySQLAccountRepository(AccountRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: str) -> Optional[Account]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT user_id, email, password_hash, role, is_active FROM accounts WHERE user_id=%s",
                (user_id,),
            )
            r = fetchone(cur)
            return _to_account(r) if r else None

    def get_by_email(self, email: str) -> Optional[Account]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT user_id, email, password_hash, role, is_active FROM accounts WHERE email=%s",
                (email,),
            )
            r = fetchone(cur)
            return _to_account(r) if r else None

    def create(self, *, user_id: str, email: str, password_hash: str, role: Role) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO accounts (user_id, email, password_hash, role) VALUES (%s, %s, %s, %s)",
                (user_id, email, password_hash, role.value),
            )
