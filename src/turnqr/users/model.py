from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import Role


@dataclass(frozen=True)
class Account:
    """Domain entity: login account.

    Note: plain data object (no DB access). ``user_id`` doubles as the
    employee id.
    """

    user_id: str
    email: str
    password_hash: str
    role: Role
    is_active: bool = True


@dataclass(frozen=True)
class Principal:
    """The authenticated caller, as stored in the Flask session."""

    user_id: str
    email: str
    name: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN
