from __future__ import annotations

from typing import Optional, Protocol

from ..core.enums import Role
from .model import Account


class AccountRepository(Protocol):
    """Repository port for login accounts.

    Note (DIP): services depend on this interface, not on a concrete DB.
    """

    def get_by_id(self, user_id: str) -> Optional[Account]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[Account]:
        raise NotImplementedError

    def create(self, *, user_id: str, email: str, password_hash: str, role: Role) -> None:
        raise NotImplementedError
