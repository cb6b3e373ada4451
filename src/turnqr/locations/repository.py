from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Location


class LocationRepository(Protocol):
    def get_by_id(self, location_id: str) -> Optional[Location]:
        raise NotImplementedError

    def list_all(self) -> Sequence[Location]:
        """Locations ordered by name."""
        raise NotImplementedError

    def create(self, *, location_id: str, name: str, qr_token: Optional[str]) -> None:
        raise NotImplementedError

    def set_token(self, location_id: str, qr_token: Optional[str]) -> bool:
        raise NotImplementedError
