from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, require_field
from .model import Location
from .repository import LocationRepository


def _to_location(r: Dict[str, Any]) -> Location:
    return Location(
        location_id=str(require_field(r, "location_id")),
        name=str(require_field(r, "name")),
        qr_token=r.get("qr_token") or None,
    )


class MySQLLocationRepository(LocationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, location_id: str) -> Optional[Location]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT location_id, name, qr_token FROM locations WHERE location_id=%s", (location_id,))
            r = fetchone(cur)
            return _to_location(r) if r else None

    def list_all(self) -> Sequence[Location]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT location_id, name, qr_token FROM locations ORDER BY name ASC")
            return [_to_location(r) for r in fetchall(cur)]

    def create(self, *, location_id: str, name: str, qr_token: Optional[str]) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO locations (location_id, name, qr_token) VALUES (%s, %s, %s)",
                (location_id, name, qr_token),
            )

    def set_token(self, location_id: str, qr_token: Optional[str]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE locations SET qr_token=%s WHERE location_id=%s", (qr_token, location_id))
            return cur.rowcount > 0
