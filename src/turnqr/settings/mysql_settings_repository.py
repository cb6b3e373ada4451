from __future__ import annotations

from datetime import datetime
from typing import Optional

import mysql.connector

from ..core.constants import SETTINGS_ROW_ID
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, from_db_datetime, to_db_datetime
from .model import AppSettings
from .repository import SettingsRepository


class MySQLSettingsRepository(SettingsRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self) -> Optional[AppSettings]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT business_name, opening_time, max_shift_hours, qr_token, selected_location_id, updated_at
                FROM app_settings
                WHERE id=%s
                """,
                (SETTINGS_ROW_ID,),
            )
            r = fetchone(cur)
            if not r:
                return None
            return AppSettings(
                business_name=r.get("business_name") or "",
                opening_time=r.get("opening_time") or AppSettings.opening_time,
                max_shift_hours=float(r.get("max_shift_hours") or AppSettings.max_shift_hours),
                qr_token=r.get("qr_token") or None,
                selected_location_id=r.get("selected_location_id") or None,
                updated_at=from_db_datetime(r.get("updated_at")),
            )

    def save(self, settings: AppSettings, *, expected_updated_at: Optional[datetime], updated_at: datetime) -> bool:
        values = (
            settings.business_name,
            settings.opening_time,
            settings.max_shift_hours,
            settings.qr_token,
            settings.selected_location_id,
            to_db_datetime(updated_at),
        )
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                if expected_updated_at is None:
                    cur.execute(
                        """
                        INSERT INTO app_settings
                            (business_name, opening_time, max_shift_hours, qr_token, selected_location_id, updated_at, id)
                        VALUES (%s, %s, %s, %s, %s, %s, %s)
                        """,
                        values + (SETTINGS_ROW_ID,),
                    )
                    return True

                cur.execute(
                    """
                    UPDATE app_settings
                    SET business_name=%s, opening_time=%s, max_shift_hours=%s,
                        qr_token=%s, selected_location_id=%s, updated_at=%s
                    WHERE id=%s AND updated_at=%s
                    """,
                    values + (SETTINGS_ROW_ID, to_db_datetime(expected_updated_at)),
                )
                return cur.rowcount > 0
        except mysql.connector.IntegrityError:
            # Row was created concurrently.
            return False
