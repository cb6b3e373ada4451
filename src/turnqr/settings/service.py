from __future__ import annotations

import dataclasses
import logging
import uuid
from datetime import datetime, timedelta
from typing import Callable, Optional
from urllib.parse import quote

from ..common.change_feed import ChangeFeed
from ..common.datetime_utils import now_utc, to_store_precision
from ..common.validators import require_clock_time, require_positive_number
from ..core.constants import QR_POINT_PARAM
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, ConcurrentUpdateError, ValidationError
from ..locations.repository import LocationRepository
from .model import AppSettings
from .repository import SettingsRepository

logger = logging.getLogger(__name__)

_UNSET = object()


class SettingsService:
    """Use cases around the singleton settings row.

    Every write checks the ``updated_at`` version the caller last saw, so two
    administrators cannot silently overwrite each other.
    """

    def __init__(
        self,
        settings: SettingsRepository,
        locations: LocationRepository,
        *,
        change_feed: Optional[ChangeFeed] = None,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._settings = settings
        self._locations = locations
        self._feed = change_feed
        self._clock = clock

    def get(self) -> AppSettings:
        return self._settings.get() or AppSettings()

    def _write(self, current: AppSettings, updated: AppSettings, expected_updated_at) -> AppSettings:
        if expected_updated_at is not _UNSET and expected_updated_at != current.updated_at:
            raise ConcurrentUpdateError("Los ajustes han cambiado. Recarga e inténtalo de nuevo.")

        now = to_store_precision(self._clock())
        if current.updated_at is not None and now <= current.updated_at:
            # Keep versions strictly increasing even with coarse clocks.
            now = current.updated_at + timedelta(milliseconds=1)

        updated = dataclasses.replace(updated, updated_at=now)
        if not self._settings.save(updated, expected_updated_at=current.updated_at, updated_at=now):
            raise ConcurrentUpdateError("Los ajustes han cambiado. Recarga e inténtalo de nuevo.")

        if self._feed:
            self._feed.publish("app_settings", "update")
        return updated

    def update(
        self,
        *,
        current_role: Role,
        business_name: str,
        opening_time: str,
        max_shift_hours,
        qr_token: Optional[str],
        expected_updated_at=_UNSET,
    ) -> AppSettings:
        if current_role != Role.ADMIN:
            raise AuthorizationError("No tienes permiso")

        current = self.get()
        updated = dataclasses.replace(
            current,
            business_name=(business_name or "").strip(),
            opening_time=require_clock_time(opening_time, "Hora de apertura"),
            max_shift_hours=require_positive_number(max_shift_hours, "Horas máximas"),
            qr_token=(qr_token or "").strip() or None,
        )
        saved = self._write(current, updated, expected_updated_at)
        logger.info("settings updated")
        return saved

    def select_location(self, *, current_role: Role, location_id: Optional[str], expected_updated_at=_UNSET) -> AppSettings:
        if current_role != Role.ADMIN:
            raise AuthorizationError("No tienes permiso")
        if location_id and not self._locations.get_by_id(location_id):
            raise ValidationError("Local no encontrado")

        current = self.get()
        saved = self._write(current, dataclasses.replace(current, selected_location_id=location_id or None), expected_updated_at)
        logger.info("selected location -> %s", location_id)
        return saved

    def regenerate_qr_token(self, *, current_role: Role, expected_updated_at=_UNSET) -> AppSettings:
        if current_role != Role.ADMIN:
            raise AuthorizationError("No tienes permiso")
        current = self.get()
        saved = self._write(current, dataclasses.replace(current, qr_token=str(uuid.uuid4())), expected_updated_at)
        logger.info("global QR token regenerated")
        return saved

    def resolve_active_location_id(self) -> Optional[str]:
        """Selected location, falling back to the first location by name."""
        selected = self.get().selected_location_id
        if selected:
            return selected
        locations = self._locations.list_all()
        return locations[0].location_id if locations else None


def qr_check_in_url(base_url: str, token: str) -> str:
    """URL encoded into a printed QR code."""
    return f"{base_url.rstrip('/')}/clock?{QR_POINT_PARAM}={quote(token, safe='')}"