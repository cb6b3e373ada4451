from __future__ import annotations

import logging
import uuid
from typing import Optional, Sequence

from ..common.change_feed import ChangeFeed
from ..common.validators import require_non_empty
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, NotFoundError
from .model import Location
from .repository import LocationRepository

logger = logging.getLogger(__name__)


class LocationService:
    def __init__(self, locations: LocationRepository, *, change_feed: Optional[ChangeFeed] = None):
        self._locations = locations
        self._feed = change_feed

    def list_all(self) -> Sequence[Location]:
        return self._locations.list_all()

    def get(self, location_id: str) -> Location:
        location = self._locations.get_by_id(location_id)
        if not location:
            raise NotFoundError("Local no encontrado")
        return location

    def create(self, *, current_role: Role, name: str) -> Location:
        if current_role != Role.ADMIN:
            raise AuthorizationError("No tienes permiso")
        location_id = str(uuid.uuid4())
        self._locations.create(location_id=location_id, name=require_non_empty(name, "Nombre del local"), qr_token=str(uuid.uuid4()))
        logger.info("created location %s", location_id)
        if self._feed:
            self._feed.publish("locations", "insert", location_id)
        return self.get(location_id)

    def regenerate_token(self, *, current_role: Role, location_id: str) -> Location:
        """Issue a new QR token; previously printed codes stop working."""
        if current_role != Role.ADMIN:
            raise AuthorizationError("No tienes permiso")
        if not self._locations.set_token(location_id, str(uuid.uuid4())):
            raise NotFoundError("Local no encontrado")
        logger.info("regenerated QR token for location %s", location_id)
        if self._feed:
            self._feed.publish("locations", "update", location_id)
        return self.get(location_id)
