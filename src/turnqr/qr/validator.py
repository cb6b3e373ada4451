from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import parse_qs, urlsplit

from ..core.constants import QR_POINT_PARAM
from ..core.enums import RejectionReason
from ..core.exceptions import NotFoundError, TokenRejected
from ..employees.model import Employee
from ..locations.repository import LocationRepository
from ..settings.repository import SettingsRepository

logger = logging.getLogger(__name__)


def extract_token(payload: Optional[str]) -> Optional[str]:
    """Pull the token out of a scanned payload.

    A URL carrying a ``point`` query parameter (also inside a ``#/route?``
    fragment) yields that parameter; anything else is taken as the raw token.
    """
    if payload is None:
        return None
    raw = payload.strip()
    if not raw:
        return None

    if "://" in raw or raw.startswith("/") or "?" in raw:
        parts = urlsplit(raw)
        for query in (parts.query, urlsplit(parts.fragment).query if parts.fragment else ""):
            values = parse_qs(query).get(QR_POINT_PARAM)
            if values and values[0].strip():
                return values[0].strip()
        if "://" in raw or raw.startswith(("/", "?")):
            return None

    return raw


def presented_token(*candidates: Optional[str]) -> Optional[str]:
    """First non-empty token among fresh payloads and the cached one."""
    for candidate in candidates:
        token = extract_token(candidate)
        if token:
            return token
    return None


@dataclass(frozen=True)
class TokenCheck:
    accepted: bool
    reason: Optional[RejectionReason] = None
    location_id: Optional[str] = None

    def raise_if_rejected(self) -> "TokenCheck":
        if not self.accepted:
            raise TokenRejected(self.reason)
        return self


class TokenValidator:
    """Decide whether a presented token authorizes a clock-in.

    Tokens are compared verbatim. Per-location tokens take precedence; when
    no location has one, the single global token from settings applies.
    """

    def __init__(self, locations: LocationRepository, settings: SettingsRepository):
        self._locations = locations
        self._settings = settings

    def check(
        self,
        token: Optional[str],
        *,
        employee: Optional[Employee] = None,
        location_id: Optional[str] = None,
    ) -> TokenCheck:
        if location_id is not None:
            location = self._locations.get_by_id(location_id)
            if location is None:
                raise NotFoundError("Local no encontrado")
            expected = {location.qr_token: location.location_id} if location.qr_token else {}
        else:
            expected = {loc.qr_token: loc.location_id for loc in self._locations.list_all() if loc.qr_token}
            if not expected:
                settings = self._settings.get()
                if settings and settings.qr_token:
                    # Single-location deployment: no location bound to the token.
                    expected = {settings.qr_token: None}

        if not expected:
            return self._reject(RejectionReason.UNCONFIGURED)
        if not token:
            return self._reject(RejectionReason.ABSENT)
        if token not in expected:
            return self._reject(RejectionReason.MISMATCHED)

        matched_location = expected[token]
        if (
            matched_location is not None
            and employee is not None
            and employee.location_ids
            and not employee.is_assigned_to(matched_location)
        ):
            return self._reject(RejectionReason.UNASSIGNED_LOCATION, matched_location)

        return TokenCheck(accepted=True, location_id=matched_location)

    def require(self, token: Optional[str], **kwargs) -> TokenCheck:
        return self.check(token, **kwargs).raise_if_rejected()

    @staticmethod
    def _reject(reason: RejectionReason, location_id: Optional[str] = None) -> TokenCheck:
        logger.debug("QR token rejected: %s", reason.value)
        return TokenCheck(accepted=False, reason=reason, location_id=location_id)
