from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Location:
    """A site with its own QR check-in token."""

    location_id: str
    name: str
    qr_token: Optional[str] = None
