from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError):
        raise ValidationError("Rango de fechas invalido.") from None


def now_utc() -> datetime:
    """Current UTC time.

    Note: Wrapped so tests can patch/mock easier.
    """
    return datetime.now(timezone.utc)


def to_store_precision(value: Optional[datetime]) -> Optional[datetime]:
    """Drop sub-millisecond digits, matching the DATETIME(3) columns."""
    if value is None:
        return None
    return value.replace(microsecond=value.microsecond // 1000 * 1000)


def as_utc(value: datetime, *, local_tz: Optional[ZoneInfo] = None) -> datetime:
    """Normalize a datetime to aware UTC.

    Naive values are read as ``local_tz`` when given, otherwise as UTC
    (that is how they are stored).
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=local_tz or timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value: str, *, local_tz: Optional[ZoneInfo] = None) -> datetime:
    """Parse an ISO-8601 timestamp (``Z`` suffix accepted) into aware UTC."""
    if not value or not str(value).strip():
        raise ValidationError("Fecha y hora obligatorias")
    raw = str(value).strip()
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        raise ValidationError(f"Fecha y hora no válidas: {value!r}") from None
    return as_utc(parsed, local_tz=local_tz)


def parse_optional_timestamp(value: Optional[str], *, local_tz: Optional[ZoneInfo] = None) -> Optional[datetime]:
    if value is None or not str(value).strip():
        return None
    return parse_timestamp(value, local_tz=local_tz)


def to_iso(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return as_utc(value).isoformat().replace("+00:00", "Z")


def range_bounds(start: date, end: date, tz: ZoneInfo) -> tuple[datetime, datetime]:
    """Local midnight of ``start`` to local 23:59:59.999 of ``end``, in UTC."""
    range_start = datetime.combine(start, time.min, tzinfo=tz)
    range_end = datetime.combine(end, time(23, 59, 59, 999000), tzinfo=tz)
    if range_end < range_start:
        raise ValidationError("Rango de fechas invalido.")
    return range_start.astimezone(timezone.utc), range_end.astimezone(timezone.utc)


def month_range(today: date, offset_months: int = 0) -> tuple[date, date]:
    """First and last calendar day of the month ``offset_months`` away from ``today``."""
    month_index = today.year * 12 + (today.month - 1) + offset_months
    year, month = divmod(month_index, 12)
    first = date(year, month + 1, 1)
    next_index = month_index + 1
    next_year, next_month = divmod(next_index, 12)
    last = date(next_year, next_month + 1, 1) - timedelta(days=1)
    return first, last
