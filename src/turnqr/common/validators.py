from __future__ import annotations

from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} no es válido")
    return value.strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} debe tener al menos {min_len} caracteres")
    return value


def require_positive_number(value, field_name: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} no es válido") from None
    if number <= 0:
        raise ValidationError(f"{field_name} debe ser mayor que cero")
    return number


def require_clock_time(value: str, field_name: str) -> str:
    """Accept HH:MM (24h)."""
    value = require_non_empty(value, field_name)
    parts = value.split(":")
    if len(parts) != 2 or not all(p.isdigit() for p in parts):
        raise ValidationError(f"{field_name} no es válido")
    hours, minutes = int(parts[0]), int(parts[1])
    if not (0 <= hours < 24 and 0 <= minutes < 60):
        raise ValidationError(f"{field_name} no es válido")
    return f"{hours:02d}:{minutes:02d}"
