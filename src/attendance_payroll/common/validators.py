from __future__ import annotations

from typing import Optional

from ..core.constants import MAX_OVERTIME_RATE, MIN_OVERTIME_RATE
from ..core.exceptions import ValidationError
from .datetime_utils import parse_hhmm


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def require_non_negative(value, field_name: str) -> float:
    if value is None:
        raise ValidationError(f"{field_name} is required")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if number < 0:
        raise ValidationError(f"{field_name} must not be negative")
    return number


def optional_non_negative(value, field_name: str) -> Optional[float]:
    if value is None:
        return None
    return require_non_negative(value, field_name)


def require_month(month) -> int:
    if not isinstance(month, int) or not 1 <= month <= 12:
        raise ValidationError("month must be between 1 and 12")
    return month


def require_year(year) -> int:
    if not isinstance(year, int) or not 2000 <= year <= 2100:
        raise ValidationError("year must be between 2000 and 2100")
    return year


def require_percentage(value, field_name: str) -> Optional[float]:
    if value is None:
        return None
    number = require_non_negative(value, field_name)
    if number > 100:
        raise ValidationError(f"{field_name} must be at most 100")
    return number


def require_overtime_rate(value) -> float:
    number = require_non_negative(value, "overtime_rate")
    if not MIN_OVERTIME_RATE <= number <= MAX_OVERTIME_RATE:
        raise ValidationError(f"overtime_rate must be between {MIN_OVERTIME_RATE} and {MAX_OVERTIME_RATE}")
    return number


def require_hhmm(value: str, field_name: str) -> str:
    require_non_empty(value, field_name)
    parse_hhmm(value)
    return value.strip()


def require_coordinates(latitude, longitude) -> tuple[float, float]:
    try:
        lat = float(latitude)
        lon = float(longitude)
    except (TypeError, ValueError):
        raise ValidationError("latitude/longitude must be numbers")
    if not -90 <= lat <= 90:
        raise ValidationError("latitude must be between -90 and 90")
    if not -180 <= lon <= 180:
        raise ValidationError("longitude must be between -180 and 180")
    return lat, lon
