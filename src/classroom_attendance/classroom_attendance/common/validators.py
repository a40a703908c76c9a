from __future__ import annotations

from typing import Any

from ..core.constants import MAX_DAY_OF_WEEK
from ..core.exceptions import ValidationError


def require_non_empty(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def _require_int(value: Any, field_name: str) -> int:
    # True is an int subclass and 1.9 truncates; neither is an id.
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ValidationError(f"{field_name} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer")


def require_positive_id(value: Any, field_name: str) -> int:
    v = _require_int(value, field_name)
    if v <= 0:
        raise ValidationError(f"{field_name} must be positive")
    return v


def require_day_of_week(value: Any) -> int:
    v = _require_int(value, "day_of_week")
    if v < 0 or v > MAX_DAY_OF_WEEK:
        raise ValidationError(f"day_of_week must be between 0 and {MAX_DAY_OF_WEEK}")
    return v


def optional_text(value: Any, field_name: str, *, max_length: int) -> str:
    """Strip free text; None becomes "". Rejects non-strings and over-long values."""
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a string")
    v = value.strip()
    if len(v) > max_length:
        raise ValidationError(f"{field_name} must be at most {max_length} characters")
    return v
