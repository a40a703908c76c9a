from __future__ import annotations

import pytest

from src.classroom_attendance.classroom_attendance.common.validators import (
    optional_text,
    require_day_of_week,
    require_non_empty,
    require_positive_id,
)
from src.classroom_attendance.classroom_attendance.core.exceptions import ValidationError


@pytest.mark.parametrize("value,expected", [(3, 3), ("12", 12), (4.0, 4)])
def test_positive_id_accepts_integral_values(value, expected):
    assert require_positive_id(value, "id") == expected


@pytest.mark.parametrize("value", [True, False, 1.9, 0, -2, "abc", None, "1.5"])
def test_positive_id_rejects_everything_else(value):
    with pytest.raises(ValidationError):
        require_positive_id(value, "id")


@pytest.mark.parametrize("value", [True, 2.5, 7, "x"])
def test_day_of_week_rejects_bad_values(value):
    with pytest.raises(ValidationError):
        require_day_of_week(value)


def test_day_of_week_range():
    assert require_day_of_week(0) == 0
    assert require_day_of_week("6") == 6


@pytest.mark.parametrize("value", [None, "", "   ", 5, ["t"]])
def test_non_empty_requires_a_string(value):
    with pytest.raises(ValidationError):
        require_non_empty(value, "title")


def test_optional_text():
    assert optional_text(None, "reason", max_length=3) == ""
    assert optional_text("  ab  ", "reason", max_length=3) == "ab"
    with pytest.raises(ValidationError):
        optional_text("abcd", "reason", max_length=3)
    with pytest.raises(ValidationError):
        optional_text(12, "reason", max_length=3)
