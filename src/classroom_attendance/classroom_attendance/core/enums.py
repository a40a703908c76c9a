from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Caller roles used for permission checks."""

    ADMIN = "admin"
    FACULTY = "faculty"
    STUDENT = "student"


class AttendanceStatus(str, Enum):
    """Stored as a single letter in the database."""

    PRESENT = "P"
    ABSENT = "A"

    @classmethod
    def parse(cls, value: str) -> "AttendanceStatus":
        if not isinstance(value, str):
            raise ValueError(f"Unknown attendance status: {value!r}")
        v = value.strip().upper()
        if v in {"P", "PRESENT"}:
            return cls.PRESENT
        if v in {"A", "ABSENT"}:
            return cls.ABSENT
        raise ValueError(f"Unknown attendance status: {value!r}")


class SessionState(str, Enum):
    OPEN = "OPEN"
    LOCKED = "LOCKED"
    ARCHIVED = "ARCHIVED"


class CriteriaKind(str, Enum):
    """Closed set of achievement criteria types (the `type` key of a descriptor)."""

    PERFECT_SUBJECT = "perfect_subject"
    MIN_OVERALL = "min_overall"
    NO_ABSENT_DAYS = "no_absent_days"
    ALL_SUBJECTS_MIN = "all_subjects_min"
    MIN_TOTAL_ATTENDED = "min_total_attended"
    MIN_SUBJECTS_ABOVE_X = "min_subjects_above_x"
