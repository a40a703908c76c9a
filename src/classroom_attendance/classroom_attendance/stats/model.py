from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time
from typing import Optional


def attendance_percentage(attended: int, total: int) -> int:
    """Whole-number percentage rounded half up; 0 when there were no sessions."""
    if total <= 0:
        return 0
    return (attended * 200 + total) // (total * 2)


@dataclass(frozen=True)
class StudentProfile:
    """Read-only view of a student supplied by the CRUD layer."""

    student_id: int
    user_id: int
    name: str
    class_id: int
    roll_no: Optional[str] = None
    is_active: bool = True


@dataclass(frozen=True)
class SubjectTotal:
    subject_id: int
    subject_name: str
    total_sessions: int


@dataclass(frozen=True)
class SubjectStats:
    subject_id: int
    name: str
    total_classes: int
    attended: int
    percentage: int

    @property
    def code(self) -> str:
        return self.name[:3].upper()


@dataclass(frozen=True)
class OverallStats:
    total_classes: int
    attended: int
    percentage: int


@dataclass(frozen=True)
class DefaulterRow:
    student_id: int
    name: str
    roll_no: Optional[str]
    total_classes: int
    attended: int
    percentage: int


@dataclass(frozen=True)
class LeaderboardEntry:
    rank: int
    student_id: int
    name: str
    attended: int
    total_classes: int
    percentage: int
    is_current_user: bool = False


@dataclass(frozen=True)
class HistoryRow:
    """Raw history line; `recorded` is None when the student was never marked."""

    session_id: int
    session_date: date
    subject: str
    start_time: time
    end_time: time
    recorded: Optional[str]
    locked: bool


@dataclass(frozen=True)
class HistoryEntry:
    session_id: int
    session_date: date
    subject: str
    start_time: time
    end_time: time
    status: str


@dataclass(frozen=True)
class MonthlySubjectRow:
    """Per-subject totals of one class for one calendar month."""

    subject: str
    total_sessions: int
    total_present: int


@dataclass(frozen=True)
class DailyMarks:
    session_date: date
    marked: int
    present: int


@dataclass(frozen=True)
class TrendPoint:
    day: date
    # None when the day had sessions but nobody was marked yet
    percentage: Optional[int]

    @property
    def label(self) -> str:
        return self.day.strftime("%a")
