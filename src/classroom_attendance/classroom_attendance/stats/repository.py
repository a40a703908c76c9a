from __future__ import annotations

from datetime import date
from typing import Mapping, Optional, Protocol, Sequence

from .model import DailyMarks, HistoryRow, MonthlySubjectRow, StudentProfile, SubjectTotal


class StatsRepository(Protocol):
    """Read-only queries over the ledger. Archived sessions never count."""

    def get_student(self, student_id: int) -> Optional[StudentProfile]:
        raise NotImplementedError

    def get_student_by_user(self, user_id: int) -> Optional[StudentProfile]:
        raise NotImplementedError

    def list_active_students(self, *, class_id: int) -> Sequence[StudentProfile]:
        raise NotImplementedError

    def subject_totals(self, *, class_id: int) -> Sequence[SubjectTotal]:
        """Every subject mapped to the class with its distinct live session count (0 allowed)."""

        raise NotImplementedError

    def subject_attended(self, *, student_id: int, class_id: int) -> Mapping[int, int]:
        """subject_id -> distinct Present records of the student in the class's sessions."""

        raise NotImplementedError

    def class_session_total(self, *, class_id: int) -> int:
        raise NotImplementedError

    def class_attended_counts(self, *, class_id: int) -> Mapping[int, int]:
        """student_id -> Present records restricted to sessions under the class's mappings."""

        raise NotImplementedError

    def absences_since(self, *, student_id: int, class_id: int, since: date) -> int:
        """Absent records of the student on or after `since`, in sessions of the class only."""

        raise NotImplementedError

    def history(self, *, student_id: int, class_id: int) -> Sequence[HistoryRow]:
        raise NotImplementedError

    def monthly_subject_counts(self, *, class_id: int, start: date, end: date) -> Sequence[MonthlySubjectRow]:
        """Subjects of the class with sessions in [start, end), ordered by subject name."""

        raise NotImplementedError

    def daily_mark_counts(self, *, first_day: date, last_day: date) -> Sequence[DailyMarks]:
        """One row per date with live sessions in [first_day, last_day], oldest first."""

        raise NotImplementedError
