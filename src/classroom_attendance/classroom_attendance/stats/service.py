from __future__ import annotations

from datetime import date, timedelta
from typing import Optional, Sequence

from ..common.datetime_utils import Clock, SystemClock
from ..common.validators import require_positive_id
from ..core.constants import DEFAULT_DEFAULTER_THRESHOLD, DEFAULT_TREND_DAYS
from ..core.enums import AttendanceStatus
from ..core.exceptions import StudentNotFound, ValidationError
from .model import (
    DefaulterRow,
    HistoryEntry,
    LeaderboardEntry,
    MonthlySubjectRow,
    OverallStats,
    StudentProfile,
    SubjectStats,
    SubjectTotal,
    TrendPoint,
    attendance_percentage,
)
from .repository import StatsRepository


class AggregationService:
    """Percentages, defaulters and leaderboards derived from the ledger. Never writes."""

    def __init__(
        self,
        stats: StatsRepository,
        *,
        clock: Optional[Clock] = None,
        defaulter_threshold: int = DEFAULT_DEFAULTER_THRESHOLD,
    ):
        self._stats = stats
        self._clock = clock or SystemClock()
        self._defaulter_threshold = int(defaulter_threshold)

    def get_student(self, student_id: int) -> StudentProfile:
        student = self._stats.get_student(require_positive_id(student_id, "student_id"))
        if not student or not student.is_active:
            raise StudentNotFound(f"student {student_id} not found")
        return student

    def student_for_user(self, user_id: int) -> StudentProfile:
        """Resolve the caller's own student profile (students may only read their own stats)."""
        student = self._stats.get_student_by_user(require_positive_id(user_id, "user_id"))
        if not student:
            raise StudentNotFound(f"no active student profile for user {user_id}")
        return student

    def _subject_stats(self, student: StudentProfile, totals: Sequence[SubjectTotal]) -> list[SubjectStats]:
        attended = self._stats.subject_attended(student_id=student.student_id, class_id=student.class_id)
        out: list[SubjectStats] = []
        for t in totals:
            a = int(attended.get(t.subject_id, 0))
            out.append(
                SubjectStats(
                    subject_id=t.subject_id,
                    name=t.subject_name,
                    total_classes=t.total_sessions,
                    attended=a,
                    percentage=attendance_percentage(a, t.total_sessions),
                )
            )
        return out

    @staticmethod
    def summarize_overall(subjects: Sequence[SubjectStats]) -> OverallStats:
        total = sum(s.total_classes for s in subjects)
        attended = sum(s.attended for s in subjects)
        return OverallStats(total_classes=total, attended=attended, percentage=attendance_percentage(attended, total))

    def student_subject_stats(self, student_id: int) -> list[SubjectStats]:
        student = self.get_student(student_id)
        return self._subject_stats(student, self._stats.subject_totals(class_id=student.class_id))

    def overall_percentage(self, student_id: int) -> OverallStats:
        return self.summarize_overall(self.student_subject_stats(student_id))

    def defaulters(self, class_id: int) -> list[DefaulterRow]:
        """Active students below the threshold, including those with no sessions at all (0%)."""
        class_id = require_positive_id(class_id, "class_id")
        totals = self._stats.subject_totals(class_id=class_id)

        out: list[DefaulterRow] = []
        for student in self._stats.list_active_students(class_id=class_id):
            overall = self.summarize_overall(self._subject_stats(student, totals))
            if overall.percentage < self._defaulter_threshold:
                out.append(
                    DefaulterRow(
                        student_id=student.student_id,
                        name=student.name,
                        roll_no=student.roll_no,
                        total_classes=overall.total_classes,
                        attended=overall.attended,
                        percentage=overall.percentage,
                    )
                )
        return out

    def leaderboard(self, class_id: int, *, current_student_id: Optional[int] = None) -> list[LeaderboardEntry]:
        """Rank by percentage desc, then name (case-insensitive). Ranks are positional: no ties."""
        class_id = require_positive_id(class_id, "class_id")
        total = self._stats.class_session_total(class_id=class_id)
        attended = self._stats.class_attended_counts(class_id=class_id)

        rows = []
        for student in self._stats.list_active_students(class_id=class_id):
            a = int(attended.get(student.student_id, 0))
            rows.append((student, a, attendance_percentage(a, total)))

        rows.sort(key=lambda r: (-r[2], r[0].name.casefold()))

        return [
            LeaderboardEntry(
                rank=rank,
                student_id=student.student_id,
                name=student.name,
                attended=a,
                total_classes=total,
                percentage=pct,
                is_current_user=student.student_id == current_student_id,
            )
            for rank, (student, a, pct) in enumerate(rows, start=1)
        ]

    def attendance_history(self, student_id: int) -> list[HistoryEntry]:
        student = self.get_student(student_id)
        out: list[HistoryEntry] = []
        for r in self._stats.history(student_id=student.student_id, class_id=student.class_id):
            if r.recorded == AttendanceStatus.PRESENT.value:
                status = "Present"
            elif r.recorded == AttendanceStatus.ABSENT.value or r.locked:
                # Never marked before the session locked counts as absent.
                status = "Absent"
            else:
                status = "Not Marked"
            out.append(
                HistoryEntry(
                    session_id=r.session_id,
                    session_date=r.session_date,
                    subject=r.subject,
                    start_time=r.start_time,
                    end_time=r.end_time,
                    status=status,
                )
            )
        return out

    def absences_since(self, student_id: int, since: date) -> int:
        student = self.get_student(student_id)
        return self._stats.absences_since(student_id=student.student_id, class_id=student.class_id, since=since)

    def monthly_class_report(self, class_id: int, year: int, month: int) -> Sequence[MonthlySubjectRow]:
        class_id = require_positive_id(class_id, "class_id")
        year = require_positive_id(year, "year")
        month = require_positive_id(month, "month")
        if month > 12 or year > 9999:
            raise ValidationError("year/month out of range")

        start = date(year, month, 1)
        end = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
        return self._stats.monthly_subject_counts(class_id=class_id, start=start, end=end)

    def attendance_trend(self, days: int = DEFAULT_TREND_DAYS) -> list[TrendPoint]:
        """Daily present percentage over today and the days-1 before it.

        Days without live sessions are left out; a day whose sessions have no marks yet has no percentage.
        """
        days = require_positive_id(days, "days")
        if days > 366:
            raise ValidationError("days must be at most 366")

        today = self._clock.today()
        rows = self._stats.daily_mark_counts(first_day=today - timedelta(days=days - 1), last_day=today)
        return [
            TrendPoint(
                day=r.session_date,
                percentage=attendance_percentage(r.present, r.marked) if r.marked else None,
            )
            for r in rows
        ]
