from __future__ import annotations

from datetime import date
from typing import Mapping, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_time
from .model import DailyMarks, HistoryRow, MonthlySubjectRow, StudentProfile, SubjectTotal
from .repository import StatsRepository

_STUDENT_SELECT = """
    SELECT s.id, s.user_id, u.name, s.class_id, s.roll_no, s.is_active
    FROM students s
    JOIN users u ON u.id = s.user_id
"""


def _to_student(r: dict) -> StudentProfile:
    return StudentProfile(
        student_id=int(r["id"]),
        user_id=int(r["user_id"]),
        name=r["name"],
        class_id=int(r["class_id"]),
        roll_no=r.get("roll_no"),
        is_active=bool(r["is_active"]),
    )


class MySQLStatsRepository(StatsRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_student(self, student_id: int) -> Optional[StudentProfile]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_STUDENT_SELECT + " WHERE s.id=%s", (int(student_id),))
            r = fetchone(cur)
            return _to_student(r) if r else None

    def get_student_by_user(self, user_id: int) -> Optional[StudentProfile]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_STUDENT_SELECT + " WHERE s.user_id=%s AND s.is_active=1", (int(user_id),))
            r = fetchone(cur)
            return _to_student(r) if r else None

    def list_active_students(self, *, class_id: int) -> Sequence[StudentProfile]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _STUDENT_SELECT + " WHERE s.class_id=%s AND s.is_active=1 ORDER BY s.roll_no ASC",
                (int(class_id),),
            )
            return [_to_student(r) for r in fetchall(cur)]

    def subject_totals(self, *, class_id: int) -> Sequence[SubjectTotal]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT sub.id, sub.name, COUNT(DISTINCT asn.id) AS total_sessions
                FROM subjects sub
                JOIN faculty_subject_map fsm ON fsm.subject_id = sub.id
                LEFT JOIN timetable_slots ts ON ts.faculty_subject_map_id = fsm.id
                LEFT JOIN attendance_sessions asn ON asn.timetable_slot_id = ts.id AND asn.is_archived = 0
                WHERE fsm.class_id=%s
                GROUP BY sub.id, sub.name
                ORDER BY sub.name ASC
                """,
                (int(class_id),),
            )
            return [
                SubjectTotal(
                    subject_id=int(r["id"]),
                    subject_name=r["name"],
                    total_sessions=int(r["total_sessions"] or 0),
                )
                for r in fetchall(cur)
            ]

    def subject_attended(self, *, student_id: int, class_id: int) -> Mapping[int, int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT fsm.subject_id, COUNT(DISTINCT ar.id) AS attended
                FROM attendance_records ar
                JOIN attendance_sessions asn ON asn.id = ar.session_id
                JOIN timetable_slots ts ON ts.id = asn.timetable_slot_id
                JOIN faculty_subject_map fsm ON fsm.id = ts.faculty_subject_map_id
                WHERE ar.student_id=%s AND fsm.class_id=%s AND ar.status='P' AND asn.is_archived=0
                GROUP BY fsm.subject_id
                """,
                (int(student_id), int(class_id)),
            )
            return {int(r["subject_id"]): int(r["attended"]) for r in fetchall(cur)}

    def class_session_total(self, *, class_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COUNT(DISTINCT asn.id) AS total
                FROM attendance_sessions asn
                JOIN timetable_slots ts ON ts.id = asn.timetable_slot_id
                JOIN faculty_subject_map fsm ON fsm.id = ts.faculty_subject_map_id
                WHERE fsm.class_id=%s AND asn.is_archived=0
                """,
                (int(class_id),),
            )
            r = fetchone(cur)
            return int(r["total"]) if r else 0

    def class_attended_counts(self, *, class_id: int) -> Mapping[int, int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT ar.student_id, COUNT(DISTINCT ar.id) AS attended
                FROM attendance_records ar
                JOIN attendance_sessions asn ON asn.id = ar.session_id
                JOIN timetable_slots ts ON ts.id = asn.timetable_slot_id
                JOIN faculty_subject_map fsm ON fsm.id = ts.faculty_subject_map_id
                WHERE fsm.class_id=%s AND ar.status='P' AND asn.is_archived=0
                GROUP BY ar.student_id
                """,
                (int(class_id),),
            )
            return {int(r["student_id"]): int(r["attended"]) for r in fetchall(cur)}

    def absences_since(self, *, student_id: int, class_id: int, since: date) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COUNT(*) AS absences
                FROM attendance_records ar
                JOIN attendance_sessions asn ON asn.id = ar.session_id
                JOIN timetable_slots ts ON ts.id = asn.timetable_slot_id
                JOIN faculty_subject_map fsm ON fsm.id = ts.faculty_subject_map_id
                WHERE ar.student_id=%s AND fsm.class_id=%s AND ar.status='A'
                  AND asn.is_archived=0 AND asn.session_date >= %s
                """,
                (int(student_id), int(class_id), since),
            )
            r = fetchone(cur)
            return int(r["absences"]) if r else 0

    def history(self, *, student_id: int, class_id: int) -> Sequence[HistoryRow]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT asn.id, asn.session_date, sub.name AS subject, ts.start_time, ts.end_time,
                       ar.status, asn.locked
                FROM attendance_sessions asn
                JOIN timetable_slots ts ON ts.id = asn.timetable_slot_id
                JOIN faculty_subject_map fsm ON fsm.id = ts.faculty_subject_map_id
                JOIN subjects sub ON sub.id = fsm.subject_id
                LEFT JOIN attendance_records ar ON ar.session_id = asn.id AND ar.student_id = %s
                WHERE fsm.class_id=%s AND asn.is_archived=0
                ORDER BY asn.session_date DESC, ts.start_time DESC
                """,
                (int(student_id), int(class_id)),
            )
            return [
                HistoryRow(
                    session_id=int(r["id"]),
                    session_date=r["session_date"],
                    subject=r["subject"],
                    start_time=normalize_mysql_time(r["start_time"]),
                    end_time=normalize_mysql_time(r["end_time"]),
                    recorded=r.get("status"),
                    locked=bool(r["locked"]),
                )
                for r in fetchall(cur)
            ]

    def monthly_subject_counts(self, *, class_id: int, start: date, end: date) -> Sequence[MonthlySubjectRow]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT sub.name AS subject,
                       COUNT(DISTINCT asn.id) AS total_sessions,
                       COALESCE(SUM(ar.status = 'P'), 0) AS total_present
                FROM attendance_sessions asn
                JOIN timetable_slots ts ON ts.id = asn.timetable_slot_id
                JOIN faculty_subject_map fsm ON fsm.id = ts.faculty_subject_map_id
                JOIN subjects sub ON sub.id = fsm.subject_id
                LEFT JOIN attendance_records ar ON ar.session_id = asn.id
                WHERE fsm.class_id=%s AND asn.is_archived=0
                  AND asn.session_date >= %s AND asn.session_date < %s
                GROUP BY sub.id, sub.name
                ORDER BY sub.name ASC
                """,
                (int(class_id), start, end),
            )
            return [
                MonthlySubjectRow(
                    subject=r["subject"],
                    total_sessions=int(r["total_sessions"]),
                    total_present=int(r["total_present"]),
                )
                for r in fetchall(cur)
            ]

    def daily_mark_counts(self, *, first_day: date, last_day: date) -> Sequence[DailyMarks]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT asn.session_date,
                       COUNT(ar.id) AS marked,
                       COALESCE(SUM(ar.status = 'P'), 0) AS present
                FROM attendance_sessions asn
                LEFT JOIN attendance_records ar ON ar.session_id = asn.id
                WHERE asn.is_archived=0 AND asn.session_date BETWEEN %s AND %s
                GROUP BY asn.session_date
                ORDER BY asn.session_date ASC
                """,
                (first_day, last_day),
            )
            return [
                DailyMarks(
                    session_date=r["session_date"],
                    marked=int(r["marked"]),
                    present=int(r["present"]),
                )
                for r in fetchall(cur)
            ]
