from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from .model import AttendanceSession, DaySummary, RosterRow
from .repository import SessionRepository

_SESSION_COLUMNS = "id, timetable_slot_id, session_date, locked, is_archived, created_at"


def _to_session(r: dict) -> AttendanceSession:
    return AttendanceSession(
        session_id=int(r["id"]),
        slot_id=int(r["timetable_slot_id"]),
        session_date=r["session_date"],
        locked=bool(r["locked"]),
        is_archived=bool(r["is_archived"]),
        created_at=r.get("created_at"),
    )


class MySQLSessionRepository(SessionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, session_id: int) -> Optional[AttendanceSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_SESSION_COLUMNS} FROM attendance_sessions WHERE id=%s", (int(session_id),))
            r = fetchone(cur)
            return _to_session(r) if r else None

    def find_live(self, *, slot_id: int, session_date: date) -> Optional[AttendanceSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_SESSION_COLUMNS}
                FROM attendance_sessions
                WHERE timetable_slot_id=%s AND session_date=%s AND is_archived=0
                """,
                (int(slot_id), session_date),
            )
            r = fetchone(cur)
            return _to_session(r) if r else None

    def create_if_absent(self, *, slot_id: int, session_date: date) -> Optional[int]:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    "INSERT INTO attendance_sessions(timetable_slot_id, session_date) VALUES(%s,%s)",
                    (int(slot_id), session_date),
                )
                return int(cur.lastrowid)
        except Exception as e:
            # uq_live_session rejected a second live session for the same slot and day.
            if is_duplicate_key(e):
                return None
            raise

    def mark_locked(self, *, session_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE attendance_sessions SET locked=1 WHERE id=%s", (int(session_id),))
            if cur.rowcount > 0:
                return True
            # rowcount is 0 for an already-locked row as well.
            cur.execute("SELECT id FROM attendance_sessions WHERE id=%s", (int(session_id),))
            return fetchone(cur) is not None

    def list_roster(self, *, session_id: int) -> Sequence[RosterRow]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT s.id AS student_id, u.name AS student_name, s.roll_no, ar.status
                FROM attendance_sessions asn
                JOIN timetable_slots ts ON ts.id = asn.timetable_slot_id
                JOIN faculty_subject_map fsm ON fsm.id = ts.faculty_subject_map_id
                JOIN students s ON s.class_id = fsm.class_id AND s.is_active = 1
                JOIN users u ON u.id = s.user_id
                LEFT JOIN attendance_records ar ON ar.session_id = asn.id AND ar.student_id = s.id
                WHERE asn.id=%s AND asn.is_archived=0
                ORDER BY s.roll_no ASC
                """,
                (int(session_id),),
            )
            return [
                RosterRow(
                    student_id=int(r["student_id"]),
                    student_name=r["student_name"],
                    roll_no=r.get("roll_no"),
                    status=AttendanceStatus(r["status"]) if r.get("status") else None,
                )
                for r in fetchall(cur)
            ]

    def summarize_day(self, *, session_date: date) -> DaySummary:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT
                    COUNT(*) AS total,
                    COALESCE(SUM(locked = 1), 0) AS completed,
                    COALESCE(SUM(locked = 0), 0) AS in_progress
                FROM attendance_sessions
                WHERE session_date=%s AND is_archived=0
                """,
                (session_date,),
            )
            r = fetchone(cur) or {}
            return DaySummary(
                total=int(r.get("total") or 0),
                completed=int(r.get("completed") or 0),
                in_progress=int(r.get("in_progress") or 0),
            )
