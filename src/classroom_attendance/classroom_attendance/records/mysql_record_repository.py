from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from .model import AbuseCandidate, AttendanceRecord, AuditEntry
from .repository import RecordRepository

_RECORD_COLUMNS = "id, session_id, student_id, status, edit_count, marked_at"


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        record_id=int(r["id"]),
        session_id=int(r["session_id"]),
        student_id=int(r["student_id"]),
        status=AttendanceStatus(r["status"]),
        edit_count=int(r["edit_count"]),
        marked_at=r["marked_at"],
    )


class MySQLRecordRepository(RecordRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, record_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_RECORD_COLUMNS} FROM attendance_records WHERE id=%s", (int(record_id),))
            r = fetchone(cur)
            return _to_record(r) if r else None

    def get_for_session_student(self, *, session_id: int, student_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_RECORD_COLUMNS} FROM attendance_records WHERE session_id=%s AND student_id=%s",
                (int(session_id), int(student_id)),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def create_if_absent(
        self,
        *,
        session_id: int,
        student_id: int,
        status: AttendanceStatus,
        marked_at: datetime,
    ) -> Optional[int]:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                # INSERT ... SELECT so the lock/archive check and the insert are one statement.
                cur.execute(
                    """
                    INSERT INTO attendance_records(session_id, student_id, status, edit_count, marked_at)
                    SELECT id, %s, %s, 0, %s
                    FROM attendance_sessions
                    WHERE id=%s AND locked=0 AND is_archived=0
                    """,
                    (int(student_id), status.value, marked_at, int(session_id)),
                )
                if cur.rowcount != 1:
                    return None
                return int(cur.lastrowid)
        except Exception as e:
            if is_duplicate_key(e):
                return None
            raise

    def apply_edit(
        self,
        *,
        record_id: int,
        expected_edit_count: int,
        old_status: AttendanceStatus,
        new_status: AttendanceStatus,
        marked_at: datetime,
        editor_id: int,
        reason: str,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records ar
                JOIN attendance_sessions asn ON asn.id = ar.session_id
                SET ar.status=%s, ar.marked_at=%s, ar.edit_count=ar.edit_count + 1
                WHERE ar.id=%s AND ar.edit_count=%s AND asn.locked=0 AND asn.is_archived=0
                """,
                (new_status.value, marked_at, int(record_id), int(expected_edit_count)),
            )
            if cur.rowcount != 1:
                return False

            cur.execute(
                """
                INSERT INTO attendance_audit_logs(record_id, old_status, new_status, edited_by, reason, edited_at)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (int(record_id), old_status.value, new_status.value, int(editor_id), reason, marked_at),
            )
            return True

    def list_audit(self, *, record_id: int) -> Sequence[AuditEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT id, record_id, old_status, new_status, edited_by, reason, edited_at
                FROM attendance_audit_logs
                WHERE record_id=%s
                ORDER BY edited_at ASC, id ASC
                """,
                (int(record_id),),
            )
            return [
                AuditEntry(
                    audit_id=int(r["id"]),
                    record_id=int(r["record_id"]),
                    old_status=AttendanceStatus(r["old_status"]),
                    new_status=AttendanceStatus(r["new_status"]),
                    edited_by=int(r["edited_by"]),
                    reason=r["reason"],
                    edited_at=r["edited_at"],
                )
                for r in fetchall(cur)
            ]

    def list_abuse_candidates(self, *, edit_threshold: int) -> Sequence[AbuseCandidate]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT ar.id, ar.student_id, u.name AS student_name, ar.edit_count,
                       asn.session_date, sub.name AS subject
                FROM attendance_records ar
                JOIN students s ON s.id = ar.student_id
                JOIN users u ON u.id = s.user_id
                JOIN attendance_sessions asn ON asn.id = ar.session_id
                LEFT JOIN timetable_slots ts ON ts.id = asn.timetable_slot_id
                LEFT JOIN faculty_subject_map fsm ON fsm.id = ts.faculty_subject_map_id
                LEFT JOIN subjects sub ON sub.id = fsm.subject_id
                WHERE ar.edit_count > %s
                ORDER BY ar.edit_count DESC, ar.id ASC
                """,
                (int(edit_threshold),),
            )
            return [
                AbuseCandidate(
                    record_id=int(r["id"]),
                    student_id=int(r["student_id"]),
                    student_name=r["student_name"],
                    edit_count=int(r["edit_count"]),
                    session_date=r.get("session_date"),
                    subject=r.get("subject"),
                )
                for r in fetchall(cur)
            ]
