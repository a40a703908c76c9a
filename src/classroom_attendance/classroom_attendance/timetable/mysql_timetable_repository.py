from __future__ import annotations

from datetime import time
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_time
from .model import FacultySlotView, Mapping, TimetableSlot
from .repository import TimetableRepository


def _to_slot(r: dict) -> TimetableSlot:
    return TimetableSlot(
        slot_id=int(r["id"]),
        mapping_id=int(r["faculty_subject_map_id"]),
        day_of_week=int(r["day_of_week"]),
        start_time=normalize_mysql_time(r["start_time"]),
        end_time=normalize_mysql_time(r["end_time"]),
    )


class MySQLTimetableRepository(TimetableRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_mapping(self, mapping_id: int) -> Optional[Mapping]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT id, faculty_id, subject_id, class_id FROM faculty_subject_map WHERE id=%s",
                (int(mapping_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return Mapping(
                mapping_id=int(r["id"]),
                faculty_id=int(r["faculty_id"]),
                subject_id=int(r["subject_id"]),
                class_id=int(r["class_id"]),
            )

    def get_slot(self, slot_id: int) -> Optional[TimetableSlot]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT id, faculty_subject_map_id, day_of_week, start_time, end_time
                FROM timetable_slots
                WHERE id=%s
                """,
                (int(slot_id),),
            )
            r = fetchone(cur)
            return _to_slot(r) if r else None

    def list_slots_for_mapping_day(self, *, mapping_id: int, day_of_week: int) -> Sequence[TimetableSlot]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT id, faculty_subject_map_id, day_of_week, start_time, end_time
                FROM timetable_slots
                WHERE faculty_subject_map_id=%s AND day_of_week=%s
                ORDER BY start_time ASC
                """,
                (int(mapping_id), int(day_of_week)),
            )
            return [_to_slot(r) for r in fetchall(cur)]

    def create_slot(self, *, mapping_id: int, day_of_week: int, start_time: time, end_time: time) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO timetable_slots(faculty_subject_map_id, day_of_week, start_time, end_time)
                VALUES(%s,%s,%s,%s)
                """,
                (int(mapping_id), int(day_of_week), start_time, end_time),
            )
            return int(cur.lastrowid)

    def delete_slot(self, *, slot_id: int) -> bool:
        # Sessions, records and audit logs go with the slot via ON DELETE CASCADE.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM timetable_slots WHERE id=%s", (int(slot_id),))
            return cur.rowcount > 0

    def list_for_faculty_day(self, *, faculty_id: int, day_of_week: int) -> Sequence[FacultySlotView]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT ts.id, s.name AS subject, c.name AS class_name, ts.start_time, ts.end_time
                FROM timetable_slots ts
                JOIN faculty_subject_map fsm ON fsm.id = ts.faculty_subject_map_id
                JOIN subjects s ON s.id = fsm.subject_id
                JOIN classes c ON c.id = fsm.class_id
                WHERE fsm.faculty_id=%s AND ts.day_of_week=%s
                ORDER BY ts.start_time ASC
                """,
                (int(faculty_id), int(day_of_week)),
            )
            return [
                FacultySlotView(
                    slot_id=int(r["id"]),
                    subject=r["subject"],
                    class_name=r["class_name"],
                    start_time=normalize_mysql_time(r["start_time"]),
                    end_time=normalize_mysql_time(r["end_time"]),
                )
                for r in fetchall(cur)
            ]
