from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import Achievement
from .repository import AchievementRepository


class MySQLAchievementRepository(AchievementRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_all(self) -> Sequence[Achievement]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT id, title, description, icon, criteria FROM achievements ORDER BY id ASC")
            return [
                Achievement(
                    achievement_id=int(r["id"]),
                    title=r["title"],
                    description=r.get("description"),
                    icon=r.get("icon") or "Award",
                    criteria=r.get("criteria") or "",
                )
                for r in fetchall(cur)
            ]

    def create(self, *, title: str, description: Optional[str], icon: str, criteria: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO achievements(title, description, icon, criteria) VALUES(%s,%s,%s,%s)",
                (title, description, icon, criteria),
            )
            return int(cur.lastrowid)

    def unlocked_ids(self, *, student_id: int) -> set[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT achievement_id FROM student_achievements WHERE student_id=%s", (int(student_id),))
            return {int(r["achievement_id"]) for r in fetchall(cur)}

    def insert_unlock_if_absent(self, *, student_id: int, achievement_id: int, unlocked_at: datetime) -> bool:
        # uq_student_achievement turns a concurrent duplicate into a no-op.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT IGNORE INTO student_achievements(student_id, achievement_id, unlocked_at)
                VALUES(%s,%s,%s)
                """,
                (int(student_id), int(achievement_id), unlocked_at),
            )
            return cur.rowcount == 1
