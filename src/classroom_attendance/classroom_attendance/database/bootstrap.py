"""Schema/seed helpers used by `scripts/` and by `create_app` in development."""
from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Iterable, Iterator

from .connection import DatabaseConnection, DBConfig

logger = logging.getLogger(__name__)

DEMO_ACHIEVEMENTS = (
    ("Perfect Scholar", "100% attendance in at least one subject", "Crown", {"type": "perfect_subject"}),
    ("Regular", "Overall attendance of 75% or more", "CheckCircle", {"type": "min_overall", "value": 75}),
    ("Clean Week", "No absences in the last 7 days", "Flame", {"type": "no_absent_days", "value": 7}),
    ("Clean Month", "No absences in the last 30 days", "Calendar", {"type": "no_absent_days", "value": 30}),
    ("All-Rounder", "At least 85% in every subject", "Shield", {"type": "all_subjects_min", "value": 85}),
    ("Half Century", "Attended 50 lectures", "Trophy", {"type": "min_total_attended", "value": 50}),
    (
        "Triple Threat",
        "Three subjects at 90% or more",
        "Star",
        {"type": "min_subjects_above_x", "percentage": 90, "count": 3},
    ),
)


def _strip_create_db_and_use(sql: str) -> str:
    # Keep schema.sql usable regardless of the configured database name.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    return re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)


def _iter_sql_statements(sql: str) -> Iterator[str]:
    # Split on ';' outside of quoted strings; enough for our own schema/seed files.
    buf: list[str] = []
    quote = ""
    escape = False

    for ch in sql:
        buf.append(ch)
        if escape:
            escape = False
        elif ch == "\\":
            escape = True
        elif quote:
            if ch == quote:
                quote = ""
        elif ch in {"'", '"'}:
            quote = ch
        elif ch == ";":
            stmt = "".join(buf[:-1]).strip()
            buf.clear()
            if stmt:
                yield stmt

    tail = "".join(buf).strip()
    if tail:
        yield tail


def _exec_all(conn_factory: DatabaseConnection, statements: Iterable[str]) -> None:
    conn = conn_factory.connect()
    try:
        cur = conn.cursor()
        for stmt in statements:
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()


def ensure_database_exists(db_config: dict) -> None:
    target = DBConfig.from_dict(db_config)
    conn = DatabaseConnection(target).connect(with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)
    sql = _strip_create_db_and_use(Path(schema_path).read_text(encoding="utf-8"))
    _exec_all(DatabaseConnection(DBConfig.from_dict(db_config)), _iter_sql_statements(sql))
    logger.info("Applied schema %s", schema_path)


def apply_seed_sql(db_config: dict, *, seed_path: str | Path) -> None:
    sql = _strip_create_db_and_use(Path(seed_path).read_text(encoding="utf-8"))
    _exec_all(DatabaseConnection(DBConfig.from_dict(db_config)), _iter_sql_statements(sql))
    logger.info("Applied seed %s", seed_path)


def ensure_demo_achievements(db_config: dict) -> int:
    """Insert the default badge set; existing titles are left untouched.

    Returns the number of achievements inserted.
    """

    conn = DatabaseConnection(DBConfig.from_dict(db_config)).connect()
    inserted = 0
    try:
        cur = conn.cursor()
        for title, description, icon, criteria in DEMO_ACHIEVEMENTS:
            cur.execute("SELECT id FROM achievements WHERE title=%s", (title,))
            if cur.fetchone():
                continue
            cur.execute(
                "INSERT INTO achievements(title, description, icon, criteria) VALUES(%s,%s,%s,%s)",
                (title, description, icon, json.dumps(criteria)),
            )
            inserted += 1
        conn.commit()
    finally:
        conn.close()
    return inserted


def list_tables(db_config: dict) -> list[str]:
    conn = DatabaseConnection(DBConfig.from_dict(db_config)).connect()
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
