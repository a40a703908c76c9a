from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .achievements.mysql_achievement_repository import MySQLAchievementRepository
from .achievements.service import AchievementEvaluator
from .common.datetime_utils import Clock, SystemClock
from .core.constants import DEFAULT_ABUSE_EDIT_THRESHOLD, DEFAULT_DEFAULTER_THRESHOLD, DEFAULT_EDIT_WINDOW_MINUTES
from .database.connection import DatabaseConnection, DBConfig
from .records.mysql_record_repository import MySQLRecordRepository
from .records.service import RecordLedger
from .sessions.mysql_session_repository import MySQLSessionRepository
from .sessions.service import SessionManager
from .stats.mysql_stats_repository import MySQLStatsRepository
from .stats.service import AggregationService
from .timetable.mysql_timetable_repository import MySQLTimetableRepository
from .timetable.service import TimetableService


@dataclass(frozen=True)
class AttendancePolicy:
    edit_window_minutes: int = DEFAULT_EDIT_WINDOW_MINUTES
    abuse_edit_threshold: int = DEFAULT_ABUSE_EDIT_THRESHOLD
    defaulter_threshold: int = DEFAULT_DEFAULTER_THRESHOLD


@dataclass(frozen=True)
class Container:
    timetable_service: TimetableService
    session_manager: SessionManager
    record_ledger: RecordLedger
    aggregation_service: AggregationService
    achievement_evaluator: AchievementEvaluator


def build_services(
    *,
    timetable_repo,
    sessions_repo,
    records_repo,
    stats_repo,
    achievements_repo,
    clock: Optional[Clock] = None,
    policy: Optional[AttendancePolicy] = None,
) -> Container:
    """Wire services over any repository implementations (MySQL or in-memory)."""
    clock = clock or SystemClock()
    policy = policy or AttendancePolicy()

    aggregation_service = AggregationService(
        stats_repo, clock=clock, defaulter_threshold=policy.defaulter_threshold
    )
    return Container(
        timetable_service=TimetableService(timetable_repo, clock=clock),
        session_manager=SessionManager(sessions_repo, timetable_repo, clock=clock),
        record_ledger=RecordLedger(
            records_repo,
            sessions_repo,
            stats_repo,
            timetable_repo,
            clock=clock,
            edit_window_minutes=policy.edit_window_minutes,
            abuse_edit_threshold=policy.abuse_edit_threshold,
        ),
        aggregation_service=aggregation_service,
        achievement_evaluator=AchievementEvaluator(achievements_repo, aggregation_service, clock=clock),
    )


def build_container(*, db_config: dict, policy: Optional[AttendancePolicy] = None) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
    return build_services(
        timetable_repo=MySQLTimetableRepository(conn),
        sessions_repo=MySQLSessionRepository(conn),
        records_repo=MySQLRecordRepository(conn),
        stats_repo=MySQLStatsRepository(conn),
        achievements_repo=MySQLAchievementRepository(conn),
        policy=policy,
    )
