from __future__ import annotations

from datetime import datetime

import pytest

from src.classroom_attendance.classroom_attendance.container import AttendancePolicy, build_services

from tests.fakes import (
    FixedClock,
    InMemoryAchievements,
    InMemoryRecords,
    InMemorySessions,
    InMemoryStats,
    InMemoryStore,
    InMemoryTimetable,
)


@pytest.fixture
def fixed_now() -> datetime:
    # A Monday morning.
    return datetime(2026, 2, 2, 9, 0, 0)


@pytest.fixture
def clock(fixed_now) -> FixedClock:
    return FixedClock(fixed_now)


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def services(store, clock):
    return build_services(
        timetable_repo=InMemoryTimetable(store),
        sessions_repo=InMemorySessions(store),
        records_repo=InMemoryRecords(store),
        stats_repo=InMemoryStats(store),
        achievements_repo=InMemoryAchievements(store),
        clock=clock,
        policy=AttendancePolicy(),
    )
