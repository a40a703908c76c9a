from __future__ import annotations

from datetime import timedelta

import pytest

from src.classroom_attendance.classroom_attendance.core.enums import AttendanceStatus, SessionState
from src.classroom_attendance.classroom_attendance.core.exceptions import (
    DuplicateSession,
    SessionNotFound,
    ValidationError,
)


def test_open_session_once_per_slot_per_day(services, store, clock):
    slot = store.add_slot(store.add_mapping())

    first = services.session_manager.open_session(slot.slot_id)
    with pytest.raises(DuplicateSession) as exc:
        services.session_manager.open_session(slot.slot_id)

    assert exc.value.existing_session_id == first
    assert store.sessions[first].session_date == clock.today()


def test_next_day_opens_a_new_session(services, store, clock):
    slot = store.add_slot(store.add_mapping())
    first = services.session_manager.open_session(slot.slot_id)
    clock.advance(days=1)

    assert services.session_manager.open_session(slot.slot_id) != first


def test_archived_session_frees_the_slot_day(services, store):
    slot = store.add_slot(store.add_mapping())
    first = services.session_manager.open_session(slot.slot_id)
    store.archive(first)

    second = services.session_manager.open_session(slot.slot_id)

    assert second != first
    assert services.session_manager.get_session(first).state == SessionState.ARCHIVED


def test_open_session_unknown_slot(services):
    with pytest.raises(ValidationError):
        services.session_manager.open_session(42)


def test_lost_insert_race_reports_duplicate(services, store, monkeypatch):
    slot = store.add_slot(store.add_mapping())
    repo = services.session_manager._sessions
    monkeypatch.setattr(repo, "find_live", lambda **kw: None)
    monkeypatch.setattr(repo, "create_if_absent", lambda **kw: None)

    with pytest.raises(DuplicateSession):
        services.session_manager.open_session(slot.slot_id)


def test_lock_is_idempotent(services, store):
    slot = store.add_slot(store.add_mapping())
    sid = services.session_manager.open_session(slot.slot_id)

    services.session_manager.lock_session(sid)
    services.session_manager.lock_session(sid)

    assert services.session_manager.get_session(sid).state == SessionState.LOCKED


def test_lock_unknown_session(services):
    with pytest.raises(SessionNotFound):
        services.session_manager.lock_session(5)


def test_roster_lists_class_students_with_status(services, store, fixed_now):
    m = store.add_mapping(class_id=1)
    slot = store.add_slot(m)
    a = store.add_student("Asha", roll_no="R1")
    b = store.add_student("Bilal", roll_no="R2")
    store.add_student("Other", class_id=2)
    store.add_student("Gone", active=False)
    session = store.add_session(slot, fixed_now.date())
    store.add_record(session, a, AttendanceStatus.PRESENT)

    roster = services.session_manager.session_roster(session.session_id)

    assert [(r.student_id, r.status) for r in roster] == [(a.student_id, AttendanceStatus.PRESENT), (b.student_id, None)]


def test_roster_hides_archived_sessions(services, store, fixed_now):
    session = store.add_session(store.add_slot(store.add_mapping()), fixed_now.date(), archived=True)
    with pytest.raises(SessionNotFound):
        services.session_manager.session_roster(session.session_id)


def test_today_summary_counts_locked_as_completed(services, store, fixed_now):
    slot = store.add_slot(store.add_mapping())
    today = fixed_now.date()
    store.add_session(slot, today, locked=True)
    store.add_session(store.add_slot(store.add_mapping(subject="Art")), today)
    store.add_session(slot, today - timedelta(days=1))

    summary = services.session_manager.today_summary()

    assert (summary.total, summary.completed, summary.in_progress) == (2, 1, 1)
