from __future__ import annotations

import json
from datetime import timedelta

import pytest

from src.classroom_attendance.classroom_attendance.core.enums import AttendanceStatus
from src.classroom_attendance.classroom_attendance.core.exceptions import StudentNotFound, ValidationError


def _history(store, student, statuses, today, *, class_id=1):
    slot = store.add_slot(store.add_mapping(class_id=class_id))
    for i, status in enumerate(statuses):
        session = store.add_session(slot, today - timedelta(days=i), locked=True)
        store.add_record(session, student, status)


def _by_title(statuses):
    return {s.title: s for s in statuses}


P, A = AttendanceStatus.PRESENT, AttendanceStatus.ABSENT


def test_min_overall_unlocks_once(services, store, fixed_now):
    student = store.add_student("Asha")
    _history(store, student, [P, P, P, A], fixed_now.date())
    store.add_achievement("Regular", '{"type": "min_overall", "value": 75}')

    first = _by_title(services.achievement_evaluator.evaluate(student.student_id))
    second = _by_title(services.achievement_evaluator.evaluate(student.student_id))

    assert first["Regular"].unlocked and first["Regular"].newly_unlocked
    assert second["Regular"].unlocked and not second["Regular"].newly_unlocked
    assert list(store.unlocks) == [(student.student_id, 1)]


def test_min_overall_below_threshold_stays_locked(services, store, fixed_now):
    student = store.add_student("Asha")
    _history(store, student, [P, P, A, A], fixed_now.date())
    store.add_achievement("Regular", '{"type": "min_overall", "value": 75}')

    [status] = services.achievement_evaluator.evaluate(student.student_id)

    assert not status.unlocked
    assert store.unlocks == {}


def test_already_unlocked_is_not_reevaluated(services, store, fixed_now):
    student = store.add_student("Asha")
    a = store.add_achievement("Regular", '{"type": "min_overall", "value": 75}')
    store.unlocks[(student.student_id, a.achievement_id)] = fixed_now
    repo = services.achievement_evaluator._achievements

    [status] = services.achievement_evaluator.evaluate(student.student_id)

    # No sessions at all, yet still reported unlocked.
    assert status.unlocked
    assert repo.insert_calls == 0


def test_malformed_criteria_is_skipped(services, store, fixed_now, caplog):
    student = store.add_student("Asha")
    _history(store, student, [P], fixed_now.date())
    store.add_achievement("Broken", "{not json")
    store.add_achievement("Mystery", '{"type": "moon_phase"}')
    store.add_achievement("First", '{"type": "min_total_attended", "value": 1}')

    with caplog.at_level("WARNING"):
        statuses = _by_title(services.achievement_evaluator.evaluate(student.student_id))

    assert not statuses["Broken"].unlocked
    assert not statuses["Mystery"].unlocked
    assert statuses["First"].unlocked
    assert "Skipping achievement" in caplog.text


def test_absence_window_covers_today_and_previous_days(services, store, fixed_now):
    student = store.add_student("Asha")
    # Absent exactly 7 days ago: outside the 7-day window, inside the 30-day one.
    _history(store, student, [P, P, P, P, P, P, P, A], fixed_now.date())
    store.add_achievement("Week", '{"type": "no_absent_days", "value": 7}')
    store.add_achievement("Month", '{"type": "no_absent_days", "value": 30}')

    statuses = _by_title(services.achievement_evaluator.evaluate(student.student_id))

    assert statuses["Week"].unlocked
    assert not statuses["Month"].unlocked


def test_unknown_student(services):
    with pytest.raises(StudentNotFound):
        services.achievement_evaluator.evaluate(404)


def test_define_achievement_validates_and_stores_json(services, store):
    aid = services.achievement_evaluator.define_achievement(
        title="Perfect",
        description=None,
        icon=None,
        criteria={"type": "perfect_subject"},
    )

    stored = store.achievements[aid]
    assert json.loads(stored.criteria) == {"type": "perfect_subject"}
    assert stored.icon == "Award"

    with pytest.raises(ValidationError):
        services.achievement_evaluator.define_achievement(
            title="Bad", description=None, icon=None, criteria={"type": "min_overall", "value": 200}
        )


def test_absences_outside_the_students_class_are_ignored(services, store, fixed_now):
    student = store.add_student("Transfer", class_id=2)
    _history(store, student, [P, P], fixed_now.date(), class_id=2)
    # An Absent left over in another class's session, e.g. from before a transfer.
    foreign = store.add_session(store.add_slot(store.add_mapping(class_id=1, subject="Art")), fixed_now.date())
    store.add_record(foreign, student, A)
    store.add_achievement("Week", '{"type": "no_absent_days", "value": 7}')

    [status] = services.achievement_evaluator.evaluate(student.student_id)

    assert status.unlocked


@pytest.mark.parametrize(
    "fields",
    [
        {"title": 5},
        {"title": "x" * 101},
        {"title": "Ok", "description": 3},
        {"title": "Ok", "icon": "i" * 51},
    ],
)
def test_define_achievement_rejects_bad_text(services, store, fields):
    kwargs = {"title": "Ok", "description": None, "icon": None, "criteria": {"type": "perfect_subject"}}
    kwargs.update(fields)

    with pytest.raises(ValidationError):
        services.achievement_evaluator.define_achievement(**kwargs)
    assert store.achievements == {}
