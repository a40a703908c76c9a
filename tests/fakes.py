"""In-memory repositories sharing one store, so services see a consistent world."""
from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, time, timedelta
from typing import Optional

from src.classroom_attendance.classroom_attendance.achievements.model import Achievement
from src.classroom_attendance.classroom_attendance.core.enums import AttendanceStatus
from src.classroom_attendance.classroom_attendance.records.model import AbuseCandidate, AttendanceRecord, AuditEntry
from src.classroom_attendance.classroom_attendance.sessions.model import AttendanceSession, DaySummary, RosterRow
from src.classroom_attendance.classroom_attendance.stats.model import (
    DailyMarks,
    HistoryRow,
    MonthlySubjectRow,
    StudentProfile,
    SubjectTotal,
)
from src.classroom_attendance.classroom_attendance.timetable.model import FacultySlotView, Mapping, TimetableSlot


class FixedClock:
    def __init__(self, now: datetime):
        self.current = now

    def now(self) -> datetime:
        return self.current

    def today(self) -> date:
        return self.current.date()

    def advance(self, **kwargs) -> None:
        self.current = self.current + timedelta(**kwargs)


class InMemoryStore:
    def __init__(self):
        self._ids: dict[str, int] = {}
        self.subjects: dict[int, str] = {}
        self.classes: dict[int, str] = {}
        self.mappings: dict[int, Mapping] = {}
        self.students: dict[int, StudentProfile] = {}
        self.slots: dict[int, TimetableSlot] = {}
        self.sessions: dict[int, AttendanceSession] = {}
        self.records: dict[int, AttendanceRecord] = {}
        self.audits: list[AuditEntry] = []
        self.achievements: dict[int, Achievement] = {}
        self.unlocks: dict[tuple[int, int], datetime] = {}

    def next_id(self, kind: str) -> int:
        self._ids[kind] = self._ids.get(kind, 0) + 1
        return self._ids[kind]

    # --- builders -------------------------------------------------------

    def add_mapping(self, *, faculty_id: int = 100, subject: str = "Maths", class_id: int = 1) -> Mapping:
        subject_id = next((k for k, v in self.subjects.items() if v == subject), None)
        if subject_id is None:
            subject_id = self.next_id("subject")
            self.subjects[subject_id] = subject
        self.classes.setdefault(class_id, f"Class {class_id}")
        m = Mapping(mapping_id=self.next_id("mapping"), faculty_id=faculty_id, subject_id=subject_id, class_id=class_id)
        self.mappings[m.mapping_id] = m
        return m

    def add_student(self, name: str, *, class_id: int = 1, active: bool = True, roll_no: Optional[str] = None) -> StudentProfile:
        sid = self.next_id("student")
        s = StudentProfile(
            student_id=sid,
            user_id=1000 + sid,
            name=name,
            class_id=class_id,
            roll_no=roll_no or f"R{sid:03d}",
            is_active=active,
        )
        self.students[sid] = s
        return s

    def add_slot(self, mapping: Mapping, *, day: int = 1, start: time = time(9, 0), end: time = time(10, 0)) -> TimetableSlot:
        slot = TimetableSlot(
            slot_id=self.next_id("slot"), mapping_id=mapping.mapping_id, day_of_week=day, start_time=start, end_time=end
        )
        self.slots[slot.slot_id] = slot
        return slot

    def add_session(self, slot: TimetableSlot, session_date: date, *, locked: bool = False, archived: bool = False) -> AttendanceSession:
        s = AttendanceSession(
            session_id=self.next_id("session"),
            slot_id=slot.slot_id,
            session_date=session_date,
            locked=locked,
            is_archived=archived,
        )
        self.sessions[s.session_id] = s
        return s

    def add_record(self, session: AttendanceSession, student: StudentProfile, status: AttendanceStatus, *, marked_at: Optional[datetime] = None, edit_count: int = 0) -> AttendanceRecord:
        r = AttendanceRecord(
            record_id=self.next_id("record"),
            session_id=session.session_id,
            student_id=student.student_id,
            status=status,
            edit_count=edit_count,
            marked_at=marked_at or datetime.combine(session.session_date, time(9, 5)),
        )
        self.records[r.record_id] = r
        return r

    def archive(self, session_id: int) -> None:
        self.sessions[session_id] = replace(self.sessions[session_id], is_archived=True)

    def lock(self, session_id: int) -> None:
        self.sessions[session_id] = replace(self.sessions[session_id], locked=True)

    def add_achievement(self, title: str, criteria: str) -> Achievement:
        a = Achievement(achievement_id=self.next_id("achievement"), title=title, description=None, icon="Award", criteria=criteria)
        self.achievements[a.achievement_id] = a
        return a

    # --- joins ----------------------------------------------------------

    def mapping_of_session(self, session: AttendanceSession) -> Mapping:
        return self.mappings[self.slots[session.slot_id].mapping_id]

    def live_sessions_for_class(self, class_id: int) -> list[AttendanceSession]:
        return [
            s for s in self.sessions.values() if not s.is_archived and self.mapping_of_session(s).class_id == class_id
        ]


class InMemoryTimetable:
    def __init__(self, store: InMemoryStore):
        self.store = store

    def get_mapping(self, mapping_id: int) -> Optional[Mapping]:
        return self.store.mappings.get(int(mapping_id))

    def get_slot(self, slot_id: int) -> Optional[TimetableSlot]:
        return self.store.slots.get(int(slot_id))

    def list_slots_for_mapping_day(self, *, mapping_id: int, day_of_week: int):
        return [s for s in self.store.slots.values() if s.mapping_id == mapping_id and s.day_of_week == day_of_week]

    def create_slot(self, *, mapping_id: int, day_of_week: int, start_time: time, end_time: time) -> int:
        slot = TimetableSlot(
            slot_id=self.store.next_id("slot"),
            mapping_id=mapping_id,
            day_of_week=day_of_week,
            start_time=start_time,
            end_time=end_time,
        )
        self.store.slots[slot.slot_id] = slot
        return slot.slot_id

    def delete_slot(self, *, slot_id: int) -> bool:
        if slot_id not in self.store.slots:
            return False
        del self.store.slots[slot_id]
        doomed = {sid for sid, s in self.store.sessions.items() if s.slot_id == slot_id}
        for sid in doomed:
            del self.store.sessions[sid]
        dead_records = {rid for rid, r in self.store.records.items() if r.session_id in doomed}
        for rid in dead_records:
            del self.store.records[rid]
        self.store.audits = [a for a in self.store.audits if a.record_id not in dead_records]
        return True

    def list_for_faculty_day(self, *, faculty_id: int, day_of_week: int):
        out = []
        for slot in sorted(self.store.slots.values(), key=lambda s: s.start_time):
            m = self.store.mappings[slot.mapping_id]
            if m.faculty_id == faculty_id and slot.day_of_week == day_of_week:
                out.append(
                    FacultySlotView(
                        slot_id=slot.slot_id,
                        subject=self.store.subjects[m.subject_id],
                        class_name=self.store.classes[m.class_id],
                        start_time=slot.start_time,
                        end_time=slot.end_time,
                    )
                )
        return out


class InMemorySessions:
    def __init__(self, store: InMemoryStore):
        self.store = store

    def get_by_id(self, session_id: int) -> Optional[AttendanceSession]:
        return self.store.sessions.get(int(session_id))

    def find_live(self, *, slot_id: int, session_date: date) -> Optional[AttendanceSession]:
        for s in self.store.sessions.values():
            if s.slot_id == slot_id and s.session_date == session_date and not s.is_archived:
                return s
        return None

    def create_if_absent(self, *, slot_id: int, session_date: date) -> Optional[int]:
        if self.find_live(slot_id=slot_id, session_date=session_date):
            return None
        s = AttendanceSession(session_id=self.store.next_id("session"), slot_id=slot_id, session_date=session_date)
        self.store.sessions[s.session_id] = s
        return s.session_id

    def mark_locked(self, *, session_id: int) -> bool:
        if session_id not in self.store.sessions:
            return False
        self.store.lock(session_id)
        return True

    def list_roster(self, *, session_id: int):
        session = self.store.sessions[session_id]
        class_id = self.store.mapping_of_session(session).class_id
        status_by_student = {r.student_id: r.status for r in self.store.records.values() if r.session_id == session_id}
        students = [s for s in self.store.students.values() if s.class_id == class_id and s.is_active]
        return [
            RosterRow(
                student_id=s.student_id,
                student_name=s.name,
                roll_no=s.roll_no,
                status=status_by_student.get(s.student_id),
            )
            for s in sorted(students, key=lambda s: s.roll_no or "")
        ]

    def summarize_day(self, *, session_date: date) -> DaySummary:
        live = [s for s in self.store.sessions.values() if s.session_date == session_date and not s.is_archived]
        locked = sum(1 for s in live if s.locked)
        return DaySummary(total=len(live), completed=locked, in_progress=len(live) - locked)


class InMemoryRecords:
    def __init__(self, store: InMemoryStore):
        self.store = store

    def _open(self, session_id: int) -> bool:
        s = self.store.sessions.get(session_id)
        return bool(s) and not s.locked and not s.is_archived

    def get_by_id(self, record_id: int) -> Optional[AttendanceRecord]:
        return self.store.records.get(int(record_id))

    def _find(self, session_id: int, student_id: int) -> Optional[AttendanceRecord]:
        for r in self.store.records.values():
            if r.session_id == session_id and r.student_id == student_id:
                return r
        return None

    def get_for_session_student(self, *, session_id: int, student_id: int) -> Optional[AttendanceRecord]:
        return self._find(session_id, student_id)

    def create_if_absent(self, *, session_id, student_id, status, marked_at) -> Optional[int]:
        if not self._open(session_id) or self._find(session_id, student_id):
            return None
        r = AttendanceRecord(
            record_id=self.store.next_id("record"),
            session_id=session_id,
            student_id=student_id,
            status=status,
            edit_count=0,
            marked_at=marked_at,
        )
        self.store.records[r.record_id] = r
        return r.record_id

    def apply_edit(self, *, record_id, expected_edit_count, old_status, new_status, marked_at, editor_id, reason) -> bool:
        r = self.store.records.get(record_id)
        if not r or r.edit_count != expected_edit_count or not self._open(r.session_id):
            return False
        self.store.records[record_id] = replace(r, status=new_status, marked_at=marked_at, edit_count=r.edit_count + 1)
        self.store.audits.append(
            AuditEntry(
                audit_id=self.store.next_id("audit"),
                record_id=record_id,
                old_status=old_status,
                new_status=new_status,
                edited_by=editor_id,
                reason=reason,
                edited_at=marked_at,
            )
        )
        return True

    def list_audit(self, *, record_id: int):
        return [a for a in self.store.audits if a.record_id == record_id]

    def list_abuse_candidates(self, *, edit_threshold: int):
        out = []
        for r in self.store.records.values():
            if r.edit_count > edit_threshold:
                out.append(
                    AbuseCandidate(
                        record_id=r.record_id,
                        student_id=r.student_id,
                        student_name=self.store.students[r.student_id].name,
                        edit_count=r.edit_count,
                        session_date=self.store.sessions[r.session_id].session_date,
                    )
                )
        return out


class InMemoryStats:
    def __init__(self, store: InMemoryStore):
        self.store = store

    def get_student(self, student_id: int) -> Optional[StudentProfile]:
        return self.store.students.get(int(student_id))

    def get_student_by_user(self, user_id: int) -> Optional[StudentProfile]:
        for s in self.store.students.values():
            if s.user_id == user_id and s.is_active:
                return s
        return None

    def list_active_students(self, *, class_id: int):
        students = [s for s in self.store.students.values() if s.class_id == class_id and s.is_active]
        return sorted(students, key=lambda s: s.roll_no or "")

    def subject_totals(self, *, class_id: int):
        subject_ids = sorted({m.subject_id for m in self.store.mappings.values() if m.class_id == class_id})
        live = self.store.live_sessions_for_class(class_id)
        return [
            SubjectTotal(
                subject_id=sid,
                subject_name=self.store.subjects[sid],
                total_sessions=sum(1 for s in live if self.store.mapping_of_session(s).subject_id == sid),
            )
            for sid in subject_ids
        ]

    def _present(self, class_id: int):
        live = {s.session_id: s for s in self.store.live_sessions_for_class(class_id)}
        return [
            (r, live[r.session_id])
            for r in self.store.records.values()
            if r.session_id in live and r.status == AttendanceStatus.PRESENT
        ]

    def subject_attended(self, *, student_id: int, class_id: int):
        out: dict[int, int] = {}
        for r, session in self._present(class_id):
            if r.student_id == student_id:
                sid = self.store.mapping_of_session(session).subject_id
                out[sid] = out.get(sid, 0) + 1
        return out

    def class_session_total(self, *, class_id: int) -> int:
        return len(self.store.live_sessions_for_class(class_id))

    def class_attended_counts(self, *, class_id: int):
        out: dict[int, int] = {}
        for r, _ in self._present(class_id):
            out[r.student_id] = out.get(r.student_id, 0) + 1
        return out

    def absences_since(self, *, student_id: int, class_id: int, since: date) -> int:
        live = {s.session_id: s for s in self.store.live_sessions_for_class(class_id)}
        return sum(
            1
            for r in self.store.records.values()
            if r.student_id == student_id
            and r.status == AttendanceStatus.ABSENT
            and r.session_id in live
            and live[r.session_id].session_date >= since
        )

    def history(self, *, student_id: int, class_id: int):
        rows = []
        for s in self.store.live_sessions_for_class(class_id):
            slot = self.store.slots[s.slot_id]
            rec = next(
                (r for r in self.store.records.values() if r.session_id == s.session_id and r.student_id == student_id),
                None,
            )
            rows.append(
                HistoryRow(
                    session_id=s.session_id,
                    session_date=s.session_date,
                    subject=self.store.subjects[self.store.mapping_of_session(s).subject_id],
                    start_time=slot.start_time,
                    end_time=slot.end_time,
                    recorded=rec.status.value if rec else None,
                    locked=s.locked,
                )
            )
        rows.sort(key=lambda h: (h.session_date, h.start_time), reverse=True)
        return rows

    def monthly_subject_counts(self, *, class_id: int, start: date, end: date):
        by_subject: dict[str, list[int]] = {}
        for s in self.store.live_sessions_for_class(class_id):
            if not start <= s.session_date < end:
                continue
            name = self.store.subjects[self.store.mapping_of_session(s).subject_id]
            present = sum(
                1
                for r in self.store.records.values()
                if r.session_id == s.session_id and r.status == AttendanceStatus.PRESENT
            )
            totals = by_subject.setdefault(name, [0, 0])
            totals[0] += 1
            totals[1] += present
        return [
            MonthlySubjectRow(subject=name, total_sessions=t[0], total_present=t[1])
            for name, t in sorted(by_subject.items())
        ]

    def daily_mark_counts(self, *, first_day: date, last_day: date):
        by_day: dict[date, list[int]] = {}
        for s in self.store.sessions.values():
            if s.is_archived or not first_day <= s.session_date <= last_day:
                continue
            counts = by_day.setdefault(s.session_date, [0, 0])
            for r in self.store.records.values():
                if r.session_id == s.session_id:
                    counts[0] += 1
                    counts[1] += r.status == AttendanceStatus.PRESENT
        return [DailyMarks(session_date=d, marked=c[0], present=c[1]) for d, c in sorted(by_day.items())]


class InMemoryAchievements:
    def __init__(self, store: InMemoryStore):
        self.store = store
        self.insert_calls = 0

    def list_all(self):
        return [self.store.achievements[k] for k in sorted(self.store.achievements)]

    def create(self, *, title, description, icon, criteria) -> int:
        a = Achievement(
            achievement_id=self.store.next_id("achievement"),
            title=title,
            description=description,
            icon=icon,
            criteria=criteria,
        )
        self.store.achievements[a.achievement_id] = a
        return a.achievement_id

    def unlocked_ids(self, *, student_id: int) -> set[int]:
        return {aid for (sid, aid) in self.store.unlocks if sid == student_id}

    def insert_unlock_if_absent(self, *, student_id: int, achievement_id: int, unlocked_at: datetime) -> bool:
        self.insert_calls += 1
        key = (student_id, achievement_id)
        if key in self.store.unlocks:
            return False
        self.store.unlocks[key] = unlocked_at
        return True
