from __future__ import annotations

import logging
from datetime import timedelta
from typing import Iterable, Optional, Sequence, Union

from ..common.datetime_utils import Clock, SystemClock, elapsed_minutes
from ..common.validators import optional_text, require_positive_id
from ..core.constants import (
    DEFAULT_ABUSE_EDIT_THRESHOLD,
    DEFAULT_AUDIT_REASON,
    DEFAULT_EDIT_WINDOW_MINUTES,
    MAX_AUDIT_REASON_LENGTH,
)
from ..core.enums import AttendanceStatus
from ..core.exceptions import (
    DomainError,
    EditConflict,
    EditWindowExpired,
    RecordNotFound,
    SessionLocked,
    SessionNotFound,
    StudentNotFound,
    ValidationError,
)
from ..sessions.model import AttendanceSession
from ..sessions.repository import SessionRepository
from ..stats.repository import StatsRepository
from ..timetable.repository import TimetableRepository
from .model import AbuseCandidate, AttendanceRecord, AuditEntry, BulkMarkOutcome, MarkResult
from .repository import RecordRepository

logger = logging.getLogger(__name__)

# One re-read after losing a compare-and-set, then give up.
MAX_EDIT_ATTEMPTS = 2


class RecordLedger:
    """Creates and edits attendance records inside open sessions.

    Record lifecycle: Unmarked -> Marked -> Edited*, frozen once the session locks.
    """

    def __init__(
        self,
        records: RecordRepository,
        sessions: SessionRepository,
        students: StatsRepository,
        timetable: TimetableRepository,
        *,
        clock: Optional[Clock] = None,
        edit_window_minutes: int = DEFAULT_EDIT_WINDOW_MINUTES,
        abuse_edit_threshold: int = DEFAULT_ABUSE_EDIT_THRESHOLD,
    ):
        self._records = records
        self._sessions = sessions
        self._students = students
        self._timetable = timetable
        self._clock = clock or SystemClock()
        self._edit_window = timedelta(minutes=int(edit_window_minutes))
        self._abuse_threshold = int(abuse_edit_threshold)

    @staticmethod
    def _coerce_status(value: Union[AttendanceStatus, str]) -> AttendanceStatus:
        if isinstance(value, AttendanceStatus):
            return value
        try:
            return AttendanceStatus.parse(value)
        except ValueError:
            raise ValidationError("status must be P (present) or A (absent)")

    def _require_open(self, session_id: int) -> AttendanceSession:
        session = self._sessions.get_by_id(session_id)
        if not session:
            raise SessionNotFound(session_id)
        if not session.accepts_marks:
            raise SessionLocked(session_id)
        return session

    def _require_enrolled(self, session: AttendanceSession, student_id: int) -> None:
        """Only active students of the class the session is taught to can be marked."""
        student = self._students.get_student(student_id)
        if not student or not student.is_active:
            raise StudentNotFound(f"student {student_id} not found")

        slot = self._timetable.get_slot(session.slot_id)
        mapping = self._timetable.get_mapping(slot.mapping_id) if slot else None
        if mapping is None or mapping.class_id != student.class_id:
            raise ValidationError(f"student {student_id} is not enrolled in the class of session {session.session_id}")

    def mark_or_edit(
        self,
        session_id: int,
        student_id: int,
        status: Union[AttendanceStatus, str],
        editor_id: int,
        reason: Optional[str] = None,
    ) -> MarkResult:
        session_id = require_positive_id(session_id, "session_id")
        student_id = require_positive_id(student_id, "student_id")
        editor_id = require_positive_id(editor_id, "editor_id")
        status = self._coerce_status(status)
        reason = optional_text(reason, "reason", max_length=MAX_AUDIT_REASON_LENGTH) or DEFAULT_AUDIT_REASON

        session = self._require_open(session_id)
        self._require_enrolled(session, student_id)

        record = self._records.get_for_session_student(session_id=session_id, student_id=student_id)
        if record is None:
            now = self._clock.now()
            record_id = self._records.create_if_absent(
                session_id=session_id, student_id=student_id, status=status, marked_at=now
            )
            if record_id is not None:
                # First mark is not an edit: no audit entry.
                return MarkResult(record_id=record_id, status=status, edit_count=0, marked_at=now, created=True)

            # Someone else created it first, or the session closed under us.
            logger.warning("Record create for session %s student %s lost a race", session_id, student_id)
            self._require_open(session_id)
            record = self._records.get_for_session_student(session_id=session_id, student_id=student_id)
            if record is None:
                raise RecordNotFound(f"no record for session {session_id} student {student_id}")

        return self._edit(record, status, editor_id=editor_id, reason=reason)

    def _edit(self, record: AttendanceRecord, status: AttendanceStatus, *, editor_id: int, reason: str) -> MarkResult:
        for _ in range(MAX_EDIT_ATTEMPTS):
            now = self._clock.now()

            # SLIDING window: measured from the record's LAST mutation (marked_at is reset on
            # every edit), not from when it was first marked. Successive edits each inside
            # the window can therefore continue indefinitely; the abuse list covers that.
            if now - record.marked_at > self._edit_window:
                raise EditWindowExpired(
                    record.record_id,
                    elapsed_minutes(record.marked_at, now),
                    int(self._edit_window.total_seconds() // 60),
                )

            applied = self._records.apply_edit(
                record_id=record.record_id,
                expected_edit_count=record.edit_count,
                old_status=record.status,
                new_status=status,
                marked_at=now,
                editor_id=editor_id,
                reason=reason,
            )
            if applied:
                logger.info(
                    "Record %s edited %s -> %s by %s (edit #%s)",
                    record.record_id,
                    record.status.value,
                    status.value,
                    editor_id,
                    record.edit_count + 1,
                )
                return MarkResult(
                    record_id=record.record_id,
                    status=status,
                    edit_count=record.edit_count + 1,
                    marked_at=now,
                    created=False,
                )

            self._require_open(record.session_id)
            fresh = self._records.get_by_id(record.record_id)
            if fresh is None:
                raise RecordNotFound(f"record {record.record_id} disappeared")
            record = fresh

        raise EditConflict(f"record {record.record_id} keeps changing concurrently")

    def mark_bulk(
        self,
        session_id: int,
        marks: Iterable[tuple[int, Union[AttendanceStatus, str]]],
        editor_id: int,
        reason: Optional[str] = None,
    ) -> list[BulkMarkOutcome]:
        """Mark many students of one session; each mark commits on its own.

        Session-level problems (missing, locked) fail the whole call up front.
        """
        self._require_open(require_positive_id(session_id, "session_id"))
        optional_text(reason, "reason", max_length=MAX_AUDIT_REASON_LENGTH)

        out: list[BulkMarkOutcome] = []
        for student_id, status in marks:
            try:
                result = self.mark_or_edit(session_id, student_id, status, editor_id, reason)
                out.append(BulkMarkOutcome(student_id=int(student_id), result=result))
            except (SessionLocked, SessionNotFound):
                raise
            except DomainError as e:
                out.append(BulkMarkOutcome(student_id=int(student_id), error=e.code))
        return out

    def audit_trail(self, record_id: int) -> Sequence[AuditEntry]:
        record_id = require_positive_id(record_id, "record_id")
        if not self._records.get_by_id(record_id):
            raise RecordNotFound(f"record {record_id} not found")
        return self._records.list_audit(record_id=record_id)

    def list_abuse_candidates(self) -> Sequence[AbuseCandidate]:
        return self._records.list_abuse_candidates(edit_threshold=self._abuse_threshold)
