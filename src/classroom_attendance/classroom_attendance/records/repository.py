from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AbuseCandidate, AttendanceRecord, AuditEntry


class RecordRepository(Protocol):
    """Sole writer of attendance records and their audit log.

    Storage contract: (session_id, student_id) is unique, creation is guarded by the
    session's lock/archive flags, and an edit is a compare-and-set on edit_count that
    writes the audit entry in the same transaction.
    """

    def get_by_id(self, record_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_for_session_student(self, *, session_id: int, student_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def create_if_absent(
        self,
        *,
        session_id: int,
        student_id: int,
        status: AttendanceStatus,
        marked_at: datetime,
    ) -> Optional[int]:
        """Insert with edit_count=0 while the session is open.

        Returns None when nothing was inserted (record already exists, or the session
        locked/archived in the meantime).
        """

        raise NotImplementedError

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
        """Update status/marked_at/edit_count+1 and append the audit entry, all or nothing.

        Returns False when edit_count moved on or the session is no longer open.
        """

        raise NotImplementedError

    def list_audit(self, *, record_id: int) -> Sequence[AuditEntry]:
        raise NotImplementedError

    def list_abuse_candidates(self, *, edit_threshold: int) -> Sequence[AbuseCandidate]:
        """Records with edit_count strictly greater than edit_threshold."""

        raise NotImplementedError
