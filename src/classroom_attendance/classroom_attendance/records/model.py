from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class AttendanceRecord:
    """One student's outcome in one session. status, marked_at and edit_count change together."""

    record_id: int
    session_id: int
    student_id: int
    status: AttendanceStatus
    edit_count: int
    marked_at: datetime


@dataclass(frozen=True)
class AuditEntry:
    audit_id: int
    record_id: int
    old_status: AttendanceStatus
    new_status: AttendanceStatus
    edited_by: int
    reason: str
    edited_at: datetime


@dataclass(frozen=True)
class AbuseCandidate:
    """Read-model for the administrative review list."""

    record_id: int
    student_id: int
    student_name: str
    edit_count: int
    session_date: Optional[date] = None
    subject: Optional[str] = None


@dataclass(frozen=True)
class MarkResult:
    record_id: int
    status: AttendanceStatus
    edit_count: int
    marked_at: datetime
    created: bool


@dataclass(frozen=True)
class BulkMarkOutcome:
    student_id: int
    result: Optional[MarkResult] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None
