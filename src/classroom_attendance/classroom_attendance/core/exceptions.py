from __future__ import annotations

from datetime import date
from typing import Optional


class DomainError(Exception):
    """Base exception for business rule violations."""

    code = "domain_error"


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    code = "validation_error"


class AuthorizationError(DomainError):
    """Raised when a caller lacks permission for an action."""

    code = "forbidden"


class ScheduleConflict(DomainError):
    """A candidate timetable slot overlaps an existing slot of the same mapping and day."""

    code = "schedule_conflict"

    def __init__(self, conflicting_slot_id: int):
        super().__init__(f"slot overlaps existing slot {conflicting_slot_id}")
        self.conflicting_slot_id = conflicting_slot_id


class DuplicateSession(DomainError):
    code = "duplicate_session"

    def __init__(self, slot_id: int, session_date: date, existing_session_id: Optional[int] = None):
        super().__init__(f"session already exists for slot {slot_id} on {session_date.isoformat()}")
        self.slot_id = slot_id
        self.session_date = session_date
        self.existing_session_id = existing_session_id


class SessionNotFound(DomainError):
    code = "session_not_found"

    def __init__(self, session_id: int):
        super().__init__(f"session {session_id} not found")
        self.session_id = session_id


class SessionLocked(DomainError):
    """Raised when a mutation targets a locked or archived session."""

    code = "session_locked"

    def __init__(self, session_id: int):
        super().__init__(f"session {session_id} is locked or archived")
        self.session_id = session_id


class EditWindowExpired(DomainError):
    code = "edit_window_expired"

    def __init__(self, record_id: int, elapsed_minutes: float, window_minutes: int):
        super().__init__(
            f"record {record_id} last changed {elapsed_minutes:.1f} minutes ago (window {window_minutes})"
        )
        self.record_id = record_id
        self.elapsed_minutes = elapsed_minutes
        self.window_minutes = window_minutes


class RecordNotFound(DomainError):
    code = "record_not_found"


class EditConflict(DomainError):
    """Raised when a concurrent edit keeps winning the compare-and-set on a record."""

    code = "edit_conflict"


class StudentNotFound(DomainError):
    code = "student_not_found"


class InvalidCriteria(DomainError):
    """Malformed achievement criteria descriptor.

    The evaluator logs and skips these; they never reach the caller of `evaluate`.
    """

    code = "invalid_criteria"
