from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus, SessionState


@dataclass(frozen=True)
class AttendanceSession:
    """One calendar-date instance of attendance taking for a timetable slot.

    Open -> Locked -> Archived, never backwards. Archival is done out of band.
    """

    session_id: int
    slot_id: int
    session_date: date
    locked: bool = False
    is_archived: bool = False
    created_at: Optional[datetime] = None

    @property
    def state(self) -> SessionState:
        if self.is_archived:
            return SessionState.ARCHIVED
        if self.locked:
            return SessionState.LOCKED
        return SessionState.OPEN

    @property
    def accepts_marks(self) -> bool:
        return self.state == SessionState.OPEN


@dataclass(frozen=True)
class RosterRow:
    student_id: int
    student_name: str
    roll_no: Optional[str]
    status: Optional[AttendanceStatus]


@dataclass(frozen=True)
class DaySummary:
    total: int
    completed: int
    in_progress: int
