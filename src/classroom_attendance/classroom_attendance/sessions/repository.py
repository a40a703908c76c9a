from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import AttendanceSession, DaySummary, RosterRow


class SessionRepository(Protocol):
    def get_by_id(self, session_id: int) -> Optional[AttendanceSession]:
        """Return the session whatever its state (archived included)."""

        raise NotImplementedError

    def find_live(self, *, slot_id: int, session_date: date) -> Optional[AttendanceSession]:
        """The non-archived session for (slot, date), if any."""

        raise NotImplementedError

    def create_if_absent(self, *, slot_id: int, session_date: date) -> Optional[int]:
        """Atomically insert an open session.

        Must be backed by a uniqueness guard on (slot, date, not archived).
        Returns the new id, or None when a live session already exists.
        """

        raise NotImplementedError

    def mark_locked(self, *, session_id: int) -> bool:
        """Set locked=1. Returns False only when the session does not exist."""

        raise NotImplementedError

    def list_roster(self, *, session_id: int) -> Sequence[RosterRow]:
        raise NotImplementedError

    def summarize_day(self, *, session_date: date) -> DaySummary:
        raise NotImplementedError
