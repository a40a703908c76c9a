from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..common.datetime_utils import Clock, SystemClock
from ..common.validators import require_positive_id
from ..core.exceptions import DuplicateSession, SessionNotFound, ValidationError
from ..timetable.repository import TimetableRepository
from .model import AttendanceSession, DaySummary, RosterRow
from .repository import SessionRepository

logger = logging.getLogger(__name__)


class SessionManager:
    def __init__(
        self,
        sessions: SessionRepository,
        timetable: TimetableRepository,
        *,
        clock: Optional[Clock] = None,
    ):
        self._sessions = sessions
        self._timetable = timetable
        self._clock = clock or SystemClock()

    def open_session(self, slot_id: int) -> int:
        """Open today's session for a slot and return its id.

        The existence check only gives a friendlier error; the insert itself is what
        guarantees a single live session per (slot, day) under concurrent calls.
        """
        slot_id = require_positive_id(slot_id, "timetable_slot_id")
        if not self._timetable.get_slot(slot_id):
            raise ValidationError("timetable slot does not exist")

        today = self._clock.today()
        existing = self._sessions.find_live(slot_id=slot_id, session_date=today)
        if existing:
            raise DuplicateSession(slot_id, today, existing.session_id)

        session_id = self._sessions.create_if_absent(slot_id=slot_id, session_date=today)
        if session_id is None:
            logger.warning("Lost session-open race for slot %s on %s", slot_id, today)
            raise DuplicateSession(slot_id, today)

        logger.info("Opened session %s for slot %s on %s", session_id, slot_id, today)
        return session_id

    def lock_session(self, session_id: int) -> None:
        """Lock a session. Locking an already-locked session is a no-op."""
        session_id = require_positive_id(session_id, "session_id")
        if not self._sessions.mark_locked(session_id=session_id):
            raise SessionNotFound(session_id)
        logger.info("Locked session %s", session_id)

    def get_session(self, session_id: int) -> AttendanceSession:
        session = self._sessions.get_by_id(require_positive_id(session_id, "session_id"))
        if not session:
            raise SessionNotFound(int(session_id))
        return session

    def session_roster(self, session_id: int) -> Sequence[RosterRow]:
        session = self.get_session(session_id)
        if session.is_archived:
            raise SessionNotFound(session.session_id)
        return self._sessions.list_roster(session_id=session.session_id)

    def today_summary(self) -> DaySummary:
        return self._sessions.summarize_day(session_date=self._clock.today())
