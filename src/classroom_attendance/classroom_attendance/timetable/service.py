from __future__ import annotations

import logging
from datetime import time
from typing import Optional, Sequence

from ..common.datetime_utils import Clock, SystemClock, weekday_sunday_first
from ..common.validators import require_day_of_week, require_positive_id
from ..core.exceptions import ScheduleConflict, ValidationError
from .model import FacultySlotView
from .repository import TimetableRepository

logger = logging.getLogger(__name__)


class TimetableService:
    """Scheduling validator plus the slot operations that depend on it."""

    def __init__(self, timetable: TimetableRepository, *, clock: Optional[Clock] = None):
        self._timetable = timetable
        self._clock = clock or SystemClock()

    def validate_slot(self, mapping_id: int, day_of_week: int, start: time, end: time) -> None:
        mapping_id = require_positive_id(mapping_id, "mapping_id")
        day_of_week = require_day_of_week(day_of_week)
        if start >= end:
            raise ValidationError("start time must be before end time")

        # Two-point inclusive check against the same mapping and day only. A candidate
        # that fully contains an existing slot slips through; kept as-is on purpose.
        for existing in self._timetable.list_slots_for_mapping_day(mapping_id=mapping_id, day_of_week=day_of_week):
            if existing.endpoint_overlaps(start, end):
                raise ScheduleConflict(existing.slot_id)

    def create_slot(self, *, mapping_id: int, day_of_week: int, start: time, end: time) -> int:
        if not self._timetable.get_mapping(require_positive_id(mapping_id, "mapping_id")):
            raise ValidationError("mapping does not exist")

        self.validate_slot(mapping_id, day_of_week, start, end)
        slot_id = self._timetable.create_slot(
            mapping_id=int(mapping_id), day_of_week=int(day_of_week), start_time=start, end_time=end
        )
        logger.info("Created slot %s for mapping %s (day %s %s-%s)", slot_id, mapping_id, day_of_week, start, end)
        return slot_id

    def delete_slot(self, *, slot_id: int) -> None:
        if not self._timetable.delete_slot(slot_id=require_positive_id(slot_id, "slot_id")):
            raise ValidationError("timetable slot does not exist")
        logger.info("Deleted slot %s and its sessions", slot_id)

    def today_timetable(self, *, faculty_id: int) -> Sequence[FacultySlotView]:
        day = weekday_sunday_first(self._clock.today())
        return self._timetable.list_for_faculty_day(
            faculty_id=require_positive_id(faculty_id, "faculty_id"), day_of_week=day
        )
