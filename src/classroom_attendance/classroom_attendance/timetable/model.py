from __future__ import annotations

from dataclasses import dataclass
from datetime import time


@dataclass(frozen=True)
class Mapping:
    """One faculty member teaching one subject to one class; slots hang off this."""

    mapping_id: int
    faculty_id: int
    subject_id: int
    class_id: int


@dataclass(frozen=True)
class TimetableSlot:
    slot_id: int
    mapping_id: int
    day_of_week: int
    start_time: time
    end_time: time

    def endpoint_overlaps(self, start: time, end: time) -> bool:
        """Inclusive two-point test: does either candidate endpoint land inside this slot?

        A candidate that strictly contains this slot is NOT reported.
        """
        return self.start_time <= start <= self.end_time or self.start_time <= end <= self.end_time


@dataclass(frozen=True)
class FacultySlotView:
    """Read-model for a faculty's daily timetable."""

    slot_id: int
    subject: str
    class_name: str
    start_time: time
    end_time: time
