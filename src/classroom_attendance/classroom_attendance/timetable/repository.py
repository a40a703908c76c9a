from __future__ import annotations

from datetime import time
from typing import Optional, Protocol, Sequence

from .model import FacultySlotView, Mapping, TimetableSlot


class TimetableRepository(Protocol):
    def get_mapping(self, mapping_id: int) -> Optional[Mapping]:
        raise NotImplementedError

    def get_slot(self, slot_id: int) -> Optional[TimetableSlot]:
        raise NotImplementedError

    def list_slots_for_mapping_day(self, *, mapping_id: int, day_of_week: int) -> Sequence[TimetableSlot]:
        raise NotImplementedError

    def create_slot(self, *, mapping_id: int, day_of_week: int, start_time: time, end_time: time) -> int:
        raise NotImplementedError

    def delete_slot(self, *, slot_id: int) -> bool:
        """Delete a slot together with its sessions, records and audit entries."""

        raise NotImplementedError

    def list_for_faculty_day(self, *, faculty_id: int, day_of_week: int) -> Sequence[FacultySlotView]:
        raise NotImplementedError
