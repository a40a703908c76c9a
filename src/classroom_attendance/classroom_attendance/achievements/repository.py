from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import Achievement


class AchievementRepository(Protocol):
    def list_all(self) -> Sequence[Achievement]:
        raise NotImplementedError

    def create(self, *, title: str, description: Optional[str], icon: str, criteria: str) -> int:
        raise NotImplementedError

    def unlocked_ids(self, *, student_id: int) -> set[int]:
        raise NotImplementedError

    def insert_unlock_if_absent(self, *, student_id: int, achievement_id: int, unlocked_at: datetime) -> bool:
        """Idempotent insert; True only when this call created the unlock row."""

        raise NotImplementedError
