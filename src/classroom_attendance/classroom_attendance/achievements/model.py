from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Achievement:
    """Badge definition; `criteria` is the raw JSON descriptor as stored."""

    achievement_id: int
    title: str
    description: Optional[str]
    icon: str
    criteria: str


@dataclass(frozen=True)
class AchievementStatus:
    achievement_id: int
    title: str
    description: Optional[str]
    icon: str
    unlocked: bool
    newly_unlocked: bool = False
