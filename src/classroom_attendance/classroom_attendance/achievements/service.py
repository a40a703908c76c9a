from __future__ import annotations

import json
import logging
from datetime import timedelta
from typing import Any, Mapping, Optional, Sequence, Union

from ..common.datetime_utils import Clock, SystemClock
from ..common.validators import optional_text, require_non_empty
from ..core.constants import RECOGNIZED_ABSENCE_WINDOWS
from ..core.exceptions import InvalidCriteria, ValidationError
from ..stats.model import StudentProfile
from ..stats.service import AggregationService
from .criteria.base import EvaluationSnapshot
from .factory import CriteriaFactory
from .model import Achievement, AchievementStatus
from .repository import AchievementRepository

logger = logging.getLogger(__name__)


class AchievementEvaluator:
    def __init__(
        self,
        achievements: AchievementRepository,
        aggregation: AggregationService,
        *,
        clock: Optional[Clock] = None,
        factory: Optional[CriteriaFactory] = None,
    ):
        self._achievements = achievements
        self._aggregation = aggregation
        self._clock = clock or SystemClock()
        self._factory = factory or CriteriaFactory()

    def _snapshot(self, student: StudentProfile) -> EvaluationSnapshot:
        subjects = self._aggregation.student_subject_stats(student.student_id)
        today = self._clock.today()
        # A window of N days covers today and the N-1 days before it.
        absences = {
            days: self._aggregation.absences_since(student.student_id, today - timedelta(days=days - 1))
            for days in RECOGNIZED_ABSENCE_WINDOWS
        }
        return EvaluationSnapshot(
            subjects=tuple(subjects),
            overall=AggregationService.summarize_overall(subjects),
            absences=absences,
        )

    @staticmethod
    def _status(a: Achievement, *, unlocked: bool, newly_unlocked: bool = False) -> AchievementStatus:
        return AchievementStatus(
            achievement_id=a.achievement_id,
            title=a.title,
            description=a.description,
            icon=a.icon,
            unlocked=unlocked,
            newly_unlocked=newly_unlocked,
        )

    def evaluate(self, student_id: int) -> list[AchievementStatus]:
        """Unlock whatever the student now qualifies for and report every achievement.

        Already-unlocked achievements are not re-checked. A malformed descriptor only
        costs its own achievement (reported locked), never the whole evaluation.
        """
        student = self._aggregation.get_student(student_id)
        unlocked = self._achievements.unlocked_ids(student_id=student.student_id)

        snapshot: Optional[EvaluationSnapshot] = None
        out: list[AchievementStatus] = []
        for a in self._achievements.list_all():
            if a.achievement_id in unlocked:
                out.append(self._status(a, unlocked=True))
                continue

            try:
                criterion = self._factory.parse(a.criteria)
            except InvalidCriteria as e:
                logger.warning("Skipping achievement %s (%s): %s", a.achievement_id, a.title, e)
                out.append(self._status(a, unlocked=False))
                continue

            if snapshot is None:
                snapshot = self._snapshot(student)

            if not criterion.is_met(snapshot):
                out.append(self._status(a, unlocked=False))
                continue

            created = self._achievements.insert_unlock_if_absent(
                student_id=student.student_id,
                achievement_id=a.achievement_id,
                unlocked_at=self._clock.now(),
            )
            if created:
                logger.info("Student %s unlocked achievement %s (%s)", student.student_id, a.achievement_id, a.title)
            out.append(self._status(a, unlocked=True, newly_unlocked=created))

        return out

    def define_achievement(
        self,
        *,
        title: str,
        description: Optional[str],
        icon: Optional[str],
        criteria: Union[str, Mapping[str, Any]],
    ) -> int:
        title = require_non_empty(title, "title")
        if len(title) > 100:
            raise ValidationError("title must be at most 100 characters")
        description = optional_text(description, "description", max_length=255)
        icon = optional_text(icon, "icon", max_length=50)
        try:
            self._factory.parse(criteria)
        except InvalidCriteria as e:
            raise ValidationError(str(e)) from e

        if isinstance(criteria, bytes):
            criteria = criteria.decode("utf-8")
        raw = criteria if isinstance(criteria, str) else json.dumps(dict(criteria))
        return self._achievements.create(
            title=title,
            description=description or None,
            icon=icon or "Award",
            criteria=raw,
        )

    def list_achievements(self) -> Sequence[Achievement]:
        return self._achievements.list_all()
