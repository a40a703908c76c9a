from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from ...core.constants import RECOGNIZED_ABSENCE_WINDOWS
from ...core.enums import CriteriaKind
from .base import Criterion, EvaluationSnapshot


@dataclass(frozen=True)
class PerfectSubject(Criterion):
    """Some subject with at least one session sits at 100%."""

    kind: ClassVar[CriteriaKind] = CriteriaKind.PERFECT_SUBJECT

    def is_met(self, snapshot: EvaluationSnapshot) -> bool:
        return any(s.percentage == 100 for s in snapshot.subjects_with_sessions)


@dataclass(frozen=True)
class MinOverall(Criterion):
    threshold: float

    kind: ClassVar[CriteriaKind] = CriteriaKind.MIN_OVERALL

    def is_met(self, snapshot: EvaluationSnapshot) -> bool:
        return snapshot.overall.total_classes > 0 and snapshot.overall.percentage >= self.threshold


@dataclass(frozen=True)
class NoAbsentDays(Criterion):
    """No Absent record in the trailing window. Only 7 and 30 days are evaluated."""

    window_days: int

    kind: ClassVar[CriteriaKind] = CriteriaKind.NO_ABSENT_DAYS

    def is_met(self, snapshot: EvaluationSnapshot) -> bool:
        if self.window_days not in RECOGNIZED_ABSENCE_WINDOWS:
            return False
        if snapshot.overall.total_classes <= 0:
            return False
        absences = snapshot.absences_within(self.window_days)
        return absences == 0


@dataclass(frozen=True)
class AllSubjectsMin(Criterion):
    threshold: float

    kind: ClassVar[CriteriaKind] = CriteriaKind.ALL_SUBJECTS_MIN

    def is_met(self, snapshot: EvaluationSnapshot) -> bool:
        subjects = snapshot.subjects_with_sessions
        return bool(subjects) and all(s.percentage >= self.threshold for s in subjects)


@dataclass(frozen=True)
class MinTotalAttended(Criterion):
    count: int

    kind: ClassVar[CriteriaKind] = CriteriaKind.MIN_TOTAL_ATTENDED

    def is_met(self, snapshot: EvaluationSnapshot) -> bool:
        return snapshot.overall.attended >= self.count


@dataclass(frozen=True)
class MinSubjectsAboveX(Criterion):
    percentage: float
    count: int

    kind: ClassVar[CriteriaKind] = CriteriaKind.MIN_SUBJECTS_ABOVE_X

    def is_met(self, snapshot: EvaluationSnapshot) -> bool:
        qualifying = [s for s in snapshot.subjects_with_sessions if s.percentage >= self.percentage]
        return len(qualifying) >= self.count
