from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Mapping, Optional, Sequence

from ...core.enums import CriteriaKind
from ...stats.model import OverallStats, SubjectStats


@dataclass(frozen=True)
class EvaluationSnapshot:
    """Everything a criterion may look at, computed once per evaluation."""

    subjects: Sequence[SubjectStats]
    overall: OverallStats
    # trailing window in days -> Absent records within it
    absences: Mapping[int, int] = field(default_factory=dict)

    @property
    def subjects_with_sessions(self) -> list[SubjectStats]:
        return [s for s in self.subjects if s.total_classes > 0]

    def absences_within(self, days: int) -> Optional[int]:
        return self.absences.get(days)


class Criterion(ABC):
    """Strategy Pattern: one unlock rule per criteria kind."""

    kind: CriteriaKind

    @abstractmethod
    def is_met(self, snapshot: EvaluationSnapshot) -> bool:
        raise NotImplementedError
