from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Mapping, Union

from ..core.enums import CriteriaKind
from ..core.exceptions import InvalidCriteria
from .criteria.base import Criterion
from .criteria.rules import (
    AllSubjectsMin,
    MinOverall,
    MinSubjectsAboveX,
    MinTotalAttended,
    NoAbsentDays,
    PerfectSubject,
)


def _number(descriptor: Mapping[str, Any], key: str) -> float:
    value = descriptor.get(key)
    # bool is an int subclass; `true` is not a threshold.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidCriteria(f"criteria field {key!r} must be a number, got {value!r}")
    if value < 0:
        raise InvalidCriteria(f"criteria field {key!r} must not be negative")
    return value


def _whole(descriptor: Mapping[str, Any], key: str) -> int:
    value = _number(descriptor, key)
    if int(value) != value:
        raise InvalidCriteria(f"criteria field {key!r} must be a whole number")
    return int(value)


def _percent(descriptor: Mapping[str, Any], key: str) -> float:
    value = _number(descriptor, key)
    if value > 100:
        raise InvalidCriteria(f"criteria field {key!r} must be at most 100")
    return value


@dataclass
class CriteriaFactory:
    """Factory Pattern: turn a stored criteria descriptor into a Criterion.

    Descriptor shape: {"type": "<kind>", ...params}; see CriteriaKind for the kinds.
    """

    def parse(self, descriptor: Union[str, bytes, Mapping[str, Any], None]) -> Criterion:
        if isinstance(descriptor, (str, bytes)):
            try:
                descriptor = json.loads(descriptor)
            except ValueError as e:
                raise InvalidCriteria(f"criteria is not valid JSON: {e}") from e

        if not isinstance(descriptor, Mapping):
            raise InvalidCriteria(f"criteria must be an object, got {type(descriptor).__name__}")

        try:
            kind = CriteriaKind(descriptor.get("type"))
        except ValueError:
            raise InvalidCriteria(f"unknown criteria type {descriptor.get('type')!r}")

        if kind == CriteriaKind.PERFECT_SUBJECT:
            return PerfectSubject()
        if kind == CriteriaKind.MIN_OVERALL:
            return MinOverall(threshold=_percent(descriptor, "value"))
        if kind == CriteriaKind.NO_ABSENT_DAYS:
            return NoAbsentDays(window_days=_whole(descriptor, "value"))
        if kind == CriteriaKind.ALL_SUBJECTS_MIN:
            return AllSubjectsMin(threshold=_percent(descriptor, "value"))
        if kind == CriteriaKind.MIN_TOTAL_ATTENDED:
            return MinTotalAttended(count=_whole(descriptor, "value"))
        return MinSubjectsAboveX(percentage=_percent(descriptor, "percentage"), count=_whole(descriptor, "count"))
