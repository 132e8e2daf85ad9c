"""Record types shared by the student performance pipeline.

A :class:`RawStudent` is what the educator types in or uploads. A
:class:`DerivedStudent` adds the computed status and performance score and is
never edited directly; it is rebuilt from the raw collection whenever that
collection changes.
"""
from __future__ import annotations

import dataclasses
import enum
import itertools
import time
from typing import Optional

NUMERIC_FIELDS = ("marks", "attendance", "study_hours")
EDITABLE_FIELDS = ("name",) + NUMERIC_FIELDS

_id_counter = itertools.count(1)


def new_student_id(prefix: str = "student") -> str:
    """Return a session-unique identifier for a new record."""

    return f"{prefix}-{int(time.time() * 1000)}-{next(_id_counter)}"


class Status(str, enum.Enum):
    PASS = "Pass"
    FAIL = "Fail"


class RecordError(ValueError):
    """Base class for recoverable input errors shown next to the triggering action."""

    code = "RECORD_ERROR"


@dataclasses.dataclass
class RawStudent:
    """Unvalidated student input."""

    id: str
    name: str = ""
    marks: float = 0.0
    attendance: float = 0.0
    study_hours: float = 0.0

    @classmethod
    def blank(cls, student_id: Optional[str] = None) -> "RawStudent":
        return cls(id=student_id or new_student_id())


@dataclasses.dataclass(frozen=True)
class DerivedStudent:
    """A raw record plus its computed status and performance score."""

    id: str
    name: str
    marks: float
    attendance: float
    study_hours: float
    status: Status
    performance_score: float

    @property
    def passed(self) -> bool:
        return self.status is Status.PASS


@dataclasses.dataclass(frozen=True)
class AggregateStats:
    """Group-level figures for a non-empty derived collection."""

    avg_marks: float
    avg_attendance: float
    avg_study_hours: float
    pass_rate: int
    total: int
    pass_count: int
    fail_count: int
