"""Group statistics and chart-ready projections of derived student records.

Everything here expects a non-empty collection: the analysis view checks for
an empty roster first and shows its empty state instead of calling in.
"""
from __future__ import annotations

import logging
import math
from typing import List, Sequence, Tuple

import pandas as pd

from student_records import AggregateStats, DerivedStudent, Status

LOGGER = logging.getLogger(__name__)

PASS_COLOR = "#10b981"
FAIL_COLOR = "#ef4444"


def round_half_up(value: float, digits: int = 0) -> float:
    """Round half up (12.5 -> 13) where the builtin round() would round to even."""

    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def _require_students(students: Sequence[DerivedStudent]) -> None:
    if not students:
        raise ValueError("Aggregates are undefined for an empty student collection")


def pass_fail_counts(students: Sequence[DerivedStudent]) -> Tuple[int, int]:
    passed = sum(1 for student in students if student.status is Status.PASS)
    return passed, len(students) - passed


def compute_stats(students: Sequence[DerivedStudent]) -> AggregateStats:
    """Averages rounded to one decimal and the pass rate as a whole percent."""

    _require_students(students)
    total = len(students)
    passed, failed = pass_fail_counts(students)

    stats = AggregateStats(
        avg_marks=round_half_up(sum(s.marks for s in students) / total, 1),
        avg_attendance=round_half_up(sum(s.attendance for s in students) / total, 1),
        avg_study_hours=round_half_up(sum(s.study_hours for s in students) / total, 1),
        pass_rate=int(round_half_up(passed / total * 100)),
        total=total,
        pass_count=passed,
        fail_count=failed,
    )
    LOGGER.debug("Computed stats for %s student(s): pass rate %s%%", total, stats.pass_rate)
    return stats


def rank_students(students: Sequence[DerivedStudent]) -> List[DerivedStudent]:
    """Highest performance score first; equal scores keep their input order."""

    # sorted() is stable, and reverse=True preserves the order of equal keys.
    return sorted(students, key=lambda s: s.performance_score, reverse=True)


def chart_frame(students: Sequence[DerivedStudent]) -> pd.DataFrame:
    """One row per student for the marks/attendance/study-hours charts."""

    return pd.DataFrame(
        [
            {
                "name": s.name,
                "marks": s.marks,
                "attendance": s.attendance,
                "study_hours": s.study_hours,
                "score": int(round_half_up(s.performance_score)),
            }
            for s in students
        ],
        columns=["name", "marks", "attendance", "study_hours", "score"],
    )


def pass_fail_frame(students: Sequence[DerivedStudent]) -> pd.DataFrame:
    passed, failed = pass_fail_counts(students)
    return pd.DataFrame(
        [
            {"outcome": "Passed", "count": passed, "color": PASS_COLOR},
            {"outcome": "Failed", "count": failed, "color": FAIL_COLOR},
        ]
    )


def report_frame(students: Sequence[DerivedStudent]) -> pd.DataFrame:
    """Ranked table for the auto-generated report."""

    _require_students(students)
    rows = []
    for rank, s in enumerate(rank_students(students), start=1):
        rows.append(
            {
                "rank": rank,
                "name": s.name,
                "marks": s.marks,
                "attendance": s.attendance,
                "study_hours": s.study_hours,
                "points": int(round_half_up(s.performance_score)),
                "status": s.status.value,
            }
        )
    return pd.DataFrame(rows)
