"""Pass/fail classification and weighted performance score.

``status`` is Pass only when marks reach 50 *and* attendance reaches 75.
``performance_score`` weights marks at 70% and attendance at 30%; study hours
are shown alongside but are not part of the score.

Both rules are plain arithmetic and are applied even to records that have not
been validated yet (live preview while editing), so nothing here raises on
out-of-range input.
"""
from __future__ import annotations

from typing import Iterable, List

from student_records import DerivedStudent, RawStudent, Status

PASS_MARKS = 50
PASS_ATTENDANCE = 75
MARKS_WEIGHT = 0.7
ATTENDANCE_WEIGHT = 0.3


def classify(marks: float, attendance: float) -> Status:
    if marks >= PASS_MARKS and attendance >= PASS_ATTENDANCE:
        return Status.PASS
    return Status.FAIL


def performance_score(marks: float, attendance: float) -> float:
    return marks * MARKS_WEIGHT + attendance * ATTENDANCE_WEIGHT


def derive_student(student: RawStudent) -> DerivedStudent:
    return DerivedStudent(
        id=student.id,
        name=student.name,
        marks=student.marks,
        attendance=student.attendance,
        study_hours=student.study_hours,
        status=classify(student.marks, student.attendance),
        performance_score=performance_score(student.marks, student.attendance),
    )


def derive_all(students: Iterable[RawStudent]) -> List[DerivedStudent]:
    return [derive_student(student) for student in students]
