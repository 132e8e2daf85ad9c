"""Save-time validation for the raw student collection."""
from __future__ import annotations

import logging
from typing import Iterable, List

from student_records import RawStudent, RecordError

LOGGER = logging.getLogger(__name__)

MIN_PERCENT = 0
MAX_PERCENT = 100


class InvalidRecordError(RecordError):
    code = "INVALID_RECORD"

    def __init__(self, message: str = "") -> None:
        super().__init__(
            message
            or "Please ensure all names are filled and values are within valid ranges "
            "(Marks/Attendance 0-100)."
        )


def is_valid_student(student: RawStudent) -> bool:
    return (
        bool(student.name and student.name.strip())
        and MIN_PERCENT <= student.marks <= MAX_PERCENT
        and MIN_PERCENT <= student.attendance <= MAX_PERCENT
        and student.study_hours >= 0
    )


def find_invalid_students(students: Iterable[RawStudent]) -> List[RawStudent]:
    return [student for student in students if not is_valid_student(student)]


def validate_students(students: Iterable[RawStudent]) -> None:
    """Raise :class:`InvalidRecordError` if any record breaks a constraint.

    The check covers the whole batch: a single bad record rejects all of
    them. Records that will classify as ``Fail`` are still valid.
    """

    invalid = find_invalid_students(students)
    if invalid:
        LOGGER.warning(
            "Rejected batch: %s invalid record(s) (ids: %s)",
            len(invalid),
            ", ".join(student.id for student in invalid),
        )
        raise InvalidRecordError()
