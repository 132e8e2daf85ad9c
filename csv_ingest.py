"""Parse uploaded student CSV text into raw records.

The expected input is a header line followed by one student per line::

    Name,Marks,Attendance,StudyHours
    Alice,85,92,4.5

The header is ignored. Rows with fewer than four fields or an empty name are
skipped. Numeric fields keep only their leading number (``85%`` reads as
``85``) and fields with no number become ``0`` instead of rejecting the row.
Commas are the only delimiter; quoting is not supported.
"""
from __future__ import annotations

import logging
import math
import re
from typing import List

from student_records import RawStudent, RecordError, new_student_id

LOGGER = logging.getLogger(__name__)

EXPECTED_HEADER = "Name, Marks, Attendance, StudyHours"


class InvalidFormatError(RecordError):
    code = "INVALID_FORMAT"

    def __init__(self, message: str = "") -> None:
        super().__init__(
            message
            or "Invalid file format. Please ensure CSV matches headers: " + EXPECTED_HEADER
        )


_NUMBER_PREFIX = re.compile(r"\s*[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


def parse_number(value) -> float:
    """Read the leading number of *value* ('85%' -> 85); anything else is 0."""

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        number = float(value)
        return 0.0 if math.isnan(number) else number
    if value is None:
        return 0.0
    match = _NUMBER_PREFIX.match(str(value))
    if not match:
        return 0.0
    return float(match.group(0))


def parse_students_csv(text: str) -> List[RawStudent]:
    """Return one :class:`RawStudent` per accepted data line of *text*.

    Raises :class:`InvalidFormatError` when no line is accepted, which
    includes empty and header-only input.
    """

    students: List[RawStudent] = []
    lines = text.split("\n")

    for line_no, raw_line in enumerate(lines[1:], start=2):
        columns = [column.strip() for column in raw_line.split(",")]
        if len(columns) < 4 or not columns[0]:
            if raw_line.strip():
                LOGGER.debug("Skipping CSV line %s: %r", line_no, raw_line)
            continue

        name, marks, attendance, study_hours = columns[:4]
        students.append(
            RawStudent(
                id=new_student_id("upload"),
                name=name,
                marks=parse_number(marks),
                attendance=parse_number(attendance),
                study_hours=parse_number(study_hours),
            )
        )

    if not students:
        LOGGER.warning("CSV upload contained no usable rows (%s line(s) read)", len(lines))
        raise InvalidFormatError()

    LOGGER.info("Parsed %s student(s) from CSV", len(students))
    return students


def read_uploaded_csv(upload) -> List[RawStudent]:
    """Decode an uploaded file (bytes, text, or a file-like object) and parse it."""

    if hasattr(upload, "getvalue"):
        upload = upload.getvalue()
    elif hasattr(upload, "read"):
        upload = upload.read()

    if isinstance(upload, (bytes, bytearray, memoryview)):
        try:
            text = bytes(upload).decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise InvalidFormatError() from exc
    else:
        text = str(upload)
        if text.startswith("\ufeff"):
            text = text[1:]
    return parse_students_csv(text)
