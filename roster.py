"""The session's editable student collection.

The roster keeps two lists: the *draft* the educator is editing and the
*saved* collection that analysis reads. Saving copies the draft over only when
every record validates. Derived records and statistics are recomputed from
the saved list on every call instead of being cached.
"""
from __future__ import annotations

import dataclasses
import logging
from typing import Iterable, List, Optional

from analytics import compute_stats
from csv_ingest import parse_number, read_uploaded_csv
from derivation import derive_all
from student_records import (
    EDITABLE_FIELDS,
    NUMERIC_FIELDS,
    AggregateStats,
    DerivedStudent,
    RawStudent,
)
from validation import validate_students

LOGGER = logging.getLogger(__name__)


class Roster:
    def __init__(self, students: Optional[Iterable[RawStudent]] = None) -> None:
        draft = [dataclasses.replace(s) for s in students] if students else []
        self._draft: List[RawStudent] = draft or [RawStudent.blank()]
        self._saved: List[RawStudent] = []
        self.revision = 0

    @property
    def draft(self) -> List[RawStudent]:
        return list(self._draft)

    @property
    def saved(self) -> List[RawStudent]:
        return list(self._saved)

    def _find(self, student_id: str) -> int:
        for index, student in enumerate(self._draft):
            if student.id == student_id:
                return index
        raise KeyError(student_id)

    # ------------------------------------------------------------------
    # Draft editing
    # ------------------------------------------------------------------
    def add_blank(self) -> RawStudent:
        student = RawStudent.blank()
        self._draft.append(student)
        return student

    def remove(self, student_id: str) -> bool:
        """Drop a row; the last remaining row cannot be removed."""

        if len(self._draft) <= 1:
            return False
        index = self._find(student_id)
        del self._draft[index]
        return True

    def update(self, student_id: str, field: str, value) -> RawStudent:
        if field not in EDITABLE_FIELDS:
            raise ValueError(f"Unknown student field: {field}")
        if field in NUMERIC_FIELDS:
            value = parse_number(value)
        else:
            value = "" if value is None else str(value)

        index = self._find(student_id)
        updated = dataclasses.replace(self._draft[index], **{field: value})
        self._draft[index] = updated
        return updated

    def replace_from_csv(self, upload) -> List[RawStudent]:
        """Replace the whole draft with the rows parsed from *upload*.

        On :class:`csv_ingest.InvalidFormatError` the draft is left as it was.
        """

        students = read_uploaded_csv(upload)
        self._draft = students
        return self.draft

    def replace_all(self, rows: Iterable[RawStudent]) -> List[RawStudent]:
        """Replace the whole draft with copies of *rows*, keeping one blank row at minimum."""

        self._draft = [dataclasses.replace(s) for s in rows] or [RawStudent.blank()]
        return self.draft

    # ------------------------------------------------------------------
    # Save and projections
    # ------------------------------------------------------------------
    def save(self) -> List[DerivedStudent]:
        """Validate the draft and commit it; all or nothing."""

        validate_students(self._draft)
        self._saved = [dataclasses.replace(s) for s in self._draft]
        self.revision += 1
        LOGGER.info("Saved %s student(s) (revision %s)", len(self._saved), self.revision)
        return self.derived()

    def preview(self) -> List[DerivedStudent]:
        return derive_all(self._draft)

    def derived(self) -> List[DerivedStudent]:
        return derive_all(self._saved)

    def stats(self) -> Optional[AggregateStats]:
        if not self._saved:
            return None
        return compute_stats(self.derived())
