from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Optional, Sequence, Union

from ..common.validators import optional_text, require_date, require_non_empty, require_status
from ..core.exceptions import DomainError, NotFoundError, PartialBatchFailure, ValidationError
from ..roster.repository import RosterRepository
from .model import (
    AttendanceEntry,
    AttendanceFilter,
    AttendanceRecord,
    AttendanceWrite,
    RowFailure,
    SubmitResult,
)
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

EntryLike = Union[AttendanceEntry, Mapping[str, Any]]


def coerce_entry(raw: EntryLike) -> AttendanceEntry:
    """Validate one submitted mark (dataclass or JSON-ish mapping)."""

    if isinstance(raw, AttendanceEntry):
        return AttendanceEntry(
            student_id=require_non_empty(raw.student_id, "student_id"),
            status=require_status(raw.status),
            photo=raw.photo,
            notes=optional_text(raw.notes),
        )

    student_id = raw.get("student_id", raw.get("studentId"))
    return AttendanceEntry(
        student_id=require_non_empty(student_id, "student_id"),
        status=require_status(raw.get("status")),
        photo=raw.get("photo") or None,
        notes=optional_text(raw.get("notes")),
    )


class AttendanceService:
    """Write/read entry point for attendance records.

    Every write goes through :meth:`record`, which validates input and checks
    the referenced student and class before touching the store.
    """

    def __init__(self, attendance: AttendanceRepository, roster: RosterRepository):
        self._attendance = attendance
        self._roster = roster

    def record(self, write: AttendanceWrite) -> AttendanceRecord:
        student_id = require_non_empty(write.student_id, "student_id")
        class_id = require_non_empty(write.class_id, "class_id")
        attendance_date = require_date(write.attendance_date)
        status = require_status(write.status)

        if self._roster.get_class(class_id) is None:
            raise NotFoundError(f"class {class_id} does not exist")
        if self._roster.get_student(student_id) is None:
            raise NotFoundError(f"student {student_id} does not exist")

        return self._attendance.upsert(
            AttendanceWrite(
                student_id=student_id,
                class_id=class_id,
                subject_id=optional_text(write.subject_id),
                attendance_date=attendance_date,
                status=status,
                marked_by=write.marked_by,
                photo=write.photo or None,
                notes=optional_text(write.notes),
            )
        )

    def submit_attendance(
        self,
        *,
        class_id: str,
        attendance_date: Any,
        subject_id: Optional[str] = None,
        entries: Iterable[EntryLike],
        marked_by: Optional[str],
        strict: bool = False,
    ) -> SubmitResult:
        """Write each entry independently; failed rows never undo written ones.

        A student repeated in ``entries`` is written once; later repeats are
        reported as failures.

        With ``strict=True`` a :class:`PartialBatchFailure` carrying the result
        is raised when any row failed.
        """

        class_id = require_non_empty(class_id, "class_id")
        attendance_date = require_date(attendance_date)
        if self._roster.get_class(class_id) is None:
            raise NotFoundError(f"class {class_id} does not exist")

        result = SubmitResult()
        seen: set = set()
        for raw in entries:
            student_id = self._raw_student_id(raw)
            try:
                entry = coerce_entry(raw)
                if entry.student_id in seen:
                    raise ValidationError(f"student {entry.student_id} appears more than once in this submission")
                seen.add(entry.student_id)
                self.record(
                    AttendanceWrite(
                        student_id=entry.student_id,
                        class_id=class_id,
                        subject_id=subject_id,
                        attendance_date=attendance_date,
                        status=entry.status,
                        marked_by=marked_by,
                        photo=entry.photo,
                        notes=entry.notes,
                    )
                )
                result.written += 1
            except DomainError as e:
                logger.warning(
                    "attendance write failed class=%s date=%s student=%s: %s",
                    class_id, attendance_date, student_id, e,
                )
                result.failures.append(RowFailure(student_id=student_id, error=str(e)))

        logger.info(
            "attendance submitted class=%s date=%s subject=%s written=%d failed=%d",
            class_id, attendance_date, subject_id, result.written, len(result.failures),
        )
        if strict and not result.ok:
            raise PartialBatchFailure(result)
        return result

    def get_attendance(self, flt: Optional[AttendanceFilter] = None) -> Sequence[AttendanceRecord]:
        return self._attendance.query_by_filter(flt or AttendanceFilter())

    @staticmethod
    def _raw_student_id(raw: EntryLike) -> str:
        if isinstance(raw, AttendanceEntry):
            return str(raw.student_id or "")
        value = raw.get("student_id", raw.get("studentId"))
        return "" if value is None else str(value)
