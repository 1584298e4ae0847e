from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import AttendanceFilter, AttendanceRecord, AttendanceWrite


class AttendanceRepository(Protocol):
    def upsert(self, write: AttendanceWrite) -> AttendanceRecord:
        """Insert, or replace the row holding the same business key.

        A replaced row keeps its id and created_at; every other field comes
        from ``write``. Concurrent writers to one key: last one wins.
        """

        raise NotImplementedError

    def query_by_filter(self, flt: AttendanceFilter) -> Sequence[AttendanceRecord]:
        """Matching records, newest date first, then by student name."""

        raise NotImplementedError

    def query_range(self, *, student_id: str, start_date: date, end_date: date) -> Sequence[AttendanceRecord]:
        """Inclusive range, oldest date first."""

        raise NotImplementedError

    def list_for_session(
        self,
        *,
        class_id: str,
        attendance_date: date,
        subject_id: Optional[str] = None,
    ) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_for_student(self, student_id: str) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_in_range(
        self,
        *,
        class_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Sequence[AttendanceRecord]:
        raise NotImplementedError
