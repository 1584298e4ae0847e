from __future__ import annotations

from collections import OrderedDict
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..attendance.model import AttendanceFilter, AttendanceRecord
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import default_window, month_key
from ..common.validators import require_date, require_non_empty
from ..core.constants import PERCENTAGE_PRECISION
from ..core.enums import AttendanceStatus
from ..core.exceptions import NotFoundError, ValidationError
from ..roster.model import Enrollment
from ..roster.repository import RosterRepository
from .calculator.base import AttendanceRateCalculator
from .calculator.standard_calculator import StandardRateCalculator
from .model import (
    ClassDailyReport,
    ClassDailyRow,
    ClassPerformanceRow,
    DailySummary,
    MonthlyBucket,
    PeriodSummary,
    RangeSummary,
    StudentReport,
)


def tally(records: Iterable[AttendanceRecord]) -> Dict[AttendanceStatus, int]:
    counts = {s: 0 for s in AttendanceStatus}
    for r in records:
        counts[r.status] += 1
    return counts


def _stamp(r: AttendanceRecord) -> datetime:
    return r.updated_at or r.created_at or datetime.min


def _check_window(start: date, end: date) -> None:
    if start > end:
        raise ValidationError("start date must not be after end date")


class ReportService:
    """Read-only aggregations over stored attendance and the current roster.

    Nothing here is persisted; every report is recomputed on demand.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        roster: RosterRepository,
        *,
        calculator: Optional[AttendanceRateCalculator] = None,
    ):
        self._attendance = attendance
        self._roster = roster
        self._calculator = calculator or StandardRateCalculator()

    def _enrollments(self, class_id: Optional[str]) -> List[Enrollment]:
        if class_id is None:
            return list(self._roster.list_enrollments())
        if self._roster.get_class(class_id) is None:
            raise NotFoundError(f"class {class_id} does not exist")
        return [Enrollment(class_id=class_id, student=s) for s in self._roster.get_enrolled_students(class_id)]

    def _day_marks(
        self,
        attendance_date: date,
        class_id: Optional[str],
        subject_id: Optional[str],
    ) -> Dict[Tuple[str, str], AttendanceRecord]:
        """Latest-updated record per (class, student) on one day."""

        records = self._attendance.query_by_filter(
            AttendanceFilter(class_id=class_id, attendance_date=attendance_date, subject_id=subject_id)
        )
        out: Dict[Tuple[str, str], AttendanceRecord] = {}
        for r in records:
            k = (r.class_id, r.student_id)
            cur = out.get(k)
            if cur is None or _stamp(r) > _stamp(cur):
                out[k] = r
        return out

    def daily_summary(
        self,
        attendance_date: date,
        class_id: Optional[str] = None,
        *,
        subject_id: Optional[str] = None,
    ) -> DailySummary:
        return self._daily(attendance_date, class_id, subject_id).summary

    def class_daily_report(self, class_id: str, attendance_date: date, *, subject_id: Optional[str] = None) -> ClassDailyReport:
        return self._daily(attendance_date, require_non_empty(class_id, "class_id"), subject_id)

    def _daily(
        self,
        attendance_date: date,
        class_id: Optional[str],
        subject_id: Optional[str],
    ) -> ClassDailyReport:
        attendance_date = require_date(attendance_date)
        enrollments = self._enrollments(class_id)
        marks = self._day_marks(attendance_date, class_id, subject_id)

        counts = {s: 0 for s in AttendanceStatus}
        not_marked = 0
        rows: List[ClassDailyRow] = []
        for e in enrollments:
            r = marks.get((e.class_id, e.student.student_id))
            if r is None:
                not_marked += 1
            else:
                counts[r.status] += 1
            rows.append(
                ClassDailyRow(
                    student_id=e.student.student_id,
                    name=e.student.name,
                    roll_number=e.student.roll_number,
                    status=r.status.value if r else None,
                    notes=r.notes if r else None,
                )
            )

        total = len(enrollments)
        summary = DailySummary(
            date=attendance_date,
            class_id=class_id,
            present=counts[AttendanceStatus.PRESENT],
            absent=counts[AttendanceStatus.ABSENT],
            late=counts[AttendanceStatus.LATE],
            excused=counts[AttendanceStatus.EXCUSED],
            not_marked=not_marked,
            total=total,
            percentage=self._calculator.percentage(present=counts[AttendanceStatus.PRESENT], total=total),
        )
        return ClassDailyReport(summary=summary, rows=rows)

    def range_summary(self, student_id: str, start_date: date, end_date: date) -> RangeSummary:
        student_id = require_non_empty(student_id, "student_id")
        start_date = require_date(start_date, "start_date")
        end_date = require_date(end_date, "end_date")
        _check_window(start_date, end_date)

        records = self._attendance.query_range(student_id=student_id, start_date=start_date, end_date=end_date)
        counts = tally(records)
        total = len(records)
        return RangeSummary(
            student_id=student_id,
            start_date=start_date,
            end_date=end_date,
            total_days=total,
            present_days=counts[AttendanceStatus.PRESENT],
            absent_days=counts[AttendanceStatus.ABSENT],
            late_days=counts[AttendanceStatus.LATE],
            excused_days=counts[AttendanceStatus.EXCUSED],
            percentage=self._calculator.percentage(present=counts[AttendanceStatus.PRESENT], total=total),
        )

    def monthly_breakdown(self, student_id: str) -> List[MonthlyBucket]:
        student_id = require_non_empty(student_id, "student_id")
        buckets: "OrderedDict[str, List[AttendanceRecord]]" = OrderedDict()
        for r in sorted(self._attendance.list_for_student(student_id), key=lambda x: x.attendance_date):
            buckets.setdefault(month_key(r.attendance_date), []).append(r)

        out: List[MonthlyBucket] = []
        for month, records in buckets.items():
            present = tally(records)[AttendanceStatus.PRESENT]
            out.append(
                MonthlyBucket(
                    month=month,
                    total_days=len(records),
                    present_days=present,
                    percentage=self._calculator.percentage(present=present, total=len(records)),
                )
            )
        return out

    def class_performance(
        self,
        class_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[ClassPerformanceRow]:
        if start_date is not None and end_date is not None:
            _check_window(start_date, end_date)

        enrollments = self._enrollments(class_id)
        by_student: Dict[Tuple[str, str], List[AttendanceRecord]] = {}
        for r in self._attendance.list_in_range(class_id=class_id, start_date=start_date, end_date=end_date):
            by_student.setdefault((r.class_id, r.student_id), []).append(r)

        rows: List[ClassPerformanceRow] = []
        for e in enrollments:
            records = by_student.get((e.class_id, e.student.student_id), [])
            counts = tally(records)
            rows.append(
                ClassPerformanceRow(
                    student_id=e.student.student_id,
                    name=e.student.name,
                    roll_number=e.student.roll_number,
                    class_id=e.class_id,
                    total_sessions=len(records),
                    present_count=counts[AttendanceStatus.PRESENT],
                    absent_count=counts[AttendanceStatus.ABSENT],
                    late_count=counts[AttendanceStatus.LATE],
                    excused_count=counts[AttendanceStatus.EXCUSED],
                    percentage=self._calculator.percentage(present=counts[AttendanceStatus.PRESENT], total=len(records)),
                )
            )

        rows.sort(key=lambda x: (x.name.lower(), x.roll_number or "", x.student_id))
        return rows

    def period_summary(
        self,
        class_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> PeriodSummary:
        start_date, end_date = default_window(start_date, end_date)
        rows = self.class_performance(class_id, start_date, end_date)

        average = 0.0
        if rows:
            average = round(sum(r.percentage for r in rows) / len(rows), PERCENTAGE_PRECISION)

        return PeriodSummary(
            class_id=class_id,
            start_date=start_date,
            end_date=end_date,
            total_students=len(rows),
            average_percentage=average,
            total_sessions=sum(r.total_sessions for r in rows),
            total_present=sum(r.present_count for r in rows),
            total_absent=sum(r.absent_count for r in rows),
            total_late=sum(r.late_count for r in rows),
            total_excused=sum(r.excused_count for r in rows),
        )

    def student_report(
        self,
        student_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> StudentReport:
        student_id = require_non_empty(student_id, "student_id")
        student = self._roster.get_student(student_id)
        if student is None:
            raise NotFoundError(f"student {student_id} does not exist")

        start_date, end_date = default_window(start_date, end_date)
        summary = self.range_summary(student_id, start_date, end_date)
        records: Sequence[AttendanceRecord] = self._attendance.query_range(
            student_id=student_id, start_date=start_date, end_date=end_date
        )
        return StudentReport(summary=summary, student_name=student.name, records=list(records))
