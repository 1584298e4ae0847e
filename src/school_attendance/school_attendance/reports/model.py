from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date
from typing import List, Optional

from ..attendance.model import AttendanceRecord


@dataclass(frozen=True)
class DailySummary:
    """Roster-wide counts for one day. The five buckets always add up to ``total``."""

    date: date
    class_id: Optional[str]
    present: int
    absent: int
    late: int
    excused: int
    not_marked: int
    total: int
    percentage: float

    def to_dict(self) -> dict:
        d = asdict(self)
        d["date"] = self.date.strftime("%Y-%m-%d")
        return d


@dataclass(frozen=True)
class RangeSummary:
    student_id: str
    start_date: date
    end_date: date
    total_days: int
    present_days: int
    absent_days: int
    late_days: int
    excused_days: int
    percentage: float

    def to_dict(self) -> dict:
        d = asdict(self)
        d["start_date"] = self.start_date.strftime("%Y-%m-%d")
        d["end_date"] = self.end_date.strftime("%Y-%m-%d")
        return d


@dataclass(frozen=True)
class MonthlyBucket:
    month: str
    total_days: int
    present_days: int
    percentage: float

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class ClassPerformanceRow:
    student_id: str
    name: str
    roll_number: Optional[str]
    class_id: str
    total_sessions: int
    present_count: int
    absent_count: int
    late_count: int
    excused_count: int
    percentage: float

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class ClassDailyRow:
    student_id: str
    name: str
    roll_number: Optional[str]
    status: Optional[str]
    notes: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class ClassDailyReport:
    summary: DailySummary
    rows: List[ClassDailyRow] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"summary": self.summary.to_dict(), "rows": [r.to_dict() for r in self.rows]}


@dataclass(frozen=True)
class PeriodSummary:
    class_id: Optional[str]
    start_date: date
    end_date: date
    total_students: int
    average_percentage: float
    total_sessions: int
    total_present: int
    total_absent: int
    total_late: int
    total_excused: int

    def to_dict(self) -> dict:
        d = asdict(self)
        d["start_date"] = self.start_date.strftime("%Y-%m-%d")
        d["end_date"] = self.end_date.strftime("%Y-%m-%d")
        return d


@dataclass(frozen=True)
class StudentReport:
    summary: RangeSummary
    student_name: str
    records: List[AttendanceRecord] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "student_name": self.student_name,
            "summary": self.summary.to_dict(),
            "records": [r.to_dict() for r in self.records],
        }
