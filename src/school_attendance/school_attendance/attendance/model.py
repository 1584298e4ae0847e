from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional

from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class AttendanceKey:
    """Business key: at most one record exists per key."""

    student_id: str
    class_id: str
    subject_id: Optional[str]
    attendance_date: date


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one student's attendance for one class/subject/day."""

    attendance_id: int
    student_id: str
    class_id: str
    subject_id: Optional[str]
    attendance_date: date
    status: AttendanceStatus
    marked_by: Optional[str]
    photo: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    student_name: Optional[str] = None

    @property
    def key(self) -> AttendanceKey:
        return AttendanceKey(self.student_id, self.class_id, self.subject_id, self.attendance_date)

    def to_dict(self) -> dict:
        return {
            "id": self.attendance_id,
            "student_id": self.student_id,
            "student_name": self.student_name,
            "class_id": self.class_id,
            "subject_id": self.subject_id,
            "date": self.attendance_date.strftime("%Y-%m-%d"),
            "status": self.status.value,
            "marked_by": self.marked_by,
            "photo": self.photo,
            "notes": self.notes,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass(frozen=True)
class AttendanceWrite:
    """Full replacement payload for one business key."""

    student_id: str
    class_id: str
    subject_id: Optional[str]
    attendance_date: date
    status: AttendanceStatus
    marked_by: Optional[str]
    photo: Optional[str] = None
    notes: Optional[str] = None

    @property
    def key(self) -> AttendanceKey:
        return AttendanceKey(self.student_id, self.class_id, self.subject_id, self.attendance_date)


@dataclass(frozen=True)
class AttendanceEntry:
    """One student's mark as submitted by a caller."""

    student_id: str
    status: AttendanceStatus
    photo: Optional[str] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class AttendanceFilter:
    class_id: Optional[str] = None
    attendance_date: Optional[date] = None
    student_id: Optional[str] = None
    subject_id: Optional[str] = None
    status: Optional[AttendanceStatus] = None
    limit: Optional[int] = None


@dataclass(frozen=True)
class RowFailure:
    student_id: str
    error: str


@dataclass
class SubmitResult:
    written: int = 0
    failures: List[RowFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    def failed_ids(self) -> set[str]:
        return {f.student_id for f in self.failures}

    def to_dict(self) -> dict:
        return {
            "written": self.written,
            "failures": [{"student_id": f.student_id, "error": f.error} for f in self.failures],
        }
