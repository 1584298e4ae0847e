from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Optional

import pytest

from src.school_attendance.school_attendance.attendance.model import (
    AttendanceFilter,
    AttendanceKey,
    AttendanceRecord,
    AttendanceWrite,
)
from src.school_attendance.school_attendance.container import build_services
from src.school_attendance.school_attendance.core.exceptions import StorageError
from src.school_attendance.school_attendance.roster.model import Enrollment, SchoolClass, Student


class InMemoryRoster:
    def __init__(self):
        self.classes: dict[str, SchoolClass] = {}
        self.students: dict[str, Student] = {}
        self.enrolled: dict[str, list[str]] = {}

    def add_class(self, class_id: str, name: str, student_names: list[str]) -> list[Student]:
        self.classes[class_id] = SchoolClass(class_id=class_id, name=name)
        added = []
        for i, student_name in enumerate(student_names, start=1):
            s = Student(student_id=f"{class_id}-s{i}", name=student_name, roll_number=f"{i:02d}")
            self.students[s.student_id] = s
            self.enrolled.setdefault(class_id, []).append(s.student_id)
            added.append(s)
        return added

    def get_enrolled_students(self, class_id: str):
        return [self.students[sid] for sid in self.enrolled.get(class_id, [])]

    def list_enrollments(self):
        return [
            Enrollment(class_id=cid, student=self.students[sid])
            for cid, ids in self.enrolled.items()
            for sid in ids
        ]

    def get_student(self, student_id: str) -> Optional[Student]:
        return self.students.get(student_id)

    def get_class(self, class_id: str) -> Optional[SchoolClass]:
        return self.classes.get(class_id)


class InMemoryAttendance:
    """Store keyed by business key; replacing keeps id and created_at."""

    def __init__(self, roster: InMemoryRoster):
        self._roster = roster
        self._by_key: dict[AttendanceKey, AttendanceRecord] = {}
        self._id = 0
        self._clock = datetime(2026, 1, 1, 8, 0, 0)
        self.fail_for: set[str] = set()
        self.upsert_calls = 0
        self.filters: list[AttendanceFilter] = []

    def _tick(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock

    def _name(self, student_id: str) -> Optional[str]:
        s = self._roster.get_student(student_id)
        return s.name if s else None

    def upsert(self, write: AttendanceWrite) -> AttendanceRecord:
        self.upsert_calls += 1
        if write.student_id in self.fail_for:
            raise StorageError("connection lost")

        now = self._tick()
        existing = self._by_key.get(write.key)
        if existing is None:
            self._id += 1
            attendance_id, created_at = self._id, now
        else:
            attendance_id, created_at = existing.attendance_id, existing.created_at

        rec = AttendanceRecord(
            attendance_id=attendance_id,
            student_id=write.student_id,
            class_id=write.class_id,
            subject_id=write.subject_id,
            attendance_date=write.attendance_date,
            status=write.status,
            marked_by=write.marked_by,
            photo=write.photo,
            notes=write.notes,
            created_at=created_at,
            updated_at=now,
            student_name=self._name(write.student_id),
        )
        self._by_key[write.key] = rec
        return rec

    def all(self) -> list[AttendanceRecord]:
        return list(self._by_key.values())

    def seed(self, **kwargs) -> AttendanceRecord:
        return self.upsert(AttendanceWrite(**{"subject_id": None, "marked_by": "seed", **kwargs}))

    def query_by_filter(self, flt: AttendanceFilter):
        self.filters.append(flt)
        items = [
            r
            for r in self._by_key.values()
            if (flt.class_id is None or r.class_id == flt.class_id)
            and (flt.attendance_date is None or r.attendance_date == flt.attendance_date)
            and (flt.student_id is None or r.student_id == flt.student_id)
            and (flt.subject_id is None or r.subject_id == flt.subject_id)
            and (flt.status is None or r.status == flt.status)
        ]
        items.sort(key=lambda r: r.student_name or "")
        items.sort(key=lambda r: r.attendance_date, reverse=True)
        return items[: flt.limit] if flt.limit is not None else items

    def query_range(self, *, student_id: str, start_date: date, end_date: date):
        items = [
            r
            for r in self._by_key.values()
            if r.student_id == student_id and start_date <= r.attendance_date <= end_date
        ]
        return sorted(items, key=lambda r: r.attendance_date)

    def list_for_session(self, *, class_id: str, attendance_date: date, subject_id: Optional[str] = None):
        return [
            r
            for r in self._by_key.values()
            if r.class_id == class_id and r.attendance_date == attendance_date and r.subject_id == subject_id
        ]

    def list_for_student(self, student_id: str):
        return sorted((r for r in self._by_key.values() if r.student_id == student_id), key=lambda r: r.attendance_date)

    def list_in_range(self, *, class_id=None, start_date=None, end_date=None):
        return [
            r
            for r in self._by_key.values()
            if (class_id is None or r.class_id == class_id)
            and (start_date is None or r.attendance_date >= start_date)
            and (end_date is None or r.attendance_date <= end_date)
        ]


@pytest.fixture()
def roster() -> InMemoryRoster:
    r = InMemoryRoster()
    r.add_class("7a", "Grade 7A", ["Chen Wei", "Aisha Khan", "Emeka Obi", "Ben Ortiz", "Dana Novak"])
    r.add_class("8b", "Grade 8B", ["Farah Haddad", "Goran Ilic"])
    return r


@pytest.fixture()
def attendance_repo(roster) -> InMemoryAttendance:
    return InMemoryAttendance(roster)


@pytest.fixture()
def container(attendance_repo, roster):
    return build_services(attendance_repo=attendance_repo, roster_repo=roster)


@pytest.fixture()
def day() -> date:
    return date(2026, 10, 19)


@pytest.fixture()
def class_7a(roster) -> list[Student]:
    return roster.get_enrolled_students("7a")


@pytest.fixture()
def fixed_now(monkeypatch):
    now = datetime(2026, 10, 19, 9, 0, 0)
    from src.school_attendance.school_attendance.common import datetime_utils

    monkeypatch.setattr(datetime_utils, "now_local", lambda: now)
    return now
