from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Student:
    """A student as seen by attendance: identity, display name, roll number."""

    student_id: str
    name: str
    roll_number: Optional[str] = None


@dataclass(frozen=True)
class SchoolClass:
    class_id: str
    name: str
    section: Optional[str] = None


@dataclass(frozen=True)
class Enrollment:
    """Active enrollment of a student in a class (roster row)."""

    class_id: str
    student: Student
