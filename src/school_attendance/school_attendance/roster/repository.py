from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Enrollment, SchoolClass, Student


class RosterRepository(Protocol):
    """Read-only view of students, classes and active enrollments."""

    def get_enrolled_students(self, class_id: str) -> Sequence[Student]:
        """Active roster of one class, ordered by roll number then name."""

        raise NotImplementedError

    def list_enrollments(self) -> Sequence[Enrollment]:
        raise NotImplementedError

    def get_student(self, student_id: str) -> Optional[Student]:
        raise NotImplementedError

    def get_class(self, class_id: str) -> Optional[SchoolClass]:
        raise NotImplementedError
