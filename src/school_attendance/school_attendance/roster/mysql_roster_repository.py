from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, optional_str
from .model import Enrollment, SchoolClass, Student
from .repository import RosterRepository


def _to_student(r: dict) -> Student:
    return Student(
        student_id=str(r["student_id"]),
        name=r["full_name"],
        roll_number=optional_str(r.get("roll_number")),
    )


class MySQLRosterRepository(RosterRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_enrolled_students(self, class_id: str) -> Sequence[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT s.student_id, s.full_name, s.roll_number
                FROM enrollments e
                JOIN students s ON s.student_id = e.student_id
                WHERE e.class_id=%s AND e.status='active'
                ORDER BY s.roll_number ASC, s.full_name ASC
                """,
                (class_id,),
            )
            return [_to_student(r) for r in fetchall(cur)]

    def list_enrollments(self) -> Sequence[Enrollment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT e.class_id, s.student_id, s.full_name, s.roll_number
                FROM enrollments e
                JOIN students s ON s.student_id = e.student_id
                WHERE e.status='active'
                ORDER BY e.class_id ASC, s.roll_number ASC, s.full_name ASC
                """
            )
            return [Enrollment(class_id=str(r["class_id"]), student=_to_student(r)) for r in fetchall(cur)]

    def get_student(self, student_id: str) -> Optional[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT student_id, full_name, roll_number FROM students WHERE student_id=%s",
                (student_id,),
            )
            r = fetchone(cur)
            return _to_student(r) if r else None

    def get_class(self, class_id: str) -> Optional[SchoolClass]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT class_id, class_name, section FROM classes WHERE class_id=%s",
                (class_id,),
            )
            r = fetchone(cur)
            if not r:
                return None
            return SchoolClass(
                class_id=str(r["class_id"]),
                name=r["class_name"],
                section=optional_str(r.get("section")),
            )
