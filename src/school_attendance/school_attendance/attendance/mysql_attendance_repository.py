from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..common.datetime_utils import now_local
from ..core.enums import AttendanceStatus
from ..core.exceptions import StorageError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, optional_str
from .model import AttendanceFilter, AttendanceRecord, AttendanceWrite
from .repository import AttendanceRepository

_SELECT = """
    SELECT
        ar.attendance_id, ar.student_id, ar.class_id, ar.subject_id, ar.attendance_date,
        ar.status, ar.marked_by, ar.photo, ar.notes, ar.created_at, ar.updated_at,
        s.full_name AS student_name
    FROM attendance_records ar
    LEFT JOIN students s ON s.student_id = ar.student_id
"""


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        student_id=str(r["student_id"]),
        class_id=str(r["class_id"]),
        subject_id=optional_str(r.get("subject_id")),
        attendance_date=r["attendance_date"],
        status=AttendanceStatus(r["status"]),
        marked_by=optional_str(r.get("marked_by")),
        photo=r.get("photo"),
        notes=r.get("notes"),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
        student_name=r.get("student_name"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def upsert(self, write: AttendanceWrite) -> AttendanceRecord:
        now = now_local().replace(microsecond=0)
        with db_cursor(self._conn_factory) as (_, cur):
            # ON DUPLICATE KEY UPDATE keeps attendance_id and created_at of the existing row.
            cur.execute(
                """
                INSERT INTO attendance_records(
                    student_id, class_id, subject_id, attendance_date,
                    status, marked_by, photo, notes, created_at, updated_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    status=VALUES(status),
                    marked_by=VALUES(marked_by),
                    photo=VALUES(photo),
                    notes=VALUES(notes),
                    updated_at=VALUES(updated_at)
                """,
                (
                    write.student_id,
                    write.class_id,
                    write.subject_id,
                    write.attendance_date,
                    write.status.value,
                    write.marked_by,
                    write.photo,
                    write.notes,
                    now,
                    now,
                ),
            )

            cur.execute(
                _SELECT
                + """
                WHERE ar.student_id=%s AND ar.class_id=%s
                  AND ar.subject_key=IFNULL(%s, '') AND ar.attendance_date=%s
                """,
                (write.student_id, write.class_id, write.subject_id, write.attendance_date),
            )
            r = fetchone(cur)
            if not r:
                raise StorageError("attendance row missing after upsert")
            return _to_record(r)

    def query_by_filter(self, flt: AttendanceFilter) -> Sequence[AttendanceRecord]:
        clauses: list[str] = []
        params: list[object] = []

        if flt.class_id is not None:
            clauses.append("ar.class_id=%s")
            params.append(flt.class_id)
        if flt.attendance_date is not None:
            clauses.append("ar.attendance_date=%s")
            params.append(flt.attendance_date)
        if flt.student_id is not None:
            clauses.append("ar.student_id=%s")
            params.append(flt.student_id)
        if flt.subject_id is not None:
            clauses.append("ar.subject_id=%s")
            params.append(flt.subject_id)
        if flt.status is not None:
            clauses.append("ar.status=%s")
            params.append(flt.status.value)

        sql = _SELECT
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY ar.attendance_date DESC, s.full_name ASC, ar.student_id ASC"
        if flt.limit is not None:
            sql += " LIMIT %s"
            params.append(int(flt.limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_to_record(r) for r in fetchall(cur)]

    def query_range(self, *, student_id: str, start_date: date, end_date: date) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT
                + """
                WHERE ar.student_id=%s AND ar.attendance_date BETWEEN %s AND %s
                ORDER BY ar.attendance_date ASC, ar.class_id ASC
                """,
                (student_id, start_date, end_date),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def list_for_session(
        self,
        *,
        class_id: str,
        attendance_date: date,
        subject_id: Optional[str] = None,
    ) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT
                + """
                WHERE ar.class_id=%s AND ar.attendance_date=%s AND ar.subject_key=IFNULL(%s, '')
                ORDER BY s.full_name ASC
                """,
                (class_id, attendance_date, subject_id),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def list_for_student(self, student_id: str) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT + " WHERE ar.student_id=%s ORDER BY ar.attendance_date ASC",
                (student_id,),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def list_in_range(
        self,
        *,
        class_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Sequence[AttendanceRecord]:
        clauses: list[str] = []
        params: list[object] = []
        if class_id is not None:
            clauses.append("ar.class_id=%s")
            params.append(class_id)
        if start_date is not None:
            clauses.append("ar.attendance_date >= %s")
            params.append(start_date)
        if end_date is not None:
            clauses.append("ar.attendance_date <= %s")
            params.append(end_date)

        sql = _SELECT
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY ar.attendance_date ASC, ar.student_id ASC"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_to_record(r) for r in fetchall(cur)]
