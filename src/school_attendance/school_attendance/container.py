from __future__ import annotations

from dataclasses import dataclass

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .database.connection import DBConfig, DatabaseConnection
from .reports.service import ReportService
from .roster.mysql_roster_repository import MySQLRosterRepository
from .roster.repository import RosterRepository
from .sessions.service import SessionController


@dataclass(frozen=True)
class Container:
    attendance_repo: AttendanceRepository
    roster_repo: RosterRepository

    attendance_service: AttendanceService
    session_controller: SessionController
    report_service: ReportService


def build_services(*, attendance_repo: AttendanceRepository, roster_repo: RosterRepository) -> Container:
    attendance_service = AttendanceService(attendance_repo, roster_repo)
    session_controller = SessionController(attendance_service, attendance_repo, roster_repo)
    report_service = ReportService(attendance_repo, roster_repo)

    return Container(
        attendance_repo=attendance_repo,
        roster_repo=roster_repo,
        attendance_service=attendance_service,
        session_controller=session_controller,
        report_service=report_service,
    )


def build_container(*, db_config: dict) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
    return build_services(
        attendance_repo=MySQLAttendanceRepository(conn),
        roster_repo=MySQLRosterRepository(conn),
    )
