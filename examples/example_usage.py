"""Example: drive a marking session through the service layer (no Flask).

Controllers are a thin layer; the workflow lives in the services.
"""

import importlib
from datetime import date

from config import get_settings_module

from src.school_attendance.school_attendance.container import build_container


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG)
    sessions = container.session_controller

    ms = sessions.start(actor_id="teacher-1", class_id="cls-7a", attendance_date=date.today())
    for student in ms.roster[:3]:
        sessions.mark_present(ms, student.student_id, photo=f"blob://{student.student_id}")
    print(sessions.submit(ms).to_dict())
    print(container.report_service.daily_summary(date.today(), "cls-7a").to_dict())


if __name__ == "__main__":
    main()
