from __future__ import annotations

import csv
import io

from flask import Flask, jsonify, request

from ..common.datetime_utils import now_local
from ..common.validators import require_date
from ..common.web import error_response, login_required, optional_date
from ..container import Container
from ..core.exceptions import DomainError

PERFORMANCE_CSV_FIELDS = [
    "student_id",
    "name",
    "roll_number",
    "class_id",
    "total_sessions",
    "present_count",
    "absent_count",
    "late_count",
    "excused_count",
    "percentage",
]

CLASS_DAILY_CSV_FIELDS = ["student_id", "name", "roll_number", "status", "notes"]

PERIOD_CSV_FIELDS = [
    "class_id",
    "start_date",
    "end_date",
    "total_students",
    "average_percentage",
    "total_sessions",
    "total_present",
    "total_absent",
    "total_late",
    "total_excused",
]


def register(app: Flask, container: Container) -> None:
    reports = container.report_service

    def _window():
        return (
            optional_date(request.args.get("start"), "start"),
            optional_date(request.args.get("end"), "end"),
        )

    def _write_report_csv(*, rows, fieldnames, filename: str):
        out = io.StringIO()
        writer = csv.DictWriter(out, fieldnames=fieldnames)
        writer.writeheader()
        for row in rows:
            writer.writerow(row.to_dict())

        csv_bytes = out.getvalue().encode("utf-8-sig")
        return app.response_class(
            csv_bytes,
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    @app.route("/api/reports/daily", methods=["GET"], endpoint="api_report_daily")
    @login_required
    def api_report_daily():
        try:
            day = optional_date(request.args.get("date"), "date") or now_local().date()
            summary = reports.daily_summary(
                day,
                request.args.get("class_id") or None,
                subject_id=request.args.get("subject_id") or None,
            )
        except DomainError as e:
            return error_response(e)
        return jsonify(summary.to_dict())

    @app.route("/api/reports/classes/<class_id>/daily", methods=["GET"], endpoint="api_report_class_daily")
    @login_required
    def api_report_class_daily(class_id: str):
        try:
            day = optional_date(request.args.get("date"), "date") or now_local().date()
            report = reports.class_daily_report(class_id, day, subject_id=request.args.get("subject_id") or None)
        except DomainError as e:
            return error_response(e)
        return jsonify(report.to_dict())

    @app.route("/api/reports/students/<student_id>/range", methods=["GET"], endpoint="api_report_student_range")
    @login_required
    def api_report_student_range(student_id: str):
        try:
            summary = reports.range_summary(
                student_id,
                require_date(request.args.get("start"), "start"),
                require_date(request.args.get("end"), "end"),
            )
        except DomainError as e:
            return error_response(e)
        return jsonify(summary.to_dict())

    @app.route("/api/reports/students/<student_id>/monthly", methods=["GET"], endpoint="api_report_student_monthly")
    @login_required
    def api_report_student_monthly(student_id: str):
        try:
            buckets = reports.monthly_breakdown(student_id)
        except DomainError as e:
            return error_response(e)
        return jsonify([b.to_dict() for b in buckets])

    @app.route("/api/reports/students/<student_id>", methods=["GET"], endpoint="api_report_student")
    @login_required
    def api_report_student(student_id: str):
        try:
            start, end = _window()
            report = reports.student_report(student_id, start, end)
        except DomainError as e:
            return error_response(e)
        return jsonify(report.to_dict())

    @app.route("/api/reports/classes/performance", methods=["GET"], endpoint="api_report_performance")
    @login_required
    def api_report_performance():
        try:
            start, end = _window()
            rows = reports.class_performance(request.args.get("class_id") or None, start, end)
        except DomainError as e:
            return error_response(e)
        return jsonify([r.to_dict() for r in rows])

    @app.route("/api/reports/classes/performance.csv", methods=["GET"], endpoint="api_report_performance_csv")
    @login_required
    def api_report_performance_csv():
        class_id = request.args.get("class_id") or None
        try:
            start, end = _window()
            rows = reports.class_performance(class_id, start, end)
        except DomainError as e:
            return error_response(e)
        filename = f"attendance_{class_id or 'all'}.csv"
        return _write_report_csv(rows=rows, fieldnames=PERFORMANCE_CSV_FIELDS, filename=filename)

    @app.route("/api/reports/period", methods=["GET"], endpoint="api_report_period")
    @login_required
    def api_report_period():
        try:
            start, end = _window()
            summary = reports.period_summary(request.args.get("class_id") or None, start, end)
        except DomainError as e:
            return error_response(e)
        return jsonify(summary.to_dict())

    @app.route("/api/reports/classes/<class_id>/daily.csv", methods=["GET"], endpoint="api_report_class_daily_csv")
    @login_required
    def api_report_class_daily_csv(class_id: str):
        try:
            day = optional_date(request.args.get("date"), "date") or now_local().date()
            report = reports.class_daily_report(class_id, day, subject_id=request.args.get("subject_id") or None)
        except DomainError as e:
            return error_response(e)
        filename = f"attendance_{class_id}_{day:%Y-%m-%d}.csv"
        return _write_report_csv(rows=report.rows, fieldnames=CLASS_DAILY_CSV_FIELDS, filename=filename)

    @app.route("/api/reports/period.csv", methods=["GET"], endpoint="api_report_period_csv")
    @login_required
    def api_report_period_csv():
        class_id = request.args.get("class_id") or None
        try:
            start, end = _window()
            summary = reports.period_summary(class_id, start, end)
        except DomainError as e:
            return error_response(e)
        filename = f"attendance_period_{class_id or 'all'}_{summary.start_date:%Y-%m-%d}_{summary.end_date:%Y-%m-%d}.csv"
        return _write_report_csv(rows=[summary], fieldnames=PERIOD_CSV_FIELDS, filename=filename)
