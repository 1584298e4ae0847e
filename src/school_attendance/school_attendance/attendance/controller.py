from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.validators import optional_text, require_status
from ..common.web import current_actor, error_response, login_required, optional_date
from ..container import Container
from ..core.constants import DEFAULT_QUERY_LIMIT
from ..core.exceptions import DomainError
from .model import AttendanceFilter


def register(app: Flask, container: Container) -> None:
    @app.route("/api/attendance", methods=["POST"], endpoint="api_submit_attendance")
    @login_required
    def api_submit_attendance():
        data = request.get_json(silent=True) or {}
        entries = data.get("entries")
        if not isinstance(entries, list):
            return jsonify({"success": False, "message": "entries must be a list"}), 400

        try:
            result = container.attendance_service.submit_attendance(
                class_id=data.get("class_id"),
                attendance_date=data.get("date"),
                subject_id=optional_text(data.get("subject_id")),
                entries=[e for e in entries if isinstance(e, dict)],
                marked_by=current_actor(),
            )
        except DomainError as e:
            return error_response(e)

        body = {"success": result.ok, **result.to_dict()}
        return jsonify(body), 200 if result.ok else 207

    @app.route("/api/attendance", methods=["GET"], endpoint="api_get_attendance")
    @login_required
    def api_get_attendance():
        args = request.args
        try:
            status = args.get("status")
            limit = args.get("limit")
            flt = AttendanceFilter(
                class_id=args.get("class_id") or None,
                attendance_date=optional_date(args.get("date"), "date"),
                student_id=args.get("student_id") or None,
                subject_id=args.get("subject_id") or None,
                status=require_status(status) if status else None,
                limit=int(limit) if limit and limit.isdigit() else DEFAULT_QUERY_LIMIT,
            )
            records = container.attendance_service.get_attendance(flt)
        except DomainError as e:
            return error_response(e)

        return jsonify([r.to_dict() for r in records])
