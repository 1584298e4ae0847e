from __future__ import annotations

from typing import Optional

from flask import Flask, jsonify, request, session

from ..common.validators import optional_text
from ..common.web import current_actor, error_response, login_required
from ..container import Container
from ..core.exceptions import DomainError
from .model import MarkingSession

SESSION_KEY = "marking"


def register(app: Flask, container: Container) -> None:
    controller = container.session_controller

    def _load() -> Optional[MarkingSession]:
        raw = session.get(SESSION_KEY)
        return MarkingSession.from_dict(raw) if raw else None

    def _save(ms: MarkingSession) -> None:
        session[SESSION_KEY] = ms.to_dict()

    def _view(ms: MarkingSession) -> dict:
        current = controller.current_student(ms)
        body = ms.to_dict()
        body["progress"] = controller.progress(ms)
        body["current_student_id"] = current.student_id if current else None
        return body

    def _no_session():
        return jsonify({"success": False, "message": "no marking session in progress"}), 404

    @app.route("/api/attendance/session/start", methods=["POST"], endpoint="api_session_start")
    @login_required
    def api_session_start():
        data = request.get_json(silent=True) or {}
        previous = _load()
        try:
            controller.release(
                previous,
                submit_pending=bool(data.get("submit_pending")),
                discard=bool(data.get("discard")),
            )
        except DomainError as e:
            return error_response(e)
        finally:
            # release() may have submitted the previous session.
            if previous is not None:
                _save(previous)

        try:
            ms = controller.start(
                actor_id=current_actor(),
                class_id=data.get("class_id"),
                attendance_date=data.get("date"),
                subject_id=data.get("subject_id"),
            )
        except DomainError as e:
            return error_response(e)

        _save(ms)
        return jsonify(_view(ms))

    @app.route("/api/attendance/session", methods=["GET"], endpoint="api_session_view")
    @login_required
    def api_session_view():
        ms = _load()
        if ms is None:
            return _no_session()
        return jsonify(_view(ms))

    @app.route("/api/attendance/session/mark", methods=["POST"], endpoint="api_session_mark")
    @login_required
    def api_session_mark():
        ms = _load()
        if ms is None:
            return _no_session()

        data = request.get_json(silent=True) or {}
        try:
            controller.mark(
                ms,
                str(data.get("student_id") or ""),
                data.get("status"),
                photo=data.get("photo") or None,
                notes=optional_text(data.get("notes")),
            )
        except DomainError as e:
            return error_response(e)

        _save(ms)
        return jsonify(_view(ms))

    @app.route("/api/attendance/session/seek", methods=["POST"], endpoint="api_session_seek")
    @login_required
    def api_session_seek():
        ms = _load()
        if ms is None:
            return _no_session()

        data = request.get_json(silent=True) or {}
        try:
            controller.seek(ms, str(data.get("student_id") or ""))
        except DomainError as e:
            return error_response(e)

        _save(ms)
        return jsonify(_view(ms))

    @app.route("/api/attendance/session/submit", methods=["POST"], endpoint="api_session_submit")
    @login_required
    def api_session_submit():
        ms = _load()
        if ms is None:
            return _no_session()

        try:
            result = controller.submit(ms)
        except DomainError as e:
            # Working set stays in the cookie untouched so the client can retry.
            return error_response(e)

        _save(ms)
        body = {"success": result.ok, "result": result.to_dict(), "session": _view(ms)}
        return jsonify(body), 200 if result.ok else 207

    @app.route("/api/attendance/session/finalize", methods=["POST"], endpoint="api_session_finalize")
    @login_required
    def api_session_finalize():
        ms = _load()
        if ms is None:
            return _no_session()

        data = request.get_json(silent=True) or {}
        try:
            result = controller.finalize(ms, submit_pending=bool(data.get("submit_pending")))
        except DomainError as e:
            _save(ms)
            return error_response(e)

        session.pop(SESSION_KEY, None)
        return jsonify({"success": True, "result": result.to_dict() if result else None})
