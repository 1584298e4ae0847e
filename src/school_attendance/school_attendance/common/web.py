"""Helpers shared by the Flask controllers (thin JSON layer)."""
from __future__ import annotations

from datetime import date
from functools import wraps
from typing import Optional

from flask import current_app, jsonify, session

from ..core.exceptions import (
    DomainError,
    NotFoundError,
    PartialBatchFailure,
    SessionStateError,
    StorageError,
    ValidationError,
)
from .validators import require_date

_STATUS_BY_ERROR = (
    (PartialBatchFailure, 207),
    (NotFoundError, 404),
    (StorageError, 503),
    (SessionStateError, 409),
    (ValidationError, 400),
)


def login_required(view):
    """Reject requests without an actor id in the signed session cookie."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return jsonify({"success": False, "message": "login required"}), 401
        return view(*args, **kwargs)

    return wrapper


def current_actor() -> Optional[str]:
    value = session.get("user_id")
    return None if value is None else str(value)


def error_response(e: DomainError):
    status = 400
    for exc_type, code in _STATUS_BY_ERROR:
        if isinstance(e, exc_type):
            status = code
            break

    body = {"success": False, "error": type(e).__name__, "message": str(e)}
    if isinstance(e, PartialBatchFailure):
        body.update(e.result.to_dict())
    if status >= 500:
        current_app.logger.error("request failed: %s", e)
    return jsonify(body), status


def optional_date(value: Optional[str], field_name: str) -> Optional[date]:
    if value is None or value == "":
        return None
    return require_date(value, field_name)
