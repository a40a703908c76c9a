"""Shared helpers for the JSON controllers.

Services raise typed `DomainError`s; this module is the one place that turns
them into status codes and user-facing messages.
"""
from __future__ import annotations

import logging
from functools import wraps
from typing import Any, Optional

from flask import jsonify, request, session

from ..core import exceptions as exc
from ..core.enums import Role
from ..core.exceptions import DomainError, ValidationError

logger = logging.getLogger(__name__)


_ERROR_TABLE: dict[type, tuple[int, str]] = {
    exc.ScheduleConflict: (400, "Timetable slot overlaps an existing lecture"),
    exc.DuplicateSession: (409, "An attendance session is already open for this slot today"),
    exc.SessionNotFound: (404, "Attendance session not found"),
    exc.SessionLocked: (403, "Attendance session is locked or archived"),
    exc.EditWindowExpired: (422, "The edit window for this record has expired"),
    exc.RecordNotFound: (404, "Attendance record not found"),
    exc.EditConflict: (409, "The record was changed concurrently, please retry"),
    exc.StudentNotFound: (404, "Student profile not found"),
    exc.AuthorizationError: (403, "You do not have permission for this action"),
}


def error_response(error: DomainError):
    for cls in type(error).__mro__:
        if cls in _ERROR_TABLE:
            status, message = _ERROR_TABLE[cls]
            break
    else:
        # ValidationError and anything unmapped: the diagnostic is the message.
        status, message = 400, str(error)

    return jsonify({"success": False, "error": error.code, "message": message}), status


def server_error(action: str):
    logger.exception("Unexpected failure while %s", action)
    return jsonify({"success": False, "error": "server_error", "message": f"System error while {action}"}), 500


def current_role() -> Optional[Role]:
    try:
        return Role(session.get("role"))
    except ValueError:
        return None


def current_user_id() -> int:
    return int(session["user_id"])


def roles_required(*roles: Role):
    """Reject callers that are not logged in or whose session role is not allowed."""

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if "user_id" not in session:
                return jsonify({"success": False, "error": "unauthenticated", "message": "Please log in"}), 401

            if current_role() not in roles:
                return error_response(exc.AuthorizationError())

            return view(*args, **kwargs)

        return wrapper

    return decorator


def json_body() -> dict[str, Any]:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data
