from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import current_user_id, error_response, json_body, roles_required, server_error
from ..core.enums import Role
from ..core.exceptions import DomainError, ValidationError
from ..container import Container
from .model import MarkResult


def _mark_json(result: MarkResult) -> dict:
    return {
        "recordId": result.record_id,
        "status": result.status.value,
        "editCount": result.edit_count,
        "markedAt": result.marked_at.isoformat(),
        "created": result.created,
    }


def register(app: Flask, container: Container) -> None:
    @app.route("/api/attendance/mark", methods=["POST"], endpoint="api_attendance_mark")
    @roles_required(Role.FACULTY, Role.ADMIN)
    def api_attendance_mark():
        try:
            data = json_body()
            # The editor is always the authenticated caller, never a client-supplied id.
            result = container.record_ledger.mark_or_edit(
                data.get("sessionId"),
                data.get("studentId"),
                data.get("status", ""),
                current_user_id(),
                data.get("reason"),
            )
            return jsonify({"success": True, **_mark_json(result)})
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("marking attendance")

    @app.route("/api/attendance/mark-bulk", methods=["POST"], endpoint="api_attendance_mark_bulk")
    @roles_required(Role.FACULTY, Role.ADMIN)
    def api_attendance_mark_bulk():
        try:
            data = json_body()
            items = data.get("marks")
            if not isinstance(items, list):
                raise ValidationError("marks must be a list")
            try:
                marks = [(int(m["studentId"]), str(m["status"])) for m in items]
            except (KeyError, TypeError, ValueError):
                raise ValidationError("each mark needs studentId and status")

            outcomes = container.record_ledger.mark_bulk(
                data.get("sessionId"), marks, current_user_id(), data.get("reason")
            )
            return jsonify(
                {
                    "success": all(o.ok for o in outcomes),
                    "results": [
                        {"studentId": o.student_id, **(_mark_json(o.result) if o.result else {"error": o.error})}
                        for o in outcomes
                    ],
                }
            )
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("marking attendance")

    @app.route("/api/attendance/records/<int:record_id>/audit", methods=["GET"], endpoint="api_attendance_audit")
    @roles_required(Role.ADMIN, Role.FACULTY)
    def api_attendance_audit(record_id: int):
        try:
            entries = container.record_ledger.audit_trail(record_id)
            return jsonify(
                [
                    {
                        "oldStatus": e.old_status.value,
                        "newStatus": e.new_status.value,
                        "editedBy": e.edited_by,
                        "reason": e.reason,
                        "editedAt": e.edited_at.isoformat(),
                    }
                    for e in entries
                ]
            )
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("loading audit trail")

    @app.route("/api/reports/abuse", methods=["GET"], endpoint="api_reports_abuse")
    @roles_required(Role.ADMIN)
    def api_reports_abuse():
        try:
            rows = container.record_ledger.list_abuse_candidates()
            return jsonify(
                [
                    {
                        "recordId": r.record_id,
                        "student": r.student_name,
                        "editCount": r.edit_count,
                        "sessionDate": r.session_date.isoformat() if r.session_date else None,
                        "subject": r.subject,
                    }
                    for r in rows
                ]
            )
        except Exception:
            return server_error("loading abuse report")
