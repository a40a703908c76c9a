from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import error_response, json_body, roles_required, server_error
from ..core.enums import Role
from ..core.exceptions import DomainError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/sessions", methods=["POST"], endpoint="api_sessions_open")
    @roles_required(Role.FACULTY, Role.ADMIN)
    def api_sessions_open():
        try:
            data = json_body()
            session_id = container.session_manager.open_session(data.get("timetableSlotId"))
            return jsonify({"success": True, "sessionId": session_id}), 201
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("opening attendance session")

    @app.route("/api/sessions/<int:session_id>/lock", methods=["POST"], endpoint="api_sessions_lock")
    @roles_required(Role.FACULTY, Role.ADMIN)
    def api_sessions_lock(session_id: int):
        try:
            container.session_manager.lock_session(session_id)
            return jsonify({"success": True})
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("locking attendance session")

    @app.route("/api/sessions/<int:session_id>/students", methods=["GET"], endpoint="api_sessions_students")
    @roles_required(Role.FACULTY, Role.ADMIN)
    def api_sessions_students(session_id: int):
        try:
            rows = container.session_manager.session_roster(session_id)
            return jsonify(
                [
                    {
                        "studentId": r.student_id,
                        "studentName": r.student_name,
                        "rollNo": r.roll_no,
                        "status": r.status.value if r.status else None,
                    }
                    for r in rows
                ]
            )
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("loading session roster")

    @app.route("/api/dashboard/sessions", methods=["GET"], endpoint="api_dashboard_sessions")
    @roles_required(Role.ADMIN, Role.FACULTY)
    def api_dashboard_sessions():
        try:
            summary = container.session_manager.today_summary()
            return jsonify(
                {
                    "todaySessions": summary.total,
                    "completedSessions": summary.completed,
                    "inProgressSessions": summary.in_progress,
                }
            )
        except Exception:
            return server_error("loading dashboard statistics")
