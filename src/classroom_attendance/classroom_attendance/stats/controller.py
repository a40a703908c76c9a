from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import current_role, current_user_id, error_response, roles_required, server_error
from ..core.constants import DEFAULT_TREND_DAYS
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, DomainError
from ..container import Container
from .model import LeaderboardEntry


def _leaderboard_json(rows: list[LeaderboardEntry]) -> list[dict]:
    return [
        {
            "rank": r.rank,
            "studentId": r.student_id,
            "name": r.name,
            "attended": r.attended,
            "totalClasses": r.total_classes,
            "percentage": r.percentage,
            "isCurrentUser": r.is_current_user,
        }
        for r in rows
    ]


def register(app: Flask, container: Container) -> None:
    aggregation = container.aggregation_service

    def _stats_payload(student_id: int) -> dict:
        subjects = aggregation.student_subject_stats(student_id)
        overall = aggregation.overall_percentage(student_id)
        return {
            "subjects": [
                {
                    "id": s.subject_id,
                    "name": s.name,
                    "code": s.code,
                    "totalClasses": s.total_classes,
                    "attended": s.attended,
                    "percentage": s.percentage,
                }
                for s in subjects
            ],
            "overall": {
                "totalClasses": overall.total_classes,
                "attended": overall.attended,
                "percentage": overall.percentage,
            },
        }

    @app.route("/api/students/<int:student_id>/stats", methods=["GET"], endpoint="api_student_stats")
    @roles_required(Role.ADMIN, Role.FACULTY, Role.STUDENT)
    def api_student_stats(student_id: int):
        try:
            if current_role() == Role.STUDENT:
                me = aggregation.student_for_user(current_user_id())
                if me.student_id != student_id:
                    raise AuthorizationError()
            return jsonify(_stats_payload(student_id))
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("loading attendance statistics")

    @app.route("/api/me/stats", methods=["GET"], endpoint="api_me_stats")
    @roles_required(Role.STUDENT)
    def api_me_stats():
        try:
            me = aggregation.student_for_user(current_user_id())
            return jsonify(_stats_payload(me.student_id))
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("loading attendance statistics")

    @app.route("/api/me/history", methods=["GET"], endpoint="api_me_history")
    @roles_required(Role.STUDENT)
    def api_me_history():
        try:
            me = aggregation.student_for_user(current_user_id())
            return jsonify(
                [
                    {
                        "date": h.session_date.isoformat(),
                        "subject": h.subject,
                        "startTime": h.start_time.strftime("%H:%M"),
                        "endTime": h.end_time.strftime("%H:%M"),
                        "status": h.status,
                    }
                    for h in aggregation.attendance_history(me.student_id)
                ]
            )
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("loading attendance history")

    @app.route("/api/reports/defaulters/<int:class_id>", methods=["GET"], endpoint="api_reports_defaulters")
    @roles_required(Role.ADMIN, Role.FACULTY)
    def api_reports_defaulters(class_id: int):
        try:
            return jsonify(
                [
                    {
                        "studentId": d.student_id,
                        "student": d.name,
                        "rollNo": d.roll_no,
                        "totalClasses": d.total_classes,
                        "attended": d.attended,
                        "percentage": d.percentage,
                    }
                    for d in aggregation.defaulters(class_id)
                ]
            )
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("loading defaulter list")

    @app.route("/api/classes/<int:class_id>/leaderboard", methods=["GET"], endpoint="api_class_leaderboard")
    @roles_required(Role.ADMIN, Role.FACULTY)
    def api_class_leaderboard(class_id: int):
        try:
            return jsonify(_leaderboard_json(aggregation.leaderboard(class_id)))
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("loading leaderboard")

    @app.route("/api/me/leaderboard", methods=["GET"], endpoint="api_me_leaderboard")
    @roles_required(Role.STUDENT)
    def api_me_leaderboard():
        try:
            me = aggregation.student_for_user(current_user_id())
            return jsonify(_leaderboard_json(aggregation.leaderboard(me.class_id, current_student_id=me.student_id)))
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("loading leaderboard")

    @app.route(
        "/api/reports/class/<int:class_id>/month/<int:year>/<int:month>",
        methods=["GET"],
        endpoint="api_reports_monthly_class",
    )
    @roles_required(Role.ADMIN, Role.FACULTY)
    def api_reports_monthly_class(class_id: int, year: int, month: int):
        try:
            return jsonify(
                [
                    {
                        "subject": r.subject,
                        "totalSessions": r.total_sessions,
                        "totalPresent": r.total_present,
                    }
                    for r in aggregation.monthly_class_report(class_id, year, month)
                ]
            )
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("loading monthly class report")

    @app.route("/api/dashboard/trend", methods=["GET"], endpoint="api_dashboard_trend")
    @roles_required(Role.ADMIN, Role.FACULTY)
    def api_dashboard_trend():
        try:
            points = aggregation.attendance_trend(request.args.get("days", DEFAULT_TREND_DAYS))
            return jsonify(
                [{"date": p.day.isoformat(), "day": p.label, "attendance": p.percentage} for p in points]
            )
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("loading attendance trend")
