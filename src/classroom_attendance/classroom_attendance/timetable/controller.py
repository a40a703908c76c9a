from __future__ import annotations

from flask import Flask, jsonify

from ..common.datetime_utils import parse_clock_time
from ..common.http import current_role, current_user_id, error_response, json_body, roles_required, server_error
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, DomainError, ValidationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/timetable/slots", methods=["POST"], endpoint="api_timetable_create_slot")
    @roles_required(Role.ADMIN)
    def api_timetable_create_slot():
        try:
            data = json_body()
            try:
                start = parse_clock_time(data.get("startTime", ""))
                end = parse_clock_time(data.get("endTime", ""))
            except ValueError:
                raise ValidationError("Invalid time (HH:MM)")

            slot_id = container.timetable_service.create_slot(
                mapping_id=data.get("facultySubjectMapId"),
                day_of_week=data.get("dayOfWeek"),
                start=start,
                end=end,
            )
            return jsonify({"success": True, "slotId": slot_id}), 201
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("creating timetable slot")

    @app.route("/api/timetable/slots/<int:slot_id>", methods=["DELETE"], endpoint="api_timetable_delete_slot")
    @roles_required(Role.ADMIN)
    def api_timetable_delete_slot(slot_id: int):
        try:
            container.timetable_service.delete_slot(slot_id=slot_id)
            return jsonify({"success": True})
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("deleting timetable slot")

    @app.route("/api/faculty/<int:faculty_id>/timetable/today", methods=["GET"], endpoint="api_faculty_today")
    @roles_required(Role.ADMIN, Role.FACULTY)
    def api_faculty_today(faculty_id: int):
        try:
            if current_role() == Role.FACULTY and faculty_id != current_user_id():
                raise AuthorizationError()
            rows = container.timetable_service.today_timetable(faculty_id=faculty_id)
            return jsonify(
                [
                    {
                        "timetableSlotId": r.slot_id,
                        "subject": r.subject,
                        "class": r.class_name,
                        "startTime": r.start_time.strftime("%H:%M"),
                        "endTime": r.end_time.strftime("%H:%M"),
                    }
                    for r in rows
                ]
            )
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("loading today's timetable")
