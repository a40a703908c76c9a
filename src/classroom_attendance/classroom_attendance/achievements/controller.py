from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import current_user_id, error_response, json_body, roles_required, server_error
from ..core.enums import Role
from ..core.exceptions import DomainError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/me/achievements", methods=["GET"], endpoint="api_me_achievements")
    @roles_required(Role.STUDENT)
    def api_me_achievements():
        try:
            me = container.aggregation_service.student_for_user(current_user_id())
            statuses = container.achievement_evaluator.evaluate(me.student_id)
            return jsonify(
                [
                    {
                        "id": s.achievement_id,
                        "title": s.title,
                        "description": s.description,
                        "icon": s.icon,
                        "unlocked": s.unlocked,
                        "newlyUnlocked": s.newly_unlocked,
                    }
                    for s in statuses
                ]
            )
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("evaluating achievements")

    @app.route("/api/achievements", methods=["GET"], endpoint="api_achievements_list")
    @roles_required(Role.ADMIN)
    def api_achievements_list():
        try:
            return jsonify(
                [
                    {
                        "id": a.achievement_id,
                        "title": a.title,
                        "description": a.description,
                        "icon": a.icon,
                        "criteria": a.criteria,
                    }
                    for a in container.achievement_evaluator.list_achievements()
                ]
            )
        except Exception:
            return server_error("loading achievements")

    @app.route("/api/achievements", methods=["POST"], endpoint="api_achievements_create")
    @roles_required(Role.ADMIN)
    def api_achievements_create():
        try:
            data = json_body()
            achievement_id = container.achievement_evaluator.define_achievement(
                title=data.get("title", ""),
                description=data.get("description"),
                icon=data.get("icon"),
                criteria=data.get("criteria"),
            )
            return jsonify({"success": True, "id": achievement_id}), 201
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("creating achievement")
