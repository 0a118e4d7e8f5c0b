from __future__ import annotations

from flask import Flask, request

from ..common.http import json_body, ok
from ..core.exceptions import ValidationError
from ..core.permissions import Capability
from ..container import Container


def register(app: Flask, container: Container) -> None:
    guard = container.guard
    schedules = container.schedule_service

    @app.route("/api/schedules", methods=["GET"], endpoint="schedules_list")
    @guard.requires(Capability.MANAGE_SCHEDULES)
    def list_schedules():
        user_id = request.args.get("userId")
        if user_id is not None:
            try:
                user_id = int(user_id)
            except ValueError:
                raise ValidationError("userId debe ser numérico") from None
        return ok([s.to_dict() for s in schedules.list(user_id)])

    @app.route("/api/schedules", methods=["PUT"], endpoint="schedules_upsert")
    @guard.requires(Capability.MANAGE_SCHEDULES)
    def upsert_schedule():
        schedule_id = schedules.upsert(json_body())
        return ok({"id": schedule_id}, message="Horario guardado exitosamente")

    @app.route("/api/schedules/<int:schedule_id>", methods=["DELETE"], endpoint="schedules_delete")
    @guard.requires(Capability.MANAGE_SCHEDULES)
    def delete_schedule(schedule_id: int):
        schedules.delete(schedule_id)
        return ok(message="Horario eliminado exitosamente")
