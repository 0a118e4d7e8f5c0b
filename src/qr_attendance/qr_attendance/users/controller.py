from __future__ import annotations

from flask import Flask

from ..common.http import json_body, ok
from ..core.permissions import Capability
from ..container import Container
from .guards import current_user
from .service import Registration


def register(app: Flask, container: Container) -> None:
    guard = container.guard
    auth = container.auth_service

    @app.route("/api/auth/register", methods=["POST"], endpoint="auth_register")
    def register_user():
        session = auth.register(Registration.from_payload(json_body()))
        return ok(session.to_dict(), message="Usuario registrado exitosamente", status=201)

    @app.route("/api/auth/login", methods=["POST"], endpoint="auth_login")
    def login():
        body = json_body()
        session = auth.login(body.get("email"), body.get("password"), body.get("fcmToken"))
        return ok(session.to_dict(), message="Login exitoso")

    @app.route("/api/auth/profile", methods=["GET"], endpoint="auth_profile")
    @guard.requires(Capability.MANAGE_OWN_PROFILE)
    def profile():
        user = auth.profile(current_user().user_id)
        return ok(user.public_dict())

    @app.route("/api/auth/fcm-token", methods=["PUT"], endpoint="auth_fcm_token")
    @guard.requires(Capability.MANAGE_OWN_PROFILE)
    def fcm_token():
        auth.update_fcm_token(current_user().user_id, json_body().get("fcmToken"))
        return ok(message="Token FCM actualizado exitosamente")

    @app.route("/api/auth/employees", methods=["GET"], endpoint="auth_employees")
    @guard.requires(Capability.VIEW_EMPLOYEES)
    def employees():
        return ok([u.public_dict() for u in auth.list_employees()])
