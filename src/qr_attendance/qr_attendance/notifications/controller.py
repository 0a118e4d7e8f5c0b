from __future__ import annotations

from flask import Flask

from ..common.http import fail, json_body, ok
from ..common.validators import optional_text, require_non_empty
from ..core.exceptions import NotFoundError, ValidationError
from ..core.permissions import Capability
from ..container import Container
from .gateway import SendResult


def _reply(result: SendResult, message: str):
    if not result.success:
        return fail(result.error or "No se pudo enviar la notificación", 400)
    return ok(result.to_dict(), message=message)


def register(app: Flask, container: Container) -> None:
    guard = container.guard
    gateway = container.notification_gateway
    users = container.users_repo

    @app.route("/api/notifications/test", methods=["POST"], endpoint="notifications_test")
    @guard.requires(Capability.SEND_NOTIFICATIONS)
    def test():
        body = json_body()
        token = require_non_empty(body.get("token"), "token")
        title = optional_text(body.get("title"), "title")
        message = optional_text(body.get("message"), "message")
        if title or message:
            result = gateway.send_to_device(token, title or "🧪 Notificación de Prueba", message or "Prueba", {"type": "test"})
        else:
            result = gateway.send_test_notification(token)
        return _reply(result, "Notificación de prueba enviada")

    @app.route("/api/notifications/broadcast-admins", methods=["POST"], endpoint="notifications_broadcast")
    @guard.requires(Capability.SEND_NOTIFICATIONS)
    def broadcast_admins():
        body = json_body()
        title = require_non_empty(body.get("title"), "title")
        message = require_non_empty(body.get("message"), "message")
        return _reply(gateway.send_to_all_admins(title, message, {"type": "broadcast"}), "Notificación enviada")

    @app.route("/api/notifications/send-to-user", methods=["POST"], endpoint="notifications_send_to_user")
    @guard.requires(Capability.SEND_NOTIFICATIONS)
    def send_to_user():
        body = json_body()
        try:
            user_id = int(body.get("userId"))
        except (TypeError, ValueError):
            raise ValidationError("userId requerido") from None
        title = require_non_empty(body.get("title"), "title")
        message = require_non_empty(body.get("message"), "message")

        user = users.get_by_id(user_id)
        if not user:
            raise NotFoundError("Usuario no encontrado")
        if not user.fcm_token:
            return fail("El usuario no tiene token FCM registrado", 400)
        return _reply(gateway.send_to_device(user.fcm_token, title, message, {"type": "direct"}), "Notificación enviada")

    @app.route("/api/notifications/users-with-fcm", methods=["GET"], endpoint="notifications_users_with_fcm")
    @guard.requires(Capability.SEND_NOTIFICATIONS)
    def users_with_fcm():
        return ok([u.public_dict() for u in users.list_with_fcm_token()])

    @app.route("/api/notifications/daily-summary", methods=["POST"], endpoint="notifications_daily_summary")
    @guard.requires(Capability.SEND_NOTIFICATIONS)
    def daily_summary():
        stats = container.attendance_ledger.admin_stats()
        result = gateway.notify_daily_summary(
            stats.total_employees,
            stats.employees_with_entry,
            stats.absent_employees,
        )
        return _reply(result, "Resumen diario enviado")

    @app.route("/api/notifications/validate-fcm", methods=["POST"], endpoint="notifications_validate_fcm")
    @guard.requires(Capability.VALIDATE_PUSH_TOKEN)
    def validate_fcm():
        token = require_non_empty(json_body().get("fcmToken"), "fcmToken")
        result = gateway.validate_token(token)
        return ok({"valid": result.success, "error": result.error})
