from __future__ import annotations

from flask import Flask, request

from ..common.http import fail, json_body, ok, query_flag
from ..common.validators import optional_text, parse_flag, require_non_empty
from ..core.enums import DeactivateOutcome
from ..core.permissions import Capability
from ..users.guards import current_user
from ..container import Container
from .service import parse_qr_type


def register(app: Flask, container: Container) -> None:
    guard = container.guard
    registry = container.qr_registry

    @app.route("/api/qr/generate-pair", methods=["POST"], endpoint="qr_generate_pair")
    @guard.requires(Capability.MANAGE_QR)
    def generate_pair():
        company_name = optional_text(json_body().get("companyName"), "companyName")
        pair = registry.generate_pair(current_user().user_id, company_name)
        return ok(pair.to_dict(), message="Códigos QR generados exitosamente", status=201)

    @app.route("/api/qr/generate", methods=["POST"], endpoint="qr_generate")
    @guard.requires(Capability.MANAGE_QR)
    def generate():
        body = json_body()
        created = registry.create_code(
            parse_qr_type(body.get("type")),
            current_user().user_id,
            description=optional_text(body.get("description"), "description"),
            regenerate=parse_flag(body.get("regenerate"), "regenerate", default=False),
        )
        return ok(created.to_dict(), message="Código QR generado exitosamente", status=201)

    @app.route("/api/qr/list", methods=["GET"], endpoint="qr_list")
    @guard.requires(Capability.MANAGE_QR)
    def list_codes():
        type_arg = (request.args.get("type") or "").strip()
        qr_type = parse_qr_type(type_arg) if type_arg else None
        return ok(registry.list_active(qr_type, include_images=query_flag("includeImages")))

    @app.route("/api/qr/validate", methods=["POST"], endpoint="qr_validate")
    @guard.requires(Capability.VALIDATE_QR)
    def validate():
        result = registry.validate(require_non_empty(json_body().get("qrCode"), "qrCode"))
        if not result.valid:
            return fail(result.reason or "Código QR inválido", 400)
        return ok(result.record.to_dict(), message="Código QR válido")

    @app.route("/api/qr/<int:qr_id>", methods=["GET"], endpoint="qr_get")
    @guard.requires(Capability.MANAGE_QR)
    def get_code(qr_id: int):
        return ok(registry.get_with_image(qr_id).to_dict())

    @app.route("/api/qr/<int:qr_id>/deactivate", methods=["PATCH"], endpoint="qr_deactivate")
    @guard.requires(Capability.DEACTIVATE_QR)
    def deactivate(qr_id: int):
        user = current_user()
        outcome = registry.deactivate(qr_id, user.user_id, user.role)
        if outcome == DeactivateOutcome.NOT_FOUND:
            return fail("Código QR no encontrado", 404)
        if outcome == DeactivateOutcome.FORBIDDEN:
            return fail("No tienes permisos para desactivar este código QR", 403)
        return ok(message="Código QR desactivado exitosamente")
