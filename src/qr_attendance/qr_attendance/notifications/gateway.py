from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Sequence

from firebase_admin.exceptions import FirebaseError

from ..common.datetime_utils import now_local
from ..core.enums import Role
from ..core.exceptions import NotificationClientNotInitialized
from ..users.repository import UserRepository
from .firebase_client import PushClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SendResult:
    success: bool
    message_id: Optional[str] = None
    success_count: int = 0
    failure_count: int = 0
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "messageId": self.message_id,
            "successCount": self.success_count,
            "failureCount": self.failure_count,
        }


class NotificationGateway:
    """Sends push notifications with fixed templates per attendance event.

    Delivery problems are returned as SendResult(success=False); only a missing
    client raises, so callers can tell "not configured" from "delivery failed".
    """

    def __init__(
        self,
        client: Optional[PushClient],
        users: UserRepository,
        *,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._client = client
        self._users = users
        self._clock = clock or now_local

    def _require_client(self) -> PushClient:
        if self._client is None:
            raise NotificationClientNotInitialized("Servicio de notificaciones no inicializado")
        return self._client

    def _payload(self, data: Optional[dict]) -> dict[str, str]:
        payload = {str(k): str(v) for k, v in (data or {}).items()}
        payload.setdefault("timestamp", self._clock().isoformat())
        return payload

    def send_to_device(self, fcm_token: str, title: str, body: str, data: Optional[dict] = None) -> SendResult:
        client = self._require_client()
        if not fcm_token or not isinstance(fcm_token, str):
            return SendResult(success=False, error="Token FCM inválido")

        try:
            message_id = client.send(token=fcm_token, title=title, body=body, data=self._payload(data))
        except (FirebaseError, ValueError) as exc:
            logger.warning("push to device failed: %s", exc)
            return SendResult(success=False, error=str(exc))

        logger.info("push sent message_id=%s", message_id)
        return SendResult(success=True, message_id=message_id, success_count=1)

    def send_to_multiple(self, fcm_tokens: Sequence[str], title: str, body: str, data: Optional[dict] = None) -> SendResult:
        client = self._require_client()
        tokens = [t for t in fcm_tokens if t]
        if not tokens:
            return SendResult(success=False, error="Lista de tokens FCM inválida")

        try:
            result = client.send_multicast(tokens=tokens, title=title, body=body, data=self._payload(data))
        except (FirebaseError, ValueError) as exc:
            logger.warning("multicast push failed: %s", exc)
            return SendResult(success=False, error=str(exc))

        logger.info("multicast push sent ok=%s failed=%s", result.success_count, result.failure_count)
        return SendResult(success=True, success_count=result.success_count, failure_count=result.failure_count)

    def send_to_all_admins(self, title: str, body: str, data: Optional[dict] = None) -> SendResult:
        self._require_client()
        tokens = [u.fcm_token for u in self._users.list_with_fcm_token(role=Role.ADMIN) if u.fcm_token]
        if not tokens:
            logger.info("no admin push tokens registered")
            return SendResult(success=False, error="No hay administradores con tokens FCM")
        return self.send_to_multiple(tokens, title, body, data)

    def notify_attendance_entry(self, employee_name: str, time: str, is_late: bool = False) -> SendResult:
        title = "🔴 Llegada Tardía" if is_late else "🟢 Nueva Entrada"
        body = f"{employee_name} marcó entrada - {time}"
        data = {"type": "attendance_entry", "employee": employee_name, "time": time, "isLate": str(is_late).lower()}
        return self.send_to_all_admins(title, body, data)

    def notify_attendance_exit(self, employee_name: str, time: str, is_early: bool = False) -> SendResult:
        title = "🟡 Salida Temprana" if is_early else "🟡 Nueva Salida"
        body = f"{employee_name} marcó salida - {time}"
        data = {"type": "attendance_exit", "employee": employee_name, "time": time, "isEarly": str(is_early).lower()}
        return self.send_to_all_admins(title, body, data)

    def notify_daily_summary(self, total_employees: int, present_count: int, absent_count: int) -> SendResult:
        title = "📊 Resumen Diario"
        body = f"Presentes: {present_count}/{total_employees} - Ausentes: {absent_count}"
        data = {
            "type": "daily_summary",
            "totalEmployees": total_employees,
            "presentCount": present_count,
            "absentCount": absent_count,
        }
        return self.send_to_all_admins(title, body, data)

    def send_test_notification(self, fcm_token: str, user_name: str = "Usuario") -> SendResult:
        title = "🧪 Notificación de Prueba"
        body = f"¡Hola {user_name}! Las notificaciones están funcionando correctamente"
        return self.send_to_device(fcm_token, title, body, {"type": "test"})

    def validate_token(self, fcm_token: str) -> SendResult:
        """Dry-run send: checks the token without delivering anything."""

        client = self._require_client()
        try:
            client.send(token=fcm_token, title="", body="", data={"test": "true"}, dry_run=True)
        except (FirebaseError, ValueError) as exc:
            code = getattr(exc, "code", None)
            return SendResult(success=False, error=str(code or exc))
        return SendResult(success=True)
