from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

import firebase_admin
from firebase_admin import credentials, messaging

from ..core.constants import PUSH_CHANNEL_ID

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MulticastResult:
    success_count: int
    failure_count: int


class PushClient(Protocol):
    """What the notification gateway needs from a push-messaging backend."""

    def send(self, *, token: str, title: str, body: str, data: dict[str, str], dry_run: bool = False) -> str:
        raise NotImplementedError

    def send_multicast(self, *, tokens: Sequence[str], title: str, body: str, data: dict[str, str]) -> MulticastResult:
        raise NotImplementedError


def _android() -> messaging.AndroidConfig:
    return messaging.AndroidConfig(
        priority="high",
        notification=messaging.AndroidNotification(sound="default", channel_id=PUSH_CHANNEL_ID),
    )


def _apns() -> messaging.APNSConfig:
    return messaging.APNSConfig(
        headers={"apns-priority": "10"},
        payload=messaging.APNSPayload(aps=messaging.Aps(sound="default", badge=1)),
    )


class FirebasePushClient(PushClient):
    """Firebase Cloud Messaging client bound to one explicitly initialized firebase app."""

    def __init__(self, app: firebase_admin.App):
        self._app = app

    @classmethod
    def from_service_account(cls, path: str, *, name: str = "qr-attendance") -> "FirebasePushClient":
        cred = credentials.Certificate(path)
        app = firebase_admin.initialize_app(cred, {"projectId": cred.project_id}, name=name)
        logger.info("firebase app initialized for project %s", cred.project_id)
        return cls(app)

    def send(self, *, token: str, title: str, body: str, data: dict[str, str], dry_run: bool = False) -> str:
        message = messaging.Message(
            notification=messaging.Notification(title=title, body=body) if title or body else None,
            data=data,
            token=token,
            android=_android(),
            apns=_apns(),
        )
        return messaging.send(message, dry_run=dry_run, app=self._app)

    def send_multicast(self, *, tokens: Sequence[str], title: str, body: str, data: dict[str, str]) -> MulticastResult:
        message = messaging.MulticastMessage(
            tokens=list(tokens),
            notification=messaging.Notification(title=title, body=body),
            data=data,
            android=_android(),
            apns=_apns(),
        )
        response = messaging.send_each_for_multicast(message, app=self._app)
        return MulticastResult(success_count=response.success_count, failure_count=response.failure_count)


def build_push_client(credentials_path: Optional[str]) -> Optional[PushClient]:
    if not credentials_path:
        logger.warning("FIREBASE_CREDENTIALS not set: push notifications are disabled")
        return None
    return FirebasePushClient.from_service_account(credentials_path)
