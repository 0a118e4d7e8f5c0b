from __future__ import annotations

import pytest
from firebase_admin.exceptions import FirebaseError

from src.qr_attendance.qr_attendance.core.exceptions import NotificationClientNotInitialized
from src.qr_attendance.qr_attendance.notifications.dispatcher import NotificationDispatcher
from src.qr_attendance.qr_attendance.notifications.gateway import NotificationGateway

from conftest import FakePushClient, InlineExecutor


def test_missing_client_raises_typed_error(users_repo):
    gateway = NotificationGateway(None, users_repo)

    with pytest.raises(NotificationClientNotInitialized):
        gateway.send_to_device("tok", "t", "b")


def test_send_to_all_admins_uses_admin_tokens(users_repo, clock):
    client = FakePushClient()
    gateway = NotificationGateway(client, users_repo, clock=clock)

    result = gateway.notify_attendance_exit("Ana Pérez", "17:05")

    assert result.success and result.success_count == 1
    (sent,) = client.multicasts
    assert sent["tokens"] == ["admin-token"]
    assert sent["data"]["type"] == "attendance_exit"
    assert sent["data"]["timestamp"] == clock.now.isoformat()


def test_no_admin_tokens(users_repo):
    for user in users_repo.list_by_role(users_repo.get_by_id(1).role):
        users_repo.update_fcm_token(user.user_id, None)

    result = NotificationGateway(FakePushClient(), users_repo).send_to_all_admins("t", "b")

    assert not result.success


def test_daily_summary_body(users_repo):
    client = FakePushClient()
    NotificationGateway(client, users_repo).notify_daily_summary(10, 7, 3)

    assert client.multicasts[0]["body"] == "Presentes: 7/10 - Ausentes: 3"


def test_delivery_error_is_returned_not_raised(users_repo):
    client = FakePushClient()

    def fail(**kwargs):
        raise FirebaseError("unavailable", "service down")

    client.send = fail
    result = NotificationGateway(client, users_repo).send_to_device("tok", "t", "b")

    assert not result.success
    assert "service down" in result.error


def test_validate_token_is_a_dry_run(users_repo):
    client = FakePushClient()

    assert NotificationGateway(client, users_repo).validate_token("tok").success
    assert client.sent[0]["dry_run"] is True


def test_dispatcher_logs_and_swallows_send_errors(caplog):
    dispatcher = NotificationDispatcher(InlineExecutor())

    def boom():
        raise RuntimeError("down")

    future = dispatcher.dispatch("test", boom)

    assert future.result() is None
    assert "notification test raised" in caplog.text


def test_dispatcher_skips_when_client_missing(users_repo, caplog):
    dispatcher = NotificationDispatcher(InlineExecutor())
    gateway = NotificationGateway(None, users_repo)

    with caplog.at_level("INFO"):
        dispatcher.dispatch("welcome", gateway.send_test_notification, "tok", "Ana").result()

    assert "push client not configured" in caplog.text
