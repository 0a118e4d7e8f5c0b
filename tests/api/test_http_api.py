from __future__ import annotations

from src.qr_attendance.qr_attendance.core.enums import QRType


def test_health(client):
    res = client.get("/api/health")

    assert res.status_code == 200
    assert res.get_json() == {"success": True, "status": "ok"}
    assert res.headers["X-Frame-Options"] == "DENY"


def test_unknown_route(client):
    res = client.get("/api/nope")

    assert res.status_code == 404
    assert res.get_json()["message"] == "Ruta no encontrada"


def test_missing_and_invalid_tokens(client):
    res = client.get("/api/attendance/my-status")
    assert res.status_code == 401
    assert res.get_json()["message"] == "Token de acceso requerido"

    res = client.get("/api/attendance/my-status", headers={"Authorization": "Bearer garbage"})
    assert res.status_code == 401
    assert res.get_json()["message"] == "Token inválido"


def test_employee_cannot_reach_admin_routes(client, auth_header):
    for path in ("/api/attendance/today", "/api/attendance/stats", "/api/auth/employees", "/api/qr/list"):
        res = client.get(path, headers=auth_header(2))
        assert res.status_code == 403, path


def test_register_and_login(client):
    res = client.post(
        "/api/auth/register",
        json={"firstName": "Sofía", "lastName": "Ruiz", "email": "sofia@empresa.com", "password": "secret1"},
    )
    assert res.status_code == 201
    body = res.get_json()
    assert body["data"]["user"]["email"] == "sofia@empresa.com"
    assert body["data"]["token"]

    dup = client.post(
        "/api/auth/register",
        json={"firstName": "Sofía", "lastName": "Ruiz", "email": "sofia@empresa.com", "password": "secret1"},
    )
    assert dup.status_code == 400

    bad = client.post("/api/auth/login", json={"email": "sofia@empresa.com", "password": "nope"})
    assert bad.status_code == 401

    token = client.post("/api/auth/login", json={"email": "sofia@empresa.com", "password": "secret1"}).get_json()["data"]["token"]
    profile = client.get("/api/auth/profile", headers={"Authorization": f"Bearer {token}"})
    assert profile.get_json()["data"]["firstName"] == "Sofía"


def test_malformed_json(client, auth_header):
    res = client.post(
        "/api/attendance/scan",
        data="{not json",
        headers={**auth_header(2), "Content-Type": "application/json"},
    )

    assert res.status_code == 400
    assert res.get_json()["message"] == "JSON inválido en el body de la petición"


def test_workday_scenario(client, auth_header, clock):
    admin, ana = auth_header(1), auth_header(2)

    res = client.post("/api/qr/generate-pair", json={"companyName": "ACME"}, headers=admin)
    assert res.status_code == 201
    pair = res.get_json()["data"]
    entry_code = pair["entry"]["qrRecord"]["code"]
    exit_code = pair["exit"]["qrRecord"]["code"]

    listed = client.get("/api/qr/list", headers=admin).get_json()["data"]
    assert {i["type"] for i in listed} == {QRType.ENTRY.value, QRType.EXIT.value}

    res = client.post("/api/attendance/scan", json={"qrCode": exit_code}, headers=ana)
    assert res.status_code == 400
    assert res.get_json()["error"] == "ExitWithoutEntry"

    clock.set(8, 55)
    res = client.post("/api/attendance/scan", json={"qrCode": entry_code}, headers=ana)
    assert res.status_code == 200
    data = res.get_json()["data"]
    assert data["attendance"]["isLate"] is False
    assert data["animation"]["type"] == "ENTRADA"
    assert data["animation"]["time"] == "08:55"

    clock.set(9, 10)
    res = client.post("/api/attendance/scan", json={"qrCode": entry_code}, headers=ana)
    assert res.status_code == 400
    assert res.get_json()["error"] == "DuplicateEntry"

    status = client.get("/api/attendance/my-status", headers=ana).get_json()["data"]
    assert status["status"] == "in_progress"

    clock.set(17, 5)
    res = client.post("/api/attendance/scan", json={"qrCode": exit_code}, headers=ana)
    assert res.status_code == 200
    assert res.get_json()["data"]["workedHours"] == "08:10"

    res = client.post("/api/attendance/scan", json={"qrCode": exit_code}, headers=ana)
    assert res.get_json()["error"] == "DuplicateExit"

    history = client.get("/api/attendance/my-attendances", headers=ana).get_json()["data"]
    assert [a["type"] for a in history["attendances"]] == ["exit", "entry"]
    assert history["count"] == 2
    assert history["period"] == {"startDate": "2025-02-03", "endDate": "2025-03-03"}

    today = client.get("/api/attendance/today", headers=admin).get_json()["data"]
    assert len(today) == 2

    stats = client.get("/api/attendance/stats", headers=admin).get_json()["data"]
    assert stats["employeesWithEntry"] == 1
    assert stats["employeesWithExit"] == 1
    assert stats["attendanceRate"] == "50.0"


def test_scan_with_rotated_code_is_invalid(client, auth_header, pair, container):
    container.qr_registry.generate_pair(1)

    res = client.post("/api/attendance/scan", json={"qrCode": pair.entry.record.code}, headers=auth_header(2))

    assert res.status_code == 400
    assert res.get_json()["error"] == "InvalidCode"


def test_history_rejects_bad_dates(client, auth_header):
    res = client.get("/api/attendance/my-attendances?startDate=03-03-2025", headers=auth_header(2))

    assert res.status_code == 400


def test_qr_validate_and_deactivate(client, auth_header, pair):
    ana, admin = auth_header(2), auth_header(1)

    res = client.post("/api/qr/validate", json={"qrCode": pair.entry.record.code}, headers=ana)
    assert res.status_code == 200

    res = client.patch(f"/api/qr/{pair.entry.record.qr_id}/deactivate", headers=ana)
    assert res.status_code == 403

    res = client.patch(f"/api/qr/{pair.entry.record.qr_id}/deactivate", headers=admin)
    assert res.status_code == 200

    res = client.patch("/api/qr/999/deactivate", headers=admin)
    assert res.status_code == 404

    res = client.post("/api/qr/validate", json={"qrCode": pair.entry.record.code}, headers=ana)
    assert res.status_code == 400


def test_single_code_generation(client, auth_header):
    res = client.post("/api/qr/generate", json={"type": "exit", "description": "Puerta B"}, headers=auth_header(1))
    assert res.status_code == 201
    record = res.get_json()["data"]["qrRecord"]
    assert record["description"] == "Puerta B"

    res = client.get(f"/api/qr/{record['id']}", headers=auth_header(1))
    assert res.get_json()["data"]["qrImage"].startswith("data:image/png")

    bad = client.post("/api/qr/generate", json={"type": "lunch"}, headers=auth_header(1))
    assert bad.status_code == 400


def test_schedules_api(client, auth_header):
    admin = auth_header(1)

    res = client.put(
        "/api/schedules",
        json={"userId": 2, "dayOfWeek": 1, "startTime": "07:00", "endTime": "15:00", "graceMinutes": 5},
        headers=admin,
    )
    assert res.status_code == 200
    schedule_id = res.get_json()["data"]["id"]

    listed = client.get("/api/schedules?userId=2", headers=admin).get_json()["data"]
    assert listed[0]["startTime"] == "07:00"

    bad = client.put("/api/schedules", json={"dayOfWeek": 9}, headers=admin)
    assert bad.status_code == 400
    assert bad.get_json()["errors"]

    assert client.delete(f"/api/schedules/{schedule_id}", headers=admin).status_code == 200
    assert client.delete(f"/api/schedules/{schedule_id}", headers=admin).status_code == 404


def test_notification_routes(client, auth_header, push_client):
    admin = auth_header(1)

    res = client.post("/api/notifications/send-to-user", json={"userId": 1, "title": "Hola", "message": "Prueba"}, headers=admin)
    assert res.status_code == 200
    assert push_client.sent[-1]["token"] == "admin-token"

    res = client.post("/api/notifications/send-to-user", json={"userId": 2, "title": "Hola", "message": "Prueba"}, headers=admin)
    assert res.status_code == 400

    res = client.post("/api/notifications/daily-summary", headers=admin)
    assert res.status_code == 200
    assert push_client.multicasts[-1]["data"]["type"] == "daily_summary"

    users = client.get("/api/notifications/users-with-fcm", headers=admin).get_json()["data"]
    assert [u["id"] for u in users] == [1]

    res = client.post("/api/notifications/validate-fcm", json={"fcmToken": "abc"}, headers=auth_header(2))
    assert res.get_json()["data"]["valid"] is True

    res = client.post("/api/notifications/broadcast-admins", json={"title": "x", "message": "y"}, headers=auth_header(2))
    assert res.status_code == 403


def test_fcm_token_update(client, auth_header, users_repo):
    res = client.put("/api/auth/fcm-token", json={"fcmToken": "ana-device"}, headers=auth_header(2))

    assert res.status_code == 200
    assert users_repo.get_by_id(2).fcm_token == "ana-device"

    missing = client.put("/api/auth/fcm-token", json={}, headers=auth_header(2))
    assert missing.status_code == 400


def test_non_text_fields_are_rejected_as_bad_requests(client, auth_header):
    cases = [
        ("/api/attendance/scan", {"qrCode": 123}, auth_header(2), "qrCode"),
        ("/api/qr/validate", {"qrCode": 123}, auth_header(2), "qrCode"),
        ("/api/qr/generate-pair", {"companyName": 5}, auth_header(1), "companyName"),
        ("/api/auth/login", {"email": 123, "password": "x"}, {}, "email"),
        ("/api/auth/login", {"email": "ana@empresa.com", "password": ["secret1"]}, {}, "password"),
    ]
    for path, body, headers, field in cases:
        res = client.post(path, json=body, headers=headers)
        assert res.status_code == 400, path
        payload = res.get_json()
        assert payload["success"] is False
        assert [e["field"] for e in payload["errors"]] == [field], path


def test_login_requires_credentials(client):
    res = client.post("/api/auth/login", json={})

    assert res.status_code == 400
    assert {e["field"] for e in res.get_json()["errors"]} == {"email", "password"}


def test_history_period_follows_query(client, auth_header):
    res = client.get("/api/attendance/my-attendances?startDate=2025-03-01&endDate=2025-03-02", headers=auth_header(2))

    data = res.get_json()["data"]
    assert data["attendances"] == []
    assert data["count"] == 0
    assert data["period"] == {"startDate": "2025-03-01", "endDate": "2025-03-02"}


def test_regenerate_flag_string_false_keeps_active_codes(client, auth_header, qr_repo):
    admin = auth_header(1)
    first = client.post("/api/qr/generate", json={"type": "entry"}, headers=admin).get_json()["data"]["qrRecord"]

    res = client.post("/api/qr/generate", json={"type": "entry", "regenerate": "false"}, headers=admin)
    assert res.status_code == 201
    assert qr_repo.get_by_id(first["id"]).is_active

    res = client.post("/api/qr/generate", json={"type": "entry", "regenerate": "true"}, headers=admin)
    assert res.status_code == 201
    assert not qr_repo.get_by_id(first["id"]).is_active

    bad = client.post("/api/qr/generate", json={"type": "entry", "regenerate": "maybe"}, headers=admin)
    assert bad.status_code == 400


def test_schedule_is_active_string_false(client, auth_header, schedules_repo):
    admin = auth_header(1)

    res = client.put(
        "/api/schedules",
        json={"userId": 3, "dayOfWeek": 2, "startTime": "07:00", "endTime": "15:00", "isActive": "false"},
        headers=admin,
    )
    assert res.status_code == 200
    assert schedules_repo.items[res.get_json()["data"]["id"]].is_active is False

    bad = client.put(
        "/api/schedules",
        json={"dayOfWeek": 2, "startTime": "07:00", "endTime": "15:00", "isActive": "maybe"},
        headers=admin,
    )
    assert bad.status_code == 400
    assert bad.get_json()["errors"][0]["field"] == "isActive"
