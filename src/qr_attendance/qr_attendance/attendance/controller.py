from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import parse_iso_date
from ..common.http import fail, json_body, ok
from ..core.enums import ScanFailure
from ..core.exceptions import ValidationError
from ..core.permissions import Capability
from ..users.guards import current_user
from ..container import Container


def _date_arg(name: str):
    value = (request.args.get(name) or "").strip()
    if not value:
        return None
    try:
        return parse_iso_date(value)
    except ValueError:
        raise ValidationError(f"{name} debe tener formato YYYY-MM-DD") from None


def register(app: Flask, container: Container) -> None:
    guard = container.guard
    ledger = container.attendance_ledger

    @app.route("/api/attendance/scan", methods=["POST"], endpoint="attendance_scan")
    @guard.requires(Capability.SCAN_ATTENDANCE)
    def scan():
        body = json_body()
        result = ledger.record_scan(current_user().user_id, body.get("qrCode"))
        if not result.ok:
            status = 404 if result.failure == ScanFailure.USER_NOT_FOUND else 400
            return fail(result.message, status, error=result.failure.value)
        return ok(result.to_dict(), message=result.message)

    @app.route("/api/attendance/my-status", methods=["GET"], endpoint="attendance_my_status")
    @guard.requires(Capability.VIEW_OWN_ATTENDANCE)
    def my_status():
        return ok(ledger.today_status(current_user().user_id).to_dict())

    @app.route("/api/attendance/my-attendances", methods=["GET"], endpoint="attendance_my_history")
    @guard.requires(Capability.VIEW_OWN_ATTENDANCE)
    def my_attendances():
        events, start, end = ledger.my_history(
            current_user().user_id,
            start_date=_date_arg("startDate"),
            end_date=_date_arg("endDate"),
        )
        return ok(
            {
                "attendances": [e.to_dict() for e in events],
                "count": len(events),
                "period": {"startDate": start.isoformat(), "endDate": end.isoformat()},
            }
        )

    @app.route("/api/attendance/today", methods=["GET"], endpoint="attendance_today")
    @guard.requires(Capability.VIEW_ALL_ATTENDANCE)
    def today():
        return ok([row.to_dict() for row in ledger.admin_today()])

    @app.route("/api/attendance/stats", methods=["GET"], endpoint="attendance_stats")
    @guard.requires(Capability.VIEW_ALL_ATTENDANCE)
    def stats():
        return ok(ledger.admin_stats().to_dict())
