from __future__ import annotations

import threading
import time as time_mod
from datetime import date, datetime, timedelta

import pytest

from src.qr_attendance.qr_attendance.common.datetime_utils import (
    day_of_week,
    day_window,
    format_duration,
    shift_months,
)
from src.qr_attendance.qr_attendance.common.locks import KeyedLock
from src.qr_attendance.qr_attendance.common.validators import parse_flag, require_non_empty
from src.qr_attendance.qr_attendance.core.enums import Role
from src.qr_attendance.qr_attendance.core.exceptions import ValidationError
from src.qr_attendance.qr_attendance.core.permissions import Capability, can


def test_day_window_is_half_open():
    window = day_window(datetime(2025, 3, 3, 23, 59, 59))

    assert window.start == datetime(2025, 3, 3)
    assert window.end == datetime(2025, 3, 4)
    assert window.day == date(2025, 3, 3)
    assert day_window(window.end).day == date(2025, 3, 4)


def test_day_of_week_starts_on_sunday():
    assert day_of_week(date(2025, 3, 2)) == 0
    assert day_of_week(date(2025, 3, 8)) == 6


def test_format_duration():
    assert format_duration(timedelta(hours=8, minutes=10, seconds=59)) == "08:10"
    assert format_duration(timedelta(seconds=-5)) == "00:00"


def test_shift_months_clamps_day():
    assert shift_months(datetime(2025, 3, 31), -1) == datetime(2025, 2, 28)
    assert shift_months(datetime(2025, 1, 15), -1) == datetime(2024, 12, 15)


def test_keyed_lock_serializes_same_key_and_cleans_up():
    locks = KeyedLock()
    inside = []
    overlap = []

    def work():
        with locks.hold("u1"):
            inside.append(1)
            if len(inside) > 1:
                overlap.append(True)
            time_mod.sleep(0.01)
            inside.pop()

    threads = [threading.Thread(target=work) for _ in range(5)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert overlap == []
    assert len(locks) == 0


def test_role_capabilities():
    assert can(Role.ADMIN, Capability.MANAGE_QR)
    assert can(Role.EMPLOYEE, Capability.SCAN_ATTENDANCE)
    assert not can(Role.EMPLOYEE, Capability.VIEW_ALL_ATTENDANCE)
    assert not can(Role.EMPLOYEE, Capability.MANAGE_SCHEDULES)


def test_parse_flag():
    assert parse_flag(None, "regenerate", default=True) is True
    assert parse_flag(False, "regenerate", default=True) is False
    assert parse_flag("false", "regenerate", default=True) is False
    assert parse_flag(" Yes ", "regenerate", default=False) is True
    assert parse_flag(0, "regenerate", default=True) is False
    with pytest.raises(ValidationError) as exc:
        parse_flag("maybe", "regenerate", default=False)
    assert exc.value.errors[0]["field"] == "regenerate"


def test_require_non_empty_rejects_non_text():
    assert require_non_empty("  abc ", "qrCode") == "abc"
    with pytest.raises(ValidationError) as exc:
        require_non_empty(123, "qrCode")
    assert exc.value.errors == [{"field": "qrCode", "message": "Debe ser una cadena válida"}]
