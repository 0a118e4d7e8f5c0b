from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import day_window, format_clock, format_duration, now_local, shift_months
from ..common.locks import KeyedLock
from ..common.validators import require_non_empty
from ..core.constants import DEFAULT_HISTORY_MONTHS
from ..core.enums import DayStatus, QRType, Role, ScanFailure
from ..core.exceptions import DuplicateEventError, ValidationError
from ..notifications.dispatcher import NotificationDispatcher
from ..notifications.gateway import NotificationGateway
from ..qr.service import QRRegistry
from ..schedules.model import ON_TIME
from ..schedules.policy import SchedulePolicy
from ..users.model import User
from ..users.repository import UserRepository
from .model import (
    AttendanceEvent,
    AttendanceEventRow,
    AttendanceStats,
    NewAttendanceEvent,
    ScanResult,
    TodayStatus,
)
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

FAILURE_MESSAGES = {
    ScanFailure.INVALID_CODE: "Código QR inválido o inactivo",
    ScanFailure.DUPLICATE_ENTRY: "Ya registraste tu entrada hoy",
    ScanFailure.EXIT_WITHOUT_ENTRY: "Debes registrar tu entrada antes de la salida",
    ScanFailure.DUPLICATE_EXIT: "Ya registraste tu salida hoy",
    ScanFailure.UNKNOWN_QR_TYPE: "Tipo de código QR no reconocido",
    ScanFailure.USER_NOT_FOUND: "Usuario no encontrado",
}

ANIMATION_LABELS = {QRType.ENTRY: "ENTRADA", QRType.EXIT: "SALIDA"}


def _first(events: Sequence[AttendanceEvent], event_type: QRType) -> Optional[AttendanceEvent]:
    return next((e for e in events if e.event_type == event_type), None)


def check_transition(
    qr_type: object,
    entry: Optional[AttendanceEvent],
    exit_: Optional[AttendanceEvent],
    now: datetime,
) -> Optional[ScanFailure]:
    """Daily state machine: NotStarted -entry-> InProgress -exit-> Completed.

    Returns the rejection reason, or None when the transition is allowed.
    """

    if qr_type == QRType.ENTRY:
        return ScanFailure.DUPLICATE_ENTRY if entry else None
    if qr_type == QRType.EXIT:
        if entry is None or entry.timestamp > now:
            return ScanFailure.EXIT_WITHOUT_ENTRY
        return ScanFailure.DUPLICATE_EXIT if exit_ else None
    return ScanFailure.UNKNOWN_QR_TYPE


def day_status(events: Sequence[AttendanceEvent]) -> DayStatus:
    has_entry = _first(events, QRType.ENTRY) is not None
    has_exit = _first(events, QRType.EXIT) is not None
    if has_entry and has_exit:
        return DayStatus.COMPLETED
    if has_entry:
        return DayStatus.IN_PROGRESS
    return DayStatus.NOT_STARTED


def greeting_for(event_type: QRType, user: User) -> str:
    first = user.first_name.upper()
    if event_type == QRType.ENTRY:
        return f"¡HOLA {first}! QUE TENGAS BUEN DÍA HOY"
    return f"¡HASTA MAÑANA {first}! BUEN DESCANSO"


class AttendanceLedger:
    """Append-only record of entry/exit events per user per local day."""

    def __init__(
        self,
        events: AttendanceRepository,
        users: UserRepository,
        registry: QRRegistry,
        policy: SchedulePolicy,
        *,
        gateway: Optional[NotificationGateway] = None,
        dispatcher: Optional[NotificationDispatcher] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._events = events
        self._users = users
        self._registry = registry
        self._policy = policy
        self._gateway = gateway
        self._dispatcher = dispatcher
        self._clock = clock or now_local
        self._user_locks = KeyedLock()

    def _reject(self, failure: ScanFailure, user_id: int) -> ScanResult:
        logger.info("scan rejected user=%s reason=%s", user_id, failure.value)
        return ScanResult(ok=False, failure=failure, message=FAILURE_MESSAGES[failure])

    def record_scan(self, user_id: int, scanned_code: Optional[str], *, now: Optional[datetime] = None) -> ScanResult:
        scanned_code = require_non_empty(scanned_code, "qrCode")

        validation = self._registry.validate(scanned_code)
        if not validation.valid or validation.record is None:
            return self._reject(ScanFailure.INVALID_CODE, user_id)
        record = validation.record

        user = self._users.get_by_id(int(user_id))
        if not user:
            return self._reject(ScanFailure.USER_NOT_FOUND, user_id)

        with self._user_locks.hold(user.user_id):
            now = now or self._clock()
            window = day_window(now)
            todays = self._events.list_for_user_between(user.user_id, window.start, window.end)
            entry = _first(todays, QRType.ENTRY)
            exit_ = _first(todays, QRType.EXIT)

            failure = check_transition(record.qr_type, entry, exit_, now)
            if failure:
                return self._reject(failure, user.user_id)

            decision = ON_TIME
            leaves_early = False
            schedule = self._policy.resolve_for(user.user_id, now)
            if record.qr_type == QRType.ENTRY:
                decision = self._policy.classify(schedule, now)
            else:
                leaves_early = self._policy.leaves_early(schedule, now)

            try:
                event = self._events.append(
                    NewAttendanceEvent(
                        user_id=user.user_id,
                        event_type=record.qr_type,
                        qr_code=record.code,
                        timestamp=now,
                        work_date=window.day,
                        is_late=decision.is_late,
                        minutes_late=decision.minutes_late,
                    )
                )
            except DuplicateEventError:
                dup = ScanFailure.DUPLICATE_ENTRY if record.qr_type == QRType.ENTRY else ScanFailure.DUPLICATE_EXIT
                return self._reject(dup, user.user_id)

        worked = format_duration(event.timestamp - entry.timestamp) if event.event_type == QRType.EXIT and entry else None
        logger.info(
            "attendance %s recorded user=%s late=%s minutes_late=%s",
            event.event_type.value,
            user.user_id,
            event.is_late,
            event.minutes_late,
        )
        self._notify(user, event, leaves_early)

        label = ANIMATION_LABELS[event.event_type]
        return ScanResult(
            ok=True,
            message=f"{label.capitalize()} registrada exitosamente",
            event=event,
            animation={
                "type": label,
                "greeting": greeting_for(event.event_type, user),
                "time": format_clock(event.timestamp),
                "user": user.full_name,
            },
            worked_hours=worked,
        )

    def _notify(self, user: User, event: AttendanceEvent, leaves_early: bool = False) -> None:
        if self._gateway is None or self._dispatcher is None:
            return
        clock = format_clock(event.timestamp)
        if event.event_type == QRType.ENTRY:
            self._dispatcher.dispatch(
                "attendance-entry", self._gateway.notify_attendance_entry, user.full_name, clock, event.is_late
            )
        else:
            self._dispatcher.dispatch(
                "attendance-exit", self._gateway.notify_attendance_exit, user.full_name, clock, leaves_early
            )

    def today_status(self, user_id: int, *, now: Optional[datetime] = None) -> TodayStatus:
        window = day_window(now or self._clock())
        events = self._events.list_for_user_between(int(user_id), window.start, window.end)
        status = day_status(events)
        return TodayStatus(
            status=status,
            has_entry=status != DayStatus.NOT_STARTED,
            has_exit=status == DayStatus.COMPLETED,
            day=window.day,
            events=tuple(events),
        )

    def my_history(
        self,
        user_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        *,
        now: Optional[datetime] = None,
    ) -> tuple[Sequence[AttendanceEvent], date, date]:
        """Events of one user between two dates, both inclusive, newest first.

        Defaults: end = today, start = now shifted back one month.
        """

        now = now or self._clock()
        end_day = end_date or now.date()
        if start_date is None:
            start_date = shift_months(now, -DEFAULT_HISTORY_MONTHS).date()
        if start_date > end_day:
            raise ValidationError("La fecha inicial no puede ser posterior a la final")

        start = datetime.combine(start_date, time.min)
        end = datetime.combine(end_day, time.min) + timedelta(days=1)
        events = self._events.list_for_user_between(int(user_id), start, end)
        return sorted(events, key=lambda e: e.timestamp, reverse=True), start_date, end_day

    def admin_today(self, *, now: Optional[datetime] = None) -> Sequence[AttendanceEventRow]:
        window = day_window(now or self._clock())
        return self._events.list_between_with_users(window.start, window.end)

    def admin_stats(self, *, now: Optional[datetime] = None) -> AttendanceStats:
        window = day_window(now or self._clock())
        return AttendanceStats(
            day=window.day,
            total_employees=self._users.count_by_role(Role.EMPLOYEE),
            employees_with_entry=self._events.count_distinct_users(
                QRType.ENTRY, window.start, window.end, role=Role.EMPLOYEE
            ),
            employees_with_exit=self._events.count_distinct_users(
                QRType.EXIT, window.start, window.end, role=Role.EMPLOYEE
            ),
        )
