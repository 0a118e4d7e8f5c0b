from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional, Sequence, Union

from ..core.enums import DayStatus, QRType, ScanFailure


@dataclass(frozen=True)
class AttendanceEvent:
    """Entidad de dominio: evento de asistencia (libro mayor append-only)."""

    event_id: int
    user_id: int
    event_type: QRType
    qr_code: str
    timestamp: datetime
    is_late: bool = False
    minutes_late: int = 0

    def to_dict(self) -> dict:
        return {
            "id": self.event_id,
            "userId": self.user_id,
            "type": self.event_type.value,
            "qrCode": self.qr_code,
            "timestamp": self.timestamp.isoformat(),
            "isLate": self.is_late,
            "minutesLate": self.minutes_late,
        }


@dataclass(frozen=True)
class NewAttendanceEvent:
    user_id: int
    event_type: QRType
    qr_code: str
    timestamp: datetime
    work_date: date
    is_late: bool
    minutes_late: int


@dataclass(frozen=True)
class AttendanceEventRow:
    """Read-model para la vista de administración (evento + identidad del usuario)."""

    event: AttendanceEvent
    first_name: str
    last_name: str
    email: str

    def to_dict(self) -> dict:
        out = self.event.to_dict()
        out["user"] = {
            "id": self.event.user_id,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "email": self.email,
        }
        return out


@dataclass(frozen=True)
class ScanResult:
    ok: bool
    message: str
    failure: Optional[ScanFailure] = None
    event: Optional[AttendanceEvent] = None
    animation: Optional[dict] = None
    worked_hours: Optional[str] = None

    def to_dict(self) -> dict:
        data: dict = {
            "attendance": self.event.to_dict() if self.event else None,
            "animation": self.animation,
        }
        if self.worked_hours is not None:
            data["workedHours"] = self.worked_hours
        return data


@dataclass(frozen=True)
class TodayStatus:
    status: DayStatus
    has_entry: bool
    has_exit: bool
    day: date
    events: Sequence[AttendanceEvent] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "hasEntry": self.has_entry,
            "hasExit": self.has_exit,
            "attendances": [e.to_dict() for e in self.events],
            "date": self.day.isoformat(),
        }


@dataclass(frozen=True)
class AttendanceStats:
    day: date
    total_employees: int
    employees_with_entry: int
    employees_with_exit: int

    @property
    def absent_employees(self) -> int:
        return self.total_employees - self.employees_with_entry

    @property
    def attendance_rate(self) -> Union[str, int]:
        if self.total_employees <= 0:
            return 0
        return f"{self.employees_with_entry / self.total_employees * 100:.1f}"

    def to_dict(self) -> dict:
        return {
            "date": self.day.isoformat(),
            "totalEmployees": self.total_employees,
            "employeesWithEntry": self.employees_with_entry,
            "employeesWithExit": self.employees_with_exit,
            "absentEmployees": self.absent_employees,
            "attendanceRate": self.attendance_rate,
        }
