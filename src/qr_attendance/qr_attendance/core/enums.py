from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Rol de usuario usado para la política de permisos."""

    ADMIN = "admin"
    EMPLOYEE = "employee"


class QRType(str, Enum):
    """Tipo de código QR (y de evento de asistencia que habilita)."""

    ENTRY = "entry"
    EXIT = "exit"


class DayStatus(str, Enum):
    """Estado derivado de la jornada de un usuario (no se persiste)."""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class ScanFailure(str, Enum):
    """Resultados de negocio esperados al rechazar un escaneo."""

    INVALID_CODE = "InvalidCode"
    DUPLICATE_ENTRY = "DuplicateEntry"
    EXIT_WITHOUT_ENTRY = "ExitWithoutEntry"
    DUPLICATE_EXIT = "DuplicateExit"
    UNKNOWN_QR_TYPE = "UnknownQRType"
    USER_NOT_FOUND = "UserNotFound"


class DeactivateOutcome(str, Enum):
    SUCCESS = "success"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
