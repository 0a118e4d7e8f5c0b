from __future__ import annotations

from enum import Enum

from .enums import Role


class Capability(str, Enum):
    SCAN_ATTENDANCE = "scan_attendance"
    VIEW_OWN_ATTENDANCE = "view_own_attendance"
    VIEW_ALL_ATTENDANCE = "view_all_attendance"
    MANAGE_QR = "manage_qr"
    VALIDATE_QR = "validate_qr"
    DEACTIVATE_QR = "deactivate_qr"
    MANAGE_SCHEDULES = "manage_schedules"
    VIEW_EMPLOYEES = "view_employees"
    MANAGE_OWN_PROFILE = "manage_own_profile"
    SEND_NOTIFICATIONS = "send_notifications"
    VALIDATE_PUSH_TOKEN = "validate_push_token"


EMPLOYEE_CAPABILITIES = frozenset(
    {
        Capability.SCAN_ATTENDANCE,
        Capability.VIEW_OWN_ATTENDANCE,
        Capability.VALIDATE_QR,
        Capability.DEACTIVATE_QR,
        Capability.MANAGE_OWN_PROFILE,
        Capability.VALIDATE_PUSH_TOKEN,
    }
)

ROLE_CAPABILITIES: dict[Role, frozenset[Capability]] = {
    Role.ADMIN: frozenset(Capability),
    Role.EMPLOYEE: EMPLOYEE_CAPABILITIES,
}


def capabilities_for(role: Role) -> frozenset[Capability]:
    return ROLE_CAPABILITIES.get(role, frozenset())


def can(role: Role, capability: Capability) -> bool:
    return capability in capabilities_for(role)
