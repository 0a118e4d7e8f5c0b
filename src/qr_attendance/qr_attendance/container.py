from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceLedger
from .core.constants import DEFAULT_TOKEN_HOURS, QR_CODE_PREFIX
from .database.connection import DBConfig, DatabaseConnection
from .notifications.dispatcher import NotificationDispatcher
from .notifications.firebase_client import PushClient, build_push_client
from .notifications.gateway import NotificationGateway
from .qr.mysql_qr_repository import MySQLQRCodeRepository
from .qr.renderer import QRCodeImageRenderer, QRRenderer
from .qr.repository import QRCodeRepository
from .qr.service import QRRegistry
from .schedules.mysql_schedule_repository import MySQLScheduleRepository
from .schedules.policy import SchedulePolicy
from .schedules.repository import ScheduleRepository
from .schedules.service import ScheduleService
from .users.guards import AuthGuard
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService
from .users.tokens import TokenService


@dataclass(frozen=True)
class Container:
    users_repo: UserRepository
    qr_repo: QRCodeRepository
    attendance_repo: AttendanceRepository
    schedules_repo: ScheduleRepository

    tokens: TokenService
    guard: AuthGuard
    notification_gateway: NotificationGateway
    dispatcher: NotificationDispatcher

    auth_service: AuthService
    qr_registry: QRRegistry
    schedule_policy: SchedulePolicy
    schedule_service: ScheduleService
    attendance_ledger: AttendanceLedger


def assemble(
    *,
    users_repo: UserRepository,
    qr_repo: QRCodeRepository,
    attendance_repo: AttendanceRepository,
    schedules_repo: ScheduleRepository,
    jwt_secret: str,
    jwt_expires_hours: int = DEFAULT_TOKEN_HOURS,
    renderer: Optional[QRRenderer] = None,
    push_client: Optional[PushClient] = None,
    dispatcher: Optional[NotificationDispatcher] = None,
    qr_prefix: str = QR_CODE_PREFIX,
    notify_workers: int = 2,
    clock: Optional[Callable[[], datetime]] = None,
) -> Container:
    """Wire services on top of any repository implementations."""

    tokens = TokenService(jwt_secret, expires_hours=jwt_expires_hours)
    guard = AuthGuard(tokens, users_repo)
    gateway = NotificationGateway(push_client, users_repo, clock=clock)
    dispatcher = dispatcher or NotificationDispatcher(max_workers=notify_workers)

    registry = QRRegistry(qr_repo, renderer or QRCodeImageRenderer(), prefix=qr_prefix, clock=clock)
    policy = SchedulePolicy(schedules_repo)

    return Container(
        users_repo=users_repo,
        qr_repo=qr_repo,
        attendance_repo=attendance_repo,
        schedules_repo=schedules_repo,
        tokens=tokens,
        guard=guard,
        notification_gateway=gateway,
        dispatcher=dispatcher,
        auth_service=AuthService(users_repo, tokens, gateway=gateway, dispatcher=dispatcher),
        qr_registry=registry,
        schedule_policy=policy,
        schedule_service=ScheduleService(schedules_repo, users_repo),
        attendance_ledger=AttendanceLedger(
            attendance_repo,
            users_repo,
            registry,
            policy,
            gateway=gateway,
            dispatcher=dispatcher,
            clock=clock,
        ),
    )


def build_container(
    *,
    db_config: dict,
    jwt_secret: str,
    jwt_expires_hours: int = DEFAULT_TOKEN_HOURS,
    firebase_credentials: Optional[str] = None,
    qr_prefix: str = QR_CODE_PREFIX,
    notify_workers: int = 2,
) -> Container:
    conn = DatabaseConnection(DBConfig.from_dict(db_config))

    return assemble(
        users_repo=MySQLUserRepository(conn),
        qr_repo=MySQLQRCodeRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        schedules_repo=MySQLScheduleRepository(conn),
        jwt_secret=jwt_secret,
        jwt_expires_hours=jwt_expires_hours,
        push_client=build_push_client(firebase_credentials),
        qr_prefix=qr_prefix,
        notify_workers=notify_workers,
    )
