from __future__ import annotations

import threading
from concurrent.futures import Executor, Future
from dataclasses import replace
from datetime import date, datetime, time
from typing import Optional, Sequence

import pytest
from werkzeug.security import generate_password_hash

from src.qr_attendance.qr_attendance.attendance.model import AttendanceEvent, AttendanceEventRow, NewAttendanceEvent
from src.qr_attendance.qr_attendance.container import assemble
from src.qr_attendance.qr_attendance.core.enums import QRType, Role
from src.qr_attendance.qr_attendance.core.exceptions import ConflictError, DuplicateEventError, QRRenderError
from src.qr_attendance.qr_attendance.notifications.dispatcher import NotificationDispatcher
from src.qr_attendance.qr_attendance.notifications.firebase_client import MulticastResult
from src.qr_attendance.qr_attendance.qr.model import NewQRCode, QRCodeListing, QRCodeRecord, RetireScope
from src.qr_attendance.qr_attendance.schedules.model import WorkSchedule
from src.qr_attendance.qr_attendance.users.model import User

# Monday
TODAY = date(2025, 3, 3)


class FixedClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def set(self, hour: int, minute: int, second: int = 0) -> None:
        self.now = datetime.combine(self.now.date(), time(hour, minute, second))


class InlineExecutor(Executor):
    """Runs submitted work immediately on the calling thread."""

    def submit(self, fn, /, *args, **kwargs):
        future: Future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except BaseException as exc:
            future.set_exception(exc)
        return future


class InMemoryUsers:
    def __init__(self, users: Sequence[User] = ()):
        self.users_by_id: dict[int, User] = {u.user_id: u for u in users}
        self._id = max(self.users_by_id, default=0)

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.users_by_id.get(int(user_id))

    def get_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self.users_by_id.values() if u.email == email), None)

    def create_user(self, *, first_name, last_name, email, password_hash, role=Role.EMPLOYEE, fcm_token=None) -> int:
        if self.get_by_email(email):
            raise ConflictError("El email ya está registrado")
        self._id += 1
        self.users_by_id[self._id] = User(
            user_id=self._id,
            first_name=first_name,
            last_name=last_name,
            email=email,
            password_hash=password_hash,
            role=role,
            fcm_token=fcm_token,
            created_at=datetime(2025, 1, 1),
        )
        return self._id

    def update_fcm_token(self, user_id: int, fcm_token: Optional[str]) -> bool:
        user = self.users_by_id.get(int(user_id))
        if not user:
            return False
        self.users_by_id[user.user_id] = replace(user, fcm_token=fcm_token)
        return True

    def list_by_role(self, role: Role) -> Sequence[User]:
        return [u for u in self.users_by_id.values() if u.role == role]

    def count_by_role(self, role: Role) -> int:
        return len(self.list_by_role(role))

    def list_with_fcm_token(self, *, role: Optional[Role] = None) -> Sequence[User]:
        return [u for u in self.users_by_id.values() if u.fcm_token and (role is None or u.role == role)]


class InMemoryQRCodes:
    def __init__(self):
        self.records: dict[int, QRCodeRecord] = {}
        self.fail_inserts = False
        self._id = 0

    def get_by_id(self, qr_id: int) -> Optional[QRCodeRecord]:
        return self.records.get(int(qr_id))

    def code_exists(self, code: str) -> bool:
        return any(r.code == code for r in self.records.values())

    def find_active_by_code(self, code: str) -> Optional[QRCodeRecord]:
        return next((r for r in self.records.values() if r.code == code and r.is_active), None)

    def insert_codes(self, codes: Sequence[NewQRCode], *, retire: Optional[RetireScope] = None) -> list[QRCodeRecord]:
        if self.fail_inserts:
            raise RuntimeError("insert failed")

        staged = dict(self.records)
        if retire is not None:
            for r in staged.values():
                if r.created_by == retire.issuer_id and r.is_active and retire.qr_type in (None, r.qr_type):
                    staged[r.qr_id] = replace(r, is_active=False)

        created = []
        for new in codes:
            self._id += 1
            record = QRCodeRecord(
                qr_id=self._id,
                code=new.code,
                qr_type=new.qr_type,
                created_by=new.created_by,
                is_active=True,
                description=new.description,
                created_at=new.created_at,
            )
            staged[record.qr_id] = record
            created.append(record)

        self.records = staged
        return created

    def deactivate(self, qr_id: int) -> bool:
        record = self.records.get(int(qr_id))
        if not record:
            return False
        self.records[record.qr_id] = replace(record, is_active=False)
        return True

    def list_active(self, qr_type: Optional[QRType] = None) -> Sequence[QRCodeListing]:
        active = [r for r in self.records.values() if r.is_active and qr_type in (None, r.qr_type)]
        active.sort(key=lambda r: (r.created_at, r.qr_id), reverse=True)
        return [QRCodeListing(record=r, creator={"id": r.created_by}) for r in active]

    def active_for(self, issuer_id: int) -> list[QRCodeRecord]:
        return [r for r in self.records.values() if r.created_by == issuer_id and r.is_active]


class InMemoryAttendance:
    """Mirrors the (user_id, event_type, work_date) unique key of the real table."""

    def __init__(self, users: InMemoryUsers):
        self._users = users
        self.events: list[AttendanceEvent] = []
        self._keys: set[tuple[int, QRType, date]] = set()
        self._lock = threading.Lock()
        self._id = 0

    def list_for_user_between(self, user_id: int, start: datetime, end: datetime) -> Sequence[AttendanceEvent]:
        rows = [e for e in self.events if e.user_id == user_id and start <= e.timestamp < end]
        return sorted(rows, key=lambda e: e.timestamp)

    def append(self, new: NewAttendanceEvent) -> AttendanceEvent:
        with self._lock:
            key = (new.user_id, new.event_type, new.work_date)
            if key in self._keys:
                raise DuplicateEventError(str(key))
            self._keys.add(key)
            self._id += 1
            event = AttendanceEvent(
                event_id=self._id,
                user_id=new.user_id,
                event_type=new.event_type,
                qr_code=new.qr_code,
                timestamp=new.timestamp,
                is_late=new.is_late,
                minutes_late=new.minutes_late,
            )
            self.events.append(event)
            return event

    def list_between_with_users(self, start: datetime, end: datetime) -> Sequence[AttendanceEventRow]:
        rows = []
        for e in sorted(self.events, key=lambda e: e.timestamp, reverse=True):
            if start <= e.timestamp < end:
                u = self._users.get_by_id(e.user_id)
                rows.append(AttendanceEventRow(event=e, first_name=u.first_name, last_name=u.last_name, email=u.email))
        return rows

    def count_distinct_users(self, event_type: QRType, start: datetime, end: datetime, *, role: Optional[Role] = None) -> int:
        return len(
            {
                e.user_id
                for e in self.events
                if e.event_type == event_type
                and start <= e.timestamp < end
                and (role is None or self._users.get_by_id(e.user_id).role == role)
            }
        )


class InMemorySchedules:
    def __init__(self, schedules: Sequence[WorkSchedule] = ()):
        self.items: dict[int, WorkSchedule] = {s.schedule_id: s for s in schedules}
        self._id = max(self.items, default=0)

    def get_active(self, *, user_id: Optional[int], day_of_week: int) -> Optional[WorkSchedule]:
        return next(
            (
                s
                for s in self.items.values()
                if s.user_id == user_id and s.day_of_week == day_of_week and s.is_active
            ),
            None,
        )

    def upsert(self, *, user_id, day_of_week, start_time, end_time, grace_minutes, is_active=True) -> int:
        existing = next((s for s in self.items.values() if s.user_id == user_id and s.day_of_week == day_of_week), None)
        schedule_id = existing.schedule_id if existing else self._id + 1
        self._id = max(self._id, schedule_id)
        self.items[schedule_id] = WorkSchedule(
            schedule_id=schedule_id,
            user_id=user_id,
            day_of_week=day_of_week,
            start_time=start_time,
            end_time=end_time,
            grace_minutes=grace_minutes,
            is_active=is_active,
        )
        return schedule_id

    def delete(self, *, schedule_id: int) -> bool:
        return self.items.pop(int(schedule_id), None) is not None

    def list_all(self, *, user_id: Optional[int] = None) -> Sequence[WorkSchedule]:
        return [s for s in self.items.values() if user_id is None or s.user_id == user_id]


class StubRenderer:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.rendered: list[str] = []

    def render_png_data_url(self, text: str, *, width: int = 300, margin: int = 2) -> str:
        if self.fail:
            raise QRRenderError("boom")
        self.rendered.append(text)
        return f"data:image/png;base64,{text}"


class FakePushClient:
    def __init__(self):
        self.sent: list[dict] = []
        self.multicasts: list[dict] = []

    def send(self, *, token, title, body, data, dry_run=False) -> str:
        self.sent.append({"token": token, "title": title, "body": body, "data": data, "dry_run": dry_run})
        return f"msg-{len(self.sent)}"

    def send_multicast(self, *, tokens, title, body, data) -> MulticastResult:
        self.multicasts.append({"tokens": list(tokens), "title": title, "body": body, "data": data})
        return MulticastResult(success_count=len(tokens), failure_count=0)


def make_user(user_id: int, first_name: str, role: Role = Role.EMPLOYEE, fcm_token: Optional[str] = None) -> User:
    return User(
        user_id=user_id,
        first_name=first_name,
        last_name="Pérez",
        email=f"{first_name.lower()}@empresa.com",
        password_hash=generate_password_hash("secret1"),
        role=role,
        fcm_token=fcm_token,
        created_at=datetime(2025, 1, 1),
    )


def org_schedule(dow: int, start: time = time(9, 0), end: time = time(18, 0), grace: int = 15) -> WorkSchedule:
    return WorkSchedule(schedule_id=100 + dow, user_id=None, day_of_week=dow, start_time=start, end_time=end, grace_minutes=grace)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime.combine(TODAY, time(8, 55)))


@pytest.fixture
def users_repo() -> InMemoryUsers:
    return InMemoryUsers(
        [
            make_user(1, "Admin", Role.ADMIN, fcm_token="admin-token"),
            make_user(2, "Ana"),
            make_user(3, "Luis"),
        ]
    )


@pytest.fixture
def qr_repo() -> InMemoryQRCodes:
    return InMemoryQRCodes()


@pytest.fixture
def attendance_repo(users_repo) -> InMemoryAttendance:
    return InMemoryAttendance(users_repo)


@pytest.fixture
def schedules_repo() -> InMemorySchedules:
    return InMemorySchedules([org_schedule(dow) for dow in range(1, 6)])


@pytest.fixture
def push_client() -> FakePushClient:
    return FakePushClient()


@pytest.fixture
def container(users_repo, qr_repo, attendance_repo, schedules_repo, push_client, clock):
    return assemble(
        users_repo=users_repo,
        qr_repo=qr_repo,
        attendance_repo=attendance_repo,
        schedules_repo=schedules_repo,
        jwt_secret="test-jwt-secret",
        renderer=StubRenderer(),
        push_client=push_client,
        dispatcher=NotificationDispatcher(InlineExecutor()),
        clock=clock,
    )


@pytest.fixture
def app(container, monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    from src.qr_attendance.qr_attendance.main import create_app

    return create_app(container)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_header(container, users_repo):
    def _header(user_id: int) -> dict:
        token = container.tokens.issue(users_repo.get_by_id(user_id))
        return {"Authorization": f"Bearer {token}"}

    return _header


@pytest.fixture
def pair(container, clock):
    """An active entry/exit pair issued by the admin."""

    return container.qr_registry.generate_pair(1, "ACME")