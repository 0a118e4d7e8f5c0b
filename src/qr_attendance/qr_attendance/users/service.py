from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.validators import (
    FieldErrors,
    check_email,
    check_optional_string,
    check_person_name,
    check_required_text,
    require_non_empty,
)
from ..core.constants import NAME_MAX_LENGTH, NAME_MIN_LENGTH, PASSWORD_MIN_LENGTH
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, ConflictError, NotFoundError
from ..notifications.dispatcher import NotificationDispatcher
from ..notifications.gateway import NotificationGateway
from .model import User
from .repository import UserRepository
from .tokens import TokenService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthSession:
    """What the API returns after register/login."""

    user: User
    token: str

    def to_dict(self) -> dict:
        user = self.user.public_dict()
        user.pop("createdAt", None)
        return {"user": user, "token": self.token}


@dataclass(frozen=True)
class Registration:
    first_name: str
    last_name: str
    email: str
    password: str
    role: Role
    fcm_token: Optional[str]

    @classmethod
    def from_payload(cls, payload: dict) -> "Registration":
        errors = FieldErrors()
        first_name = check_person_name(
            errors, "firstName", payload.get("firstName"), min_len=NAME_MIN_LENGTH, max_len=NAME_MAX_LENGTH
        )
        last_name = check_person_name(
            errors, "lastName", payload.get("lastName"), min_len=NAME_MIN_LENGTH, max_len=NAME_MAX_LENGTH
        )
        email = check_email(errors, "email", payload.get("email"))

        password = payload.get("password")
        if not isinstance(password, str) or len(password) < PASSWORD_MIN_LENGTH:
            errors.add("password", f"La contraseña debe tener al menos {PASSWORD_MIN_LENGTH} caracteres")
            password = ""

        role = Role.EMPLOYEE
        role_s = payload.get("role")
        if role_s is not None:
            try:
                role = Role(role_s)
            except ValueError:
                errors.add("role", "El rol debe ser admin o employee")

        fcm_token = check_optional_string(errors, "fcmToken", payload.get("fcmToken"))
        errors.raise_if_any()
        return cls(first_name, last_name, email, password, role, fcm_token)


class AuthService:
    """Use cases: register, login, profile and push-token refresh."""

    def __init__(
        self,
        users: UserRepository,
        tokens: TokenService,
        *,
        gateway: Optional[NotificationGateway] = None,
        dispatcher: Optional[NotificationDispatcher] = None,
    ):
        self._users = users
        self._tokens = tokens
        self._gateway = gateway
        self._dispatcher = dispatcher

    def register(self, registration: Registration) -> AuthSession:
        if self._users.get_by_email(registration.email):
            raise ConflictError("El email ya está registrado")

        user_id = self._users.create_user(
            first_name=registration.first_name,
            last_name=registration.last_name,
            email=registration.email,
            password_hash=generate_password_hash(registration.password),
            role=registration.role,
            fcm_token=registration.fcm_token,
        )
        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("Usuario no encontrado")

        logger.info("user registered id=%s role=%s", user.user_id, user.role.value)

        if user.fcm_token and self._gateway and self._dispatcher:
            self._dispatcher.dispatch(
                "welcome",
                self._gateway.send_test_notification,
                user.fcm_token,
                user.first_name,
            )

        return AuthSession(user=user, token=self._tokens.issue(user))

    def login(self, email: object, password: object, fcm_token: object = None) -> AuthSession:
        errors = FieldErrors()
        email = check_required_text(errors, "email", email).lower()
        password = check_required_text(errors, "password", password, strip=False)
        fcm_token = check_optional_string(errors, "fcmToken", fcm_token)
        errors.raise_if_any()

        user = self._users.get_by_email(email)
        if not user:
            raise AuthenticationError("Credenciales inválidas")

        try:
            valid = check_password_hash(user.password_hash, password)
        except ValueError:
            # e.g. placeholder or corrupted hashes
            valid = False
        if not valid:
            raise AuthenticationError("Credenciales inválidas")

        if fcm_token:
            self._users.update_fcm_token(user.user_id, fcm_token)

        return AuthSession(user=user, token=self._tokens.issue(user))

    def profile(self, user_id: int) -> User:
        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("Usuario no encontrado")
        return user

    def update_fcm_token(self, user_id: int, fcm_token: Optional[str]) -> None:
        fcm_token = require_non_empty(fcm_token, "fcmToken")
        if not self._users.get_by_id(user_id):
            raise NotFoundError("Usuario no encontrado")
        self._users.update_fcm_token(user_id, fcm_token)

    def list_employees(self) -> Sequence[User]:
        return self._users.list_by_role(Role.EMPLOYEE)
