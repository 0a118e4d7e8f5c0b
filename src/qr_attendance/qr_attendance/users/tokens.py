from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import jwt

from ..core.constants import DEFAULT_TOKEN_HOURS, JWT_ALGORITHM
from ..core.enums import Role
from ..core.exceptions import TokenExpiredError, TokenInvalidError, TokenMissingError
from .model import User


@dataclass(frozen=True)
class TokenClaims:
    user_id: int
    email: str
    role: Role


class TokenService:
    """Issues and verifies HS256 bearer tokens carrying {userId, email, role}."""

    def __init__(
        self,
        secret: str,
        *,
        expires_hours: int = DEFAULT_TOKEN_HOURS,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        if not secret:
            raise ValueError("JWT secret must not be empty")
        self._secret = secret
        self._expires = timedelta(hours=int(expires_hours))
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def issue(self, user: User) -> str:
        issued_at = self._clock()
        payload = {
            "userId": user.user_id,
            "email": user.email,
            "role": user.role.value,
            "iat": issued_at,
            "exp": issued_at + self._expires,
        }
        return jwt.encode(payload, self._secret, algorithm=JWT_ALGORITHM)

    def decode(self, token: Optional[str]) -> TokenClaims:
        if not token or not token.strip() or token.lower() in {"null", "undefined"}:
            raise TokenMissingError("Token de acceso requerido")

        try:
            payload = jwt.decode(token, self._secret, algorithms=[JWT_ALGORITHM])
        except jwt.ExpiredSignatureError as exc:
            raise TokenExpiredError("Token expirado") from exc
        except jwt.InvalidTokenError as exc:
            raise TokenInvalidError("Token inválido") from exc

        try:
            return TokenClaims(
                user_id=int(payload["userId"]),
                email=str(payload.get("email", "")),
                role=Role(payload["role"]),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise TokenInvalidError("Token inválido") from exc


def bearer_token(header_value: Optional[str]) -> Optional[str]:
    """Extract the token from an `Authorization: Bearer <token>` header."""

    if not header_value:
        return None
    parts = header_value.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1].strip()
