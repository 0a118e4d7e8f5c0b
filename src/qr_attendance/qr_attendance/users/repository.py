from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import Role
from .model import User


class UserRepository(Protocol):
    """Interfaz del repositorio de usuarios (identity/credential store).

    Los servicios dependen de esta interfaz, no de una base de datos concreta.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    def create_user(
        self,
        *,
        first_name: str,
        last_name: str,
        email: str,
        password_hash: str,
        role: Role,
        fcm_token: Optional[str] = None,
    ) -> int:
        """Raises ConflictError when the email already exists."""

        raise NotImplementedError

    def update_fcm_token(self, user_id: int, fcm_token: Optional[str]) -> bool:
        raise NotImplementedError

    def list_by_role(self, role: Role) -> Sequence[User]:
        raise NotImplementedError

    def count_by_role(self, role: Role) -> int:
        raise NotImplementedError

    def list_with_fcm_token(self, *, role: Optional[Role] = None) -> Sequence[User]:
        raise NotImplementedError
