from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Entidad de dominio: usuario (empleado o administrador).

    Nota: objeto de datos puro, sin acceso a la base de datos.
    """

    user_id: int
    first_name: str
    last_name: str
    email: str
    password_hash: str
    role: Role
    fcm_token: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def public_dict(self) -> dict:
        return {
            "id": self.user_id,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "email": self.email,
            "role": self.role.value,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
