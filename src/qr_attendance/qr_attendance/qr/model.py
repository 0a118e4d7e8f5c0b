from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import QRType


@dataclass(frozen=True)
class QRCodeRecord:
    """Entidad de dominio: código QR escaneable.

    El valor `code` es inmutable; solo `is_active` cambia (desactivación/rotación).
    """

    qr_id: int
    code: str
    qr_type: QRType
    created_by: int
    is_active: bool
    description: Optional[str]
    created_at: datetime

    def to_dict(self) -> dict:
        return {
            "id": self.qr_id,
            "code": self.code,
            "type": self.qr_type.value,
            "description": self.description,
            "isActive": self.is_active,
            "createdAt": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class NewQRCode:
    code: str
    qr_type: QRType
    created_by: int
    description: str
    created_at: datetime


@dataclass(frozen=True)
class RetireScope:
    """Active codes to deactivate in the same transaction as an insert."""

    issuer_id: int
    qr_type: Optional[QRType] = None


@dataclass(frozen=True)
class QRCodeListing:
    """Read-model para el listado de códigos activos (con creador)."""

    record: QRCodeRecord
    creator: Optional[dict] = None


@dataclass(frozen=True)
class CreatedQRCode:
    record: QRCodeRecord
    image: str

    def to_dict(self) -> dict:
        return {"qrRecord": self.record.to_dict(), "qrImage": self.image}


@dataclass(frozen=True)
class QRPair:
    entry: CreatedQRCode
    exit: CreatedQRCode

    def to_dict(self) -> dict:
        return {"entry": self.entry.to_dict(), "exit": self.exit.to_dict()}


@dataclass(frozen=True)
class QRValidation:
    valid: bool
    record: Optional[QRCodeRecord] = None
    reason: Optional[str] = None
