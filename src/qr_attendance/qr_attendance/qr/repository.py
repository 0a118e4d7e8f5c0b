from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import QRType
from .model import NewQRCode, QRCodeListing, QRCodeRecord, RetireScope


class QRCodeRepository(Protocol):
    def get_by_id(self, qr_id: int) -> Optional[QRCodeRecord]:
        raise NotImplementedError

    def code_exists(self, code: str) -> bool:
        raise NotImplementedError

    def find_active_by_code(self, code: str) -> Optional[QRCodeRecord]:
        """Exact match on `code` restricted to active rows."""

        raise NotImplementedError

    def insert_codes(self, codes: Sequence[NewQRCode], *, retire: Optional[RetireScope] = None) -> list[QRCodeRecord]:
        """Atomically deactivate the codes in `retire` (if given) and insert `codes`.

        Either every insert lands or nothing changes.
        """

        raise NotImplementedError

    def deactivate(self, qr_id: int) -> bool:
        raise NotImplementedError

    def list_active(self, qr_type: Optional[QRType] = None) -> Sequence[QRCodeListing]:
        """Newest first, joined with the creator's identity."""

        raise NotImplementedError
