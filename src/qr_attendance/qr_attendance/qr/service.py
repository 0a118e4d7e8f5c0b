from __future__ import annotations

import logging
import secrets
import string
from datetime import datetime
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.locks import KeyedLock
from ..core.constants import (
    DEFAULT_COMPANY_NAME,
    QR_CODE_PREFIX,
    QR_IMAGE_WIDTH,
    QR_LIST_IMAGE_WIDTH,
    QR_MAX_GENERATION_ATTEMPTS,
    QR_RANDOM_SUFFIX_LENGTH,
)
from ..core.enums import DeactivateOutcome, QRType, Role
from ..core.exceptions import CodeGenerationExhausted, NotFoundError, QRRenderError, ValidationError
from .model import CreatedQRCode, NewQRCode, QRPair, QRValidation, RetireScope
from .renderer import QRRenderer
from .repository import QRCodeRepository

logger = logging.getLogger(__name__)

_BASE36 = string.digits + string.ascii_lowercase


def to_base36(value: int) -> str:
    if value == 0:
        return "0"
    out = []
    while value:
        value, rem = divmod(value, 36)
        out.append(_BASE36[rem])
    return "".join(reversed(out))


def random_suffix(length: int = QR_RANDOM_SUFFIX_LENGTH) -> str:
    return "".join(secrets.choice(_BASE36) for _ in range(length))


def parse_qr_type(value: object) -> QRType:
    try:
        return QRType(value)
    except ValueError:
        raise ValidationError('Tipo de QR inválido. Debe ser "entry" o "exit"') from None


class QRRegistry:
    """Owns the universe of valid scan targets: generation, validation, rotation."""

    def __init__(
        self,
        codes: QRCodeRepository,
        renderer: QRRenderer,
        *,
        prefix: str = QR_CODE_PREFIX,
        clock: Optional[Callable[[], datetime]] = None,
        suffix_source: Optional[Callable[[], str]] = None,
        max_attempts: int = QR_MAX_GENERATION_ATTEMPTS,
    ):
        self._codes = codes
        self._renderer = renderer
        self._prefix = prefix
        self._clock = clock or now_local
        self._suffix_source = suffix_source or random_suffix
        self._max_attempts = int(max_attempts)
        self._issuer_locks = KeyedLock()

    def generate_candidate(self, qr_type: QRType) -> str:
        millis = int(self._clock().timestamp() * 1000)
        return f"{self._prefix}_{qr_type.value}_{to_base36(millis)}_{self._suffix_source()}".upper()

    def _unique_code(self, qr_type: QRType, reserved: Sequence[str] = ()) -> str:
        for attempt in range(1, self._max_attempts + 1):
            code = self.generate_candidate(qr_type)
            if code not in reserved and not self._codes.code_exists(code):
                return code
            logger.warning("qr code collision (attempt %s/%s)", attempt, self._max_attempts)
        raise CodeGenerationExhausted("No se pudo generar un código único después de varios intentos")

    def _prepare(self, qr_type: QRType, issuer_id: int, description: str, reserved: Sequence[str] = ()) -> tuple[NewQRCode, str]:
        code = self._unique_code(qr_type, reserved)
        image = self._renderer.render_png_data_url(code, width=QR_IMAGE_WIDTH, margin=2)
        new = NewQRCode(
            code=code,
            qr_type=qr_type,
            created_by=int(issuer_id),
            description=description,
            created_at=self._clock(),
        )
        return new, image

    def create_code(
        self,
        qr_type: QRType,
        issuer_id: int,
        description: Optional[str] = None,
        regenerate: bool = False,
    ) -> CreatedQRCode:
        description = (description or "").strip() or f"QR {qr_type.value} generado automáticamente"

        with self._issuer_locks.hold(int(issuer_id)):
            new, image = self._prepare(qr_type, issuer_id, description)
            retire = RetireScope(issuer_id=int(issuer_id), qr_type=qr_type) if regenerate else None
            (record,) = self._codes.insert_codes([new], retire=retire)

        logger.info("qr code created id=%s type=%s issuer=%s regenerate=%s", record.qr_id, qr_type.value, issuer_id, regenerate)
        return CreatedQRCode(record=record, image=image)

    def generate_pair(self, issuer_id: int, company_name: Optional[str] = None) -> QRPair:
        """Rotation: retire every active code of the issuer and create a fresh entry+exit pair."""

        company_name = (company_name or "").strip() or DEFAULT_COMPANY_NAME

        with self._issuer_locks.hold(int(issuer_id)):
            entry_new, entry_image = self._prepare(QRType.ENTRY, issuer_id, f"QR de ENTRADA - {company_name}")
            exit_new, exit_image = self._prepare(
                QRType.EXIT, issuer_id, f"QR de SALIDA - {company_name}", reserved=[entry_new.code]
            )
            entry_record, exit_record = self._codes.insert_codes(
                [entry_new, exit_new],
                retire=RetireScope(issuer_id=int(issuer_id)),
            )

        logger.info("qr pair rotated issuer=%s entry=%s exit=%s", issuer_id, entry_record.qr_id, exit_record.qr_id)
        return QRPair(
            entry=CreatedQRCode(record=entry_record, image=entry_image),
            exit=CreatedQRCode(record=exit_record, image=exit_image),
        )

    def validate(self, code: object) -> QRValidation:
        code = code.strip() if isinstance(code, str) else ""
        record = self._codes.find_active_by_code(code) if code else None
        if not record:
            return QRValidation(valid=False, reason="Código QR no encontrado o inactivo")
        return QRValidation(valid=True, record=record)

    def deactivate(self, qr_id: int, requester_id: int, requester_role: Role) -> DeactivateOutcome:
        record = self._codes.get_by_id(qr_id)
        if not record:
            return DeactivateOutcome.NOT_FOUND
        if requester_role != Role.ADMIN and record.created_by != int(requester_id):
            return DeactivateOutcome.FORBIDDEN

        with self._issuer_locks.hold(record.created_by):
            self._codes.deactivate(record.qr_id)
        logger.info("qr code deactivated id=%s by=%s", record.qr_id, requester_id)
        return DeactivateOutcome.SUCCESS

    def list_active(self, qr_type: Optional[QRType] = None, include_images: bool = False) -> list[dict]:
        out: list[dict] = []
        for listing in self._codes.list_active(qr_type):
            item = listing.record.to_dict()
            item.pop("isActive", None)
            item["creator"] = listing.creator
            if include_images:
                try:
                    item["qrImage"] = self._renderer.render_png_data_url(listing.record.code, width=QR_LIST_IMAGE_WIDTH, margin=1)
                except QRRenderError as exc:
                    logger.warning("qr image for %s not rendered: %s", listing.record.qr_id, exc)
                    item["qrImage"] = None
            out.append(item)
        return out

    def get_with_image(self, qr_id: int) -> CreatedQRCode:
        record = self._codes.get_by_id(qr_id)
        if not record:
            raise NotFoundError("Código QR no encontrado")
        return CreatedQRCode(record=record, image=self._renderer.render_png_data_url(record.code, width=QR_IMAGE_WIDTH))
