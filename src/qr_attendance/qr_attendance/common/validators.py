from __future__ import annotations

import re
from typing import Optional

from ..core.exceptions import ValidationError

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_NAME_RE = re.compile(r"^[a-zA-ZÀ-ÿ\s]+$")


class FieldErrors:
    """Collects field-level messages and raises them as one ValidationError."""

    def __init__(self):
        self._errors: list[dict] = []

    def add(self, field: str, message: str) -> None:
        self._errors.append({"field": field, "message": message})

    def raise_if_any(self, message: str = "Datos de entrada inválidos") -> None:
        if self._errors:
            raise ValidationError(message, errors=self._errors)


def require_non_empty(value: object, field_name: str) -> str:
    if value is not None and not isinstance(value, str):
        raise ValidationError(
            f"{field_name} debe ser texto",
            errors=[{"field": field_name, "message": "Debe ser una cadena válida"}],
        )
    if not value or not value.strip():
        raise ValidationError(f"{field_name} es requerido", errors=[{"field": field_name, "message": "requerido"}])
    return value.strip()


def parse_flag(value: object, field_name: str, *, default: bool) -> bool:
    """JSON booleans, or the strings/numbers accepted by query flags."""

    if value is None:
        return default
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in {"1", "true", "yes"}:
        return True
    if text in {"0", "false", "no"}:
        return False
    raise ValidationError(
        f"{field_name} debe ser booleano",
        errors=[{"field": field_name, "message": "Debe ser true o false"}],
    )


def _reject_non_text(errors: FieldErrors, field: str, value: object) -> bool:
    if value is None or isinstance(value, str):
        return False
    errors.add(field, "Debe ser una cadena válida")
    return True


def check_required_text(errors: FieldErrors, field: str, value: object, *, strip: bool = True) -> str:
    if _reject_non_text(errors, field, value):
        return ""
    if not (value or "").strip():
        errors.add(field, "requerido")
        return ""
    return value.strip() if strip else value


def check_person_name(errors: FieldErrors, field: str, value: object, *, min_len: int, max_len: int) -> str:
    if _reject_non_text(errors, field, value):
        return ""
    value = (value or "").strip()
    if not (min_len <= len(value) <= max_len):
        errors.add(field, f"Debe tener entre {min_len} y {max_len} caracteres")
    elif not _NAME_RE.match(value):
        errors.add(field, "Solo puede contener letras y espacios")
    return value


def check_email(errors: FieldErrors, field: str, value: object) -> str:
    if _reject_non_text(errors, field, value):
        return ""
    value = (value or "").strip().lower()
    if not _EMAIL_RE.match(value):
        errors.add(field, "Debe ser un email válido")
    return value


def check_optional_string(errors: FieldErrors, field: str, value: object) -> Optional[str]:
    if value is None or _reject_non_text(errors, field, value):
        return None
    return value.strip() or None


def optional_text(value: object, field_name: str) -> Optional[str]:
    errors = FieldErrors()
    text = check_optional_string(errors, field_name, value)
    errors.raise_if_any()
    return text
