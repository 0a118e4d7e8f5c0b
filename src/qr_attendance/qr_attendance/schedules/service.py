from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..common.datetime_utils import parse_hhmm
from ..common.validators import FieldErrors, parse_flag
from ..core.constants import DEFAULT_GRACE_MINUTES
from ..core.exceptions import NotFoundError, ValidationError
from ..users.repository import UserRepository
from .model import WorkSchedule
from .repository import ScheduleRepository

logger = logging.getLogger(__name__)


class ScheduleService:
    """Use case: administer per-user and organization-wide work schedules."""

    def __init__(self, schedules: ScheduleRepository, users: UserRepository):
        self._schedules = schedules
        self._users = users

    def upsert(self, payload: dict) -> int:
        errors = FieldErrors()

        user_id = payload.get("userId")
        if user_id is not None:
            try:
                user_id = int(user_id)
            except (TypeError, ValueError):
                errors.add("userId", "Usuario inválido")
                user_id = None

        try:
            dow = int(payload.get("dayOfWeek"))
            if not 0 <= dow <= 6:
                raise ValueError
        except (TypeError, ValueError):
            errors.add("dayOfWeek", "Debe estar entre 0 (domingo) y 6 (sábado)")
            dow = 0

        start = end = None
        for field in ("startTime", "endTime"):
            try:
                value = parse_hhmm(str(payload.get(field) or ""))
            except ValueError:
                errors.add(field, "Hora inválida (HH:MM)")
                continue
            if field == "startTime":
                start = value
            else:
                end = value
        if start and end and end <= start:
            errors.add("endTime", "Debe ser posterior a startTime")

        grace = payload.get("graceMinutes", DEFAULT_GRACE_MINUTES)
        try:
            grace = int(grace)
            if grace < 0:
                raise ValueError
        except (TypeError, ValueError):
            errors.add("graceMinutes", "Debe ser un entero >= 0")
            grace = 0

        try:
            is_active = parse_flag(payload.get("isActive"), "isActive", default=True)
        except ValidationError:
            errors.add("isActive", "Debe ser true o false")
            is_active = True

        errors.raise_if_any()

        if user_id is not None and not self._users.get_by_id(user_id):
            raise NotFoundError("Usuario no encontrado")

        schedule_id = self._schedules.upsert(
            user_id=user_id,
            day_of_week=dow,
            start_time=start,
            end_time=end,
            grace_minutes=grace,
            is_active=is_active,
        )
        logger.info("schedule upserted id=%s user=%s dow=%s", schedule_id, user_id, dow)
        return schedule_id

    def delete(self, schedule_id: int) -> None:
        if not self._schedules.delete(schedule_id=int(schedule_id)):
            raise NotFoundError("Horario no encontrado")

    def list(self, user_id: Optional[int] = None) -> Sequence[WorkSchedule]:
        if user_id is not None and user_id <= 0:
            raise ValidationError("Usuario inválido")
        return self._schedules.list_all(user_id=user_id)
