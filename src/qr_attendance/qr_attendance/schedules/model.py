from __future__ import annotations

from dataclasses import dataclass
from datetime import time
from typing import Optional


@dataclass(frozen=True)
class WorkSchedule:
    """Horario laboral por día de la semana (0=domingo .. 6=sábado).

    `user_id=None` es el horario por defecto de la organización.
    """

    schedule_id: int
    user_id: Optional[int]
    day_of_week: int
    start_time: time
    end_time: time
    grace_minutes: int = 15
    is_active: bool = True

    def to_dict(self) -> dict:
        return {
            "id": self.schedule_id,
            "userId": self.user_id,
            "dayOfWeek": self.day_of_week,
            "startTime": self.start_time.strftime("%H:%M"),
            "endTime": self.end_time.strftime("%H:%M"),
            "graceMinutes": self.grace_minutes,
            "isActive": self.is_active,
        }


@dataclass(frozen=True)
class LatenessDecision:
    is_late: bool
    minutes_late: int


ON_TIME = LatenessDecision(is_late=False, minutes_late=0)
