from __future__ import annotations

from datetime import time
from typing import Optional, Protocol, Sequence

from .model import WorkSchedule


class ScheduleRepository(Protocol):
    def get_active(self, *, user_id: Optional[int], day_of_week: int) -> Optional[WorkSchedule]:
        """Active schedule for exactly this scope (user_id=None = organization default)."""

        raise NotImplementedError

    def upsert(
        self,
        *,
        user_id: Optional[int],
        day_of_week: int,
        start_time: time,
        end_time: time,
        grace_minutes: int,
        is_active: bool = True,
    ) -> int:
        """Create or update the schedule for (user_id, day_of_week).

        Returns schedule_id.
        """

        raise NotImplementedError

    def delete(self, *, schedule_id: int) -> bool:
        raise NotImplementedError

    def list_all(self, *, user_id: Optional[int] = None) -> Sequence[WorkSchedule]:
        raise NotImplementedError
