from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import QRType, Role
from .model import AttendanceEvent, AttendanceEventRow, NewAttendanceEvent


class AttendanceRepository(Protocol):
    def list_for_user_between(self, user_id: int, start: datetime, end: datetime) -> Sequence[AttendanceEvent]:
        """Events with start <= timestamp < end, oldest first."""

        raise NotImplementedError

    def append(self, new: NewAttendanceEvent) -> AttendanceEvent:
        """Persist one event.

        Raises DuplicateEventError when (user_id, event_type, work_date) already exists.
        """

        raise NotImplementedError

    def list_between_with_users(self, start: datetime, end: datetime) -> Sequence[AttendanceEventRow]:
        """Events in [start, end) joined with user identity, newest first."""

        raise NotImplementedError

    def count_distinct_users(
        self,
        event_type: QRType,
        start: datetime,
        end: datetime,
        *,
        role: Optional[Role] = None,
    ) -> int:
        raise NotImplementedError
