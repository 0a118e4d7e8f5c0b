from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..common.datetime_utils import clock_minutes, day_of_week
from .model import ON_TIME, LatenessDecision, WorkSchedule
from .repository import ScheduleRepository


class SchedulePolicy:
    """Work-hours rules: which schedule applies and whether a timestamp is late.

    Schedules only classify events; they never gate whether one may be recorded.
    """

    def __init__(self, schedules: ScheduleRepository):
        self._schedules = schedules

    def resolve(self, user_id: Optional[int], dow: int) -> Optional[WorkSchedule]:
        if user_id is not None:
            own = self._schedules.get_active(user_id=int(user_id), day_of_week=dow)
            if own:
                return own
        return self._schedules.get_active(user_id=None, day_of_week=dow)

    def resolve_for(self, user_id: Optional[int], moment: datetime) -> Optional[WorkSchedule]:
        return self.resolve(user_id, day_of_week(moment))

    @staticmethod
    def classify(schedule: Optional[WorkSchedule], moment: datetime) -> LatenessDecision:
        if schedule is None:
            return ON_TIME

        deadline = clock_minutes(schedule.start_time) + int(schedule.grace_minutes)
        late_by = clock_minutes(moment) - deadline
        if late_by <= 0:
            return ON_TIME
        return LatenessDecision(is_late=True, minutes_late=late_by)

    @staticmethod
    def is_within_work_hours(schedule: Optional[WorkSchedule], moment: datetime) -> bool:
        if schedule is None:
            return True
        now = clock_minutes(moment)
        return clock_minutes(schedule.start_time) <= now <= clock_minutes(schedule.end_time)

    @classmethod
    def leaves_early(cls, schedule: Optional[WorkSchedule], moment: datetime) -> bool:
        if schedule is None:
            return False
        return cls.is_within_work_hours(schedule, moment) and clock_minutes(moment) < clock_minutes(schedule.end_time)
