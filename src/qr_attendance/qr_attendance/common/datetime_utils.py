from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta


@dataclass(frozen=True)
class DayWindow:
    """Ventana de un día local: [start, end)."""

    start: datetime
    end: datetime

    @property
    def day(self) -> date:
        return self.start.date()


def day_window(moment: datetime) -> DayWindow:
    start = datetime.combine(moment.date(), time.min)
    return DayWindow(start=start, end=start + timedelta(days=1))


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_hhmm(value: str) -> time:
    return datetime.strptime(value.strip(), "%H:%M").time()


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def clock_minutes(value: datetime | time) -> int:
    return value.hour * 60 + value.minute


def format_clock(value: datetime) -> str:
    return value.strftime("%H:%M")


def format_duration(delta: timedelta) -> str:
    minutes = max(0, int(delta.total_seconds()) // 60)
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def shift_months(moment: datetime, months: int) -> datetime:
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def day_of_week(moment: datetime | date) -> int:
    """0 = domingo ... 6 = sábado."""
    return moment.isoweekday() % 7
