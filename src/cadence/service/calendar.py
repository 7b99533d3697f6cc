# SPDX-License-Identifier: MIT

import datetime
import re
from typing import Iterable, Optional

import pendulum

from cadence.configuration import Configuration

DEFAULT_WORKING_DAYS = (1, 2, 3, 4, 5)

# Upper bound on how far ahead the calendar looks for an open working window
MAX_SEARCH_DAYS = 3660


def parse_clock(clock: str) -> tuple[int, int]:
    match = re.match(r"^(\d{1,2}):(\d{2})$", clock)
    if not match:
        raise ValueError(f"Time must be in HH:mm format, got '{clock}'")
    hour = int(match.group(1))
    minute = int(match.group(2))
    if hour < 0 or hour > 23:
        raise ValueError(f"Hour must be between 0 and 23, got {hour}")
    if minute < 0 or minute > 59:
        raise ValueError(f"Minute must be between 0 and 59, got {minute}")
    return (hour, minute)


class WorkCalendar:
    """
    Working days and hours of a workspace.

    All instants passed in may be in any time zone; results are returned in
    UTC. Working windows are interpreted in the calendar's own time zone.
    """

    def __init__(
        self,
        timezone: str = "UTC",
        working_days: Iterable[int] = DEFAULT_WORKING_DAYS,
        work_day_start: str = "09:00",
        work_day_end: str = "17:00",
        holidays: Optional[Iterable[str | datetime.date]] = None,
    ) -> None:
        self.timezone = timezone
        self.working_days = frozenset(working_days)
        if len(self.working_days) == 0:
            raise ValueError("A work calendar needs at least one working day")
        for day in self.working_days:
            if day < 1 or day > 7:
                raise ValueError(f"Working days are ISO weekdays 1-7, got {day}")

        self._opening = parse_clock(work_day_start)
        self._closing = parse_clock(work_day_end)
        if self._opening >= self._closing:
            raise ValueError(
                f"Work day must start before it ends ({work_day_start} - {work_day_end})"
            )

        self.holidays: frozenset[datetime.date] = frozenset(
            datetime.date.fromisoformat(holiday) if isinstance(holiday, str) else holiday
            for holiday in (holidays or [])
        )

    @classmethod
    def from_configuration(cls, config: Configuration) -> "WorkCalendar":
        return cls(
            timezone=config["timezone"],
            working_days=config["working_days"],
            work_day_start=config["work_day_start"],
            work_day_end=config["work_day_end"],
            holidays=config["holidays"],
        )

    @property
    def working_minutes_per_day(self) -> int:
        return (self._closing[0] * 60 + self._closing[1]) - (
            self._opening[0] * 60 + self._opening[1]
        )

    def local_day(self, instant: pendulum.DateTime) -> datetime.date:
        local = instant.in_tz(self.timezone)
        return datetime.date(local.year, local.month, local.day)

    def is_working_day(self, day: datetime.date) -> bool:
        return day.isoweekday() in self.working_days and day not in self.holidays

    def working_window(
        self, day: datetime.date
    ) -> tuple[pendulum.DateTime, pendulum.DateTime]:
        opening = pendulum.datetime(
            day.year, day.month, day.day, *self._opening, tz=self.timezone
        )
        closing = pendulum.datetime(
            day.year, day.month, day.day, *self._closing, tz=self.timezone
        )
        return opening, closing

    def is_working_instant(self, instant: pendulum.DateTime) -> bool:
        day = self.local_day(instant)
        if not self.is_working_day(day):
            return False
        opening, closing = self.working_window(day)
        return opening <= instant < closing

    def next_working_instant(self, instant: pendulum.DateTime) -> pendulum.DateTime:
        """The instant itself when it is working time, else the next opening."""
        day = self.local_day(instant)
        for _ in range(MAX_SEARCH_DAYS):
            if self.is_working_day(day):
                opening, closing = self.working_window(day)
                if instant < opening:
                    return opening.in_tz("UTC")
                if instant < closing:
                    return instant.in_tz("UTC")
            day = day + datetime.timedelta(days=1)
        raise ValueError(
            f"No working time within {MAX_SEARCH_DAYS} days of {instant.isoformat()}"
        )

    def add_working_duration(
        self, start: pendulum.DateTime, minutes: Optional[int]
    ) -> pendulum.DateTime:
        """
        Walk forward from start consuming only working time.

        Work that exactly fills a window ends at that window's closing instant
        rather than at the next opening.
        """
        current = self.next_working_instant(start)
        if not minutes:
            return current

        remaining = minutes * 60
        while True:
            _, closing = self.working_window(self.local_day(current))
            available = int((closing - current).total_seconds())
            if remaining <= available:
                return current.add(seconds=remaining).in_tz("UTC")
            remaining -= available
            current = self.next_working_instant(closing)

    def working_minutes_between(
        self, start: pendulum.DateTime, end: pendulum.DateTime
    ) -> int:
        """Working minutes contained in [start, end)."""
        if end <= start:
            return 0
        total = 0
        current = self.next_working_instant(start)
        while current < end:
            _, closing = self.working_window(self.local_day(current))
            stop = min(closing, end)
            total += int((stop - current).total_seconds())
            current = self.next_working_instant(closing)
        return total // 60
