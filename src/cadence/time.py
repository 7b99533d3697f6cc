# SPDX-License-Identifier: MIT

import math
from typing import Optional, cast

import pendulum


def now_utc() -> pendulum.DateTime:
    return pendulum.now("UTC")


def datetime_to_iso_str(datetime: pendulum.DateTime) -> str:
    return datetime.isoformat()


def datetime_to_iso_str_optional(
    datetime: Optional[pendulum.DateTime],
) -> Optional[str]:
    if datetime is None:
        return None
    return datetime_to_iso_str(datetime)


def datetime_from_str(datetime: str) -> pendulum.DateTime:
    return cast(pendulum.DateTime, pendulum.parse(datetime)).in_tz("UTC")


def datetime_from_str_optional(datetime: Optional[str]) -> Optional[pendulum.DateTime]:
    if datetime is None:
        return None
    return datetime_from_str(datetime)


def datetime_to_display_str(datetime: pendulum.DateTime, timezone: str) -> str:
    return datetime.in_tz(timezone).format("MMM-DD ddd HH:mm")


def datetime_to_display_str_optional(
    datetime: Optional[pendulum.DateTime], timezone: str
) -> Optional[str]:
    if datetime is None:
        return None
    return datetime_to_display_str(datetime, timezone)


def datetime_to_day_key(datetime: pendulum.DateTime, timezone: str) -> str:
    """Calendar day of an instant in the given time zone, as 'YYYY-MM-DD'."""
    return datetime.in_tz(timezone).format("YYYY-MM-DD")


def seconds_between(start: pendulum.DateTime, end: pendulum.DateTime) -> int:
    """Whole seconds from start to end, floored and never negative."""
    return max(0, math.floor((end - start).total_seconds()))


def seconds_to_str(seconds: int) -> str:
    hours, remainder = divmod(seconds, 3600)
    minutes = remainder // 60
    return f"{hours}:{minutes:02d}"


def minutes_from_str(duration: str) -> int:
    hours, minutes = map(int, duration.split(":"))
    return hours * 60 + minutes


def minutes_to_str_optional(minutes: Optional[int]) -> Optional[str]:
    if minutes is None:
        return None
    return f"{minutes // 60}:{minutes % 60:02d}"
