"""
SmartQueue — Local-time helpers

"Today" is local midnight to local midnight in the configured TIMEZONE.
All instants are timezone-aware datetimes.
"""
import math
from datetime import datetime, tzinfo
from typing import Callable

Clock = Callable[[], datetime]


def system_clock(tz: tzinfo) -> Clock:
    def now() -> datetime:
        return datetime.now(tz=tz)
    return now


def start_of_day(moment: datetime, tz: tzinfo) -> datetime:
    return moment.astimezone(tz).replace(hour=0, minute=0, second=0, microsecond=0)


def local_hour(moment: datetime, tz: tzinfo) -> int:
    return moment.astimezone(tz).hour


def minutes_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 60.0


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def hour_label(hour: int) -> str:
    """9 -> '9 AM', 12 -> '12 PM', 0 -> '12 AM'."""
    return f"{hour % 12 or 12} {'PM' if hour >= 12 else 'AM'}"


def hour_range_label(hour: int) -> str:
    """12 -> '12:00 PM - 1:00 PM'."""
    def fmt(h: int) -> str:
        return f"{h % 12 or 12}:00 {'PM' if h >= 12 else 'AM'}"
    return f"{fmt(hour)} - {fmt((hour + 1) % 24)}"
