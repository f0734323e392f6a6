# booking_engine/utils/time_utils.py
"""
Clock-time and calendar helpers for the booking engine.

Times are "HH:MM" strings (24h clock), dates are ``datetime.date``.
Anything that depends on "now" takes a Clock.
"""
from datetime import date, time, timedelta
from typing import List, Optional, Union

from booking_engine.core.clock import Clock

DAY_NAMES_NL = [
    "maandag", "dinsdag", "woensdag", "donderdag", "vrijdag", "zaterdag", "zondag",
]
MONTH_NAMES_NL = [
    "januari", "februari", "maart", "april", "mei", "juni",
    "juli", "augustus", "september", "oktober", "november", "december",
]
MONTH_ABBR_NL = [
    "jan", "feb", "mrt", "apr", "mei", "jun",
    "jul", "aug", "sep", "okt", "nov", "dec",
]


def time_to_minutes(value: str) -> int:
    """Minutes since midnight for an "HH:MM" string"""
    hours, minutes = value.split(":")[:2]
    return int(hours) * 60 + int(minutes)


def minutes_to_time(minutes: int) -> str:
    """Zero-padded "HH:MM" for minutes since midnight"""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def normalize_time(value: Union[str, time]) -> str:
    """Truncate "HH:MM:SS" strings and time objects to "HH:MM" """
    if isinstance(value, time):
        return value.strftime("%H:%M")
    return value[:5]


def to_time(value: Optional[Union[str, time]]) -> Optional[time]:
    """Time object for an "HH:MM" string, as stored in Time columns"""
    if value is None or isinstance(value, time):
        return value
    hours, minutes = normalize_time(value).split(":")
    return time(int(hours), int(minutes))


def generate_time_slots(open_time: str, close_time: str, duration_minutes: int) -> List[str]:
    """
    All slot start times between open and close.

    A slot starting at ``t`` is included when ``t + duration <= close``, so
    the last slot ends at or before closing time.
    """
    if duration_minutes <= 0:
        raise ValueError("Slot duration must be positive")

    slots = []
    current = time_to_minutes(open_time)
    end = time_to_minutes(close_time)

    while current + duration_minutes <= end:
        slots.append(minutes_to_time(current))
        current += duration_minutes

    return slots


def is_date_in_past(day: date, clock: Clock) -> bool:
    """True for dates before today; today itself is not in the past"""
    return day < clock.now().date()


def is_today(day: date, clock: Clock) -> bool:
    return day == clock.now().date()


def get_current_time(clock: Clock) -> str:
    return clock.now().strftime("%H:%M")


def is_time_in_past(value: str, clock: Clock) -> bool:
    """True when the slot has started; the current minute counts as past"""
    return time_to_minutes(value) <= time_to_minutes(get_current_time(clock))


def get_day_of_week(day: date) -> int:
    # Monday=0 .. Sunday=6, the same convention as the weekly template rows
    return day.weekday()


def get_date_range(start: date, days: int) -> List[date]:
    """``days`` consecutive dates beginning at ``start``"""
    return [start + timedelta(days=offset) for offset in range(max(days, 0))]


def days_in_range(start: date, end: date) -> int:
    """Number of calendar days in [start, end], inclusive"""
    return (end - start).days + 1


def format_date_nl(day: date) -> str:
    """e.g. "dinsdag 14 januari 2025" """
    return (
        f"{DAY_NAMES_NL[day.weekday()]} {day.day} "
        f"{MONTH_NAMES_NL[day.month - 1]} {day.year}"
    )


def format_date_short_nl(day: date) -> str:
    """e.g. "14 jan 2025" """
    return f"{day.day} {MONTH_ABBR_NL[day.month - 1]} {day.year}"


def format_time_nl(value: Union[str, time]) -> str:
    """e.g. "14:00 uur" """
    return f"{normalize_time(value)} uur"


def format_date_time_nl(day: date, value: Union[str, time]) -> str:
    return f"{format_date_nl(day)} om {format_time_nl(value)}"


def format_address(street: str, postal_code: str, city: str) -> str:
    return f"{street}, {postal_code} {city}"
