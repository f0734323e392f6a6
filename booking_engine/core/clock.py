# booking_engine/core/clock.py
"""
Clock capability.

Everything that asks "is this date in the past" or "has this slot already
started today" reads the current instant through a Clock, so tests can pin
time instead of depending on when they run.
"""
from datetime import datetime
from typing import Protocol
from zoneinfo import ZoneInfo


class Clock(Protocol):
    """Provider of the current business-local date/time"""

    def now(self) -> datetime:
        ...


class SystemClock:
    """Wall clock in the business timezone"""

    def __init__(self, tz_name: str):
        self.tz = ZoneInfo(tz_name)

    def now(self) -> datetime:
        return datetime.now(self.tz)


class FixedClock:
    """Clock frozen at a given instant"""

    def __init__(self, instant: datetime):
        self.instant = instant

    def now(self) -> datetime:
        return self.instant
