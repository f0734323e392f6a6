# ===== booking_engine/services/availability/availability_service.py =====
import asyncio
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Set
import logging

from booking_engine.core.clock import Clock
from booking_engine.schemas.appointments import DateAvailability, DaySchedule, TimeSlot
from booking_engine.services.availability.schedule_resolver import (
    DayScheduleResolver,
    index_weekly_template,
    resolve_day_schedule,
)
from booking_engine.services.schedule.schedule_store import ScheduleStore
from booking_engine.utils.time_utils import (
    days_in_range,
    generate_time_slots,
    get_date_range,
    is_date_in_past,
    is_time_in_past,
    is_today,
    normalize_time,
)

logger = logging.getLogger(__name__)


class AvailabilityService:
    """Bookable slots for one date or a range of dates"""

    def __init__(self, store: ScheduleStore, clock: Clock, default_duration: int = 60):
        self.store = store
        self.clock = clock
        self.default_duration = default_duration
        self.resolver = DayScheduleResolver(store, default_duration)

    async def get_day_schedule(self, day: date) -> DaySchedule:
        return await self.resolver.resolve(day)

    async def get_available_slots(self, day: date) -> List[TimeSlot]:
        """
        Every slot of ``day``, booked and past ones included but marked
        unavailable, so the UI can tell "taken" from "does not exist".
        """
        if is_date_in_past(day, self.clock):
            return []

        schedule = await self.resolver.resolve(day)
        if not schedule.is_open or not schedule.open_time or not schedule.close_time:
            return []

        booked = self._conflict_set(await self.store.get_booked_times(day))
        return self._build_slots(day, schedule, booked)

    async def is_slot_available(self, day: date, slot_time: str) -> bool:
        """Single-slot check used right before a booking is written"""
        if is_date_in_past(day, self.clock):
            return False

        slot_time = normalize_time(slot_time)
        if is_today(day, self.clock) and is_time_in_past(slot_time, self.clock):
            return False

        schedule = await self.resolver.resolve(day)
        if not schedule.is_open or not schedule.open_time or not schedule.close_time:
            return False

        candidates = generate_time_slots(
            schedule.open_time, schedule.close_time, schedule.slot_duration_minutes
        )
        if slot_time not in candidates:
            return False

        booked = self._conflict_set(await self.store.get_booked_times(day))
        return slot_time not in booked

    async def get_availability(self, start_date: date, end_date: date) -> List[DateAvailability]:
        """
        Availability for every date in [start_date, end_date].

        Template and overrides are fetched once; booked times are fetched
        with one concurrent read per date. A date is reported open only if
        at least one of its slots can still be booked.
        """
        if end_date < start_date:
            raise ValueError("end_date must be on or after start_date")

        template_by_day = index_weekly_template(await self.store.get_weekly_template())
        overrides = await self.store.get_date_overrides(start_date, end_date)

        dates = get_date_range(start_date, days_in_range(start_date, end_date))
        bookable_dates = [d for d in dates if not is_date_in_past(d, self.clock)]

        booked_results = await asyncio.gather(
            *(self.store.get_booked_times(d) for d in bookable_dates)
        )
        booked_by_date: Dict[date, Set[str]] = {
            d: self._conflict_set(times) for d, times in zip(bookable_dates, booked_results)
        }

        availability = []
        for day in dates:
            if day not in booked_by_date:
                availability.append(DateAvailability(date=day, is_open=False, slots=[]))
                continue

            schedule = resolve_day_schedule(day, template_by_day, overrides, self.default_duration)
            if not schedule.is_open or not schedule.open_time or not schedule.close_time:
                availability.append(DateAvailability(date=day, is_open=False, slots=[]))
                continue

            slots = self._build_slots(day, schedule, booked_by_date[day])
            availability.append(DateAvailability(
                date=day,
                is_open=any(slot.available for slot in slots),
                slots=slots,
            ))

        logger.info(
            f"Computed availability {start_date} - {end_date}: "
            f"{sum(1 for a in availability if a.is_open)} of {len(availability)} dates open"
        )
        return availability

    async def get_available_dates(self, start_date: date, end_date: date) -> List[date]:
        availability = await self.get_availability(start_date, end_date)
        return [
            a.date for a in availability
            if a.is_open and any(slot.available for slot in a.slots)
        ]

    async def get_next_available_date(self, max_days_ahead: int = 60) -> Optional[date]:
        """First bookable date from today up to ``max_days_ahead`` days out"""
        today = self.clock.now().date()
        available = await self.get_available_dates(today, today + timedelta(days=max_days_ahead))
        return available[0] if available else None

    def _build_slots(self, day: date, schedule: DaySchedule, booked: Set[str]) -> List[TimeSlot]:
        candidates = generate_time_slots(
            schedule.open_time, schedule.close_time, schedule.slot_duration_minutes
        )
        today = is_today(day, self.clock)

        slots = []
        for slot_time in candidates:
            available = slot_time not in booked
            if today and is_time_in_past(slot_time, self.clock):
                available = False
            slots.append(TimeSlot(time=slot_time, available=available))
        return slots

    @staticmethod
    def _conflict_set(booked_times: Iterable[str]) -> Set[str]:
        return {normalize_time(t) for t in booked_times}
