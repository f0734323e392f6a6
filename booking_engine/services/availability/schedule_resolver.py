# ===== booking_engine/services/availability/schedule_resolver.py =====
"""
Day schedule resolution.

Merges the weekly template with date overrides into the opening hours of
one date. ``resolve_day_schedule`` is the only place the precedence rules
live; the single-date resolver and the range calculator both call it.
"""
from datetime import date
from typing import Dict, Iterable, Mapping, Optional
import logging

from booking_engine.models.availability import AppointmentSettings, DateOverride
from booking_engine.schemas.appointments import DaySchedule
from booking_engine.services.schedule.schedule_store import ScheduleStore
from booking_engine.utils.time_utils import get_day_of_week, normalize_time

logger = logging.getLogger(__name__)

# Tie-break tiers when several overrides cover the same date (lower wins)
EXACT_DATE = 0
DATE_RANGE = 1
RECURRING = 2


def override_applies(override: DateOverride, day: date) -> bool:
    """Check whether an override covers ``day``"""
    if override.is_recurring:
        target = (day.month, day.day)
        start = (override.date.month, override.date.day)
        if override.end_date is None:
            return target == start

        end = (override.end_date.month, override.end_date.day)
        if start <= end:
            return start <= target <= end
        # Range wraps over New Year, e.g. Dec 24 - Jan 2
        return target >= start or target <= end

    end_date = override.end_date or override.date
    return override.date <= day <= end_date


def _override_tier(override: DateOverride) -> int:
    if override.is_recurring:
        return RECURRING
    if override.end_date is not None:
        return DATE_RANGE
    return EXACT_DATE


def find_applicable_override(overrides: Iterable[DateOverride], day: date) -> Optional[DateOverride]:
    """
    Pick the override that governs ``day``.

    Exact single-date overrides beat ranges, ranges beat recurring ones;
    within a tier the most recently created (highest id) wins.
    """
    matches = [o for o in overrides if override_applies(o, day)]
    if not matches:
        return None

    return min(matches, key=lambda o: (_override_tier(o), -(o.id or 0)))


def index_weekly_template(rows: Iterable[AppointmentSettings]) -> Dict[int, AppointmentSettings]:
    return {row.day_of_week: row for row in rows}


def resolve_day_schedule(
        day: date,
        template_by_day: Mapping[int, AppointmentSettings],
        overrides: Iterable[DateOverride],
        default_duration: int = 60
) -> DaySchedule:
    """Resolve opening hours for ``day`` from pre-fetched template and overrides"""
    day_setting = template_by_day.get(get_day_of_week(day))
    override = find_applicable_override(overrides, day)

    # Overrides carry no slot granularity of their own
    duration = day_setting.slot_duration_minutes if day_setting else default_duration

    if override:
        if override.is_closed:
            return DaySchedule(
                date=day,
                is_open=False,
                slot_duration_minutes=duration,
                override_reason=override.reason,
            )

        return DaySchedule(
            date=day,
            is_open=True,
            open_time=normalize_time(override.open_time) if override.open_time else None,
            close_time=normalize_time(override.close_time) if override.close_time else None,
            slot_duration_minutes=duration,
            override_reason=override.reason,
        )

    if not day_setting or not day_setting.is_open:
        return DaySchedule(date=day, is_open=False, slot_duration_minutes=duration)

    return DaySchedule(
        date=day,
        is_open=True,
        open_time=normalize_time(day_setting.open_time) if day_setting.open_time else None,
        close_time=normalize_time(day_setting.close_time) if day_setting.close_time else None,
        slot_duration_minutes=day_setting.slot_duration_minutes,
    )


class DayScheduleResolver:
    """Read-through resolver for a single date (no caching)"""

    def __init__(self, store: ScheduleStore, default_duration: int = 60):
        self.store = store
        self.default_duration = default_duration

    async def resolve(self, day: date) -> DaySchedule:
        template = await self.store.get_weekly_template()
        overrides = await self.store.get_date_overrides(day, day)

        schedule = resolve_day_schedule(
            day,
            index_weekly_template(template),
            overrides,
            self.default_duration,
        )
        logger.debug(f"Resolved schedule for {day}: open={schedule.is_open}")
        return schedule
