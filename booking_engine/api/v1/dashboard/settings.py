# ============================================================================
# FILE: booking_engine/api/v1/dashboard/settings.py
# Weekly opening hours
# ============================================================================
from typing import List

from fastapi import APIRouter, Depends

from booking_engine.api.dependencies import get_store
from booking_engine.schemas.appointments import WeeklySettingsRead, WeeklySettingsUpdate
from booking_engine.services.schedule.schedule_store import SQLAlchemyScheduleStore

router = APIRouter(prefix="/settings", tags=["dashboard-settings"])


@router.get("/weekly", response_model=List[WeeklySettingsRead])
async def get_weekly_settings(store: SQLAlchemyScheduleStore = Depends(get_store)):
    """Weekly template, Monday (0) through Sunday (6)"""
    return await store.get_weekly_template()


@router.put("/weekly", response_model=List[WeeklySettingsRead])
async def update_weekly_settings(
        payload: List[WeeklySettingsUpdate],
        store: SQLAlchemyScheduleStore = Depends(get_store)
):
    """Replace the hours of the given weekdays; other days are left alone"""
    for day in payload:
        await store.update_weekly_template(
            day_of_week=day.day_of_week,
            is_open=day.is_open,
            open_time=day.open_time,
            close_time=day.close_time,
            slot_duration_minutes=day.slot_duration_minutes,
        )
    return await store.get_weekly_template()
