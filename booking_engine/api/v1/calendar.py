# booking_engine/api/v1/calendar.py
import secrets
from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from booking_engine.api.dependencies import get_clock, get_store
from booking_engine.config.settings import settings
from booking_engine.core.clock import Clock
from booking_engine.schemas.appointments import AppointmentStatus
from booking_engine.services.calendar.ics_service import generate_calendar_feed
from booking_engine.services.schedule.schedule_store import SQLAlchemyScheduleStore

router = APIRouter(tags=["calendar"])

FEED_LIMIT = 10000


@router.get("/appointments.ics")
async def appointments_feed(
        token: str = Query(..., description="Calendar subscription token"),
        clock: Clock = Depends(get_clock),
        store: SQLAlchemyScheduleStore = Depends(get_store)
):
    """Subscribable feed of confirmed appointments (Google/Apple/Outlook)"""
    if not settings.CALENDAR_TOKEN:
        raise HTTPException(status_code=503, detail="Calendar feed is not configured")
    if not secrets.compare_digest(token, settings.CALENDAR_TOKEN):
        raise HTTPException(status_code=401, detail="Invalid calendar token")

    today = clock.now().date()
    appointments, _ = await store.list_appointments(
        start_date=today - timedelta(days=settings.FEED_PAST_DAYS),
        end_date=today + timedelta(days=settings.FEED_FUTURE_DAYS),
        status=AppointmentStatus.CONFIRMED.value,
        limit=FEED_LIMIT,
    )

    return Response(
        content=generate_calendar_feed(appointments),
        media_type="text/calendar; charset=utf-8",
        headers={"Content-Disposition": 'inline; filename="appointments.ics"'},
    )
