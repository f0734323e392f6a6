# booking_engine/api/v1/cron.py
"""Endpoints triggered by an external scheduler (bearer CRON_SECRET)"""
from fastapi import APIRouter, Depends

from booking_engine.api.dependencies import get_clock, get_reminder_service
from booking_engine.core.clock import Clock
from booking_engine.schemas.appointments import ReminderRunResponse
from booking_engine.services.notification.reminder_service import ReminderService

router = APIRouter(tags=["cron"])


@router.get("/send-appointment-reminders", response_model=ReminderRunResponse)
async def send_appointment_reminders(
        reminders: ReminderService = Depends(get_reminder_service),
        clock: Clock = Depends(get_clock)
):
    """Mail reminders for upcoming appointments; schedule once a day"""
    results = await reminders.send_due_reminders()
    sent = sum(1 for r in results if r.success)
    return ReminderRunResponse(
        reminders_sent=sent,
        reminders_failed=len(results) - sent,
        details=results,
        timestamp=clock.now(),
    )
