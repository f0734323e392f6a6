# ============================================================================
# booking_engine/services/notification/reminder_service.py
# Scheduled reminder run - no FastAPI dependencies
# ============================================================================
"""Service that mails reminders for upcoming appointments"""
import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from booking_engine.core.clock import Clock
from booking_engine.models.appointment import Appointment
from booking_engine.schemas.appointments import ReminderResult
from booking_engine.services.notification.appointment_notifier import AppointmentNotifier
from booking_engine.services.schedule.schedule_store import SQLAlchemyScheduleStore

logger = logging.getLogger(__name__)


class ReminderService:
    """
    Sends one reminder per confirmed appointment.

    An appointment qualifies when it starts within ``hours_before`` of now
    and was booked at least ``min_lead_hours`` before its start. Appointments
    whose mail fails stay unmarked and are picked up again by the next run.
    """

    def __init__(
            self,
            store: SQLAlchemyScheduleStore,
            notifier: AppointmentNotifier,
            clock: Clock,
            hours_before: int = 24,
            min_lead_hours: int = 48
    ):
        self.store = store
        self.notifier = notifier
        self.clock = clock
        self.hours_before = hours_before
        self.min_lead_hours = min_lead_hours

    def _starts_at(self, appointment: Appointment, tz) -> datetime:
        return datetime.combine(appointment.appointment_date, appointment.appointment_time, tzinfo=tz)

    def _booked_far_enough_ahead(self, appointment: Appointment, starts_at: datetime) -> bool:
        created_at: Optional[datetime] = appointment.created_at
        if created_at is None:
            return True
        if created_at.tzinfo is None:
            # SQLite hands back naive UTC timestamps
            created_at = created_at.replace(tzinfo=timezone.utc)
        return starts_at - created_at >= timedelta(hours=self.min_lead_hours)

    async def get_due_appointments(self) -> List[Appointment]:
        now = self.clock.now()
        window_end = now + timedelta(hours=self.hours_before)

        candidates = await self.store.get_appointments_needing_reminder(now.date(), window_end.date())

        due = []
        for appointment in candidates:
            starts_at = self._starts_at(appointment, now.tzinfo)
            if not now < starts_at <= window_end:
                continue
            if not self._booked_far_enough_ahead(appointment, starts_at):
                continue
            due.append(appointment)
        return due

    async def send_due_reminders(self) -> List[ReminderResult]:
        """Mail every due reminder and record the ones that went out"""
        results = []
        for appointment in await self.get_due_appointments():
            # SMTP is blocking; keep it off the event loop
            sent = await asyncio.to_thread(self.notifier.notify_reminder, appointment)
            if sent:
                await self.store.mark_reminder_sent(appointment.id, self.clock.now())
                logger.info(f"Reminder sent for appointment {appointment.id}")
            else:
                logger.warning(f"Reminder not sent for appointment {appointment.id}")
            results.append(ReminderResult(id=appointment.id, success=sent))

        sent_count = sum(1 for r in results if r.success)
        logger.info(f"Reminder run complete: {sent_count} sent, {len(results) - sent_count} failed")
        return results
