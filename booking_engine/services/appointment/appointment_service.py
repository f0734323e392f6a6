# ============================================================================
# booking_engine/services/appointment/appointment_service.py
# Booking, rescheduling and cancellation rules - no FastAPI dependencies
# ============================================================================
"""Service for managing appointments"""
import logging
from datetime import date
from typing import Any, Dict, Optional, Tuple

from booking_engine.core.exceptions import (
    AppointmentNotEditableError,
    InvalidStatusTransitionError,
    SlotUnavailableError,
)
from booking_engine.models.appointment import Appointment
from booking_engine.schemas.appointments import AppointmentStatus
from booking_engine.services.availability.availability_service import AvailabilityService
from booking_engine.services.schedule.schedule_store import ScheduleStore
from booking_engine.utils.time_utils import normalize_time, to_time
from booking_engine.utils.validators import generate_edit_token

logger = logging.getLogger(__name__)

# Allowed status changes; cancelled and completed are terminal
STATUS_TRANSITIONS = {
    AppointmentStatus.CONFIRMED.value: {
        AppointmentStatus.COMPLETED.value,
        AppointmentStatus.CANCELLED.value,
    },
    AppointmentStatus.COMPLETED.value: set(),
    AppointmentStatus.CANCELLED.value: set(),
}

# Nullable columns a partial update may explicitly clear
CLEARABLE_FIELDS = {"remarks", "admin_notes"}


def appointment_slot(appointment: Appointment) -> Tuple[date, str]:
    """(date, "HH:MM") the appointment occupies"""
    return appointment.appointment_date, normalize_time(appointment.appointment_time)


class AppointmentService:
    """
    Handles appointment mutations.

    Slot conflicts are checked before writing (check-then-act). Two
    near-simultaneous bookings can both pass the check; the store's unique
    index then rejects the loser with SlotUnavailableError.
    """

    def __init__(self, store: ScheduleStore, availability: AvailabilityService):
        self.store = store
        self.availability = availability

    async def create_appointment(
            self,
            data: Dict[str, Any],
            ip_address: Optional[str] = None
    ) -> Appointment:
        """Book a slot. ``data`` holds validated AppointmentCreate fields."""
        day = data["appointment_date"]
        slot_time = normalize_time(data["appointment_time"])

        if not await self.availability.is_slot_available(day, slot_time):
            logger.info(f"Booking refused, slot unavailable: {day} {slot_time}")
            raise SlotUnavailableError(day, slot_time)

        schedule = await self.availability.get_day_schedule(day)

        record = dict(data)
        record.update(
            appointment_time=to_time(slot_time),
            duration_minutes=schedule.slot_duration_minutes,
            status=AppointmentStatus.CONFIRMED.value,
            edit_token=generate_edit_token(),
            ip_address=ip_address,
        )

        appointment = await self.store.create_appointment(record)
        logger.info(f"Appointment {appointment.id} booked for {day} {slot_time}")
        return appointment

    async def update_appointment(
            self,
            appointment_id: int,
            patch: Dict[str, Any]
    ) -> Optional[Appointment]:
        """
        Apply a partial update. Returns None when the appointment does not
        exist. Changing date or time re-checks availability of the new slot;
        setting status to cancelled goes through cancel_appointment. Only
        remarks and admin_notes can be cleared with an explicit None; None
        for any other field means "leave unchanged".
        """
        appointment = await self.store.get_appointment(appointment_id)
        if not appointment:
            return None

        if appointment.status == AppointmentStatus.CANCELLED.value:
            raise AppointmentNotEditableError("Cancelled appointments cannot be changed")

        patch = {k: v for k, v in patch.items() if v is not None or k in CLEARABLE_FIELDS}

        new_status = patch.pop("status", None)
        if isinstance(new_status, AppointmentStatus):
            new_status = new_status.value
        if new_status and new_status != appointment.status:
            if new_status not in STATUS_TRANSITIONS[appointment.status]:
                raise InvalidStatusTransitionError(appointment.status, new_status)
            if new_status == AppointmentStatus.CANCELLED.value:
                if patch:
                    await self.store.update_appointment(appointment_id, patch)
                return await self.cancel_appointment(appointment_id)
            patch["status"] = new_status

        if "appointment_date" in patch or "appointment_time" in patch:
            new_date = patch.get("appointment_date", appointment.appointment_date)
            new_time = normalize_time(patch.get("appointment_time", appointment.appointment_time))
            old_time = normalize_time(appointment.appointment_time)

            if new_date != appointment.appointment_date or new_time != old_time:
                if not await self.availability.is_slot_available(new_date, new_time):
                    logger.info(
                        f"Reschedule of appointment {appointment_id} refused, "
                        f"slot unavailable: {new_date} {new_time}"
                    )
                    raise SlotUnavailableError(new_date, new_time)

                schedule = await self.availability.get_day_schedule(new_date)
                patch["appointment_date"] = new_date
                patch["appointment_time"] = to_time(new_time)
                patch["duration_minutes"] = schedule.slot_duration_minutes
                logger.info(
                    f"Appointment {appointment_id} rescheduled from "
                    f"{appointment.appointment_date} {old_time} to {new_date} {new_time}"
                )
            else:
                patch.pop("appointment_date", None)
                patch.pop("appointment_time", None)

        if not patch:
            return appointment

        return await self.store.update_appointment(appointment_id, patch)

    async def cancel_appointment(self, appointment_id: int) -> Optional[Appointment]:
        appointment = await self.store.cancel_appointment(appointment_id)
        if appointment:
            logger.info(f"Appointment {appointment_id} cancelled")
        return appointment
