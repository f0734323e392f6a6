"""
Tests for booking, rescheduling and cancelling appointments
"""
import unittest
from datetime import date, datetime, time
from zoneinfo import ZoneInfo

from booking_engine.core.clock import FixedClock
from booking_engine.core.exceptions import (
    AppointmentNotEditableError,
    InvalidStatusTransitionError,
    SlotUnavailableError,
)
from booking_engine.services.appointment.appointment_service import AppointmentService
from booking_engine.services.availability.availability_service import AvailabilityService
from tests.fakes import FakeScheduleStore, customer_details, weekly_row

MONDAY = date(2025, 1, 13)
TUESDAY = date(2025, 1, 14)


class TestAppointmentService(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.store = FakeScheduleStore(template=[
            weekly_row(0, "09:00", "12:00", 60),
            weekly_row(1, "10:00", "12:00", 30),
        ])
        clock = FixedClock(datetime(2025, 1, 10, 12, 0, tzinfo=ZoneInfo("Europe/Brussels")))
        self.service = AppointmentService(self.store, AvailabilityService(self.store, clock))

    def booking(self, day=MONDAY, slot_time="09:00", **details):
        data = customer_details(**details)
        data.update(appointment_date=day, appointment_time=slot_time)
        return data

    async def test_create_sets_server_fields(self):
        appointment = await self.service.create_appointment(self.booking(TUESDAY, "10:30"), "10.0.0.1")

        self.assertEqual(appointment.status, "confirmed")
        self.assertEqual(appointment.appointment_time, time(10, 30))
        self.assertEqual(appointment.duration_minutes, 30)
        self.assertEqual(appointment.ip_address, "10.0.0.1")
        self.assertEqual(len(appointment.edit_token), 32)

    async def test_double_booking_refused(self):
        await self.service.create_appointment(self.booking())
        with self.assertRaises(SlotUnavailableError) as ctx:
            await self.service.create_appointment(self.booking(customer_name="Els"))
        self.assertEqual(ctx.exception.code, "SLOT_UNAVAILABLE")

    async def test_store_rejects_race_loser(self):
        """Test that the store's uniqueness rule still fires when the pre-check passed."""
        data = self.booking()
        data.update(appointment_time=time(9, 0), status="confirmed", edit_token="x" * 32)
        await self.store.create_appointment(dict(data))
        with self.assertRaises(SlotUnavailableError):
            await self.store.create_appointment(dict(data, edit_token="y" * 32))

    async def test_off_grid_time_refused(self):
        with self.assertRaises(SlotUnavailableError):
            await self.service.create_appointment(self.booking(slot_time="09:15"))

    async def test_reschedule_to_free_slot(self):
        appointment = await self.service.create_appointment(self.booking())

        updated = await self.service.update_appointment(
            appointment.id, {"appointment_date": TUESDAY, "appointment_time": "11:00"}
        )

        self.assertEqual(updated.appointment_date, TUESDAY)
        self.assertEqual(updated.appointment_time, time(11, 0))
        self.assertEqual(updated.duration_minutes, 30)
        self.assertEqual(await self.store.get_booked_times(MONDAY), [])

    async def test_reschedule_to_taken_slot_refused(self):
        self.store.book(TUESDAY, "11:00")
        appointment = await self.service.create_appointment(self.booking())

        with self.assertRaises(SlotUnavailableError):
            await self.service.update_appointment(
                appointment.id, {"appointment_date": TUESDAY, "appointment_time": "11:00"}
            )
        self.assertEqual(appointment.appointment_date, MONDAY)

    async def test_unchanged_slot_is_not_rechecked(self):
        appointment = await self.service.create_appointment(self.booking())
        updated = await self.service.update_appointment(
            appointment.id, {"appointment_time": "09:00", "remarks": "Graag parkeerplaats"}
        )
        self.assertEqual(updated.remarks, "Graag parkeerplaats")
        self.assertEqual(updated.appointment_time, time(9, 0))

    async def test_explicit_none_clears_notes(self):
        appointment = await self.service.create_appointment(self.booking(remarks="Bel aan"))
        await self.service.update_appointment(appointment.id, {"admin_notes": "Klant belt terug"})

        updated = await self.service.update_appointment(
            appointment.id, {"remarks": None, "admin_notes": None}
        )

        self.assertIsNone(updated.remarks)
        self.assertIsNone(updated.admin_notes)

    async def test_none_for_required_field_leaves_it(self):
        appointment = await self.service.create_appointment(self.booking())
        updated = await self.service.update_appointment(
            appointment.id, {"customer_name": None, "appointment_time": None, "status": None}
        )
        self.assertEqual(updated.customer_name, "Jan Peeters")
        self.assertEqual(updated.appointment_time, time(9, 0))
        self.assertEqual(updated.status, "confirmed")

    async def test_update_missing_appointment(self):
        self.assertIsNone(await self.service.update_appointment(999, {"remarks": "x"}))

    async def test_cancelled_appointment_not_editable(self):
        appointment = await self.service.create_appointment(self.booking())
        await self.service.cancel_appointment(appointment.id)
        with self.assertRaises(AppointmentNotEditableError):
            await self.service.update_appointment(appointment.id, {"remarks": "x"})

    async def test_status_transitions(self):
        appointment = await self.service.create_appointment(self.booking())

        completed = await self.service.update_appointment(appointment.id, {"status": "completed"})
        self.assertEqual(completed.status, "completed")

        with self.assertRaises(InvalidStatusTransitionError):
            await self.service.update_appointment(appointment.id, {"status": "confirmed"})

    async def test_status_cancelled_goes_through_cancel(self):
        appointment = await self.service.create_appointment(self.booking())
        cancelled = await self.service.update_appointment(appointment.id, {"status": "cancelled"})
        self.assertEqual(cancelled.status, "cancelled")
        self.assertIsNotNone(cancelled.cancelled_at)

    async def test_cancel_is_idempotent_and_frees_slot(self):
        appointment = await self.service.create_appointment(self.booking())

        first = await self.service.cancel_appointment(appointment.id)
        cancelled_at = first.cancelled_at
        second = await self.service.cancel_appointment(appointment.id)

        self.assertEqual(second.cancelled_at, cancelled_at)
        rebooked = await self.service.create_appointment(self.booking(customer_name="Els"))
        self.assertNotEqual(rebooked.id, appointment.id)

    async def test_cancel_missing_appointment(self):
        self.assertIsNone(await self.service.cancel_appointment(999))


if __name__ == "__main__":
    unittest.main()
