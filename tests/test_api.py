"""
Tests for the HTTP layer with the store and clock swapped out
"""
import logging
import unittest
from datetime import date, datetime, timezone
from unittest import mock
from zoneinfo import ZoneInfo

from fastapi.testclient import TestClient

from booking_engine.api.dependencies import get_clock, get_notifier, get_store
from booking_engine.config.settings import settings
from booking_engine.core.clock import FixedClock
from booking_engine.main import app
from booking_engine.utils.my_logging import CorrelationIdFilter
from tests.fakes import FakeScheduleStore, customer_details, override_row, weekly_row

MONDAY = date(2025, 1, 13)
ADMIN_TOKEN = "dashboard-secret-token"


class RecordingNotifier:
    def __init__(self):
        self.events = []

    def notify_created(self, appointment):
        self.events.append(("created", appointment.id))

    def notify_updated(self, appointment):
        self.events.append(("updated", appointment.id))

    def notify_cancelled(self, appointment):
        self.events.append(("cancelled", appointment.id))

    def notify_reminder(self, appointment):
        self.events.append(("reminder", appointment.id))
        return True


class ApiTestCase(unittest.TestCase):

    def setUp(self):
        self.store = FakeScheduleStore(template=[
            weekly_row(0, "09:00", "12:00", 60),
            weekly_row(1, "10:00", "17:00", 60),
        ])
        self.notifier = RecordingNotifier()
        clock = FixedClock(datetime(2025, 1, 10, 12, 0, tzinfo=ZoneInfo("Europe/Brussels")))

        app.dependency_overrides[get_store] = lambda: self.store
        app.dependency_overrides[get_clock] = lambda: clock
        app.dependency_overrides[get_notifier] = lambda: self.notifier
        self.addCleanup(app.dependency_overrides.clear)

        self.client = TestClient(app)

    def booking_payload(self, day=MONDAY, slot_time="09:00", **details):
        payload = customer_details(**details)
        payload.update(appointment_date=day.isoformat(), appointment_time=slot_time)
        return payload


class TestPublicAvailability(ApiTestCase):

    def test_range(self):
        response = self.client.get(
            "/api/v1/public/appointments/availability",
            params={"start_date": "2025-01-10", "end_date": "2025-01-14"},
        )
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(len(body["dates"]), 5)
        self.assertEqual(
            [d["date"] for d in body["dates"] if d["is_open"]],
            ["2025-01-13", "2025-01-14"],
        )

    def test_range_defaults_to_booking_horizon(self):
        response = self.client.get("/api/v1/public/appointments/availability")
        body = response.json()
        self.assertEqual(body["start_date"], "2025-01-10")
        self.assertEqual(len(body["dates"]), settings.MAX_DAYS_AHEAD + 1)

    def test_range_limits(self):
        reversed_range = self.client.get(
            "/api/v1/public/appointments/availability",
            params={"start_date": "2025-01-14", "end_date": "2025-01-10"},
        )
        self.assertEqual(reversed_range.status_code, 400)

        too_long = self.client.get(
            "/api/v1/public/appointments/availability",
            params={"start_date": "2025-01-10", "end_date": "2026-01-10"},
        )
        self.assertEqual(too_long.status_code, 400)

    def test_single_day(self):
        self.store.book(MONDAY, "10:00")
        response = self.client.get("/api/v1/public/appointments/availability/2025-01-13")
        body = response.json()
        self.assertEqual(body["schedule"]["open_time"], "09:00")
        self.assertEqual(
            [(s["time"], s["available"]) for s in body["slots"]],
            [("09:00", True), ("10:00", False), ("11:00", True)],
        )

    def test_next_available(self):
        response = self.client.get("/api/v1/public/appointments/next-available")
        self.assertEqual(response.json(), {"date": "2025-01-13"})

    def test_closures(self):
        self.store.overrides.append(override_row(
            1, date(2025, 2, 1), end_date=date(2025, 2, 9), reason="Vakantie", show_on_website=True,
        ))
        self.store.overrides.append(override_row(2, date(2025, 2, 10)))

        response = self.client.get("/api/v1/public/appointments/closures")

        self.assertEqual(response.json(), [{
            "id": 1,
            "start_date": "2025-02-01",
            "end_date": "2025-02-09",
            "is_closed": True,
            "reason": "Vakantie",
            "is_recurring": False,
        }])


class TestPublicBooking(ApiTestCase):

    def test_book_and_manage_with_token(self):
        response = self.client.post("/api/v1/public/appointments", json=self.booking_payload())
        self.assertEqual(response.status_code, 201)
        body = response.json()
        token = body["edit_token"]
        self.assertTrue(body["edit_url"].endswith(token))
        self.assertEqual(body["appointment"]["appointment_time"], "09:00")
        self.assertNotIn("admin_notes", body["appointment"])
        self.assertEqual(self.notifier.events, [("created", 1)])

        viewed = self.client.get(f"/api/v1/public/appointments/{token}")
        self.assertEqual(viewed.json()["status"], "confirmed")

        moved = self.client.put(
            f"/api/v1/public/appointments/{token}",
            json={"appointment_date": "2025-01-14", "appointment_time": "15:00"},
        )
        self.assertEqual(moved.status_code, 200)
        self.assertEqual(moved.json()["appointment_time"], "15:00")

        cancelled = self.client.delete(f"/api/v1/public/appointments/{token}")
        self.assertEqual(cancelled.json()["status"], "cancelled")
        self.client.delete(f"/api/v1/public/appointments/{token}")
        self.assertEqual(
            self.notifier.events,
            [("created", 1), ("updated", 1), ("cancelled", 1)],
        )

    def test_taken_slot_is_conflict(self):
        self.store.book(MONDAY, "09:00")
        response = self.client.post("/api/v1/public/appointments", json=self.booking_payload())
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["code"], "SLOT_UNAVAILABLE")
        self.assertEqual(self.notifier.events, [])

    def test_invalid_payload(self):
        response = self.client.post(
            "/api/v1/public/appointments",
            json=self.booking_payload(customer_email="not-an-email"),
        )
        self.assertEqual(response.status_code, 422)

    def test_editing_cancelled_appointment(self):
        appointment = self.store.book(MONDAY, "09:00", status="cancelled")
        response = self.client.put(
            f"/api/v1/public/appointments/{appointment.edit_token}",
            json={"remarks": "Toch komen"},
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["code"], "APPOINTMENT_NOT_EDITABLE")

    def test_detail_edit_sends_no_update_mail(self):
        appointment = self.store.book(MONDAY, "09:00")
        url = f"/api/v1/public/appointments/{appointment.edit_token}"

        edited = self.client.put(url, json={"remarks": "Parkeren achteraan"})
        same_slot = self.client.put(url, json={"appointment_date": "2025-01-13", "appointment_time": "09:00"})

        self.assertEqual(edited.status_code, 200)
        self.assertEqual(edited.json()["remarks"], "Parkeren achteraan")
        self.assertEqual(same_slot.status_code, 200)
        self.assertEqual(self.notifier.events, [])

        self.client.put(url, json={"appointment_time": "10:00"})
        self.assertEqual(self.notifier.events, [("updated", appointment.id)])

    def test_token_checks(self):
        self.assertEqual(self.client.get("/api/v1/public/appointments/short").status_code, 400)
        self.assertEqual(
            self.client.get("/api/v1/public/appointments/" + "z" * 32).status_code, 404
        )


class TestDashboard(ApiTestCase):

    def setUp(self):
        super().setUp()
        patcher = mock.patch.object(settings, "ADMIN_API_TOKEN", ADMIN_TOKEN)
        patcher.start()
        self.addCleanup(patcher.stop)
        self.headers = {"Authorization": f"Bearer {ADMIN_TOKEN}"}

    def test_requires_token(self):
        self.assertEqual(self.client.get("/api/v1/dashboard/appointments").status_code, 401)
        wrong = {"Authorization": "Bearer nope"}
        self.assertEqual(
            self.client.get("/api/v1/dashboard/appointments", headers=wrong).status_code, 401
        )

    def test_appointments_crud(self):
        self.store.book(MONDAY, "11:00", customer_name="Bert")
        created = self.client.post(
            "/api/v1/dashboard/appointments",
            json=dict(self.booking_payload(), admin_notes="Telefonisch"),
            headers=self.headers,
        )
        self.assertEqual(created.status_code, 201)
        appointment_id = created.json()["id"]
        self.assertEqual(created.json()["admin_notes"], "Telefonisch")

        listing = self.client.get("/api/v1/dashboard/appointments", headers=self.headers).json()
        self.assertEqual(listing["total"], 2)
        self.assertEqual(
            [a["appointment_time"] for a in listing["appointments"]], ["09:00", "11:00"]
        )

        completed = self.client.patch(
            f"/api/v1/dashboard/appointments/{appointment_id}",
            json={"status": "completed"},
            headers=self.headers,
        )
        self.assertEqual(completed.json()["status"], "completed")

        reopened = self.client.patch(
            f"/api/v1/dashboard/appointments/{appointment_id}",
            json={"status": "confirmed"},
            headers=self.headers,
        )
        self.assertEqual(reopened.status_code, 400)

        deleted = self.client.delete(
            f"/api/v1/dashboard/appointments/{appointment_id}", headers=self.headers
        )
        self.assertEqual(deleted.status_code, 204)
        missing = self.client.get(
            f"/api/v1/dashboard/appointments/{appointment_id}", headers=self.headers
        )
        self.assertEqual(missing.status_code, 404)

    def test_patch_mails_only_on_reschedule(self):
        appointment = self.store.book(MONDAY, "09:00")
        url = f"/api/v1/dashboard/appointments/{appointment.id}"

        self.client.patch(
            url,
            json={"appointment_date": "2025-01-13", "appointment_time": "09:00", "admin_notes": "Vaste klant"},
            headers=self.headers,
        )
        self.assertEqual(self.notifier.events, [])

        moved = self.client.patch(url, json={"appointment_date": "2025-01-14", "appointment_time": "10:00"},
                                  headers=self.headers)
        self.assertEqual(moved.status_code, 200)
        self.assertEqual(self.notifier.events, [("updated", appointment.id)])

    def test_patch_null_clears_notes(self):
        appointment = self.store.book(MONDAY, "09:00", remarks="Bel aan")
        url = f"/api/v1/dashboard/appointments/{appointment.id}"
        self.client.patch(url, json={"admin_notes": "Telefonisch"}, headers=self.headers)

        cleared = self.client.patch(url, json={"admin_notes": None, "remarks": None}, headers=self.headers)

        self.assertEqual(cleared.status_code, 200)
        self.assertIsNone(cleared.json()["admin_notes"])
        self.assertIsNone(cleared.json()["remarks"])

    def test_patch_missing_appointment(self):
        response = self.client.patch(
            "/api/v1/dashboard/appointments/999", json={"remarks": "x"}, headers=self.headers
        )
        self.assertEqual(response.status_code, 404)

    def test_cancel(self):
        appointment = self.store.book(MONDAY, "09:00")
        response = self.client.post(
            f"/api/v1/dashboard/appointments/{appointment.id}/cancel", headers=self.headers
        )
        self.assertEqual(response.json()["status"], "cancelled")
        self.assertEqual(self.notifier.events, [("cancelled", appointment.id)])

    def test_weekly_settings(self):
        response = self.client.put(
            "/api/v1/dashboard/settings/weekly",
            json=[{"day_of_week": 2, "is_open": True, "open_time": "13:00",
                   "close_time": "18:00", "slot_duration_minutes": 30}],
            headers=self.headers,
        )
        self.assertEqual(response.status_code, 200)
        wednesday = next(d for d in response.json() if d["day_of_week"] == 2)
        self.assertEqual((wednesday["open_time"], wednesday["close_time"]), ("13:00", "18:00"))

        slots = self.client.get("/api/v1/public/appointments/availability/2025-01-15").json()["slots"]
        self.assertEqual(len(slots), 10)

    def test_overrides(self):
        created = self.client.post(
            "/api/v1/dashboard/overrides",
            json={"date": "2025-01-13", "is_closed": True, "reason": "Inventaris"},
            headers=self.headers,
        )
        self.assertEqual(created.status_code, 201)
        override_id = created.json()["id"]

        day = self.client.get("/api/v1/public/appointments/availability/2025-01-13").json()
        self.assertEqual(day["slots"], [])
        self.assertEqual(day["schedule"]["override_reason"], "Inventaris")

        listed = self.client.get("/api/v1/dashboard/overrides", headers=self.headers).json()
        self.assertEqual([o["id"] for o in listed], [override_id])

        self.assertEqual(
            self.client.delete(f"/api/v1/dashboard/overrides/{override_id}", headers=self.headers).status_code,
            204,
        )
        self.assertEqual(
            self.client.delete(f"/api/v1/dashboard/overrides/{override_id}", headers=self.headers).status_code,
            404,
        )


class TestCalendarFeed(ApiTestCase):

    def test_disabled_without_token(self):
        with mock.patch.object(settings, "CALENDAR_TOKEN", None):
            response = self.client.get("/api/v1/calendar/appointments.ics", params={"token": "x"})
        self.assertEqual(response.status_code, 503)

    def test_feed(self):
        self.store.book(MONDAY, "09:00")
        self.store.book(MONDAY, "10:00", status="cancelled")

        with mock.patch.object(settings, "CALENDAR_TOKEN", "feed-token"):
            denied = self.client.get("/api/v1/calendar/appointments.ics", params={"token": "wrong"})
            response = self.client.get("/api/v1/calendar/appointments.ics", params={"token": "feed-token"})

        self.assertEqual(denied.status_code, 401)
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.headers["content-type"].startswith("text/calendar"))
        self.assertEqual(response.text.count("BEGIN:VEVENT"), 1)


class TestCronReminders(ApiTestCase):

    URL = "/api/v1/cron/send-appointment-reminders"

    def test_disabled_without_secret(self):
        with mock.patch.object(settings, "CRON_SECRET", None):
            response = self.client.get(self.URL, headers={"Authorization": "Bearer x"})
        self.assertEqual(response.status_code, 503)

    def test_wrong_secret(self):
        with mock.patch.object(settings, "CRON_SECRET", "cron-secret"):
            response = self.client.get(self.URL, headers={"Authorization": "Bearer nope"})
        self.assertEqual(response.status_code, 401)

    def test_sends_due_reminders_once(self):
        tomorrow = date(2025, 1, 11)
        early = self.store.book(tomorrow, "10:00", created_at=datetime(2025, 1, 1, tzinfo=timezone.utc))
        self.store.book(tomorrow, "11:00", created_at=datetime(2025, 1, 10, 10, 0, tzinfo=timezone.utc))
        headers = {"Authorization": "Bearer cron-secret"}

        with mock.patch.object(settings, "CRON_SECRET", "cron-secret"):
            first = self.client.get(self.URL, headers=headers)
            second = self.client.get(self.URL, headers=headers)

        self.assertEqual(first.status_code, 200)
        body = first.json()
        self.assertEqual((body["reminders_sent"], body["reminders_failed"]), (1, 0))
        self.assertEqual(body["details"], [{"id": early.id, "success": True}])
        self.assertIsNotNone(early.reminder_sent_at)
        self.assertEqual(second.json()["reminders_sent"], 0)
        self.assertEqual(self.notifier.events, [("reminder", early.id)])


class TestCorrelationId(ApiTestCase):

    def test_service_logs_carry_request_id(self):
        records = []
        handler = logging.Handler(logging.INFO)
        handler.addFilter(CorrelationIdFilter())
        handler.emit = records.append

        service_logger = logging.getLogger("booking_engine.services.appointment.appointment_service")
        previous_level = service_logger.level
        service_logger.setLevel(logging.INFO)
        service_logger.addHandler(handler)
        self.addCleanup(service_logger.setLevel, previous_level)
        self.addCleanup(service_logger.removeHandler, handler)

        response = self.client.post(
            "/api/v1/public/appointments",
            json=self.booking_payload(),
            headers={"X-Correlation-ID": "req-abc"},
        )

        self.assertEqual(response.headers["X-Correlation-ID"], "req-abc")
        self.assertTrue(records)
        self.assertEqual({r.correlation_id for r in records}, {"req-abc"})


class TestHealth(ApiTestCase):

    def test_health(self):
        response = self.client.get("/health")
        self.assertEqual(response.json()["status"], "healthy")
        self.assertIn("X-Correlation-ID", response.headers)


if __name__ == "__main__":
    unittest.main()
