# ===== booking_engine/services/notification/appointment_notifier.py =====
"""
Hands booked, updated and cancelled appointments to the mail service
together with the matching calendar artifact, and sends the day-before
reminder.

Runs as a FastAPI background task: failures are logged and never reach the
customer's booking request.
"""
import logging

from booking_engine.config.settings import settings
from booking_engine.models.appointment import Appointment
from booking_engine.services.calendar.ics_service import (
    generate_cancellation_ics,
    generate_ics,
    generate_ics_filename,
)
from booking_engine.services.email.email_service import EmailAttachment, EmailService
from booking_engine.utils.time_utils import format_date_time_nl

logger = logging.getLogger(__name__)

NEW = "new"
UPDATED = "updated"
CANCELLED = "cancelled"
REMINDER = "reminder"

SUBJECTS = {
    NEW: "Bevestiging van je afspraak",
    UPDATED: "Je afspraak is gewijzigd",
    CANCELLED: "Je afspraak is geannuleerd",
    REMINDER: "Herinnering: je afspraak",
}


def edit_url(appointment: Appointment) -> str:
    return f"{settings.FRONTEND_URL}/afspraak/{appointment.edit_token}"


def _body(appointment: Appointment, event: str) -> str:
    when = format_date_time_nl(appointment.appointment_date, appointment.appointment_time)
    if event == CANCELLED:
        return f"Beste {appointment.customer_name},\n\nJe afspraak van {when} is geannuleerd.\n"
    return (
        f"Beste {appointment.customer_name},\n\n"
        f"Je afspraak staat gepland op {when} in {settings.STORE_LOCATION}.\n"
        f"Bekijken of wijzigen: {edit_url(appointment)}\n"
    )


def _attachment(appointment: Appointment, event: str) -> EmailAttachment:
    if event == CANCELLED:
        return EmailAttachment(
            filename=generate_ics_filename(appointment),
            content=generate_cancellation_ics(appointment),
            method="CANCEL",
        )
    return EmailAttachment(
        filename=generate_ics_filename(appointment),
        content=generate_ics(appointment),
        method="REQUEST",
    )


def notify_appointment(appointment: Appointment, event: str) -> None:
    """Mail the customer (and the shop, if configured) with an .ics attached"""
    attachment = _attachment(appointment, event)
    recipients = [appointment.customer_email]
    if settings.ADMIN_NOTIFICATION_EMAIL:
        recipients.append(settings.ADMIN_NOTIFICATION_EMAIL)

    for recipient in recipients:
        try:
            EmailService.send_email(
                to_email=recipient,
                subject=SUBJECTS[event],
                plain_text=_body(appointment, event),
                attachments=[attachment],
            )
        except Exception as exc:
            logger.error(
                f"Failed to send '{event}' notification for appointment "
                f"{appointment.id} to {recipient}: {exc}"
            )


class AppointmentNotifier:
    """Entry point used by the routers' background tasks"""

    def notify_created(self, appointment: Appointment) -> None:
        notify_appointment(appointment, NEW)

    def notify_updated(self, appointment: Appointment) -> None:
        notify_appointment(appointment, UPDATED)

    def notify_cancelled(self, appointment: Appointment) -> None:
        notify_appointment(appointment, CANCELLED)

    def notify_reminder(self, appointment: Appointment) -> bool:
        """
        Remind the customer of an upcoming appointment.

        Returns True only when the mail went out, so the caller can record
        the reminder and retry the others on the next run.
        """
        when = format_date_time_nl(appointment.appointment_date, appointment.appointment_time)
        body = (
            f"Beste {appointment.customer_name},\n\n"
            f"Ter herinnering: je afspraak is op {when} in {settings.STORE_LOCATION}.\n"
            f"Verhinderd? Wijzig of annuleer via {edit_url(appointment)}\n"
        )
        try:
            return EmailService.send_email(
                to_email=appointment.customer_email,
                subject=SUBJECTS[REMINDER],
                plain_text=body,
            )
        except Exception as exc:
            logger.error(f"Failed to send reminder for appointment {appointment.id}: {exc}")
            return False
