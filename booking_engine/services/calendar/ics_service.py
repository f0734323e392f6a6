# ===== booking_engine/services/calendar/ics_service.py =====
"""
iCalendar (RFC 5545) artifacts for appointments.

Three flavours share one event identity:
- generate_ics: invitation attached to booking mails (METHOD:REQUEST)
- generate_cancellation_ics: same UID, SEQUENCE bumped (METHOD:CANCEL)
- generate_calendar_feed: read-only subscription feed (METHOD:PUBLISH)
"""
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, List, Optional

from booking_engine.config.settings import get_settings
from booking_engine.models.appointment import Appointment
from booking_engine.utils.time_utils import format_address, normalize_time

CRLF = "\r\n"
CANCELLED_PREFIX = "GEANNULEERD: Afspraak"
SUMMARY_PREFIX = "Afspraak:"


def escape_ics_text(text: str) -> str:
    """Escape backslash, semicolon, comma and newline in TEXT values"""
    return (
        text.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\r\n", "\\n")
        .replace("\n", "\\n")
    )


def _event_start(appointment: Appointment) -> datetime:
    hours, minutes = normalize_time(appointment.appointment_time).split(":")
    return datetime.combine(appointment.appointment_date, datetime.min.time()) + timedelta(
        hours=int(hours), minutes=int(minutes)
    )


def _format_local(value: datetime) -> str:
    # Floating local time, interpreted in the business timezone
    return value.strftime("%Y%m%dT%H%M%S")


def _timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def generate_uid(appointment: Appointment) -> str:
    """Stable per appointment, so updates and cancellations hit the same event"""
    return f"appointment-{appointment.id}@{get_settings().ICS_UID_DOMAIN}"


def generate_ics_filename(appointment: Appointment) -> str:
    day: date = appointment.appointment_date
    return f"{get_settings().ICS_FILENAME_PREFIX}-{day.strftime('%Y%m%d')}.ics"


def _describe(appointment: Appointment) -> str:
    lines = [
        f"Klant: {appointment.customer_name}",
        f"E-mail: {appointment.customer_email}",
        f"Telefoon: {appointment.customer_phone}",
        "Adres: " + format_address(
            appointment.customer_street,
            appointment.customer_postal_code,
            appointment.customer_city,
        ),
    ]
    if appointment.remarks:
        lines.append(f"Opmerkingen: {appointment.remarks}")
    return "\n".join(lines)


def _event_lines(
        appointment: Appointment,
        summary: str,
        status: str,
        stamp: str,
        sequence: Optional[int] = None,
        description: bool = True,
        attendee: bool = False
) -> List[str]:
    settings = get_settings()
    start = _event_start(appointment)
    end = start + timedelta(minutes=appointment.duration_minutes)

    lines = [
        "BEGIN:VEVENT",
        f"UID:{generate_uid(appointment)}",
        f"DTSTAMP:{stamp}",
        f"DTSTART:{_format_local(start)}",
        f"DTEND:{_format_local(end)}",
        f"SUMMARY:{summary}",
    ]
    if description:
        lines.append(f"DESCRIPTION:{escape_ics_text(_describe(appointment))}")
    lines.append(f"LOCATION:{escape_ics_text(settings.STORE_LOCATION)}")
    if attendee:
        lines.append(f"ORGANIZER;CN={escape_ics_text(settings.STORE_NAME)}:mailto:{settings.ORGANIZER_EMAIL}")
        lines.append(
            f"ATTENDEE;CN={escape_ics_text(appointment.customer_name)};RSVP=TRUE:"
            f"mailto:{appointment.customer_email}"
        )
    lines.append(f"STATUS:{status}")
    if sequence is not None:
        lines.append(f"SEQUENCE:{sequence}")
    lines.append("END:VEVENT")
    return lines


def _calendar(method: str, body: List[str], extra_headers: Iterable[str] = ()) -> str:
    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:{get_settings().ICS_PRODID}",
        "CALSCALE:GREGORIAN",
        f"METHOD:{method}",
        *extra_headers,
        *body,
        "END:VCALENDAR",
    ]
    return CRLF.join(lines)


def generate_ics(appointment: Appointment) -> str:
    """Invitation for a new or updated appointment"""
    summary = f"{SUMMARY_PREFIX} {escape_ics_text(appointment.customer_name)}"
    event = _event_lines(
        appointment,
        summary=summary,
        status="CONFIRMED",
        stamp=_timestamp(),
        sequence=0,
        attendee=True,
    )
    return _calendar("REQUEST", event)


def generate_cancellation_ics(appointment: Appointment) -> str:
    """Cancels the event created by generate_ics for the same appointment"""
    summary = f"{CANCELLED_PREFIX} {escape_ics_text(appointment.customer_name)}"
    event = _event_lines(
        appointment,
        summary=summary,
        status="CANCELLED",
        stamp=_timestamp(),
        sequence=1,
        description=False,
    )
    return _calendar("CANCEL", event)


def generate_calendar_feed(
        appointments: Iterable[Appointment],
        calendar_name: Optional[str] = None
) -> str:
    """Subscribable feed with one event per appointment (no RSVP)"""
    settings = get_settings()
    stamp = _timestamp()

    body: List[str] = []
    for appointment in appointments:
        body.extend(_event_lines(
            appointment,
            summary=f"{SUMMARY_PREFIX} {escape_ics_text(appointment.customer_name)}",
            status="CONFIRMED",
            stamp=stamp,
        ))

    headers = [
        f"X-WR-CALNAME:{escape_ics_text(calendar_name or settings.CALENDAR_NAME)}",
        f"X-WR-TIMEZONE:{settings.BUSINESS_TIMEZONE}",
    ]
    return _calendar("PUBLISH", body, headers)
