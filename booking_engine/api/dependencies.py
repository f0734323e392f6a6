# ============================================================================
# FILE: booking_engine/api/dependencies.py
# Service wiring and token authentication
# ============================================================================
import secrets
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from booking_engine.config.database import SessionLocal
from booking_engine.config.settings import settings
from booking_engine.core.clock import Clock, SystemClock
from booking_engine.services.appointment.appointment_service import AppointmentService
from booking_engine.services.availability.availability_service import AvailabilityService
from booking_engine.services.notification.appointment_notifier import AppointmentNotifier
from booking_engine.services.notification.reminder_service import ReminderService
from booking_engine.services.schedule.schedule_store import SQLAlchemyScheduleStore

# ============================================================================
# Security Schemes
# ============================================================================

admin_security = HTTPBearer(
    scheme_name="Admin Token",
    description="Enter the dashboard API token",
    auto_error=False,
)


# ============================================================================
# Services
# ============================================================================

def get_store() -> SQLAlchemyScheduleStore:
    return SQLAlchemyScheduleStore(SessionLocal)


def get_clock() -> Clock:
    return SystemClock(settings.BUSINESS_TIMEZONE)


def get_availability_service(
        store: SQLAlchemyScheduleStore = Depends(get_store),
        clock: Clock = Depends(get_clock)
) -> AvailabilityService:
    return AvailabilityService(store, clock, settings.DEFAULT_SLOT_DURATION_MINUTES)


def get_appointment_service(
        store: SQLAlchemyScheduleStore = Depends(get_store),
        availability: AvailabilityService = Depends(get_availability_service)
) -> AppointmentService:
    return AppointmentService(store, availability)


def get_notifier() -> AppointmentNotifier:
    return AppointmentNotifier()


def get_reminder_service(
        store: SQLAlchemyScheduleStore = Depends(get_store),
        notifier: AppointmentNotifier = Depends(get_notifier),
        clock: Clock = Depends(get_clock)
) -> ReminderService:
    return ReminderService(
        store,
        notifier,
        clock,
        hours_before=settings.REMINDER_HOURS_BEFORE,
        min_lead_hours=settings.REMINDER_MIN_LEAD_HOURS,
    )


# ============================================================================
# Token authentication
# ============================================================================

def _check_bearer(
        credentials: Optional[HTTPAuthorizationCredentials],
        expected: Optional[str],
        area: str
) -> None:
    """
    Raises:
        HTTPException 503: Token for this area not configured
        HTTPException 401: Missing or wrong token
    """
    if not expected:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{area} access is not configured"
        )

    if credentials is None or not secrets.compare_digest(credentials.credentials, expected):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing token",
            headers={"WWW-Authenticate": "Bearer"},
        )


async def require_admin_token(
        credentials: HTTPAuthorizationCredentials = Depends(admin_security)
) -> None:
    """Guard for dashboard routes"""
    _check_bearer(credentials, settings.ADMIN_API_TOKEN, "Dashboard")


async def require_cron_token(
        credentials: HTTPAuthorizationCredentials = Depends(admin_security)
) -> None:
    """Guard for scheduled jobs, called by the platform's cron with CRON_SECRET"""
    _check_bearer(credentials, settings.CRON_SECRET, "Cron")
