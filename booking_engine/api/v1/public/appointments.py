# ============================================================================
# FILE: booking_engine/api/v1/public/appointments.py
# Public booking endpoints - thin HTTP layer over the availability engine
# ============================================================================
from datetime import date, timedelta
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Path, Query, Request

from booking_engine.api.dependencies import (
    get_appointment_service,
    get_availability_service,
    get_clock,
    get_notifier,
    get_store,
)
from booking_engine.config.settings import settings
from booking_engine.core.clock import Clock
from booking_engine.models.appointment import Appointment
from booking_engine.schemas.appointments import (
    AppointmentCreate,
    AppointmentCreatedResponse,
    AppointmentPublicView,
    AppointmentStatus,
    AppointmentUpdate,
    AvailabilityResponse,
    DayAvailabilityResponse,
    NextAvailableResponse,
    PublicClosure,
)
from booking_engine.services.appointment.appointment_service import AppointmentService, appointment_slot
from booking_engine.services.availability.availability_service import AvailabilityService
from booking_engine.services.notification.appointment_notifier import AppointmentNotifier, edit_url
from booking_engine.services.schedule.schedule_store import SQLAlchemyScheduleStore

router = APIRouter(prefix="/appointments", tags=["public-appointments"])

MIN_TOKEN_LENGTH = 16


async def _appointment_for_token(store: SQLAlchemyScheduleStore, token: str) -> Appointment:
    if len(token) < MIN_TOKEN_LENGTH:
        raise HTTPException(status_code=400, detail="Invalid token")

    appointment = await store.get_appointment_by_token(token)
    if not appointment:
        raise HTTPException(status_code=404, detail="Appointment not found")
    return appointment


# ============================================================================
# Availability
# ============================================================================

@router.get("/availability", response_model=AvailabilityResponse)
async def get_availability(
        start_date: Optional[date] = Query(None, description="First date (default: today)"),
        end_date: Optional[date] = Query(None, description="Last date, inclusive"),
        clock: Clock = Depends(get_clock),
        availability: AvailabilityService = Depends(get_availability_service)
):
    """
    Bookable slots for every date in the range.
    Defaults to the booking horizon starting today.
    """
    start_date = start_date or clock.now().date()
    end_date = end_date or start_date + timedelta(days=settings.MAX_DAYS_AHEAD)

    if end_date < start_date:
        raise HTTPException(status_code=400, detail="end_date must be on or after start_date")
    if (end_date - start_date).days + 1 > settings.MAX_RANGE_DAYS:
        raise HTTPException(
            status_code=400,
            detail=f"Date range may span at most {settings.MAX_RANGE_DAYS} days"
        )

    dates = await availability.get_availability(start_date, end_date)
    return AvailabilityResponse(dates=dates, start_date=start_date, end_date=end_date)


@router.get("/availability/{day}", response_model=DayAvailabilityResponse)
async def get_day_availability(
        day: date = Path(..., description="Date (YYYY-MM-DD)"),
        availability: AvailabilityService = Depends(get_availability_service)
):
    """Opening hours and slots for a single date"""
    schedule = await availability.get_day_schedule(day)
    slots = await availability.get_available_slots(day)
    return DayAvailabilityResponse(schedule=schedule, slots=slots)


@router.get("/next-available", response_model=NextAvailableResponse)
async def get_next_available(
        availability: AvailabilityService = Depends(get_availability_service)
):
    next_date = await availability.get_next_available_date(settings.MAX_DAYS_AHEAD)
    return NextAvailableResponse(date=next_date)


@router.get("/closures", response_model=List[PublicClosure])
async def get_closures(
        clock: Clock = Depends(get_clock),
        store: SQLAlchemyScheduleStore = Depends(get_store)
):
    """Upcoming closures and special hours published on the website"""
    overrides = await store.get_public_closures(clock.now().date())
    return [
        PublicClosure(
            id=override.id,
            start_date=override.date,
            end_date=override.end_date,
            is_closed=override.is_closed,
            reason=override.reason,
            is_recurring=override.is_recurring,
        )
        for override in overrides
    ]


# ============================================================================
# Booking
# ============================================================================

@router.post("", response_model=AppointmentCreatedResponse, status_code=201)
async def create_appointment(
        payload: AppointmentCreate,
        request: Request,
        background_tasks: BackgroundTasks,
        service: AppointmentService = Depends(get_appointment_service),
        notifier: AppointmentNotifier = Depends(get_notifier)
):
    """
    Book an appointment.
    Returns 409 when the slot is no longer available.
    """
    client_ip = request.client.host if request.client else None
    appointment = await service.create_appointment(payload.model_dump(), ip_address=client_ip)

    background_tasks.add_task(notifier.notify_created, appointment)

    return AppointmentCreatedResponse(
        appointment=AppointmentPublicView.model_validate(appointment),
        edit_token=appointment.edit_token,
        edit_url=edit_url(appointment),
    )


@router.get("/{token}", response_model=AppointmentPublicView)
async def get_appointment_by_token(
        token: str,
        store: SQLAlchemyScheduleStore = Depends(get_store)
):
    return await _appointment_for_token(store, token)


@router.put("/{token}", response_model=AppointmentPublicView)
async def update_appointment_by_token(
        token: str,
        payload: AppointmentUpdate,
        background_tasks: BackgroundTasks,
        store: SQLAlchemyScheduleStore = Depends(get_store),
        service: AppointmentService = Depends(get_appointment_service),
        notifier: AppointmentNotifier = Depends(get_notifier)
):
    """
    Reschedule or edit details of an appointment via its edit link.
    Only a new date or time triggers the update mail.
    """
    appointment = await _appointment_for_token(store, token)
    previous_slot = appointment_slot(appointment)

    updated = await service.update_appointment(appointment.id, payload.model_dump(exclude_unset=True))
    if not updated:
        raise HTTPException(status_code=404, detail="Appointment not found")

    if appointment_slot(updated) != previous_slot:
        background_tasks.add_task(notifier.notify_updated, updated)
    return updated


@router.delete("/{token}", response_model=AppointmentPublicView)
async def cancel_appointment_by_token(
        token: str,
        background_tasks: BackgroundTasks,
        store: SQLAlchemyScheduleStore = Depends(get_store),
        service: AppointmentService = Depends(get_appointment_service),
        notifier: AppointmentNotifier = Depends(get_notifier)
):
    """Cancel via the edit link; cancelling twice is a no-op"""
    appointment = await _appointment_for_token(store, token)
    already_cancelled = appointment.status == AppointmentStatus.CANCELLED.value

    cancelled = await service.cancel_appointment(appointment.id)
    if not cancelled:
        raise HTTPException(status_code=404, detail="Appointment not found")

    if not already_cancelled:
        background_tasks.add_task(notifier.notify_cancelled, cancelled)
    return cancelled
