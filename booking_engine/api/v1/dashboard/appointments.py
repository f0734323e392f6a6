# ============================================================================
# FILE: booking_engine/api/v1/dashboard/appointments.py
# Token authenticated endpoints - thin HTTP layer
# ============================================================================
from datetime import date
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Path, Query, Request

from booking_engine.api.dependencies import get_appointment_service, get_notifier, get_store
from booking_engine.schemas.appointments import (
    AppointmentAdminCreate,
    AppointmentAdminUpdate,
    AppointmentListResponse,
    AppointmentRead,
    AppointmentStatus,
)
from booking_engine.services.appointment.appointment_service import AppointmentService, appointment_slot
from booking_engine.services.notification.appointment_notifier import AppointmentNotifier
from booking_engine.services.schedule.schedule_store import SQLAlchemyScheduleStore

router = APIRouter(prefix="/appointments", tags=["dashboard-appointments"])


@router.get("", response_model=AppointmentListResponse)
async def list_appointments(
        start_date: Optional[date] = Query(None, description="Filter appointments on or after this date"),
        end_date: Optional[date] = Query(None, description="Filter appointments on or before this date"),
        status: Optional[AppointmentStatus] = Query(None, description="Filter by status"),
        search: Optional[str] = Query(None, description="Match on customer name, email or phone"),
        skip: int = Query(0, ge=0, description="Number of records to skip"),
        limit: int = Query(50, ge=1, le=200, description="Number of records to return"),
        store: SQLAlchemyScheduleStore = Depends(get_store)
):
    """Appointments ordered by date and time"""
    appointments, total = await store.list_appointments(
        start_date=start_date,
        end_date=end_date,
        status=status.value if status else None,
        search=search,
        skip=skip,
        limit=limit,
    )
    return AppointmentListResponse(
        total=total,
        skip=skip,
        limit=limit,
        appointments=[AppointmentRead.model_validate(a) for a in appointments],
    )


@router.get("/{appointment_id}", response_model=AppointmentRead)
async def get_appointment(
        appointment_id: int = Path(..., description="The appointment ID"),
        store: SQLAlchemyScheduleStore = Depends(get_store)
):
    appointment = await store.get_appointment(appointment_id)
    if not appointment:
        raise HTTPException(status_code=404, detail="Appointment not found")
    return appointment


@router.post("", response_model=AppointmentRead, status_code=201)
async def create_appointment(
        payload: AppointmentAdminCreate,
        request: Request,
        background_tasks: BackgroundTasks,
        service: AppointmentService = Depends(get_appointment_service),
        notifier: AppointmentNotifier = Depends(get_notifier)
):
    """Book on behalf of a customer (phone or walk-in)"""
    client_ip = request.client.host if request.client else None
    appointment = await service.create_appointment(payload.model_dump(), ip_address=client_ip)
    background_tasks.add_task(notifier.notify_created, appointment)
    return appointment


@router.patch("/{appointment_id}", response_model=AppointmentRead)
async def update_appointment(
        payload: AppointmentAdminUpdate,
        background_tasks: BackgroundTasks,
        appointment_id: int = Path(..., description="The appointment ID"),
        store: SQLAlchemyScheduleStore = Depends(get_store),
        service: AppointmentService = Depends(get_appointment_service),
        notifier: AppointmentNotifier = Depends(get_notifier)
):
    """
    Partial update: details, reschedule, status or staff notes.
    Setting status to cancelled behaves like the cancel endpoint; the
    customer is only mailed when the appointment is cancelled or moved.
    """
    existing = await store.get_appointment(appointment_id)
    if not existing:
        raise HTTPException(status_code=404, detail="Appointment not found")
    previous_slot = appointment_slot(existing)

    appointment = await service.update_appointment(
        appointment_id, payload.model_dump(exclude_unset=True)
    )
    if not appointment:
        raise HTTPException(status_code=404, detail="Appointment not found")

    if appointment.status == AppointmentStatus.CANCELLED.value:
        background_tasks.add_task(notifier.notify_cancelled, appointment)
    elif appointment_slot(appointment) != previous_slot:
        background_tasks.add_task(notifier.notify_updated, appointment)
    return appointment


@router.post("/{appointment_id}/cancel", response_model=AppointmentRead)
async def cancel_appointment(
        background_tasks: BackgroundTasks,
        appointment_id: int = Path(..., description="The appointment ID"),
        store: SQLAlchemyScheduleStore = Depends(get_store),
        service: AppointmentService = Depends(get_appointment_service),
        notifier: AppointmentNotifier = Depends(get_notifier)
):
    existing = await store.get_appointment(appointment_id)
    if not existing:
        raise HTTPException(status_code=404, detail="Appointment not found")

    appointment = await service.cancel_appointment(appointment_id)
    if not appointment:
        raise HTTPException(status_code=404, detail="Appointment not found")

    if existing.status != AppointmentStatus.CANCELLED.value:
        background_tasks.add_task(notifier.notify_cancelled, appointment)
    return appointment


@router.delete("/{appointment_id}", status_code=204)
async def delete_appointment(
        appointment_id: int = Path(..., description="The appointment ID"),
        store: SQLAlchemyScheduleStore = Depends(get_store)
):
    """Remove an appointment permanently (no notification is sent)"""
    if not await store.delete_appointment(appointment_id):
        raise HTTPException(status_code=404, detail="Appointment not found")
