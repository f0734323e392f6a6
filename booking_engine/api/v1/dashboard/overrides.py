# ============================================================================
# FILE: booking_engine/api/v1/dashboard/overrides.py
# Closures and special opening hours for specific dates
# ============================================================================
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path

from booking_engine.api.dependencies import get_store
from booking_engine.schemas.appointments import DateOverrideCreate, DateOverrideRead
from booking_engine.services.schedule.schedule_store import SQLAlchemyScheduleStore

router = APIRouter(prefix="/overrides", tags=["dashboard-overrides"])


@router.get("", response_model=List[DateOverrideRead])
async def list_overrides(store: SQLAlchemyScheduleStore = Depends(get_store)):
    return await store.list_date_overrides()


@router.post("", response_model=DateOverrideRead, status_code=201)
async def create_override(
        payload: DateOverrideCreate,
        store: SQLAlchemyScheduleStore = Depends(get_store)
):
    """
    Close a date (or range), or set custom hours for it.
    Recurring overrides repeat on the same month/day every year.
    """
    return await store.create_date_override(payload.model_dump())


@router.delete("/{override_id}", status_code=204)
async def delete_override(
        override_id: int = Path(..., description="The override ID"),
        store: SQLAlchemyScheduleStore = Depends(get_store)
):
    if not await store.delete_date_override(override_id):
        raise HTTPException(status_code=404, detail="Override not found")
