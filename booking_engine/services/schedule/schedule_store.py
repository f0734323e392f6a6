# ============================================================================
# booking_engine/services/schedule/schedule_store.py
# Persistence for the weekly template, date overrides and appointments
# ============================================================================
"""
Schedule store.

``ScheduleStore`` is the contract the availability engine depends on.
``SQLAlchemyScheduleStore`` implements it on an async SQLAlchemy engine and
opens one short-lived session per call, so independent reads (the per-date
fan-out of the range calculator) can run concurrently.
"""
import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Protocol, Sequence

from sqlalchemy import and_, delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from booking_engine.core.exceptions import SlotUnavailableError
from booking_engine.models.appointment import Appointment
from booking_engine.models.availability import AppointmentSettings, DateOverride
from booking_engine.utils.time_utils import to_time

logger = logging.getLogger(__name__)

CANCELLED = "cancelled"
CONFIRMED = "confirmed"


class ScheduleStore(Protocol):
    """Read/write access the booking engine needs"""

    async def get_weekly_template(self) -> Sequence[AppointmentSettings]:
        ...

    async def get_date_overrides(self, start_date: date, end_date: date) -> Sequence[DateOverride]:
        ...

    async def get_booked_times(self, day: date) -> List[str]:
        ...

    async def create_appointment(self, data: Dict[str, Any]) -> Appointment:
        ...

    async def update_appointment(self, appointment_id: int, patch: Dict[str, Any]) -> Optional[Appointment]:
        ...

    async def cancel_appointment(self, appointment_id: int) -> Optional[Appointment]:
        ...

    async def get_appointment(self, appointment_id: int) -> Optional[Appointment]:
        ...

    async def get_appointment_by_token(self, token: str) -> Optional[Appointment]:
        ...


class SQLAlchemyScheduleStore:
    """ScheduleStore backed by the appointment tables"""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    # =========================================================================
    # Weekly template
    # =========================================================================

    async def get_weekly_template(self) -> List[AppointmentSettings]:
        async with self.session_factory() as db:
            result = await db.execute(
                select(AppointmentSettings).order_by(AppointmentSettings.day_of_week)
            )
            return list(result.scalars().all())

    async def update_weekly_template(
            self,
            day_of_week: int,
            is_open: bool,
            open_time,
            close_time,
            slot_duration_minutes: int
    ) -> AppointmentSettings:
        """Update (or create) the template row for one day of the week"""
        async with self.session_factory() as db:
            result = await db.execute(
                select(AppointmentSettings).where(AppointmentSettings.day_of_week == day_of_week)
            )
            row = result.scalar_one_or_none()
            if row is None:
                row = AppointmentSettings(day_of_week=day_of_week)
                db.add(row)

            row.is_open = is_open
            row.open_time = to_time(open_time)
            row.close_time = to_time(close_time)
            row.slot_duration_minutes = slot_duration_minutes

            await db.commit()
            await db.refresh(row)
            logger.info(f"Weekly template updated for day {day_of_week} (open={is_open})")
            return row

    # =========================================================================
    # Date overrides
    # =========================================================================

    async def get_date_overrides(self, start_date: date, end_date: date) -> List[DateOverride]:
        """
        Overrides that may apply inside [start_date, end_date].

        Non-recurring overrides are filtered on their own date range;
        recurring ones are always returned because they match on month/day
        and their stored year is irrelevant.
        """
        async with self.session_factory() as db:
            query = select(DateOverride).where(
                or_(
                    DateOverride.is_recurring.is_(True),
                    and_(
                        DateOverride.date <= end_date,
                        func.coalesce(DateOverride.end_date, DateOverride.date) >= start_date,
                    ),
                )
            ).order_by(DateOverride.date, DateOverride.id)

            result = await db.execute(query)
            return list(result.scalars().all())

    async def list_date_overrides(self) -> List[DateOverride]:
        async with self.session_factory() as db:
            result = await db.execute(
                select(DateOverride).order_by(DateOverride.date.desc(), DateOverride.id.desc())
            )
            return list(result.scalars().all())

    async def get_public_closures(self, today: date) -> List[DateOverride]:
        """Overrides flagged for the website that have not ended yet"""
        async with self.session_factory() as db:
            query = select(DateOverride).where(
                DateOverride.show_on_website.is_(True),
                or_(
                    DateOverride.is_recurring.is_(True),
                    func.coalesce(DateOverride.end_date, DateOverride.date) >= today,
                ),
            ).order_by(DateOverride.date, DateOverride.id)

            result = await db.execute(query)
            return list(result.scalars().all())

    async def create_date_override(self, data: Dict[str, Any]) -> DateOverride:
        async with self.session_factory() as db:
            values = dict(data)
            values["open_time"] = to_time(values.get("open_time"))
            values["close_time"] = to_time(values.get("close_time"))
            override = DateOverride(**values)
            db.add(override)
            await db.commit()
            await db.refresh(override)
            logger.info(f"Date override created for {override.date} (closed={override.is_closed})")
            return override

    async def delete_date_override(self, override_id: int) -> bool:
        async with self.session_factory() as db:
            result = await db.execute(
                delete(DateOverride).where(DateOverride.id == override_id)
            )
            await db.commit()
            return result.rowcount > 0

    # =========================================================================
    # Appointments
    # =========================================================================

    async def get_booked_times(self, day: date) -> List[str]:
        """Start times of all non-cancelled appointments on ``day``"""
        async with self.session_factory() as db:
            result = await db.execute(
                select(Appointment.appointment_time).where(
                    Appointment.appointment_date == day,
                    Appointment.status != CANCELLED,
                )
            )
            return [booked.isoformat() for booked in result.scalars().all()]

    async def get_appointment(self, appointment_id: int) -> Optional[Appointment]:
        async with self.session_factory() as db:
            return await db.get(Appointment, appointment_id)

    async def get_appointment_by_token(self, token: str) -> Optional[Appointment]:
        async with self.session_factory() as db:
            result = await db.execute(
                select(Appointment).where(Appointment.edit_token == token)
            )
            return result.scalar_one_or_none()

    async def list_appointments(
            self,
            start_date: Optional[date] = None,
            end_date: Optional[date] = None,
            status: Optional[str] = None,
            search: Optional[str] = None,
            skip: int = 0,
            limit: int = 100
    ) -> tuple[List[Appointment], int]:
        """Filtered, paginated appointments plus the total match count"""
        filters = []
        if start_date:
            filters.append(Appointment.appointment_date >= start_date)
        if end_date:
            filters.append(Appointment.appointment_date <= end_date)
        if status:
            filters.append(Appointment.status == status)
        if search:
            pattern = f"%{search}%"
            filters.append(or_(
                Appointment.customer_name.ilike(pattern),
                Appointment.customer_email.ilike(pattern),
                Appointment.customer_phone.ilike(pattern),
            ))

        async with self.session_factory() as db:
            total = await db.scalar(
                select(func.count()).select_from(Appointment).where(*filters)
            )
            result = await db.execute(
                select(Appointment)
                .where(*filters)
                .order_by(Appointment.appointment_date, Appointment.appointment_time)
                .offset(skip)
                .limit(limit)
            )
            return list(result.scalars().all()), total or 0

    async def create_appointment(self, data: Dict[str, Any]) -> Appointment:
        """
        Insert a booking.

        The partial unique index on active (date, time) pairs is the last
        line against two concurrent bookings of one slot; a violation is
        reported as SlotUnavailableError.
        """
        async with self.session_factory() as db:
            appointment = Appointment(**data)
            db.add(appointment)
            try:
                await db.commit()
            except IntegrityError:
                await db.rollback()
                logger.warning(
                    f"Booking rejected by unique slot index: "
                    f"{data.get('appointment_date')} {data.get('appointment_time')}"
                )
                raise SlotUnavailableError(data.get("appointment_date"), str(data.get("appointment_time")))

            await db.refresh(appointment)
            return appointment

    async def update_appointment(self, appointment_id: int, patch: Dict[str, Any]) -> Optional[Appointment]:
        async with self.session_factory() as db:
            appointment = await db.get(Appointment, appointment_id)
            if not appointment:
                return None

            for field, value in patch.items():
                setattr(appointment, field, value)

            try:
                await db.commit()
            except IntegrityError:
                await db.rollback()
                raise SlotUnavailableError(patch.get("appointment_date"), str(patch.get("appointment_time")))

            await db.refresh(appointment)
            return appointment

    async def cancel_appointment(self, appointment_id: int) -> Optional[Appointment]:
        """Mark as cancelled; cancelled_at is only set on the first call"""
        async with self.session_factory() as db:
            appointment = await db.get(Appointment, appointment_id)
            if not appointment:
                return None

            if appointment.status != CANCELLED:
                appointment.status = CANCELLED
                appointment.cancelled_at = datetime.now(timezone.utc)
                await db.commit()
                await db.refresh(appointment)

            return appointment

    async def get_appointments_needing_reminder(
            self,
            start_date: date,
            end_date: date
    ) -> List[Appointment]:
        """Confirmed appointments between the dates that have not been reminded yet"""
        async with self.session_factory() as db:
            result = await db.execute(
                select(Appointment)
                .where(
                    Appointment.appointment_date >= start_date,
                    Appointment.appointment_date <= end_date,
                    Appointment.status == CONFIRMED,
                    Appointment.reminder_sent_at.is_(None),
                )
                .order_by(Appointment.appointment_date, Appointment.appointment_time)
            )
            return list(result.scalars().all())

    async def mark_reminder_sent(self, appointment_id: int, sent_at: datetime) -> bool:
        async with self.session_factory() as db:
            result = await db.execute(
                update(Appointment)
                .where(Appointment.id == appointment_id)
                .values(reminder_sent_at=sent_at)
            )
            await db.commit()
            return result.rowcount > 0

    async def delete_appointment(self, appointment_id: int) -> bool:
        """Hard delete; prefer cancel_appointment"""
        async with self.session_factory() as db:
            result = await db.execute(
                delete(Appointment).where(Appointment.id == appointment_id)
            )
            await db.commit()
            return result.rowcount > 0
