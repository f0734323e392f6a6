# ===== booking_engine/models/availability.py =====
from sqlalchemy import Column, String, Integer, Boolean, Time, Date, DateTime, CheckConstraint, Index
from sqlalchemy.sql import func
from booking_engine.models.base import Base


class AppointmentSettings(Base):
    """Weekly opening-hours template, one row per day of the week"""
    __tablename__ = "appointment_settings"
    __table_args__ = (
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_appointment_settings_day_of_week"),
        CheckConstraint("slot_duration_minutes > 0", name="ck_appointment_settings_slot_duration"),
    )

    id = Column(Integer, primary_key=True)

    day_of_week = Column(Integer, nullable=False, unique=True)  # 0=Monday, 6=Sunday
    is_open = Column(Boolean, nullable=False, default=False)
    open_time = Column(Time, nullable=True)
    close_time = Column(Time, nullable=True)
    slot_duration_minutes = Column(Integer, nullable=False, default=60)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<AppointmentSettings(day={self.day_of_week}, is_open={self.is_open})>"


class DateOverride(Base):
    """Specific date or date range overrides (holidays, vacation, special hours)"""
    __tablename__ = "appointment_date_overrides"
    __table_args__ = (
        Index("idx_date_overrides_date", "date"),
    )

    id = Column(Integer, primary_key=True)

    date = Column(Date, nullable=False)  # Start date
    end_date = Column(Date, nullable=True)  # Inclusive end for ranges, NULL = single day
    is_closed = Column(Boolean, nullable=False, default=True)  # False = custom hours
    open_time = Column(Time, nullable=True)
    close_time = Column(Time, nullable=True)
    reason = Column(String, nullable=True)  # "Feestdag", "Vakantie", etc.
    is_recurring = Column(Boolean, nullable=False, default=False)  # Same month/day every year
    show_on_website = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<DateOverride(date={self.date}, end_date={self.end_date}, is_closed={self.is_closed})>"
