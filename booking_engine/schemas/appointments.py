# booking_engine/schemas/appointments.py
import datetime as dt
from enum import Enum
from typing import Annotated, List, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator, model_validator

from booking_engine.utils.time_utils import normalize_time
from booking_engine.utils.validators import (
    is_valid_email,
    is_valid_phone,
    is_valid_postal_code,
    is_valid_time,
    normalize_postal_code,
)


class AppointmentStatus(str, Enum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


def _clock_string(value):
    """Accept datetime.time from the ORM, validate "HH:MM" from clients"""
    if value is None:
        return None
    if isinstance(value, dt.time):
        return normalize_time(value)
    if not isinstance(value, str) or not is_valid_time(value):
        raise ValueError("Time must be in HH:MM format")
    return value


ClockTime = Annotated[str, BeforeValidator(_clock_string)]


# =============================================================================
# Availability
# =============================================================================

class TimeSlot(BaseModel):
    """A single bookable slot"""
    time: str = Field(..., description="Slot start (HH:MM)")
    available: bool = Field(..., description="Whether the slot can still be booked")


class DateAvailability(BaseModel):
    """Availability for a single date"""
    date: dt.date
    is_open: bool = Field(..., description="True when at least one slot is available")
    slots: List[TimeSlot] = Field(default_factory=list)


class DaySchedule(BaseModel):
    """Resolved opening hours for one date (weekly template + overrides)"""
    date: dt.date
    is_open: bool
    open_time: Optional[str] = None
    close_time: Optional[str] = None
    slot_duration_minutes: int
    override_reason: Optional[str] = None


class AvailabilityResponse(BaseModel):
    dates: List[DateAvailability]
    start_date: dt.date
    end_date: dt.date


class DayAvailabilityResponse(BaseModel):
    schedule: DaySchedule
    slots: List[TimeSlot]


class NextAvailableResponse(BaseModel):
    date: Optional[dt.date] = None


# =============================================================================
# Appointments
# =============================================================================

class CustomerDetails(BaseModel):
    customer_name: str = Field(..., min_length=1, max_length=255)
    customer_email: str = Field(..., max_length=255)
    customer_phone: str = Field(..., max_length=50)
    customer_street: str = Field(..., min_length=1, max_length=255)
    customer_postal_code: str = Field(..., max_length=20)
    customer_city: str = Field(..., min_length=1, max_length=100)
    remarks: Optional[str] = None

    @field_validator("customer_name", "customer_street", "customer_city")
    @classmethod
    def strip_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Field is required")
        return v

    @field_validator("customer_email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        v = v.strip().lower()
        if not is_valid_email(v):
            raise ValueError("Invalid email address")
        return v

    @field_validator("customer_phone")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        if not is_valid_phone(v):
            raise ValueError("Invalid phone number")
        return v.strip()

    @field_validator("customer_postal_code")
    @classmethod
    def validate_postal_code(cls, v: str) -> str:
        if not is_valid_postal_code(v):
            raise ValueError("Invalid postal code (format: 1234 or 1234 AB)")
        return normalize_postal_code(v)

    @field_validator("remarks")
    @classmethod
    def strip_remarks(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None


class AppointmentCreate(CustomerDetails):
    """Public booking request"""
    appointment_date: dt.date
    appointment_time: ClockTime


class AppointmentAdminCreate(AppointmentCreate):
    """Booking entered by staff"""
    admin_notes: Optional[str] = None


class AppointmentUpdate(BaseModel):
    """Customer self-service changes; omitted fields stay as they are"""
    appointment_date: Optional[dt.date] = None
    appointment_time: Optional[ClockTime] = None
    customer_name: Optional[str] = Field(None, max_length=255)
    customer_email: Optional[str] = Field(None, max_length=255)
    customer_phone: Optional[str] = Field(None, max_length=50)
    customer_street: Optional[str] = Field(None, max_length=255)
    customer_postal_code: Optional[str] = Field(None, max_length=20)
    customer_city: Optional[str] = Field(None, max_length=100)
    remarks: Optional[str] = None

    @field_validator("customer_name", "customer_street", "customer_city")
    @classmethod
    def strip_required(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        if not v:
            raise ValueError("Field cannot be empty")
        return v

    @field_validator("customer_email")
    @classmethod
    def validate_email(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip().lower()
        if not is_valid_email(v):
            raise ValueError("Invalid email address")
        return v

    @field_validator("customer_phone")
    @classmethod
    def validate_phone(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        if not is_valid_phone(v):
            raise ValueError("Invalid phone number")
        return v.strip()

    @field_validator("customer_postal_code")
    @classmethod
    def validate_postal_code(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        if not is_valid_postal_code(v):
            raise ValueError("Invalid postal code (format: 1234 or 1234 AB)")
        return normalize_postal_code(v)


class AppointmentAdminUpdate(AppointmentUpdate):
    status: Optional[AppointmentStatus] = None
    admin_notes: Optional[str] = None


class AppointmentPublicView(BaseModel):
    """Appointment as shown to the edit-token holder (no staff-only fields)"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    appointment_date: dt.date
    appointment_time: ClockTime
    duration_minutes: int
    customer_name: str
    customer_email: str
    customer_phone: str
    customer_street: str
    customer_postal_code: str
    customer_city: str
    remarks: Optional[str] = None
    status: AppointmentStatus
    created_at: Optional[dt.datetime] = None


class AppointmentRead(AppointmentPublicView):
    """Full appointment record for the dashboard"""
    edit_token: str
    admin_notes: Optional[str] = None
    ip_address: Optional[str] = None
    updated_at: Optional[dt.datetime] = None
    cancelled_at: Optional[dt.datetime] = None
    reminder_sent_at: Optional[dt.datetime] = None


class AppointmentCreatedResponse(BaseModel):
    success: bool = True
    appointment: AppointmentPublicView
    edit_token: str
    edit_url: str


class AppointmentListResponse(BaseModel):
    total: int
    skip: int
    limit: int
    appointments: List[AppointmentRead]


class ReminderResult(BaseModel):
    id: int
    success: bool


class ReminderRunResponse(BaseModel):
    success: bool = True
    reminders_sent: int
    reminders_failed: int
    details: List[ReminderResult] = Field(default_factory=list)
    timestamp: dt.datetime


# =============================================================================
# Weekly template & overrides
# =============================================================================

class WeeklySettingsUpdate(BaseModel):
    day_of_week: int = Field(..., ge=0, le=6, description="Day of week (0=Monday, 6=Sunday)")
    is_open: bool
    open_time: Optional[ClockTime] = None
    close_time: Optional[ClockTime] = None
    slot_duration_minutes: int = Field(60, gt=0, le=24 * 60)

    @model_validator(mode="after")
    def check_hours(self):
        if not self.is_open:
            self.open_time = None
            self.close_time = None
            return self
        if not self.open_time or not self.close_time:
            raise ValueError("Opening and closing time are required when open")
        if self.open_time >= self.close_time:
            raise ValueError("Closing time must be after opening time")
        return self


class WeeklySettingsRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    day_of_week: int
    is_open: bool
    open_time: Optional[ClockTime] = None
    close_time: Optional[ClockTime] = None
    slot_duration_minutes: int


class DateOverrideCreate(BaseModel):
    date: dt.date = Field(..., description="Start date")
    end_date: Optional[dt.date] = Field(None, description="Inclusive end date for ranges")
    is_closed: bool = True
    open_time: Optional[ClockTime] = None
    close_time: Optional[ClockTime] = None
    reason: Optional[str] = None
    is_recurring: bool = False
    show_on_website: bool = False

    @model_validator(mode="after")
    def check_override(self):
        if self.end_date is not None and self.end_date < self.date:
            raise ValueError("End date must be on or after the start date")
        if self.is_closed:
            self.open_time = None
            self.close_time = None
            return self
        if not self.open_time or not self.close_time:
            raise ValueError("Opening and closing time are required for custom hours")
        if self.open_time >= self.close_time:
            raise ValueError("Closing time must be after opening time")
        return self


class DateOverrideRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    date: dt.date
    end_date: Optional[dt.date] = None
    is_closed: bool
    open_time: Optional[ClockTime] = None
    close_time: Optional[ClockTime] = None
    reason: Optional[str] = None
    is_recurring: bool
    show_on_website: bool
    created_at: Optional[dt.datetime] = None


class PublicClosure(BaseModel):
    """Closure published on the website"""
    id: int
    start_date: dt.date
    end_date: Optional[dt.date] = None
    is_closed: bool
    reason: Optional[str] = None
    is_recurring: bool
