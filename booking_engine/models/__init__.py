# booking_engine/models/__init__.py
from .base import Base
from .availability import AppointmentSettings, DateOverride
from .appointment import Appointment

__all__ = [
    "Base",
    "AppointmentSettings",
    "DateOverride",
    "Appointment",
]
