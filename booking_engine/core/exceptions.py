# booking_engine/core/exceptions.py
"""Booking error taxonomy surfaced to the HTTP layer"""


class BookingError(Exception):
    """Base class for booking rule violations"""

    code = "BOOKING_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class SlotUnavailableError(BookingError):
    """Requested slot is closed, in the past, or already taken"""

    code = "SLOT_UNAVAILABLE"

    def __init__(self, appointment_date, appointment_time: str):
        super().__init__(
            f"Slot {appointment_date} {appointment_time} is no longer available"
        )
        self.appointment_date = appointment_date
        self.appointment_time = appointment_time


class AppointmentNotEditableError(BookingError):
    """Cancelled appointments cannot be changed"""

    code = "APPOINTMENT_NOT_EDITABLE"


class InvalidStatusTransitionError(BookingError):
    code = "INVALID_STATUS_TRANSITION"

    def __init__(self, current: str, requested: str):
        super().__init__(f"Cannot change status from '{current}' to '{requested}'")
        self.current = current
        self.requested = requested
