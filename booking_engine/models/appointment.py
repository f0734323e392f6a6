# ===== booking_engine/models/appointment.py =====
from sqlalchemy import Column, String, Integer, Text, Date, Time, DateTime, Index, text
from sqlalchemy.sql import func
from .base import Base


class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (
        # At most one active booking per slot; cancelled rows free the slot again
        Index(
            "uq_appointments_active_slot",
            "appointment_date",
            "appointment_time",
            unique=True,
            postgresql_where=text("status != 'cancelled'"),
            sqlite_where=text("status != 'cancelled'"),
        ),
        Index("idx_appointments_date", "appointment_date"),
        Index("idx_appointments_status", "status"),
        Index("idx_appointments_email", "customer_email"),
    )

    id = Column(Integer, primary_key=True)

    # Appointment details
    appointment_date = Column(Date, nullable=False)
    appointment_time = Column(Time, nullable=False)
    duration_minutes = Column(Integer, nullable=False, default=60)

    # Customer info
    customer_name = Column(String(255), nullable=False)
    customer_email = Column(String(255), nullable=False)
    customer_phone = Column(String(50), nullable=False)
    customer_street = Column(String(255), nullable=False)
    customer_postal_code = Column(String(20), nullable=False)
    customer_city = Column(String(100), nullable=False)
    remarks = Column(Text, nullable=True)

    # Status tracking
    status = Column(String(20), nullable=False, default="confirmed")  # confirmed, cancelled, completed
    edit_token = Column(String(64), nullable=False, unique=True)
    admin_notes = Column(Text, nullable=True)
    ip_address = Column(String(45), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    reminder_sent_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<Appointment(id={self.id}, date={self.appointment_date}, time={self.appointment_time})>"
