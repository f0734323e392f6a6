"""create appointment tables

Revision ID: a1c4e7d2b903
Revises:
Create Date: 2026-10-19 10:12:41.503318

"""
from datetime import time
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = 'a1c4e7d2b903'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""

    # 1. Weekly template
    settings_table = op.create_table(
        'appointment_settings',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('day_of_week', sa.Integer(), nullable=False, unique=True),
        sa.Column('is_open', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('open_time', sa.Time(), nullable=True),
        sa.Column('close_time', sa.Time(), nullable=True),
        sa.Column('slot_duration_minutes', sa.Integer(), nullable=False, server_default='60'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.CheckConstraint('day_of_week BETWEEN 0 AND 6', name='ck_appointment_settings_day_of_week'),
        sa.CheckConstraint('slot_duration_minutes > 0', name='ck_appointment_settings_slot_duration'),
    )

    # 2. Date overrides
    op.create_table(
        'appointment_date_overrides',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('is_closed', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('open_time', sa.Time(), nullable=True),
        sa.Column('close_time', sa.Time(), nullable=True),
        sa.Column('reason', sa.String(), nullable=True),
        sa.Column('is_recurring', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('show_on_website', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
    )
    op.create_index('idx_date_overrides_date', 'appointment_date_overrides', ['date'])

    # 3. Appointments
    op.create_table(
        'appointments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('appointment_date', sa.Date(), nullable=False),
        sa.Column('appointment_time', sa.Time(), nullable=False),
        sa.Column('duration_minutes', sa.Integer(), nullable=False, server_default='60'),
        sa.Column('customer_name', sa.String(255), nullable=False),
        sa.Column('customer_email', sa.String(255), nullable=False),
        sa.Column('customer_phone', sa.String(50), nullable=False),
        sa.Column('customer_street', sa.String(255), nullable=False),
        sa.Column('customer_postal_code', sa.String(20), nullable=False),
        sa.Column('customer_city', sa.String(100), nullable=False),
        sa.Column('remarks', sa.Text(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='confirmed'),
        sa.Column('edit_token', sa.String(64), nullable=False, unique=True),
        sa.Column('admin_notes', sa.Text(), nullable=True),
        sa.Column('ip_address', sa.String(45), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('reminder_sent_at', sa.DateTime(timezone=True), nullable=True),
    )

    # Indexes for appointments
    op.create_index(
        'uq_appointments_active_slot',
        'appointments',
        ['appointment_date', 'appointment_time'],
        unique=True,
        postgresql_where=sa.text("status != 'cancelled'"),
    )
    op.create_index('idx_appointments_date', 'appointments', ['appointment_date'])
    op.create_index('idx_appointments_status', 'appointments', ['status'])
    op.create_index('idx_appointments_email', 'appointments', ['customer_email'])

    # 4. Default hours: Tuesday-Saturday 10:00-17:00, 60 minute slots
    op.bulk_insert(settings_table, [
        {
            'day_of_week': day,
            'is_open': 1 <= day <= 5,
            'open_time': time(10, 0) if 1 <= day <= 5 else None,
            'close_time': time(17, 0) if 1 <= day <= 5 else None,
            'slot_duration_minutes': 60,
        }
        for day in range(7)
    ])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('idx_appointments_email', table_name='appointments')
    op.drop_index('idx_appointments_status', table_name='appointments')
    op.drop_index('idx_appointments_date', table_name='appointments')
    op.drop_index('uq_appointments_active_slot', table_name='appointments')
    op.drop_table('appointments')

    op.drop_index('idx_date_overrides_date', table_name='appointment_date_overrides')
    op.drop_table('appointment_date_overrides')

    op.drop_table('appointment_settings')
