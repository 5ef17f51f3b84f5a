"""Initial migration

Revision ID: 001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def _tenant_and_timestamps():
    return [
        sa.Column('tenant_id', sa.String(length=50), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()'), nullable=True),
    ]


def upgrade() -> None:
    # Create UUID extension
    op.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp"')

    # Create doctor_profiles table
    op.create_table(
        'doctor_profiles',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('full_name', sa.String(length=200), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('department_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('specialization', sa.String(length=100), nullable=True),
        sa.Column('available_days', sa.JSON(), nullable=True),
        sa.Column('working_hours_start', sa.String(length=20), nullable=False),
        sa.Column('working_hours_end', sa.String(length=20), nullable=False),
        sa.Column('breaks', sa.JSON(), nullable=True),
        sa.Column('slot_duration', sa.Integer(), nullable=False),
        sa.Column('consultation_fee', sa.Float(), nullable=True),
        sa.Column('online_fee', sa.Float(), nullable=True),
        sa.Column('status', sa.Enum('AVAILABLE', 'UNAVAILABLE', name='doctorstatus'), nullable=False),
        *_tenant_and_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id')
    )
    op.create_index('ix_doctor_profiles_user_id', 'doctor_profiles', ['user_id'], unique=True)
    op.create_index('ix_doctor_profiles_department_id', 'doctor_profiles', ['department_id'], unique=False)
    op.create_index('ix_doctor_profiles_status', 'doctor_profiles', ['status'], unique=False)
    op.create_index('ix_doctor_profiles_tenant_id', 'doctor_profiles', ['tenant_id'], unique=False)

    # Create patients table
    op.create_table(
        'patients',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('patient_number', sa.String(length=50), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('full_name', sa.String(length=200), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('date_of_birth', sa.Date(), nullable=True),
        sa.Column('gender', sa.String(length=20), nullable=True),
        sa.Column('is_minimal_profile', sa.Boolean(), nullable=True),
        *_tenant_and_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('patient_number')
    )
    op.create_index('ix_patients_patient_number', 'patients', ['patient_number'], unique=True)
    op.create_index('ix_patients_user_id', 'patients', ['user_id'], unique=False)
    op.create_index('ix_patients_email', 'patients', ['email'], unique=False)
    op.create_index('ix_patients_phone', 'patients', ['phone'], unique=False)
    op.create_index('ix_patients_tenant_id', 'patients', ['tenant_id'], unique=False)

    # Create doctor_leaves table
    op.create_table(
        'doctor_leaves',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('doctor_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('leave_type', sa.Enum('SICK', 'CASUAL', name='leavetype'), nullable=False),
        sa.Column('duration_type', sa.Enum('FULL_DAY', 'HALF_DAY', name='leaveduration'), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', sa.Enum('PENDING', 'APPROVED', 'REJECTED', name='leavestatus'), nullable=False),
        sa.Column('decided_by', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('decided_at', sa.DateTime(), nullable=True),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        *_tenant_and_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['doctor_id'], ['doctor_profiles.id'], ondelete='CASCADE'),
        sa.CheckConstraint('start_date <= end_date', name='check_leave_dates')
    )
    op.create_index('ix_doctor_leaves_doctor_id', 'doctor_leaves', ['doctor_id'], unique=False)
    op.create_index('ix_doctor_leaves_status', 'doctor_leaves', ['status'], unique=False)
    op.create_index('ix_doctor_leaves_tenant_id', 'doctor_leaves', ['tenant_id'], unique=False)

    # Create day_schedules table
    op.create_table(
        'day_schedules',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('doctor_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('schedule_date', sa.Date(), nullable=False),
        sa.Column('day_name', sa.String(length=10), nullable=True),
        sa.Column('working_hours_start', sa.String(length=20), nullable=False),
        sa.Column('working_hours_end', sa.String(length=20), nullable=False),
        sa.Column('breaks', sa.JSON(), nullable=True),
        sa.Column('slot_duration', sa.Integer(), nullable=False),
        sa.Column('is_available', sa.Boolean(), nullable=False),
        sa.Column('leave_id', postgresql.UUID(as_uuid=True), nullable=True),
        *_tenant_and_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['doctor_id'], ['doctor_profiles.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['leave_id'], ['doctor_leaves.id'], ondelete='SET NULL'),
        sa.UniqueConstraint('doctor_id', 'schedule_date', name='unique_schedule_per_doctor_date')
    )
    op.create_index('ix_day_schedules_schedule_date', 'day_schedules', ['schedule_date'], unique=False)
    op.create_index('ix_day_schedules_tenant_id', 'day_schedules', ['tenant_id'], unique=False)

    # Create schedule_slots table
    op.create_table(
        'schedule_slots',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('schedule_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('start', sa.String(length=20), nullable=False),
        sa.Column('end', sa.String(length=20), nullable=False),
        sa.Column('start_minute', sa.Integer(), nullable=False),
        sa.Column('end_minute', sa.Integer(), nullable=False),
        sa.Column('duration', sa.Integer(), nullable=False),
        sa.Column('is_booked', sa.Boolean(), nullable=False),
        sa.Column('online_fee', sa.Float(), nullable=False),
        sa.Column('offline_fee', sa.Float(), nullable=False),
        sa.Column('tenant_id', sa.String(length=50), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['schedule_id'], ['day_schedules.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('schedule_id', 'start_minute', 'end_minute', name='unique_slot_interval_per_schedule'),
        sa.CheckConstraint('start_minute < end_minute', name='check_slot_order')
    )
    op.create_index('ix_schedule_slots_schedule_id', 'schedule_slots', ['schedule_id'], unique=False)
    op.create_index('ix_schedule_slots_tenant_id', 'schedule_slots', ['tenant_id'], unique=False)

    # Create appointments table
    op.create_table(
        'appointments',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('appointment_number', sa.String(length=50), nullable=False),
        sa.Column('patient_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('doctor_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('created_by', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('appointment_date', sa.Date(), nullable=False),
        sa.Column('slot_start', sa.String(length=20), nullable=False),
        sa.Column('slot_end', sa.String(length=20), nullable=False),
        sa.Column('slot_start_minute', sa.Integer(), nullable=False),
        sa.Column('slot_end_minute', sa.Integer(), nullable=False),
        sa.Column('duration', sa.Integer(), nullable=False),
        sa.Column('consultation_type', sa.Enum('ONLINE', 'OFFLINE', name='consultationtype'), nullable=False),
        sa.Column('status', sa.Enum(
            'PENDING', 'CONFIRMED', 'WITH_DOCTOR', 'COMPLETED', 'CANCELLED', 'HOSPITAL_CANCELLED', 'MISSED',
            name='appointmentstatus'
        ), nullable=False),
        sa.Column('fee', sa.Float(), nullable=False),
        sa.Column('payment_status', sa.Enum(
            'PENDING', 'PAID', 'REFUNDED', 'PARTIAL_PAID', name='appointmentpaymentstatus'
        ), nullable=False),
        sa.Column('token_number', sa.Integer(), nullable=True),
        sa.Column('video_link', sa.String(length=500), nullable=True),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('is_follow_up', sa.Boolean(), nullable=True),
        sa.Column('previous_appointment_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('next_appointment_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('medical_record_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('confirmed_at', sa.DateTime(), nullable=True),
        sa.Column('started_at', sa.DateTime(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(), nullable=True),
        sa.Column('cancelled_by', sa.Enum('PATIENT', 'DOCTOR', 'HOSPITAL', name='cancelledby'), nullable=True),
        sa.Column('cancellation_reason', sa.Text(), nullable=True),
        *_tenant_and_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['patient_id'], ['patients.id'], ),
        sa.ForeignKeyConstraint(['doctor_id'], ['doctor_profiles.id'], ),
        sa.ForeignKeyConstraint(['previous_appointment_id'], ['appointments.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['next_appointment_id'], ['appointments.id'], ondelete='SET NULL'),
        sa.UniqueConstraint('appointment_number'),
        sa.UniqueConstraint('doctor_id', 'appointment_date', 'token_number', name='unique_token_per_doctor_date'),
        sa.CheckConstraint('slot_start_minute < slot_end_minute', name='check_appointment_slot_order')
    )
    op.create_index('ix_appointments_appointment_number', 'appointments', ['appointment_number'], unique=True)
    op.create_index('ix_appointments_appointment_date', 'appointments', ['appointment_date'], unique=False)
    op.create_index('ix_appointments_doctor_date', 'appointments', ['doctor_id', 'appointment_date'], unique=False)
    op.create_index('ix_appointments_patient_status', 'appointments', ['patient_id', 'status'], unique=False)
    op.create_index('ix_appointments_doctor_status', 'appointments', ['doctor_id', 'status'], unique=False)
    op.create_index('ix_appointments_tenant_id', 'appointments', ['tenant_id'], unique=False)

    # Create payments table
    op.create_table(
        'payments',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('appointment_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('patient_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('amount', sa.Float(), nullable=False),
        sa.Column('method', sa.Enum('UPI', 'CARD', 'CASH', 'NET_BANKING', name='paymentmethod'), nullable=False),
        sa.Column('channel', sa.Enum('ONLINE', 'WALK_IN', name='paymentchannel'), nullable=False),
        sa.Column('payment_type', sa.Enum('INITIAL', 'BALANCE', 'REFUND', name='paymenttype'), nullable=False),
        sa.Column('status', sa.Enum('PENDING', 'PAID', 'FAILED', 'REFUNDED', name='paymentstatus'), nullable=False),
        sa.Column('gateway_reference', sa.String(length=100), nullable=True),
        *_tenant_and_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['appointment_id'], ['appointments.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['patient_id'], ['patients.id'], )
    )
    op.create_index('ix_payments_appointment_id', 'payments', ['appointment_id'], unique=False)
    op.create_index('ix_payments_patient_id', 'payments', ['patient_id'], unique=False)
    op.create_index('ix_payments_status', 'payments', ['status'], unique=False)
    op.create_index('ix_payments_tenant_id', 'payments', ['tenant_id'], unique=False)

    # Create medical_records table
    op.create_table(
        'medical_records',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('appointment_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('patient_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('doctor_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('chief_complaint', sa.Text(), nullable=True),
        sa.Column('symptoms', sa.Text(), nullable=True),
        sa.Column('diagnosis', sa.JSON(), nullable=True),
        sa.Column('prescription', sa.JSON(), nullable=True),
        sa.Column('vitals', sa.JSON(), nullable=True),
        sa.Column('lab_tests', sa.JSON(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('follow_up_date', sa.Date(), nullable=True),
        sa.Column('follow_up_note', sa.String(length=500), nullable=True),
        sa.Column('status', sa.Enum('ACTIVE', 'ARCHIVED', name='medicalrecordstatus'), nullable=True),
        *_tenant_and_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['appointment_id'], ['appointments.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['patient_id'], ['patients.id'], ),
        sa.ForeignKeyConstraint(['doctor_id'], ['doctor_profiles.id'], )
    )
    op.create_index('ix_medical_records_appointment_id', 'medical_records', ['appointment_id'], unique=False)
    op.create_index('ix_medical_records_patient_id', 'medical_records', ['patient_id'], unique=False)
    op.create_index('ix_medical_records_doctor_id', 'medical_records', ['doctor_id'], unique=False)
    op.create_index('ix_medical_records_tenant_id', 'medical_records', ['tenant_id'], unique=False)


def downgrade() -> None:
    # Drop all tables in reverse order of creation
    op.drop_table('medical_records')
    op.drop_table('payments')
    op.drop_table('appointments')
    op.drop_table('schedule_slots')
    op.drop_table('day_schedules')
    op.drop_table('doctor_leaves')
    op.drop_table('patients')
    op.drop_table('doctor_profiles')

    # Drop enums
    op.execute('DROP TYPE IF EXISTS medicalrecordstatus')
    op.execute('DROP TYPE IF EXISTS paymentstatus')
    op.execute('DROP TYPE IF EXISTS paymenttype')
    op.execute('DROP TYPE IF EXISTS paymentchannel')
    op.execute('DROP TYPE IF EXISTS paymentmethod')
    op.execute('DROP TYPE IF EXISTS cancelledby')
    op.execute('DROP TYPE IF EXISTS appointmentpaymentstatus')
    op.execute('DROP TYPE IF EXISTS appointmentstatus')
    op.execute('DROP TYPE IF EXISTS consultationtype')
    op.execute('DROP TYPE IF EXISTS leavestatus')
    op.execute('DROP TYPE IF EXISTS leaveduration')
    op.execute('DROP TYPE IF EXISTS leavetype')
    op.execute('DROP TYPE IF EXISTS doctorstatus')
