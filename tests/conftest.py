import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_hospital_scheduling.db")

import pytest
import uuid
from datetime import date, timedelta
from typing import Generator, List, Dict, Any, Optional
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from app.main import app
from app.core.permissions import ROLE_PERMISSIONS, Roles
from app.core.security import create_access_token
from app.infrastructure.database import Base, build_engine, get_db
from app.infrastructure.notifications import AppointmentNotifier
from app.domain.doctors.service import DoctorService
from app.domain.patients.repository import PatientRepository
from app.domain.scheduling.service import ScheduleService
from app.domain.appointments.service import AppointmentService
from app.domain.scheduling.leaves import LeaveService


class RecordingNotifier(AppointmentNotifier):
    """Notifier that keeps what would have been sent"""

    def __init__(self):
        self.sent: List[Dict[str, Any]] = []

    def dispatch(self, kind: str, details: Dict[str, Any]) -> None:
        self.sent.append({"kind": kind, **details})

    def kinds(self) -> List[str]:
        return [item["kind"] for item in self.sent]


@pytest.fixture(scope="function")
def engine(tmp_path):
    """A fresh SQLite file per test; threads get their own connections."""
    test_engine = build_engine(f"sqlite:///{tmp_path / 'scheduling.db'}")
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture(scope="function")
def db_session(session_factory) -> Generator:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture(scope="function")
def booking_date() -> date:
    return date.today() + timedelta(days=7)


@pytest.fixture(scope="function")
def doctor_data() -> dict:
    """Morning template: five 30 minute slots around a 10:30 break."""
    return {
        "user_id": uuid.uuid4(),
        "full_name": "Dr. Asha Menon",
        "email": "asha.menon@example.com",
        "specialization": "Cardiology",
        "available_days": ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"],
        "working_hours_start": "09:00 AM",
        "working_hours_end": "12:00 PM",
        "breaks": [{"start": "10:30 AM", "end": "11:00 AM"}],
        "slot_duration": 30,
        "consultation_fee": 80,
        "online_fee": 100,
    }


@pytest.fixture(scope="function")
def doctor(db_session, doctor_data):
    return DoctorService(db_session).create_profile(doctor_data)


@pytest.fixture(scope="function")
def other_doctor(db_session, doctor_data):
    data = dict(doctor_data, user_id=uuid.uuid4(), full_name="Dr. Ravi Kumar", email="ravi@example.com")
    return DoctorService(db_session).create_profile(data)


@pytest.fixture(scope="function")
def schedule(db_session, doctor, booking_date):
    return ScheduleService(db_session).ensure_schedule(doctor.id, booking_date)


@pytest.fixture(scope="function")
def patient(db_session):
    return PatientRepository(db_session).create({
        "user_id": uuid.uuid4(),
        "full_name": "John Doe",
        "email": "john.doe@example.com",
        "phone": "+1234567890",
    })


@pytest.fixture(scope="function")
def other_patient(db_session):
    return PatientRepository(db_session).create({
        "user_id": uuid.uuid4(),
        "full_name": "Jane Roe",
        "email": "jane.roe@example.com",
        "phone": "+1234567891",
    })


@pytest.fixture(scope="function")
def schedule_service(db_session) -> ScheduleService:
    return ScheduleService(db_session)


@pytest.fixture(scope="function")
def appointment_service(db_session, notifier) -> AppointmentService:
    return AppointmentService(db_session, notifier=notifier)


@pytest.fixture(scope="function")
def leave_service(db_session, notifier) -> LeaveService:
    return LeaveService(db_session, notifier=notifier)


@pytest.fixture(scope="function")
def book(appointment_service, doctor, patient, booking_date, schedule):
    """Book a slot of the default doctor for the default patient."""
    def _book(start="09:00 AM", end="09:30 AM", consultation_type="Online",
              payment_method="UPI", patient_id: Optional[uuid.UUID] = None, target_date=None):
        return appointment_service.book_appointment(
            doctor_id=doctor.id,
            appointment_date=(target_date or booking_date).isoformat(),
            slot_start=start,
            slot_end=end,
            consultation_type=consultation_type,
            payment_method=payment_method,
            patient_id=patient_id or patient.id,
        )
    return _book


# ==================== HTTP ====================

@pytest.fixture(scope="function")
def sent_emails(monkeypatch) -> List[Dict[str, Any]]:
    """Capture notifications enqueued by the default notifier."""
    sent = []
    monkeypatch.setattr(
        AppointmentNotifier, "dispatch",
        lambda self, kind, details: sent.append({"kind": kind, **details})
    )
    return sent


@pytest.fixture(scope="function")
def client(session_factory, sent_emails) -> Generator[TestClient, None, None]:
    """Test client with the database dependency pointed at the test engine."""

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def make_token(role: str, user_id: Optional[uuid.UUID] = None) -> str:
    return create_access_token(
        subject=str(user_id or uuid.uuid4()),
        role=role,
        permissions=ROLE_PERMISSIONS[role],
    )


def bearer(role: str, user_id: Optional[uuid.UUID] = None) -> Dict[str, str]:
    return {"Authorization": f"Bearer {make_token(role, user_id)}"}


@pytest.fixture(scope="function")
def auth_headers():
    """Build headers for any role: auth_headers(Roles.DOCTOR, user_id)"""
    return bearer


@pytest.fixture(scope="function")
def admin_headers() -> Dict[str, str]:
    return bearer(Roles.ADMIN)


@pytest.fixture(scope="function")
def doctor_headers(doctor) -> Dict[str, str]:
    return bearer(Roles.DOCTOR, doctor.user_id)


@pytest.fixture(scope="function")
def patient_headers(patient) -> Dict[str, str]:
    return bearer(Roles.PATIENT, patient.user_id)


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "scheduling: mark test as schedule and slot related"
    )
    config.addinivalue_line(
        "markers", "appointments: mark test as appointment lifecycle related"
    )
    config.addinivalue_line(
        "markers", "leaves: mark test as doctor leave related"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )
