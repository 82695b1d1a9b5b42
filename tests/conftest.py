# tests/conftest.py
import pytest
from datetime import datetime, date
from decimal import Decimal
from app import create_app
from database import db
from database.model import User, Patient, Doctor, Service, ClinicRoom, Appointment


def _make_app(seed):
    return create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite://",
        "SEED_SAMPLE_DATA": seed,
    })


@pytest.fixture
def app():
    app = _make_app(seed=False)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def seeded_app():
    app = _make_app(seed=True)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def session(app):
    """Session bound to a fresh in-memory database with foreign keys enforced."""
    return db.session


@pytest.fixture
def user(session):
    user = User(username="nurse1", full_name="Nurse One", role="nurse", email="nurse1@clinic.test")
    user.set_password("s3cret")
    session.add(user)
    session.commit()
    return user


@pytest.fixture
def patient(session):
    patient = Patient(national_id="NID-1", first_name="Noel", last_name="Tumbo", gender="male",
                      date_of_birth=date(1990, 5, 17))
    session.add(patient)
    session.commit()
    return patient


@pytest.fixture
def doctor(session):
    doctor = Doctor(license_number="LIC-9000", first_name="Alice", last_name="Murithi")
    session.add(doctor)
    session.commit()
    return doctor


@pytest.fixture
def room(session):
    room = ClinicRoom(code="R900", name="Test Room")
    session.add(room)
    session.commit()
    return room


@pytest.fixture
def service(session):
    service = Service(code="CONS-GP", name="General Consultation", price=Decimal("10.00"))
    session.add(service)
    session.commit()
    return service


@pytest.fixture
def appointment(session, patient, doctor, room):
    appointment = Appointment(
        patient=patient,
        doctor=doctor,
        room=room,
        scheduled_start=datetime(2025, 1, 1, 9, 0),
        scheduled_end=datetime(2025, 1, 1, 9, 30),
    )
    session.add(appointment)
    session.commit()
    return appointment
