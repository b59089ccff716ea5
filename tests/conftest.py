from datetime import datetime

import pytest
from sqlalchemy.orm import sessionmaker

import database, models, crud, schemas
from config import settings


def at(hour, minute=0, day=3):
    return datetime(2025, 3, day, hour, minute)


def booking(doctor_id, patient_id, start, end, room_id=None, reason="Check-up"):
    return schemas.AppointmentInput(
        doctor_id=doctor_id, patient_id=patient_id, room_id=room_id, start_time=start, end_time=end, reason=reason
    )


@pytest.fixture
def engine(tmp_path):
    engine = database.build_engine(f"sqlite:///{tmp_path / 'clinic.db'}")
    models.Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine)


@pytest.fixture
def short_wait_factory(engine):
    impatient = database.build_engine(str(engine.url), lock_timeout_ms=100)
    yield sessionmaker(bind=impatient)
    impatient.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture(autouse=True)
def fast_retries(monkeypatch):
    monkeypatch.setattr(settings, "booking_retry_backoff_seconds", 0.0)


@pytest.fixture
def make_doctor(db):
    counter = {"n": 0}

    def _make(active=True):
        counter["n"] += 1
        n = counter["n"]
        user = crud.create_user(db, schemas.User(
            username=f"doctor{n}", email=f"doctor{n}@example.com", password="s3cret",
            first_name="Ada", last_name=f"Doctor{n}", role="doctor",
        ))
        doctor = crud.create_doctor(db, schemas.DoctorInput(user_id=user.user_id, license_number=f"LIC-{n:04d}"))
        if not active:
            doctor = crud.update_doctor(db, doctor.doctor_id, schemas.UpdateDoctor(active=False))
        return doctor

    return _make


@pytest.fixture
def make_patient(db):
    counter = {"n": 0}

    def _make():
        counter["n"] += 1
        n = counter["n"]
        return crud.create_patient(db, schemas.PatientInput(
            national_id=f"NID-{n:05d}", first_name="Jane", last_name=f"Patient{n}",
        ))

    return _make


@pytest.fixture
def doctor(make_doctor):
    return make_doctor()


@pytest.fixture
def patient(make_patient):
    return make_patient()
