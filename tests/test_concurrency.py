import sqlite3
import threading

import pytest
from sqlalchemy.exc import OperationalError

import crud, database, errors, models, scheduler, schemas, utils
from config import settings
from conftest import at, booking


def _book_concurrently(session_factory, requests):
    barrier = threading.Barrier(len(requests))
    outcomes = []
    lock = threading.Lock()

    def worker(request):
        session = session_factory()
        try:
            barrier.wait()
            appt = scheduler.create_appointment(session, request)
            result = ("booked", appt.appointment_id)
        except errors.ConflictError as exc:
            result = (exc.kind, None)
        finally:
            session.close()
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=worker, args=(r,)) for r in requests]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)
    return outcomes


def test_concurrent_overlapping_bookings_only_one_succeeds(db, session_factory, doctor, patient):
    doctor_id, patient_id = doctor.doctor_id, patient.patient_id
    db.commit()

    windows = [
        ((at(9), at(9, 30)), (at(9, 15), at(9, 45))),
        ((at(10), at(11)), (at(10), at(11))),
        ((at(12), at(13)), (at(12, 30), at(12, 45))),
    ]
    for first, second in windows:
        outcomes = _book_concurrently(session_factory, [
            booking(doctor_id, patient_id, *first),
            booking(doctor_id, patient_id, *second),
        ])
        assert sorted(kind for kind, _ in outcomes) == ["booked", "overlap"]

    stored = db.query(models.Appointment).filter(models.Appointment.doctor_id == doctor_id).all()
    assert len(stored) == len(windows)
    for i, a in enumerate(stored):
        for b in stored[i + 1:]:
            assert not utils.overlaps(a.start_time, a.end_time, b.start_time, b.end_time)


def test_concurrent_disjoint_bookings_both_succeed(db, session_factory, doctor, patient):
    doctor_id, patient_id = doctor.doctor_id, patient.patient_id
    db.commit()

    outcomes = _book_concurrently(session_factory, [
        booking(doctor_id, patient_id, at(9), at(9, 30)),
        booking(doctor_id, patient_id, at(9, 30), at(10)),
    ])
    assert [kind for kind, _ in outcomes] == ["booked", "booked"]


def _locked_error():
    return OperationalError("SELECT doctors", {}, sqlite3.OperationalError("database is locked"))


def test_lock_timeouts_are_retried(db, doctor, patient, monkeypatch):
    real_lock = scheduler._lock_doctor
    calls = []

    def flaky_lock(session, doctor_id):
        calls.append(doctor_id)
        if len(calls) < 3:
            raise _locked_error()
        return real_lock(session, doctor_id)

    monkeypatch.setattr(scheduler, "_lock_doctor", flaky_lock)
    monkeypatch.setattr(settings, "booking_max_attempts", 3)

    appt = scheduler.create_appointment(db, booking(doctor.doctor_id, patient.patient_id, at(9), at(9, 30)))
    assert appt.status == "scheduled"
    assert len(calls) == 3
    assert db.query(models.Appointment).count() == 1


def test_exhausted_retries_surface_as_busy_conflict(db, doctor, patient, monkeypatch):
    def always_locked(session, doctor_id):
        raise _locked_error()

    monkeypatch.setattr(scheduler, "_lock_doctor", always_locked)
    monkeypatch.setattr(settings, "booking_max_attempts", 2)

    with pytest.raises(errors.SchedulerBusyError) as exc_info:
        scheduler.create_appointment(db, booking(doctor.doctor_id, patient.patient_id, at(9), at(9, 30)))
    assert isinstance(exc_info.value, errors.ConflictError)
    assert exc_info.value.kind == "busy"
    assert exc_info.value.retryable
    assert db.query(models.Appointment).count() == 0


def test_non_transient_operational_errors_become_storage_errors(db, doctor, patient, monkeypatch):
    def broken(session, doctor_id):
        raise OperationalError("SELECT doctors", {}, sqlite3.OperationalError("no such table: doctors"))

    monkeypatch.setattr(scheduler, "_lock_doctor", broken)
    with pytest.raises(errors.StorageError) as exc_info:
        scheduler.create_appointment(db, booking(doctor.doctor_id, patient.patient_id, at(9), at(9, 30)))
    assert exc_info.value.kind == "storage"
    assert not exc_info.value.retryable
    assert isinstance(exc_info.value.__cause__, OperationalError)


class _PgError(Exception):
    def __init__(self, pgcode):
        super().__init__(pgcode)
        self.pgcode = pgcode


@pytest.mark.parametrize("code,transient", [("55P03", True), ("40P01", True), ("40001", True), ("42P01", False)])
def test_postgres_transient_classification(code, transient):
    assert errors.is_transient(OperationalError("SELECT 1", {}, _PgError(code))) is transient


def test_open_session_after_booking_does_not_block_other_doctors(db, session_factory, short_wait_factory,
                                                                 make_doctor, patient, monkeypatch):
    first, second = make_doctor(), make_doctor()
    first_id, second_id, patient_id = first.doctor_id, second.doctor_id, patient.patient_id
    db.commit()
    monkeypatch.setattr(settings, "booking_max_attempts", 1)

    holder, other = session_factory(), short_wait_factory()
    try:
        held = scheduler.create_appointment(holder, booking(first_id, patient_id, at(9), at(10)))
        assert held.status == "scheduled"

        booked = scheduler.create_appointment(other, booking(second_id, patient_id, at(9), at(10)))
        assert booked.doctor_id == second_id
    finally:
        other.close()
        holder.close()


def test_open_read_does_not_block_writers(db, session_factory, short_wait_factory, make_doctor, patient, monkeypatch):
    first, second = make_doctor(), make_doctor()
    first_id, second_id, patient_id = first.doctor_id, second.doctor_id, patient.patient_id
    appt_id = scheduler.create_appointment(db, booking(first_id, patient_id, at(9), at(10))).appointment_id
    db.commit()
    monkeypatch.setattr(settings, "booking_max_attempts", 1)

    reader, writer = session_factory(), short_wait_factory()
    try:
        assert len(scheduler.list_doctor_appointments(reader, first_id, at(8), at(18))) == 1
        assert scheduler.get_appointment(reader, appt_id).doctor_id == first_id

        scheduler.create_appointment(writer, booking(second_id, patient_id, at(9), at(10)))
        scheduler.create_appointment(writer, booking(first_id, patient_id, at(11), at(12)))
        crud.create_patient(writer, schemas.PatientInput(first_name="Walk", last_name="In"))

        reader.commit()
        assert len(scheduler.list_doctor_appointments(reader, first_id, at(8), at(18))) == 2
    finally:
        writer.close()
        reader.close()


def test_held_write_lock_surfaces_as_busy(db, session_factory, short_wait_factory, doctor, patient, monkeypatch):
    doctor_id, patient_id = doctor.doctor_id, patient.patient_id
    db.commit()
    monkeypatch.setattr(settings, "booking_max_attempts", 2)

    holder, other = session_factory(), short_wait_factory()
    try:
        database.begin_write(holder)

        with pytest.raises(errors.SchedulerBusyError) as exc_info:
            scheduler.create_appointment(other, booking(doctor_id, patient_id, at(9), at(10)))
        assert exc_info.value.kind == "busy"
        assert exc_info.value.retryable
        assert exc_info.value.details["attempts"] == 2

        with pytest.raises(errors.BusyError) as exc_info:
            crud.create_patient(other, schemas.PatientInput(first_name="Walk", last_name="In"))
        assert not isinstance(exc_info.value, errors.SchedulerBusyError)

        holder.rollback()
        booked = scheduler.create_appointment(other, booking(doctor_id, patient_id, at(9), at(10)))
        assert booked.status == "scheduled"
    finally:
        other.close()
        holder.close()
    assert db.query(models.Patient).count() == 1
