"""
Appointment scheduling store.

A doctor is never double-booked: no two non-cancelled appointments of the
same doctor may have overlapping [start, end) windows. Every write that can
introduce an overlap takes the doctor's row lock before reading the doctor's
schedule and keeps it until commit, so two concurrent bookings for one doctor
are serialized and the second one sees the first.
"""
from sqlalchemy.orm import Session

import models, schemas, utils, errors, crud
from database import run_in_transaction
from logger import logger

ALLOWED_TRANSITIONS = {
    "scheduled": {"checked_in", "cancelled", "no_show"},
    "checked_in": {"completed", "cancelled", "no_show"},
    "completed": set(),
    "cancelled": set(),
    "no_show": set(),
}
TERMINAL_STATUSES = {"completed", "cancelled", "no_show"}


def _lock_doctor(db: Session, doctor_id: int) -> models.Doctor:
    doctor = db.query(models.Doctor).filter(models.Doctor.doctor_id == doctor_id).with_for_update().one_or_none()
    if not doctor:
        raise errors.NotFoundError(f"Doctor {doctor_id} not found", doctor_id=doctor_id)
    return doctor


def _find_overlaps(db: Session, doctor_id, start, end, exclude_id=None):
    query = db.query(models.Appointment).filter(
        models.Appointment.doctor_id == doctor_id,
        models.Appointment.status != "cancelled",
        models.Appointment.start_time < end,
        models.Appointment.end_time > start,
    )
    if exclude_id is not None:
        query = query.filter(models.Appointment.appointment_id != exclude_id)
    return query.order_by(models.Appointment.start_time).all()


def _check_no_overlap(db: Session, doctor_id, start, end, exclude_id=None):
    conflicts = _find_overlaps(db, doctor_id, start, end, exclude_id)
    if conflicts:
        logger.warning("Rejected booking for doctor %s %s-%s: conflicts with %s",
                       doctor_id, start.isoformat(), end.isoformat(), [a.appointment_id for a in conflicts])
        raise errors.AppointmentOverlapError(doctor_id, conflicts)


def _check_window(start, end):
    if end <= start:
        raise errors.ValidationError(
            "end_time must be after start_time", start_time=start.isoformat(), end_time=end.isoformat()
        )


def _require(db: Session, model, key, label):
    if db.get(model, key) is None:
        raise errors.NotFoundError(f"{label} {key} not found")


def create_appointment(db: Session, appointment: schemas.AppointmentInput, actor_id=None) -> models.Appointment:
    start = utils.to_utc_naive(appointment.start_time)
    end = utils.to_utc_naive(appointment.end_time)
    _check_window(start, end)

    def work():
        doctor = _lock_doctor(db, appointment.doctor_id)
        if not doctor.active:
            raise errors.ValidationError(f"Doctor {doctor.doctor_id} is not accepting appointments")
        _require(db, models.Patient, appointment.patient_id, "Patient")
        if appointment.room_id is not None:
            _require(db, models.Room, appointment.room_id, "Room")
        _check_no_overlap(db, doctor.doctor_id, start, end)

        new = models.Appointment(
            patient_id=appointment.patient_id,
            doctor_id=doctor.doctor_id,
            room_id=appointment.room_id,
            start_time=start,
            end_time=end,
            status="scheduled",
            reason=appointment.reason,
        )
        db.add(new)
        db.flush()
        crud.record_audit(db, "appointment.created", "appointment", new.appointment_id, user_id=actor_id,
                          details=f"doctor={new.doctor_id} {start.isoformat()}-{end.isoformat()}")
        return new, new.appointment_id

    new, appointment_id = run_in_transaction(
        db, work, f"create appointment for doctor {appointment.doctor_id}", "appointment", errors.SchedulerBusyError
    )
    logger.info("Booked appointment #%d for doctor %d %s-%s", appointment_id, appointment.doctor_id,
                start.isoformat(), end.isoformat())
    return new


def _check_transition(current, target):
    if target == current:
        return
    if target not in ALLOWED_TRANSITIONS[current]:
        raise errors.ValidationError(
            f"Invalid status transition {current} -> {target}", current_status=current, requested_status=target
        )


def update_appointment(db: Session, appointment_id: int, patch: schemas.AppointmentUpdate, actor_id=None) -> models.Appointment:
    changes = patch.model_dump(exclude_unset=True)
    if "status" in changes and changes["status"] is not None:
        changes["status"] = schemas.AppointmentStatus(changes["status"]).value
    for field in ("start_time", "end_time"):
        if field in changes:
            changes[field] = utils.to_utc_naive(changes[field])
    for field in ("doctor_id", "start_time", "end_time", "status"):
        if field in changes and changes[field] is None:
            raise errors.ValidationError(f"{field} cannot be null")

    def work():
        appt = db.query(models.Appointment).filter(
            models.Appointment.appointment_id == appointment_id
        ).with_for_update().one_or_none()
        if not appt:
            raise errors.NotFoundError(f"Appointment {appointment_id} not found", appointment_id=appointment_id)

        doctor_id = changes.get("doctor_id", appt.doctor_id)
        start = changes.get("start_time", appt.start_time)
        end = changes.get("end_time", appt.end_time)
        status = changes.get("status", appt.status)
        rescheduled = (doctor_id, start, end) != (appt.doctor_id, appt.start_time, appt.end_time)

        _check_transition(appt.status, status)
        if rescheduled and appt.status in TERMINAL_STATUSES:
            raise errors.ValidationError(f"Cannot reschedule a {appt.status} appointment")
        _check_window(start, end)
        if changes.get("room_id") is not None:
            _require(db, models.Room, changes["room_id"], "Room")

        if rescheduled and status != "cancelled":
            doctor = _lock_doctor(db, doctor_id)
            if doctor_id != appt.doctor_id and not doctor.active:
                raise errors.ValidationError(f"Doctor {doctor_id} is not accepting appointments")
            _check_no_overlap(db, doctor_id, start, end, exclude_id=appt.appointment_id)
        elif doctor_id != appt.doctor_id:
            _require(db, models.Doctor, doctor_id, "Doctor")

        old = {field: getattr(appt, field) for field in changes}
        for field, value in changes.items():
            setattr(appt, field, value)
        db.flush()
        summary = ", ".join(f"{field}: {old[field]} -> {value}" for field, value in changes.items() if old[field] != value)
        crud.record_audit(db, "appointment.updated", "appointment", appt.appointment_id, user_id=actor_id,
                          details=summary or "no change")
        return appt

    appt = run_in_transaction(db, work, f"update appointment {appointment_id}", "appointment", errors.SchedulerBusyError)
    logger.info("Updated appointment #%d (%s)", appointment_id, ", ".join(changes) or "no fields")
    return appt


def cancel_appointment(db: Session, appointment_id: int, actor_id=None) -> None:
    def work():
        appt = db.query(models.Appointment).filter(
            models.Appointment.appointment_id == appointment_id
        ).with_for_update().one_or_none()
        if not appt:
            raise errors.NotFoundError(f"Appointment {appointment_id} not found", appointment_id=appointment_id)
        if appt.status == "cancelled":
            return False
        _check_transition(appt.status, "cancelled")
        appt.status = "cancelled"
        crud.record_audit(db, "appointment.cancelled", "appointment", appt.appointment_id, user_id=actor_id)
        return True

    if run_in_transaction(db, work, f"cancel appointment {appointment_id}", "appointment", errors.SchedulerBusyError):
        logger.info("Cancelled appointment #%d", appointment_id)


def get_appointment(db: Session, appointment_id: int) -> models.Appointment:
    appt = db.get(models.Appointment, appointment_id)
    if not appt:
        raise errors.NotFoundError(f"Appointment {appointment_id} not found", appointment_id=appointment_id)
    return appt


def list_doctor_appointments(db: Session, doctor_id: int, from_ts, to_ts, include_cancelled=False):
    """Calendar of a doctor: appointments intersecting [from_ts, to_ts), earliest first."""
    from_ts = utils.to_utc_naive(from_ts)
    to_ts = utils.to_utc_naive(to_ts)
    if to_ts <= from_ts:
        raise errors.ValidationError("to_ts must be after from_ts")
    _require(db, models.Doctor, doctor_id, "Doctor")
    query = db.query(models.Appointment).filter(
        models.Appointment.doctor_id == doctor_id,
        models.Appointment.start_time < to_ts,
        models.Appointment.end_time > from_ts,
    )
    if not include_cancelled:
        query = query.filter(models.Appointment.status != "cancelled")
    return query.order_by(models.Appointment.start_time, models.Appointment.appointment_id).all()


def list_patient_appointments(db: Session, patient_id: int):
    _require(db, models.Patient, patient_id, "Patient")
    return db.query(models.Appointment).filter(
        models.Appointment.patient_id == patient_id
    ).order_by(models.Appointment.start_time).all()
