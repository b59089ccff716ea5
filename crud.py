"""
Keyed create/read/update/delete for every entity besides appointments.

Referenced rows are looked up before writing so a missing reference surfaces
as ``NotFoundError``; anything the database still rejects is translated by
``errors.from_integrity_error``. Writes run through
``database.run_in_transaction`` and share its lock handling with the
scheduler.
"""
from sqlalchemy.orm import Session

import models, schemas, utils, errors
from database import run_in_transaction
from logger import logger


def _get_or_404(db: Session, model, key, label):
    obj = db.get(model, key)
    if obj is None:
        raise errors.NotFoundError(f"{label} {key} not found")
    return obj


def _insert(db: Session, build, description: str, subject: str):
    def work():
        new = build()
        db.add(new)
        db.flush()
        return new

    new = run_in_transaction(db, work, description, subject)
    db.refresh(new)
    return new


def _patch(db: Session, model, key, label, changes: dict, subject: str, required=()):
    for field in required:
        if field in changes and changes[field] is None:
            raise errors.ValidationError(f"{field} cannot be null")

    def work():
        current = _get_or_404(db, model, key, label)
        for field, value in changes.items():
            setattr(current, field, value)
        db.flush()
        return current

    current = run_in_transaction(db, work, f"update {label.lower()} {key}", subject)
    db.refresh(current)
    return current


def _delete(db: Session, model, key, label):
    def work():
        db.delete(_get_or_404(db, model, key, label))

    run_in_transaction(db, work, f"delete {label.lower()} {key}", f"{label} {key}")


# users

def create_user(db: Session, user: schemas.User) -> models.User:
    data = user.model_dump(exclude={"password"})
    password_hash = utils.hash(user.password)
    new = _insert(db, lambda: models.User(password_hash=password_hash, **data),
                  "create user", "User with that username or email")
    logger.info("Created user #%d (%s)", new.user_id, new.role)
    return new

def get_user(db: Session, user_id: int) -> models.User:
    return _get_or_404(db, models.User, user_id, "User")

def update_user(db: Session, user_id: int, user: schemas.UpdateUser) -> models.User:
    changes = user.model_dump(exclude_unset=True)
    if changes.get("password") is not None:
        changes["password_hash"] = utils.hash(changes.pop("password"))
    return _patch(db, models.User, user_id, "User", changes, "User with that username or email",
                  required=("username", "email", "password", "first_name", "last_name", "role"))

def delete_user(db: Session, user_id: int):
    def work():
        user = _get_or_404(db, models.User, user_id, "User")
        # same row lock as bookings, the doctor profile goes with the user
        doctor = db.query(models.Doctor).filter(models.Doctor.user_id == user_id).with_for_update().one_or_none()
        if doctor and _has_appointments(db, doctor.doctor_id):
            raise errors.ConflictError(f"User {user_id} is a doctor with existing appointments", doctor_id=doctor.doctor_id)
        db.delete(user)

    run_in_transaction(db, work, f"delete user {user_id}", "User")
    logger.info("Deleted user #%d", user_id)


# doctors and specialties

def create_specialty(db: Session, specialty: schemas.SpecialtyInput) -> models.Specialty:
    return _insert(db, lambda: models.Specialty(**specialty.model_dump()), "create specialty", "Specialty")

def list_specialties(db: Session):
    return db.query(models.Specialty).order_by(models.Specialty.name).all()

def _load_specialties(db: Session, specialty_ids):
    return [_get_or_404(db, models.Specialty, sid, "Specialty") for sid in dict.fromkeys(specialty_ids)]

def create_doctor(db: Session, doctor: schemas.DoctorInput) -> models.Doctor:
    def build():
        _get_or_404(db, models.User, doctor.user_id, "User")
        new = models.Doctor(**doctor.model_dump(exclude={"specialty_ids"}))
        new.specialties = _load_specialties(db, doctor.specialty_ids)
        return new

    new = _insert(db, build, "create doctor", "Doctor profile for that user or license number")
    logger.info("Created doctor #%d", new.doctor_id)
    return new

def get_doctor(db: Session, doctor_id: int) -> models.Doctor:
    return _get_or_404(db, models.Doctor, doctor_id, "Doctor")

def list_doctors(db: Session, active_only: bool = True):
    query = db.query(models.Doctor)
    if active_only:
        query = query.filter(models.Doctor.active == True)
    return query.order_by(models.Doctor.doctor_id).all()

def update_doctor(db: Session, doctor_id: int, doctor: schemas.UpdateDoctor) -> models.Doctor:
    changes = doctor.model_dump(exclude_unset=True)
    return _patch(db, models.Doctor, doctor_id, "Doctor", changes, "Doctor", required=tuple(changes))

def add_doctor_specialty(db: Session, doctor_id: int, specialty_id: int) -> models.Doctor:
    def work():
        doctor = get_doctor(db, doctor_id)
        specialty = _get_or_404(db, models.Specialty, specialty_id, "Specialty")
        if specialty not in doctor.specialties:
            doctor.specialties.append(specialty)
        return doctor

    return run_in_transaction(db, work, f"add specialty {specialty_id} to doctor {doctor_id}", "Doctor specialty")

def _has_appointments(db: Session, doctor_id: int) -> bool:
    return db.query(models.Appointment.appointment_id).filter(models.Appointment.doctor_id == doctor_id).first() is not None

def delete_doctor(db: Session, doctor_id: int):
    def work():
        # same row lock as bookings, so no appointment can slip in between check and delete
        doctor = db.query(models.Doctor).filter(models.Doctor.doctor_id == doctor_id).with_for_update().one_or_none()
        if not doctor:
            raise errors.NotFoundError(f"Doctor {doctor_id} not found")
        if _has_appointments(db, doctor_id):
            raise errors.ConflictError(f"Doctor {doctor_id} has appointments and cannot be deleted", doctor_id=doctor_id)
        db.delete(doctor)

    run_in_transaction(db, work, f"delete doctor {doctor_id}", "Doctor")
    logger.info("Deleted doctor #%d", doctor_id)


# patients

def create_patient(db: Session, patient: schemas.PatientInput) -> models.Patient:
    new = _insert(db, lambda: models.Patient(**patient.model_dump()),
                  "register patient", "Patient with that national id")
    logger.info("Registered patient #%d", new.patient_id)
    return new

def get_patient(db: Session, patient_id: int) -> models.Patient:
    return _get_or_404(db, models.Patient, patient_id, "Patient")

def update_patient(db: Session, patient_id: int, patient: schemas.UpdatePatient) -> models.Patient:
    return _patch(db, models.Patient, patient_id, "Patient", patient.model_dump(exclude_unset=True),
                  "Patient with that national id", required=("first_name", "last_name", "gender"))

def delete_patient(db: Session, patient_id: int):
    """Removes the patient with appointments, prescriptions, invoices, payments and policies."""
    _delete(db, models.Patient, patient_id, "Patient")
    logger.info("Deleted patient #%d and dependent records", patient_id)


# rooms

def create_room(db: Session, room: schemas.RoomInput) -> models.Room:
    return _insert(db, lambda: models.Room(**room.model_dump()), "create room", f"Room {room.room_number}")

def get_room(db: Session, room_id: int) -> models.Room:
    return _get_or_404(db, models.Room, room_id, "Room")

def list_rooms(db: Session):
    return db.query(models.Room).order_by(models.Room.room_number).all()

def update_room(db: Session, room_id: int, room: schemas.UpdateRoom) -> models.Room:
    return _patch(db, models.Room, room_id, "Room", room.model_dump(exclude_unset=True),
                  "Room with that number", required=("room_number", "floor"))

def delete_room(db: Session, room_id: int):
    # appointments keep their slot, only lose the room
    _delete(db, models.Room, room_id, "Room")


# medicines and prescriptions

def create_medicine(db: Session, medicine: schemas.MedicineInput) -> models.Medicine:
    return _insert(db, lambda: models.Medicine(**medicine.model_dump()), "create medicine", "Medicine with that code")

def get_medicine(db: Session, medicine_id: int) -> models.Medicine:
    return _get_or_404(db, models.Medicine, medicine_id, "Medicine")

def update_medicine(db: Session, medicine_id: int, medicine: schemas.UpdateMedicine) -> models.Medicine:
    return _patch(db, models.Medicine, medicine_id, "Medicine", medicine.model_dump(exclude_unset=True),
                  "Medicine with that code", required=("name",))

def delete_medicine(db: Session, medicine_id: int):
    """Rejected with ``ConflictError`` while any prescription lists the medicine."""
    _delete(db, models.Medicine, medicine_id, "Medicine")

def create_prescription(db: Session, prescription: schemas.PrescriptionInput) -> models.Prescription:
    def build():
        _get_or_404(db, models.Appointment, prescription.appointment_id, "Appointment")
        seen = set()
        new = models.Prescription(appointment_id=prescription.appointment_id, notes=prescription.notes)
        for line_no, item in enumerate(prescription.items, start=1):
            _get_or_404(db, models.Medicine, item.medicine_id, "Medicine")
            if item.medicine_id in seen:
                raise errors.ValidationError(f"Medicine {item.medicine_id} listed twice")
            seen.add(item.medicine_id)
            new.items.append(models.PrescriptionItem(line_no=line_no, **item.model_dump()))
        return new

    return _insert(db, build, "create prescription", f"Prescription for appointment {prescription.appointment_id}")

def get_prescription(db: Session, prescription_id: int) -> models.Prescription:
    return _get_or_404(db, models.Prescription, prescription_id, "Prescription")

def delete_prescription(db: Session, prescription_id: int):
    _delete(db, models.Prescription, prescription_id, "Prescription")


# billing

def create_invoice(db: Session, invoice: schemas.InvoiceInput) -> models.Invoice:
    def build():
        _get_or_404(db, models.Appointment, invoice.appointment_id, "Appointment")
        return models.Invoice(**invoice.model_dump())

    return _insert(db, build, "create invoice", f"Invoice for appointment {invoice.appointment_id}")

def get_invoice(db: Session, invoice_id: int) -> models.Invoice:
    return _get_or_404(db, models.Invoice, invoice_id, "Invoice")

def update_invoice_status(db: Session, invoice_id: int, status: str) -> models.Invoice:
    return _patch(db, models.Invoice, invoice_id, "Invoice", {"status": status}, "Invoice")

def delete_invoice(db: Session, invoice_id: int):
    _delete(db, models.Invoice, invoice_id, "Invoice")

def add_payment(db: Session, invoice_id: int, payment: schemas.PaymentInput) -> models.Payment:
    def build():
        get_invoice(db, invoice_id)
        return models.Payment(invoice_id=invoice_id, **payment.model_dump())

    return _insert(db, build, f"record payment on invoice {invoice_id}", "Payment")

def get_payment(db: Session, payment_id: int) -> models.Payment:
    return _get_or_404(db, models.Payment, payment_id, "Payment")

def delete_payment(db: Session, payment_id: int):
    _delete(db, models.Payment, payment_id, "Payment")


# insurance

def create_provider(db: Session, provider: schemas.ProviderInput) -> models.InsuranceProvider:
    return _insert(db, lambda: models.InsuranceProvider(**provider.model_dump()),
                   "create insurance provider", f"Insurance provider {provider.name}")

def get_provider(db: Session, provider_id: int) -> models.InsuranceProvider:
    return _get_or_404(db, models.InsuranceProvider, provider_id, "Insurance provider")

def update_provider(db: Session, provider_id: int, provider: schemas.UpdateProvider) -> models.InsuranceProvider:
    return _patch(db, models.InsuranceProvider, provider_id, "Insurance provider",
                  provider.model_dump(exclude_unset=True), "Insurance provider with that name", required=("name",))

def delete_provider(db: Session, provider_id: int):
    """Rejected with ``ConflictError`` while any patient policy references the provider."""
    _delete(db, models.InsuranceProvider, provider_id, "Insurance provider")

def create_policy(db: Session, policy: schemas.PolicyInput) -> models.PatientPolicy:
    if policy.valid_from and policy.valid_to and policy.valid_to < policy.valid_from:
        raise errors.ValidationError("valid_to must not be before valid_from")

    def build():
        _get_or_404(db, models.Patient, policy.patient_id, "Patient")
        _get_or_404(db, models.InsuranceProvider, policy.provider_id, "Insurance provider")
        return models.PatientPolicy(**policy.model_dump())

    return _insert(db, build, "create policy", f"Policy {policy.policy_number}")

def get_policy(db: Session, policy_id: int) -> models.PatientPolicy:
    return _get_or_404(db, models.PatientPolicy, policy_id, "Policy")

def list_patient_policies(db: Session, patient_id: int):
    get_patient(db, patient_id)
    return db.query(models.PatientPolicy).filter(
        models.PatientPolicy.patient_id == patient_id
    ).order_by(models.PatientPolicy.policy_id).all()

def delete_policy(db: Session, policy_id: int):
    _delete(db, models.PatientPolicy, policy_id, "Policy")


# audit trail

def record_audit(db: Session, action: str, object_type=None, object_id=None, user_id=None, details=None) -> models.AuditLog:
    """Append an audit entry to the caller's transaction; the caller commits."""
    if user_id is not None and db.get(models.User, user_id) is None:
        raise errors.NotFoundError(f"User {user_id} not found")
    entry = models.AuditLog(
        user_id=user_id,
        action=action,
        object_type=object_type,
        object_id=None if object_id is None else str(object_id),
        details=details,
    )
    db.add(entry)
    db.flush()
    return entry

def list_audit_logs(db: Session, object_type=None, object_id=None, limit: int = 100):
    query = db.query(models.AuditLog)
    if object_type:
        query = query.filter(models.AuditLog.object_type == object_type)
    if object_id is not None:
        query = query.filter(models.AuditLog.object_id == str(object_id))
    return query.order_by(models.AuditLog.log_id.desc()).limit(limit).all()
