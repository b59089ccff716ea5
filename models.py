from database import Base
from sqlalchemy import Column, Integer, BigInteger, String, Text, ForeignKey, Date, DateTime, Enum, Boolean, Numeric, UniqueConstraint, CheckConstraint, Index, Table
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

USER_ROLES = ("admin", "doctor", "nurse", "receptionist")
GENDERS = ("male", "female", "other")
APPOINTMENT_STATUSES = ("scheduled", "checked_in", "completed", "cancelled", "no_show")
INVOICE_STATUSES = ("unpaid", "paid", "partially_paid", "cancelled")
PAYMENT_METHODS = ("cash", "card", "insurance", "mobile_money")

class User(Base):
    __tablename__ = 'users'
    user_id = Column(Integer, primary_key= True)
    username = Column(String(50), nullable= False, unique= True)
    email = Column(String(255), nullable= False, unique= True)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(100), nullable= False)
    last_name = Column(String(100), nullable= False)
    role = Column(Enum(*USER_ROLES, name="user_role", create_constraint=True), nullable=False, default="receptionist")
    created_at = Column(DateTime, server_default= func.now())

doctor_specialties = Table(
    'doctor_specialties', Base.metadata,
    Column('doctor_id', Integer, ForeignKey('doctors.doctor_id', ondelete='CASCADE'), primary_key=True),
    Column('specialty_id', Integer, ForeignKey('specialties.specialty_id', ondelete='CASCADE'), primary_key=True),
)

class Doctor(Base):
    __tablename__ = 'doctors'
    doctor_id = Column(Integer, primary_key= True)
    user_id = Column(Integer, ForeignKey('users.user_id', ondelete='CASCADE'), nullable=False, unique=True)
    license_number = Column(String(50), nullable= False, unique= True)
    bio = Column(Text)
    years_experience = Column(Integer, nullable=False, default=0)
    active = Column(Boolean, nullable=False, default=True)

    user = relationship("User")
    specialties = relationship("Specialty", secondary=doctor_specialties, order_by="Specialty.name")
    __table_args__ = (CheckConstraint("years_experience >= 0", name="chk_years_experience"),)

class Specialty(Base):
    __tablename__ = 'specialties'
    specialty_id = Column(Integer, primary_key= True)
    name = Column(String(100), nullable= False, unique= True)
    description = Column(Text)

class Patient(Base):
    __tablename__ = 'patients'
    patient_id = Column(Integer, primary_key= True)
    national_id = Column(String(50), unique=True)
    first_name = Column(String(100), nullable= False)
    last_name = Column(String(100), nullable= False)
    date_of_birth = Column(Date)
    gender = Column(Enum(*GENDERS, name="patient_gender", create_constraint=True), nullable=False, default="other")
    phone = Column(String(30))
    email = Column(String(255))
    address = Column(String(500))
    created_at = Column(DateTime, server_default= func.now())

class Room(Base):
    __tablename__ = 'rooms'
    room_id = Column(Integer, primary_key= True)
    room_number = Column(String(20), nullable= False, unique= True)
    floor = Column(Integer, nullable=False, default=1)
    notes = Column(String(255))

class Appointment(Base):
    __tablename__ = "appointments"
    appointment_id = Column(Integer, primary_key= True)
    patient_id = Column(Integer, ForeignKey('patients.patient_id', ondelete= 'CASCADE'), nullable=False)
    doctor_id = Column(Integer, ForeignKey('doctors.doctor_id', ondelete= 'RESTRICT'), nullable=False)
    room_id = Column(Integer, ForeignKey('rooms.room_id', ondelete= 'SET NULL'), nullable=True)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    status = Column(Enum(*APPOINTMENT_STATUSES, name="appointment_status", create_constraint=True), nullable=False, default="scheduled")
    reason = Column(String(500))
    created_at = Column(DateTime, server_default= func.now())

    patient = relationship("Patient")
    doctor = relationship("Doctor")
    room = relationship("Room")
    __table_args__ = (
        CheckConstraint("end_time > start_time", name="chk_time_order"),
        Index("idx_appointments_doctor_time", "doctor_id", "start_time"),
        Index("idx_appointments_patient_time", "patient_id", "start_time"),
    )

class Medicine(Base):
    __tablename__ = 'medicines'
    medicine_id = Column(Integer, primary_key= True)
    name = Column(String(200), nullable= False)
    brand = Column(String(150))
    unit = Column(String(50), default="tablet")
    unique_code = Column(String(100), unique=True)
    created_at = Column(DateTime, server_default= func.now())

class Prescription(Base):
    __tablename__ = 'prescriptions'
    prescription_id = Column(Integer, primary_key= True)
    appointment_id = Column(Integer, ForeignKey('appointments.appointment_id', ondelete='CASCADE'), nullable=False, unique=True)
    prescribed_at = Column(DateTime, server_default= func.now())
    notes = Column(Text)

    items = relationship("PrescriptionItem", order_by="PrescriptionItem.line_no", cascade="all, delete-orphan", passive_deletes=True)

class PrescriptionItem(Base):
    __tablename__ = 'prescription_items'
    prescription_id = Column(Integer, ForeignKey('prescriptions.prescription_id', ondelete='CASCADE'), primary_key=True)
    medicine_id = Column(Integer, ForeignKey('medicines.medicine_id', ondelete='RESTRICT'), primary_key=True)
    line_no = Column(Integer, nullable=False)
    dosage = Column(String(200), nullable=False)
    duration_days = Column(Integer, nullable=False, default=0)

    medicine = relationship("Medicine")
    __table_args__ = (CheckConstraint("duration_days >= 0", name="chk_duration_days"),)

class Invoice(Base):
    __tablename__ = 'invoices'
    invoice_id = Column(Integer, primary_key= True)
    appointment_id = Column(Integer, ForeignKey('appointments.appointment_id', ondelete='CASCADE'), nullable=False, unique=True)
    issued_at = Column(DateTime, server_default= func.now())
    subtotal = Column(Numeric(10, 2), nullable=False, default=0)
    tax = Column(Numeric(10, 2), nullable=False, default=0)
    total = Column(Numeric(10, 2), nullable=False, default=0)
    status = Column(Enum(*INVOICE_STATUSES, name="invoice_status", create_constraint=True), nullable=False, default="unpaid")

    payments = relationship("Payment", order_by="Payment.payment_id", cascade="all, delete-orphan", passive_deletes=True)
    __table_args__ = (CheckConstraint("subtotal >= 0 AND tax >= 0 AND total >= 0", name="chk_invoice_amounts"),)

class Payment(Base):
    __tablename__ = 'payments'
    payment_id = Column(Integer, primary_key= True)
    invoice_id = Column(Integer, ForeignKey('invoices.invoice_id', ondelete='CASCADE'), nullable=False)
    paid_at = Column(DateTime, server_default= func.now())
    amount = Column(Numeric(10, 2), nullable=False)
    method = Column(Enum(*PAYMENT_METHODS, name="payment_method", create_constraint=True), nullable=False, default="cash")
    reference = Column(String(255))
    __table_args__ = (CheckConstraint("amount >= 0", name="chk_payment_amount"),)

class InsuranceProvider(Base):
    __tablename__ = 'insurance_providers'
    provider_id = Column(Integer, primary_key= True)
    name = Column(String(255), nullable= False, unique= True)
    contact_phone = Column(String(50))

class PatientPolicy(Base):
    __tablename__ = 'patient_policies'
    policy_id = Column(Integer, primary_key= True)
    patient_id = Column(Integer, ForeignKey('patients.patient_id', ondelete='CASCADE'), nullable=False)
    provider_id = Column(Integer, ForeignKey('insurance_providers.provider_id', ondelete='RESTRICT'), nullable=False)
    policy_number = Column(String(150), nullable=False)
    valid_from = Column(Date)
    valid_to = Column(Date)

    provider = relationship("InsuranceProvider")
    __table_args__ = (UniqueConstraint("patient_id", "provider_id", "policy_number", name="uq_patient_policy"),)

class AuditLog(Base):
    __tablename__ = 'audit_logs'
    log_id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key= True)
    user_id = Column(Integer, ForeignKey('users.user_id', ondelete='SET NULL'), nullable=True)
    action = Column(String(255), nullable=False)
    object_type = Column(String(100))
    object_id = Column(String(100))
    details = Column(Text)
    created_at = Column(DateTime, server_default= func.now())
