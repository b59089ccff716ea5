from pydantic import BaseModel, EmailStr, Field
from enum import Enum
from typing import Optional, Literal, List
from datetime import date, datetime
from decimal import Decimal

class AppointmentStatus(str, Enum):
    scheduled = "scheduled"
    checked_in = "checked_in"
    completed = "completed"
    cancelled = "cancelled"
    no_show = "no_show"

# users

class User(BaseModel):
    username : str = Field(min_length=1, max_length=50)
    email : EmailStr
    password :str = Field(min_length=1)
    first_name: str
    last_name: str
    role : Literal['admin', 'doctor', 'nurse', 'receptionist'] = 'receptionist'

class UpdateUser(BaseModel):
    username : Optional[str] = Field(default=None, min_length=1, max_length=50)
    email : Optional[EmailStr] = None
    password : Optional[str] = Field(default=None, min_length=1)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role : Optional[Literal['admin', 'doctor', 'nurse', 'receptionist']] = None

class UserOutput(BaseModel):
    user_id :int
    username: str
    email : EmailStr
    first_name: str
    last_name: str
    role : str
    created_at : Optional[datetime] = None

# doctors

class SpecialtyInput(BaseModel):
    name: str
    description: Optional[str] = None

class SpecialtyOutput(BaseModel):
    specialty_id: int
    name: str
    description: Optional[str] = None

class DoctorInput(BaseModel):
    user_id: int
    license_number: str
    bio: Optional[str] = None
    years_experience: int = Field(default=0, ge=0)
    specialty_ids: List[int] = []

class UpdateDoctor(BaseModel):
    bio: Optional[str] = None
    years_experience: Optional[int] = Field(default=None, ge=0)
    active: Optional[bool] = None

class DoctorOutput(BaseModel):
    doctor_id: int
    user_id: int
    license_number: str
    bio: Optional[str] = None
    years_experience: int
    active: bool
    specialties: List[SpecialtyOutput] = []

# patients

class PatientInput(BaseModel):
    national_id: Optional[str] = None
    first_name: str
    last_name: str
    date_of_birth: Optional[date] = None
    gender: Literal['male', 'female', 'other'] = 'other'
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    address: Optional[str] = None

class UpdatePatient(BaseModel):
    national_id: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[Literal['male', 'female', 'other']] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    address: Optional[str] = None

class PatientOutput(BaseModel):
    patient_id: int
    national_id: Optional[str] = None
    first_name: str
    last_name: str
    date_of_birth: Optional[date] = None
    gender: str
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    created_at: Optional[datetime] = None

# rooms

class RoomInput(BaseModel):
    room_number: str
    floor: int = 1
    notes: Optional[str] = None

class UpdateRoom(BaseModel):
    room_number: Optional[str] = None
    floor: Optional[int] = None
    notes: Optional[str] = None

class RoomOutput(BaseModel):
    room_id: int
    room_number: str
    floor: int
    notes: Optional[str] = None

# appointments

class AppointmentInput(BaseModel):
    patient_id: int
    doctor_id: int
    room_id: Optional[int] = None
    start_time: datetime
    end_time: datetime
    reason: Optional[str] = Field(default=None, max_length=500)

class AppointmentUpdate(BaseModel):
    doctor_id: Optional[int] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    status: Optional[AppointmentStatus] = None
    room_id: Optional[int] = None

class AppointmentOutput(BaseModel):
    appointment_id :int
    patient_id: int
    doctor_id: int
    room_id: Optional[int] = None
    start_time: datetime
    end_time: datetime
    status : str
    reason: Optional[str] = None
    created_at : Optional[datetime] = None

# prescriptions

class MedicineInput(BaseModel):
    name: str
    brand: Optional[str] = None
    unit: str = "tablet"
    unique_code: Optional[str] = None

class UpdateMedicine(BaseModel):
    name: Optional[str] = None
    brand: Optional[str] = None
    unit: Optional[str] = None
    unique_code: Optional[str] = None

class MedicineOutput(BaseModel):
    medicine_id: int
    name: str
    brand: Optional[str] = None
    unit: Optional[str] = None
    unique_code: Optional[str] = None

class PrescriptionItemInput(BaseModel):
    medicine_id: int
    dosage: str
    duration_days: int = Field(default=0, ge=0)

class PrescriptionInput(BaseModel):
    appointment_id: int
    notes: Optional[str] = None
    items: List[PrescriptionItemInput] = []

class PrescriptionItemOutput(BaseModel):
    medicine_id: int
    line_no: int
    dosage: str
    duration_days: int

class PrescriptionOutput(BaseModel):
    prescription_id: int
    appointment_id: int
    prescribed_at: Optional[datetime] = None
    notes: Optional[str] = None
    items: List[PrescriptionItemOutput] = []

# billing

class InvoiceInput(BaseModel):
    appointment_id: int
    subtotal: Decimal = Field(default=Decimal("0.00"), ge=0, max_digits=10, decimal_places=2)
    tax: Decimal = Field(default=Decimal("0.00"), ge=0, max_digits=10, decimal_places=2)
    total: Decimal = Field(default=Decimal("0.00"), ge=0, max_digits=10, decimal_places=2)

class UpdateInvoice(BaseModel):
    status: Literal['unpaid', 'paid', 'partially_paid', 'cancelled']

class PaymentInput(BaseModel):
    amount: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    method: Literal['cash', 'card', 'insurance', 'mobile_money'] = 'cash'
    reference: Optional[str] = None

class PaymentOutput(BaseModel):
    payment_id: int
    invoice_id: int
    paid_at: Optional[datetime] = None
    amount: Decimal
    method: str
    reference: Optional[str] = None

class InvoiceOutput(BaseModel):
    invoice_id: int
    appointment_id: int
    issued_at: Optional[datetime] = None
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    status: str
    payments: List[PaymentOutput] = []

# insurance

class ProviderInput(BaseModel):
    name: str
    contact_phone: Optional[str] = None

class UpdateProvider(BaseModel):
    name: Optional[str] = None
    contact_phone: Optional[str] = None

class ProviderOutput(BaseModel):
    provider_id: int
    name: str
    contact_phone: Optional[str] = None

class PolicyInput(BaseModel):
    patient_id: int
    provider_id: int
    policy_number: str
    valid_from: Optional[date] = None
    valid_to: Optional[date] = None

class PolicyOutput(BaseModel):
    policy_id: int
    patient_id: int
    provider_id: int
    policy_number: str
    valid_from: Optional[date] = None
    valid_to: Optional[date] = None

# audit

class AuditLogOutput(BaseModel):
    log_id: int
    user_id: Optional[int] = None
    action: str
    object_type: Optional[str] = None
    object_id: Optional[str] = None
    details: Optional[str] = None
    created_at: Optional[datetime] = None
