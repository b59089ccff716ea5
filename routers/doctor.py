from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from database import get_db
import schemas, crud, scheduler
from typing import List
from datetime import datetime

router = APIRouter(prefix= '/doctors',tags=['Doctors'])

@router.post("/specialties", response_model= schemas.SpecialtyOutput, status_code=201)
def create_specialty(specialty: schemas.SpecialtyInput, db: Session = Depends(get_db)):
    return crud.create_specialty(db, specialty)

@router.get("/specialties", response_model= List[schemas.SpecialtyOutput])
def get_specialties(db: Session = Depends(get_db)):
    return crud.list_specialties(db)

@router.post("/", response_model= schemas.DoctorOutput, status_code=201)
def create_doctor(doctor: schemas.DoctorInput, db: Session = Depends(get_db)):
    return crud.create_doctor(db, doctor)

@router.get("/", response_model= List[schemas.DoctorOutput])
def get_doctors(active_only: bool = Query(True), db: Session = Depends(get_db)):
    return crud.list_doctors(db, active_only)

@router.get("/{id}", response_model= schemas.DoctorOutput)
def get_doctor(id : int, db: Session = Depends(get_db)):
    return crud.get_doctor(db, id)

@router.patch("/{id}", response_model= schemas.DoctorOutput)
def update_doctor(id: int, doctor: schemas.UpdateDoctor, db: Session = Depends(get_db)):
    return crud.update_doctor(db, id, doctor)

@router.post("/{id}/specialties/{specialty_id}", response_model= schemas.DoctorOutput)
def add_specialty(id: int, specialty_id: int, db: Session = Depends(get_db)):
    return crud.add_doctor_specialty(db, id, specialty_id)

@router.delete("/{id}")
def delete_doctor(id: int, db: Session = Depends(get_db)):
    crud.delete_doctor(db, id)
    return {"Message": "Deleted successfully"}

@router.get("/{id}/appointments", response_model= List[schemas.AppointmentOutput])
def get_calendar(id: int, from_ts: datetime = Query(...), to_ts: datetime = Query(...), include_cancelled: bool = Query(False), db: Session = Depends(get_db)):
    return scheduler.list_doctor_appointments(db, id, from_ts, to_ts, include_cancelled)
