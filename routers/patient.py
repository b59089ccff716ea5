from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from database import get_db
import schemas, crud, scheduler
from typing import List

router = APIRouter(prefix= '/patients', tags=['Patients'])

@router.post("/", response_model= schemas.PatientOutput, status_code=201)
def create_patient(patient : schemas.PatientInput, db: Session = Depends(get_db)):
    return crud.create_patient(db, patient)

@router.get("/{id}", response_model= schemas.PatientOutput)
def get_patient(id: int, db: Session = Depends(get_db)):
    return crud.get_patient(db, id)

@router.patch("/{id}", response_model=schemas.PatientOutput)
def update_patient(id: int, patient: schemas.UpdatePatient, db: Session = Depends(get_db)):
    return crud.update_patient(db, id, patient)

@router.delete("/{id}")
def delete_patient(id: int, db: Session = Depends(get_db)):
    crud.delete_patient(db, id)
    return {"Message": "Deleted successfully"}

@router.get("/{id}/appointments", response_model= List[schemas.AppointmentOutput])
def get_patient_appointments(id: int, db: Session = Depends(get_db)):
    return scheduler.list_patient_appointments(db, id)

@router.get("/{id}/policies", response_model= List[schemas.PolicyOutput])
def get_patient_policies(id: int, db: Session = Depends(get_db)):
    return crud.list_patient_policies(db, id)
