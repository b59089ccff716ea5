from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from database import get_db
import schemas, crud

router = APIRouter(prefix= '/prescriptions', tags=['Prescriptions'])

@router.post("/medicines", response_model= schemas.MedicineOutput, status_code=201)
def create_medicine(medicine: schemas.MedicineInput, db: Session = Depends(get_db)):
    return crud.create_medicine(db, medicine)

@router.get("/medicines/{id}", response_model= schemas.MedicineOutput)
def get_medicine(id: int, db: Session = Depends(get_db)):
    return crud.get_medicine(db, id)

@router.patch("/medicines/{id}", response_model= schemas.MedicineOutput)
def update_medicine(id: int, medicine: schemas.UpdateMedicine, db: Session = Depends(get_db)):
    return crud.update_medicine(db, id, medicine)

@router.delete("/medicines/{id}")
def delete_medicine(id: int, db: Session = Depends(get_db)):
    crud.delete_medicine(db, id)
    return {"Message": "Deleted successfully"}

@router.post("/", response_model= schemas.PrescriptionOutput, status_code=201)
def create_prescription(prescription: schemas.PrescriptionInput, db: Session = Depends(get_db)):
    return crud.create_prescription(db, prescription)

@router.get("/{id}", response_model= schemas.PrescriptionOutput)
def get_prescription(id: int, db: Session = Depends(get_db)):
    return crud.get_prescription(db, id)

@router.delete("/{id}")
def delete_prescription(id: int, db: Session = Depends(get_db)):
    crud.delete_prescription(db, id)
    return {"Message": "Deleted successfully"}
