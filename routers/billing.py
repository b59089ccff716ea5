from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from database import get_db
import schemas, crud

router = APIRouter(prefix= '/invoices', tags=['Billing'])

@router.post("/", response_model= schemas.InvoiceOutput, status_code=201)
def create_invoice(invoice: schemas.InvoiceInput, db: Session = Depends(get_db)):
    return crud.create_invoice(db, invoice)

@router.get("/{id}", response_model= schemas.InvoiceOutput)
def get_invoice(id: int, db: Session = Depends(get_db)):
    return crud.get_invoice(db, id)

@router.patch("/{id}", response_model= schemas.InvoiceOutput)
def update_invoice(id: int, payload: schemas.UpdateInvoice, db: Session = Depends(get_db)):
    return crud.update_invoice_status(db, id, payload.status)

@router.post("/{id}/payments", response_model= schemas.PaymentOutput, status_code=201)
def post_payment(id: int, payment: schemas.PaymentInput, db: Session = Depends(get_db)):
    return crud.add_payment(db, id, payment)

@router.delete("/{id}")
def delete_invoice(id: int, db: Session = Depends(get_db)):
    crud.delete_invoice(db, id)
    return {"Message": "Deleted successfully"}

@router.get("/payments/{payment_id}", response_model= schemas.PaymentOutput)
def get_payment(payment_id: int, db: Session = Depends(get_db)):
    return crud.get_payment(db, payment_id)

@router.delete("/payments/{payment_id}")
def delete_payment(payment_id: int, db: Session = Depends(get_db)):
    crud.delete_payment(db, payment_id)
    return {"Message": "Deleted successfully"}
