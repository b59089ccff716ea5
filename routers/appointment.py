from fastapi import APIRouter, Depends, Header
from sqlalchemy.orm import Session
from database import get_db
import schemas, scheduler
from typing import Optional

router = APIRouter(prefix= "/appointments", tags=['Appointments'])

@router.post("/", response_model= schemas.AppointmentOutput, status_code=201)
def post_appointment(appointment: schemas.AppointmentInput, db: Session = Depends(get_db), actor_id: Optional[int] = Header(None, alias="X-Actor-Id")):
    return scheduler.create_appointment(db, appointment, actor_id=actor_id)

@router.get("/{id}", response_model= schemas.AppointmentOutput)
def get_appointment(id: int, db: Session = Depends(get_db)):
    return scheduler.get_appointment(db, id)

@router.patch("/{id}", response_model= schemas.AppointmentOutput)
def update_appointment(id: int, patch: schemas.AppointmentUpdate, db: Session = Depends(get_db), actor_id: Optional[int] = Header(None, alias="X-Actor-Id")):
    return scheduler.update_appointment(db, id, patch, actor_id=actor_id)

@router.patch("/{id}/cancel", response_model= schemas.AppointmentOutput)
def cancel_appointment(id: int, db: Session = Depends(get_db), actor_id: Optional[int] = Header(None, alias="X-Actor-Id")):
    scheduler.cancel_appointment(db, id, actor_id=actor_id)
    return scheduler.get_appointment(db, id)
