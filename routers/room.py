from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from database import get_db
import schemas, crud
from typing import List

router = APIRouter(prefix= '/rooms', tags=['Rooms'])

@router.post("/", response_model= schemas.RoomOutput, status_code=201)
def create_room(room: schemas.RoomInput, db: Session = Depends(get_db)):
    return crud.create_room(db, room)

@router.get("/", response_model= List[schemas.RoomOutput])
def get_rooms(db: Session = Depends(get_db)):
    return crud.list_rooms(db)

@router.get("/{id}", response_model= schemas.RoomOutput)
def get_room(id: int, db: Session = Depends(get_db)):
    return crud.get_room(db, id)

@router.patch("/{id}", response_model= schemas.RoomOutput)
def update_room(id: int, room: schemas.UpdateRoom, db: Session = Depends(get_db)):
    return crud.update_room(db, id, room)

@router.delete("/{id}")
def delete_room(id: int, db: Session = Depends(get_db)):
    crud.delete_room(db, id)
    return {"Message": "Deleted successfully"}
