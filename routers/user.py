from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from database import get_db
import schemas, crud

router = APIRouter(prefix= '/users', tags=['Users'])

@router.post("/", response_model= schemas.UserOutput, status_code=201)
def createuser(user: schemas.User, db:Session = Depends(get_db)):
    return crud.create_user(db, user)

@router.get("/{id}", response_model= schemas.UserOutput)
def get_user(id: int, db: Session = Depends(get_db)):
    return crud.get_user(db, id)

@router.delete("/{id}")
def delete_user(id: int, db: Session = Depends(get_db)):
    crud.delete_user(db, id)
    return {"Message" : "Deleted successfully"}

@router.patch("/{id}", response_model= schemas.UserOutput)
def update_user(id: int, user: schemas.UpdateUser, db: Session = Depends(get_db)):
    return crud.update_user(db, id, user)
