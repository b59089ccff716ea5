from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from database import get_db
import schemas, crud

router = APIRouter(prefix= '/insurance', tags=['Insurance'])

@router.post("/providers", response_model= schemas.ProviderOutput, status_code=201)
def create_provider(provider: schemas.ProviderInput, db: Session = Depends(get_db)):
    return crud.create_provider(db, provider)

@router.post("/policies", response_model= schemas.PolicyOutput, status_code=201)
def create_policy(policy: schemas.PolicyInput, db: Session = Depends(get_db)):
    return crud.create_policy(db, policy)

@router.get("/providers/{id}", response_model= schemas.ProviderOutput)
def get_provider(id: int, db: Session = Depends(get_db)):
    return crud.get_provider(db, id)

@router.patch("/providers/{id}", response_model= schemas.ProviderOutput)
def update_provider(id: int, provider: schemas.UpdateProvider, db: Session = Depends(get_db)):
    return crud.update_provider(db, id, provider)

@router.delete("/providers/{id}")
def delete_provider(id: int, db: Session = Depends(get_db)):
    crud.delete_provider(db, id)
    return {"Message": "Deleted successfully"}

@router.get("/policies/{id}", response_model= schemas.PolicyOutput)
def get_policy(id: int, db: Session = Depends(get_db)):
    return crud.get_policy(db, id)

@router.delete("/policies/{id}")
def delete_policy(id: int, db: Session = Depends(get_db)):
    crud.delete_policy(db, id)
    return {"Message": "Deleted successfully"}
