from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from database import get_db
import schemas, crud
from typing import List, Optional

router = APIRouter(prefix= '/audit-logs', tags=['Audit'])

@router.get("/", response_model= List[schemas.AuditLogOutput])
def get_audit_logs(object_type: Optional[str] = Query(None), object_id: Optional[str] = Query(None), limit: int = Query(100, ge=1, le=1000), db: Session = Depends(get_db)):
    return crud.list_audit_logs(db, object_type, object_id, limit)
