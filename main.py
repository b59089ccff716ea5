from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from database import engine, Base
from routers import user, doctor, patient, room, appointment, prescription, billing, insurance, audit
from logger import logger
import models, errors


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    logger.info("Clinic scheduler ready (%s)", engine.dialect.name)
    yield


app = FastAPI(title="Clinic Scheduler", lifespan=lifespan)


@app.exception_handler(errors.StoreError)
def store_error_handler(request: Request, exc: errors.StoreError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


app.include_router(user.router)
app.include_router(doctor.router)
app.include_router(patient.router)
app.include_router(room.router)
app.include_router(appointment.router)
app.include_router(prescription.router)
app.include_router(billing.router)
app.include_router(insurance.router)
app.include_router(audit.router)
