from fastapi import APIRouter
from app.api.v1.doctors.routes import router as doctors_router
from app.api.v1.schedules.routes import router as schedules_router
from app.api.v1.leaves.routes import router as leaves_router
from app.api.v1.appointments.routes import router as appointments_router

api_router = APIRouter()
api_router.include_router(doctors_router, prefix="/doctors", tags=["doctors"])
api_router.include_router(schedules_router, prefix="/schedules", tags=["schedules"])
api_router.include_router(leaves_router, prefix="/leaves", tags=["leaves"])
api_router.include_router(appointments_router, prefix="/appointments", tags=["appointments"])
