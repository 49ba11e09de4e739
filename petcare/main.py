from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from petcare.core.errors import SchedulingError
from petcare.database import create_db_and_tables
from petcare.models import appointment, day_off, pet, service, staff, work_schedule  # noqa: F401
from petcare.routers import appointments
from petcare.routers import work_schedules, day_offs
from petcare.routers import dashboard

app = FastAPI(title="PetCare - Agendamentos")
app.include_router(appointments.router)
app.include_router(work_schedules.router)
app.include_router(day_offs.router)
app.include_router(dashboard.router)


@app.exception_handler(SchedulingError)
async def scheduling_error_handler(request: Request, exc: SchedulingError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.on_event("startup")
def on_startup():
    create_db_and_tables()

@app.get("/")
def root():
    return {"message": "API petcare agendamentos funcionando 🚀"}
