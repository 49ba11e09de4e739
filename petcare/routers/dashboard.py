from datetime import date

from fastapi import APIRouter, Depends

from petcare.core.security import Principal, require_staff
from petcare.routers.appointments import get_scheduling_service
from petcare.services.scheduling import SchedulingService


router = APIRouter(prefix="/dashboard", tags=["dashboard"])


# =========================
# CARGA POR FUNCIONÁRIO
# contagem de agendamentos ativos no dia contra DAILY_LOAD_CAP;
# é métrica de carga, a reserva usa a checagem exata de horário
# =========================
@router.get("/staff-load")
def staff_load(
    day: date,
    service: SchedulingService = Depends(get_scheduling_service),
    staff: Principal = Depends(require_staff),
):
    return {"day": day.isoformat(), "staff": service.staff_load(day)}
