from datetime import date
from typing import Dict, List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlmodel import Session

from petcare.database import get_session
from petcare.core.security import Principal, get_current_principal, require_staff
from petcare.domain.lifecycle import AppointmentStatus
from petcare.models.appointment import (
    AppointmentCreate,
    AppointmentRead,
    AppointmentUpdate,
    CancelPayload,
    CompletePayload,
)
from petcare.services.notifications import Notifier, get_notifier
from petcare.services.scheduling import SchedulingService


router = APIRouter(prefix="/appointments", tags=["appointments"])


def get_scheduling_service(
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session),
    notifier: Notifier = Depends(get_notifier),
) -> SchedulingService:
    # e-mails saem depois da resposta
    return SchedulingService(session, notifier=notifier, schedule_task=background_tasks.add_task)


# =========================
# CRIAR AGENDAMENTO
# =========================
@router.post("/", status_code=status.HTTP_201_CREATED, response_model=AppointmentRead)
def book_appointment(
    payload: AppointmentCreate,
    service: SchedulingService = Depends(get_scheduling_service),
    caller: Principal = Depends(get_current_principal),
):
    appt = service.book_appointment(payload, caller)
    return service.to_read(appt)


# =========================
# LISTAR AGENDAMENTOS
# - tutor: só os dos próprios pets
# - funcionário: todos (com filtros)
# ?from=2026-02-01&to=2026-02-07 filtra o período
# =========================
@router.get("/", response_model=List[AppointmentRead])
def list_appointments(
    status: Optional[AppointmentStatus] = None,
    pet_id: Optional[int] = None,
    staff_id: Optional[int] = None,
    day: Optional[date] = None,
    date_from: Optional[date] = Query(None, alias="from"),
    date_to: Optional[date] = Query(None, alias="to"),
    service: SchedulingService = Depends(get_scheduling_service),
    caller: Principal = Depends(get_current_principal),
):
    appts = service.list_appointments(
        caller,
        status=status,
        pet_id=pet_id,
        staff_id=staff_id,
        day=day,
        date_from=date_from,
        date_to=date_to,
    )
    return [service.to_read(a) for a in appts]


# =========================
# GRADE DE HORÁRIOS (exibição)
# GET /appointments/slots?staff_id=1&day=2026-02-01&slot_minutes=30
# =========================
@router.get("/slots")
def get_available_slots(
    staff_id: int,
    day: date,
    slot_minutes: Optional[int] = None,
    service: SchedulingService = Depends(get_scheduling_service),
    caller: Principal = Depends(get_current_principal),
) -> Dict:
    return service.get_available_slots(staff_id, day, slot_minutes)


# =========================
# DISPONIBILIDADE (mesma regra da reserva)
# =========================
@router.get("/availability")
def check_availability(
    staff_id: int,
    day: date,
    start_time: str,
    end_time: str,
    service: SchedulingService = Depends(get_scheduling_service),
    caller: Principal = Depends(get_current_principal),
) -> Dict:
    result = service.check_availability(staff_id, day, start_time, end_time)
    conflict = None
    if result.conflict is not None:
        conflict = {"start_time": result.conflict.start_time, "end_time": result.conflict.end_time}

    return {
        "staff_id": staff_id,
        "day": day.isoformat(),
        "start_time": start_time,
        "end_time": end_time,
        "available": result.available,
        "reason": result.reason.value if result.reason else None,
        "conflict": conflict,
    }


@router.get("/{appointment_id}", response_model=AppointmentRead)
def get_appointment(
    appointment_id: int,
    service: SchedulingService = Depends(get_scheduling_service),
    caller: Principal = Depends(get_current_principal),
):
    return service.to_read(service.get_appointment(appointment_id, caller))


@router.patch("/{appointment_id}", response_model=AppointmentRead)
def update_appointment(
    appointment_id: int,
    payload: AppointmentUpdate,
    service: SchedulingService = Depends(get_scheduling_service),
    caller: Principal = Depends(get_current_principal),
):
    return service.to_read(service.update_appointment(appointment_id, payload, caller))


# só PENDING pode ser excluído; depois disso, cancelar
@router.delete("/{appointment_id}")
def delete_appointment(
    appointment_id: int,
    service: SchedulingService = Depends(get_scheduling_service),
    caller: Principal = Depends(get_current_principal),
):
    service.delete_appointment(appointment_id, caller)
    return {"message": "Agendamento removido"}


# =========================
# CICLO DE VIDA (FUNCIONÁRIO)
# =========================
@router.patch("/{appointment_id}/confirm", response_model=AppointmentRead)
def confirm_appointment(
    appointment_id: int,
    service: SchedulingService = Depends(get_scheduling_service),
    staff: Principal = Depends(require_staff),
):
    return service.to_read(service.confirm(appointment_id))


@router.patch("/{appointment_id}/start", response_model=AppointmentRead)
def start_appointment(
    appointment_id: int,
    service: SchedulingService = Depends(get_scheduling_service),
    staff: Principal = Depends(require_staff),
):
    return service.to_read(service.start(appointment_id))


@router.patch("/{appointment_id}/complete", response_model=AppointmentRead)
def complete_appointment(
    appointment_id: int,
    payload: Optional[CompletePayload] = None,
    service: SchedulingService = Depends(get_scheduling_service),
    staff: Principal = Depends(require_staff),
):
    actual_cost = payload.actual_cost if payload else None
    return service.to_read(service.complete(appointment_id, actual_cost))


# =========================
# CANCELAR
# - tutor: só dos próprios pets
# - funcionário: qualquer um
# =========================
@router.patch("/{appointment_id}/cancel", response_model=AppointmentRead)
def cancel_appointment(
    appointment_id: int,
    payload: Optional[CancelPayload] = None,
    service: SchedulingService = Depends(get_scheduling_service),
    caller: Principal = Depends(get_current_principal),
):
    reason = payload.reason if payload else None
    return service.to_read(service.cancel(appointment_id, reason, caller))
