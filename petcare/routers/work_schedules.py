from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from petcare.database import get_session
from petcare.core.security import Principal, get_current_principal, require_staff
from petcare.models.work_schedule import (
    BreakAssignment,
    UnavailablePayload,
    WorkSchedule,
    WorkScheduleCreate,
    WorkScheduleUpdate,
)
from petcare.services.schedules import WorkScheduleService

router = APIRouter(prefix="/work-schedules", tags=["work-schedules"])


def get_schedule_service(session: Session = Depends(get_session)) -> WorkScheduleService:
    return WorkScheduleService(session)


@router.get("/", response_model=List[WorkSchedule])
def list_work_schedules(
    staff_id: Optional[int] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
    only_available: bool = False,
    service: WorkScheduleService = Depends(get_schedule_service),
    caller: Principal = Depends(get_current_principal),
):
    return service.list_schedules(staff_id=staff_id, start=start, end=end, only_available=only_available)


@router.post("/", status_code=status.HTTP_201_CREATED, response_model=WorkSchedule)
def create_work_schedule(
    payload: WorkScheduleCreate,
    service: WorkScheduleService = Depends(get_schedule_service),
    staff: Principal = Depends(require_staff),
):
    # uma escala por funcionário por dia; horários validados pela Schedule
    return service.create_schedule(payload)


# GET /work-schedules/staff/1/available-at?when=2026-02-01T10:00:00
@router.get("/staff/{staff_id}/available-at")
def is_available_at(
    staff_id: int,
    when: datetime,
    service: WorkScheduleService = Depends(get_schedule_service),
    caller: Principal = Depends(get_current_principal),
):
    return {"staff_id": staff_id, "when": when.isoformat(), "available": service.is_available_at(staff_id, when)}


@router.get("/{schedule_id}", response_model=WorkSchedule)
def get_work_schedule(
    schedule_id: int,
    service: WorkScheduleService = Depends(get_schedule_service),
    caller: Principal = Depends(get_current_principal),
):
    return service.get_schedule(schedule_id)


@router.patch("/{schedule_id}", response_model=WorkSchedule)
def update_work_schedule(
    schedule_id: int,
    payload: WorkScheduleUpdate,
    service: WorkScheduleService = Depends(get_schedule_service),
    staff: Principal = Depends(require_staff),
):
    return service.update_schedule(schedule_id, payload)


@router.put("/{schedule_id}/break", response_model=WorkSchedule)
def assign_break(
    schedule_id: int,
    payload: BreakAssignment,
    service: WorkScheduleService = Depends(get_schedule_service),
    staff: Principal = Depends(require_staff),
):
    return service.assign_break(schedule_id, payload.break_start, payload.break_end)


@router.delete("/{schedule_id}/break", response_model=WorkSchedule)
def remove_break(
    schedule_id: int,
    service: WorkScheduleService = Depends(get_schedule_service),
    staff: Principal = Depends(require_staff),
):
    return service.remove_break(schedule_id)


@router.patch("/{schedule_id}/available", response_model=WorkSchedule)
def mark_available(
    schedule_id: int,
    service: WorkScheduleService = Depends(get_schedule_service),
    staff: Principal = Depends(require_staff),
):
    return service.mark_available(schedule_id)


@router.patch("/{schedule_id}/unavailable", response_model=WorkSchedule)
def mark_unavailable(
    schedule_id: int,
    payload: Optional[UnavailablePayload] = None,
    service: WorkScheduleService = Depends(get_schedule_service),
    staff: Principal = Depends(require_staff),
):
    return service.mark_unavailable(schedule_id, payload.reason if payload else None)


@router.delete("/{schedule_id}")
def delete_work_schedule(
    schedule_id: int,
    service: WorkScheduleService = Depends(get_schedule_service),
    staff: Principal = Depends(require_staff),
):
    service.delete_schedule(schedule_id)
    return {"message": "Escala removida"}
