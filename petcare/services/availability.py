"""
Pode o funcionário X atender no dia D, de S a E?

Somente leitura. Verificações independentes, todas precisam passar:
1) funcionário ativo e clínica aberta
2) escala do dia (existe, está disponível, cobre a janela, não bate no intervalo)
3) agenda (nenhum agendamento não cancelado sobrepondo [S, E))
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional

from sqlmodel import Session, select

from petcare.core.time_window import ensure_ordered
from petcare.domain.work_schedule import Schedule
from petcare.models.appointment import Appointment
from petcare.models.day_off import DayOff
from petcare.models.staff import Staff
from petcare.models.work_schedule import WorkSchedule
from petcare.services.ledger import find_conflict


class UnavailableReason(str, Enum):
    STAFF_INACTIVE = "staff_inactive"
    CLINIC_CLOSED = "clinic_closed"
    NO_SCHEDULE = "no_schedule"
    SCHEDULE_UNAVAILABLE = "schedule_unavailable"
    OUTSIDE_WORKING_HOURS = "outside_working_hours"
    DURING_BREAK = "during_break"
    ALREADY_BOOKED = "already_booked"


@dataclass(frozen=True)
class AvailabilityResult:
    available: bool
    reason: Optional[UnavailableReason] = None
    conflict: Optional[Appointment] = None

    def __bool__(self) -> bool:
        return self.available


def get_schedule_for_day(session: Session, staff_id: int, day: date) -> Optional[Schedule]:
    row = session.exec(
        select(WorkSchedule).where(
            WorkSchedule.staff_id == staff_id,
            WorkSchedule.work_date == day,
        )
    ).first()
    return Schedule.from_row(row) if row else None


def is_staff_inactive(session: Session, staff_id: int) -> bool:
    # afastado / de férias: cadastro existe, mas não recebe agenda
    staff = session.get(Staff, staff_id)
    return staff is not None and not staff.is_available


def is_clinic_closed(session: Session, day: date) -> bool:
    return session.exec(select(DayOff).where(DayOff.day == day)).first() is not None


def check_availability(
    session: Session,
    staff_id: int,
    day: date,
    start_time: str,
    end_time: str,
    exclude_id: Optional[int] = None,
) -> AvailabilityResult:
    ensure_ordered(start_time, end_time)

    if is_staff_inactive(session, staff_id):
        return AvailabilityResult(False, UnavailableReason.STAFF_INACTIVE)

    if is_clinic_closed(session, day):
        return AvailabilityResult(False, UnavailableReason.CLINIC_CLOSED)

    # sem escala = não trabalha nesse dia
    schedule = get_schedule_for_day(session, staff_id, day)
    if schedule is None:
        return AvailabilityResult(False, UnavailableReason.NO_SCHEDULE)

    if not schedule.is_available:
        return AvailabilityResult(False, UnavailableReason.SCHEDULE_UNAVAILABLE)

    if not schedule.fits_within_schedule(start_time, end_time):
        return AvailabilityResult(False, UnavailableReason.OUTSIDE_WORKING_HOURS)

    if schedule.overlaps_break(start_time, end_time):
        return AvailabilityResult(False, UnavailableReason.DURING_BREAK)

    conflict = find_conflict(session, staff_id, day, start_time, end_time, exclude_id)
    if conflict is not None:
        return AvailabilityResult(False, UnavailableReason.ALREADY_BOOKED, conflict)

    return AvailabilityResult(True)
