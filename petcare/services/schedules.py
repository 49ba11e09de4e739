import logging
from datetime import date, datetime
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from petcare.core.errors import InvalidOperationForStatus, NotFound, ScheduleAlreadyExists
from petcare.core.time_window import utcnow
from petcare.domain.lifecycle import ACTIVE_STATES
from petcare.domain.work_schedule import Schedule
from petcare.models.appointment import Appointment
from petcare.models.work_schedule import WorkSchedule, WorkScheduleCreate, WorkScheduleUpdate
from petcare.services.availability import get_schedule_for_day
from petcare.services.lookups import SqlStaffLookup, StaffLookup

logger = logging.getLogger(__name__)


class WorkScheduleService:
    """Escalas de trabalho: toda regra de horário passa pela Schedule imutável."""

    def __init__(self, session: Session, staff: Optional[StaffLookup] = None):
        self.session = session
        self.staff = staff or SqlStaffLookup(session)

    def _get_row(self, schedule_id: int) -> WorkSchedule:
        row = self.session.get(WorkSchedule, schedule_id)
        if not row:
            raise NotFound("Escala", schedule_id)
        return row

    def _save(self, row: WorkSchedule, schedule: Schedule) -> WorkSchedule:
        for key, value in schedule.to_fields().items():
            setattr(row, key, value)
        row.updated_at = utcnow()

        self.session.add(row)
        self.session.commit()
        self.session.refresh(row)
        return row

    # =========================
    # CRUD
    # =========================

    def create_schedule(self, payload: WorkScheduleCreate) -> WorkSchedule:
        self.staff.get_staff_by_id(payload.staff_id)

        if get_schedule_for_day(self.session, payload.staff_id, payload.work_date):
            raise ScheduleAlreadyExists(
                f"Funcionário {payload.staff_id} já tem escala em {payload.work_date.isoformat()}"
            )

        # valida horários e intervalo
        schedule = Schedule.create(
            staff_id=payload.staff_id,
            work_date=payload.work_date,
            start_time=payload.start_time,
            end_time=payload.end_time,
            break_start=payload.break_start,
            break_end=payload.break_end,
            notes=payload.notes,
        )

        row = WorkSchedule(**schedule.to_fields())
        try:
            self.session.add(row)
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            raise ScheduleAlreadyExists(
                f"Funcionário {payload.staff_id} já tem escala em {payload.work_date.isoformat()}"
            ) from exc

        self.session.refresh(row)
        logger.info("📅 Escala %s criada: staff=%s %s", row.id, row.staff_id, row.work_date)
        return row

    def update_schedule(self, schedule_id: int, payload: WorkScheduleUpdate) -> WorkSchedule:
        row = self._get_row(schedule_id)
        schedule = Schedule.from_row(row)

        if payload.start_time is not None or payload.end_time is not None:
            schedule = schedule.with_times(
                payload.start_time or schedule.start_time,
                payload.end_time or schedule.end_time,
            )

        if payload.break_start is not None or payload.break_end is not None:
            schedule = schedule.with_break(
                payload.break_start or schedule.break_start,
                payload.break_end or schedule.break_end,
            )

        if payload.notes is not None:
            schedule = schedule.with_notes(payload.notes)

        return self._save(row, schedule)

    def assign_break(self, schedule_id: int, break_start: str, break_end: str) -> WorkSchedule:
        row = self._get_row(schedule_id)
        return self._save(row, Schedule.from_row(row).with_break(break_start, break_end))

    def remove_break(self, schedule_id: int) -> WorkSchedule:
        row = self._get_row(schedule_id)
        return self._save(row, Schedule.from_row(row).without_break())

    def mark_available(self, schedule_id: int) -> WorkSchedule:
        row = self._get_row(schedule_id)
        return self._save(row, Schedule.from_row(row).mark_available())

    def mark_unavailable(self, schedule_id: int, reason: Optional[str] = None) -> WorkSchedule:
        row = self._get_row(schedule_id)
        logger.info("🚫 Escala %s bloqueada: %s", schedule_id, reason or "-")
        return self._save(row, Schedule.from_row(row).mark_unavailable(reason))

    def delete_schedule(self, schedule_id: int) -> None:
        row = self._get_row(schedule_id)

        active = self.session.exec(
            select(Appointment).where(
                Appointment.staff_id == row.staff_id,
                Appointment.appointment_date == row.work_date,
                Appointment.status.in_([s.value for s in ACTIVE_STATES]),
            )
        ).first()
        if active:
            raise InvalidOperationForStatus(
                f"Escala tem agendamento ativo ({active.id}, {active.status}); cancele antes de excluir"
            )

        self.session.delete(row)
        self.session.commit()
        logger.info("🗑️ Escala %s excluída", schedule_id)

    # =========================
    # CONSULTAS
    # =========================

    def get_schedule(self, schedule_id: int) -> WorkSchedule:
        return self._get_row(schedule_id)

    def list_schedules(
        self,
        staff_id: Optional[int] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
        only_available: bool = False,
    ) -> List[WorkSchedule]:
        query = select(WorkSchedule)
        if staff_id:
            query = query.where(WorkSchedule.staff_id == staff_id)
        if start:
            query = query.where(WorkSchedule.work_date >= start)
        if end:
            query = query.where(WorkSchedule.work_date <= end)
        if only_available:
            query = query.where(WorkSchedule.is_available == True)  # noqa: E712

        return self.session.exec(query.order_by(WorkSchedule.work_date, WorkSchedule.start_time)).all()

    def is_available_at(self, staff_id: int, when: datetime) -> bool:
        # sem escala = não disponível
        schedule = get_schedule_for_day(self.session, staff_id, when.date())
        if schedule is None:
            return False
        return schedule.check_availability(when)
