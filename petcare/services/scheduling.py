"""Serviço de agendamento: única porta de entrada usada pelos routers."""

import logging
from datetime import date
from typing import Any, Callable, Dict, List, Optional

from sqlmodel import Session

from petcare.core.config import settings
from petcare.core.errors import (
    NotFound,
    ScheduleConflict,
    SchedulingError,
    StaffUnavailable,
)
from petcare.core.security import Principal
from petcare.core.time_window import ensure_ordered, iter_slots, overlaps, utcnow
from petcare.domain.lifecycle import Decision, LifecycleEvent, decide
from petcare.models.appointment import (
    Appointment,
    AppointmentCreate,
    AppointmentRead,
    AppointmentUpdate,
    ServiceLineRead,
)
from petcare.services.availability import (
    AvailabilityResult,
    UnavailableReason,
    check_availability,
    get_schedule_for_day,
    is_clinic_closed,
)
from petcare.services.ledger import AppointmentLedger
from petcare.services.lookups import (
    PetLookup,
    ServiceCatalog,
    SqlPetLookup,
    SqlServiceCatalog,
    SqlStaffLookup,
    StaffLookup,
)
from petcare.services.notifications import LoggingNotifier, NotificationDispatcher, Notifier

logger = logging.getLogger(__name__)

UNAVAILABLE_DETAIL = {
    UnavailableReason.STAFF_INACTIVE: "Funcionário afastado",
    UnavailableReason.CLINIC_CLOSED: "Clínica fechada nesse dia",
    UnavailableReason.NO_SCHEDULE: "Funcionário sem escala nesse dia",
    UnavailableReason.SCHEDULE_UNAVAILABLE: "Escala do funcionário bloqueada nesse dia",
    UnavailableReason.OUTSIDE_WORKING_HOURS: "Fora do horário de trabalho",
    UnavailableReason.DURING_BREAK: "Horário indisponível (intervalo)",
}


class SchedulingService:
    def __init__(
        self,
        session: Session,
        staff: Optional[StaffLookup] = None,
        pets: Optional[PetLookup] = None,
        catalog: Optional[ServiceCatalog] = None,
        notifier: Optional[Notifier] = None,
        schedule_task: Optional[Callable[..., Any]] = None,
    ):
        self.session = session
        self.staff = staff or SqlStaffLookup(session)
        self.pets = pets or SqlPetLookup(session)
        self.catalog = catalog or SqlServiceCatalog(session)
        self.ledger = AppointmentLedger(session, self.catalog)
        self.dispatcher = NotificationDispatcher(notifier or LoggingNotifier(), schedule_task)

    # =========================
    # RESERVA
    # =========================

    def book_appointment(self, request: AppointmentCreate, caller: Optional[Principal] = None) -> Appointment:
        # ordem dos horários antes de qualquer consulta
        ensure_ordered(request.start_time, request.end_time)

        pet = self.pets.get_pet_by_id(request.pet_id)
        self._assert_pet_visible(pet.owner_id, caller, "Pet", request.pet_id)

        self.staff.get_staff_by_id(request.staff_id)

        for item in request.services:
            self.catalog.get_service_by_id(item.service_id)

        self._ensure_available(
            request.staff_id, request.appointment_date, request.start_time, request.end_time
        )

        return self.ledger.create_appointment(request)

    def update_appointment(
        self,
        appointment_id: int,
        patch: AppointmentUpdate,
        caller: Optional[Principal] = None,
    ) -> Appointment:
        appt = self.get_appointment(appointment_id, caller)

        if patch.staff_id is not None and patch.staff_id != appt.staff_id:
            self.staff.get_staff_by_id(patch.staff_id)

        staff_id = patch.staff_id if patch.staff_id is not None else appt.staff_id
        day = patch.appointment_date if patch.appointment_date is not None else appt.appointment_date
        start_time = patch.start_time if patch.start_time is not None else appt.start_time
        end_time = patch.end_time if patch.end_time is not None else appt.end_time

        moved = (staff_id, day, start_time, end_time) != (
            appt.staff_id, appt.appointment_date, appt.start_time, appt.end_time
        )
        if moved:
            ensure_ordered(start_time, end_time)
            self._ensure_available(staff_id, day, start_time, end_time, exclude_id=appt.id)

        return self.ledger.update_appointment(appointment_id, patch)

    def delete_appointment(self, appointment_id: int, caller: Optional[Principal] = None) -> None:
        self.get_appointment(appointment_id, caller)
        self.ledger.delete_appointment(appointment_id)

    def _ensure_available(
        self,
        staff_id: int,
        day: date,
        start_time: str,
        end_time: str,
        exclude_id: Optional[int] = None,
    ) -> None:
        result = check_availability(self.session, staff_id, day, start_time, end_time, exclude_id)
        if result.available:
            return

        if result.reason == UnavailableReason.ALREADY_BOOKED:
            conflict = result.conflict
            logger.warning(
                "⚠️ Reserva recusada: staff=%s %s %s-%s conflita com agendamento %s",
                staff_id, day, start_time, end_time, conflict.id,
            )
            raise ScheduleConflict(conflict.start_time, conflict.end_time, conflict.id)

        logger.info("Reserva recusada: staff=%s %s %s-%s (%s)", staff_id, day, start_time, end_time, result.reason.value)
        raise StaffUnavailable(UNAVAILABLE_DETAIL[result.reason], result.reason.value)

    # =========================
    # CICLO DE VIDA
    # =========================

    def confirm(self, appointment_id: int) -> Appointment:
        return self._transition(appointment_id, LifecycleEvent.CONFIRM)

    def start(self, appointment_id: int) -> Appointment:
        return self._transition(appointment_id, LifecycleEvent.START)

    def complete(self, appointment_id: int, actual_cost: Optional[float] = None) -> Appointment:
        fields: Dict[str, Any] = {}
        if actual_cost is not None:
            if actual_cost < 0:
                raise SchedulingError("actual_cost não pode ser negativo")
            fields["actual_cost"] = actual_cost
        return self._transition(appointment_id, LifecycleEvent.COMPLETE, **fields)

    def cancel(
        self,
        appointment_id: int,
        reason: Optional[str] = None,
        caller: Optional[Principal] = None,
    ) -> Appointment:
        return self._transition(
            appointment_id,
            LifecycleEvent.CANCEL,
            caller=caller,
            cancellation_reason=reason,
            cancelled_at=utcnow(),
        )

    def _transition(
        self,
        appointment_id: int,
        event: LifecycleEvent,
        caller: Optional[Principal] = None,
        **fields,
    ) -> Appointment:
        appt = self.get_appointment(appointment_id, caller)
        decision = decide(appt.status, event)
        appt = self.ledger.apply_transition(appointment_id, decision, **fields)

        # status já gravado; daqui pra frente nada falha o chamador
        for kind in decision.effects:
            self._notify_owner(appt, decision, kind)

        return appt

    def _notify_owner(self, appt: Appointment, decision: Decision, kind) -> None:
        try:
            pet = self.pets.get_pet_by_id(appt.pet_id)
            owner = self.pets.get_owner_by_id(pet.owner_id)

            payload = {
                "appointment_id": appt.id,
                "pet_name": pet.name,
                "date": appt.appointment_date.isoformat(),
                "start_time": appt.start_time,
                "end_time": appt.end_time,
                "status": decision.target.value,
            }
            if appt.cancellation_reason:
                payload["reason"] = appt.cancellation_reason
            if appt.actual_cost is not None:
                payload["actual_cost"] = appt.actual_cost
        except NotFound as e:
            logger.warning("⚠️ Sem destinatário para %s do agendamento %s: %s", kind.value, appt.id, e.detail)
            return
        except Exception as e:
            logger.error("❌ Falha ao montar %s do agendamento %s: %s", kind.value, appt.id, e)
            return

        self.dispatcher.dispatch(owner.email, kind, payload)

    # =========================
    # CONSULTAS
    # =========================

    def get_appointment(self, appointment_id: int, caller: Optional[Principal] = None) -> Appointment:
        appt = self.ledger.get_appointment(appointment_id)
        if caller is not None and caller.is_pet_owner:
            pet = self.pets.get_pet_by_id(appt.pet_id)
            self._assert_pet_visible(pet.owner_id, caller, "Agendamento", appointment_id)
        return appt

    def list_appointments(
        self,
        caller: Optional[Principal] = None,
        status: Optional[str] = None,
        pet_id: Optional[int] = None,
        staff_id: Optional[int] = None,
        day: Optional[date] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> List[Appointment]:
        appts = self.ledger.list_appointments(
            status=status,
            pet_id=pet_id,
            staff_id=staff_id,
            day=day,
            date_from=date_from,
            date_to=date_to,
        )
        if caller is None or not caller.is_pet_owner:
            return appts

        owners: Dict[int, int] = {}
        visible = []
        for appt in appts:
            if appt.pet_id not in owners:
                owners[appt.pet_id] = self.pets.get_pet_by_id(appt.pet_id).owner_id
            if owners[appt.pet_id] == caller.owner_id:
                visible.append(appt)
        return visible

    def to_read(self, appt: Appointment) -> AppointmentRead:
        lines = [ServiceLineRead(**line.model_dump()) for line in self.ledger.lines_for(appt.id)]
        return AppointmentRead(**appt.model_dump(), services=lines)

    def check_availability(self, staff_id: int, day: date, start_time: str, end_time: str) -> AvailabilityResult:
        self.staff.get_staff_by_id(staff_id)
        return check_availability(self.session, staff_id, day, start_time, end_time)

    def get_available_slots(self, staff_id: int, day: date, slot_minutes: Optional[int] = None) -> Dict[str, Any]:
        """
        Grade do dia em fatias fixas, marcando livre/ocupado.

        Só para exibição: a decisão de reserva é sempre do check_availability.
        """
        staff = self.staff.get_staff_by_id(staff_id)
        step = slot_minutes or settings.slot_step_minutes

        schedule = get_schedule_for_day(self.session, staff_id, day)
        closed = (
            not staff.is_available
            or schedule is None
            or not schedule.is_available
            or is_clinic_closed(self.session, day)
        )
        if closed:
            return {
                "staff_id": staff_id,
                "day": day.isoformat(),
                "is_closed": True,
                "slot_minutes": step,
                "slots": [],
            }

        booked = self.ledger.active_for_staff_day(staff_id, day)

        slots = []
        for slot_start, slot_end in iter_slots(schedule.start_time, schedule.end_time, step):
            in_break = schedule.overlaps_break(slot_start, slot_end)
            taken = any(overlaps(slot_start, slot_end, a.start_time, a.end_time) for a in booked)
            slots.append({
                "start": slot_start,
                "end": slot_end,
                "booked": taken,
                "in_break": in_break,
                "free": not taken and not in_break,
            })

        break_info = None
        if schedule.has_break:
            break_info = {"start": schedule.break_start, "end": schedule.break_end}

        return {
            "staff_id": staff_id,
            "day": day.isoformat(),
            "is_closed": False,
            "slot_minutes": step,
            "working_hours": {"start": schedule.start_time, "end": schedule.end_time},
            "break": break_info,
            "slots": slots,
        }

    def staff_load(self, day: date) -> List[Dict[str, Any]]:
        """Carga do dia por funcionário. Métrica de dashboard, não disponibilidade."""
        counts = self.ledger.count_by_staff(day)
        cap = settings.daily_load_cap

        return [
            {
                "staff_id": s.id,
                "full_name": s.full_name,
                "role": s.role,
                "active_appointments": counts.get(s.id, 0),
                "daily_cap": cap,
                "under_cap": counts.get(s.id, 0) < cap,
            }
            for s in self.staff.list_staff()
        ]

    # =========================
    # AUXILIARES
    # =========================

    @staticmethod
    def _assert_pet_visible(owner_id: int, caller: Optional[Principal], entity: str, entity_id: int) -> None:
        # 404 e não 403: tutor não descobre que o pet de outro existe
        if caller is not None and caller.is_pet_owner and owner_id != caller.owner_id:
            raise NotFound(entity, entity_id)
