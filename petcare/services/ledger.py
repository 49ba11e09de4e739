"""
Livro de agendamentos: fonte da verdade das consultas e dos seus serviços.

Responsável por:
- detectar conflito de horário (intervalo semiaberto) por funcionário/dia
- somar o custo estimado e congelar o preço de cada serviço na reserva
- gravar cabeçalho + itens numa única transação
- aplicar transições de status com compare-and-set no status atual
"""

import logging
from collections import Counter
from datetime import date
from threading import Lock
from typing import Dict, List, Optional

from sqlalchemy import delete, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from petcare.core.errors import (
    InvalidOperationForStatus,
    InvalidStatusTransition,
    NoServicesSpecified,
    NotFound,
    ScheduleConflict,
)
from petcare.core.time_window import ensure_ordered, overlaps, utcnow
from petcare.domain.lifecycle import AppointmentStatus, Decision, is_terminal
from petcare.models.appointment import (
    Appointment,
    AppointmentCreate,
    AppointmentServiceLine,
    AppointmentUpdate,
)
from petcare.services.lookups import ServiceCatalog

logger = logging.getLogger(__name__)

UNIQUE_SLOT_INDEX = "uq_appointment_staff_slot_active"


# =========================
# TRAVA POR FUNCIONÁRIO/DIA
# =========================
# o índice único só pega o mesmo horário de início; sobreposição com
# início diferente depende do check-then-act rodar serializado.
# Número fixo de travas: chaves diferentes podem dividir a mesma.

LOCK_STRIPES = 64

_stripes: List[Lock] = [Lock() for _ in range(LOCK_STRIPES)]


def staff_day_lock(staff_id: int, day: date) -> Lock:
    return _stripes[hash((staff_id, day)) % LOCK_STRIPES]


# =========================
# CONSULTAS DE CONFLITO
# =========================

def active_for_staff_day(session: Session, staff_id: int, day: date) -> List[Appointment]:
    """Agendamentos não cancelados do funcionário no dia, por horário."""
    return session.exec(
        select(Appointment)
        .where(
            Appointment.staff_id == staff_id,
            Appointment.appointment_date == day,
            Appointment.status != AppointmentStatus.CANCELLED.value,
        )
        .order_by(Appointment.start_time)
    ).all()


def find_conflict(
    session: Session,
    staff_id: int,
    day: date,
    start_time: str,
    end_time: str,
    exclude_id: Optional[int] = None,
) -> Optional[Appointment]:
    for appt in active_for_staff_day(session, staff_id, day):
        if exclude_id is not None and appt.id == exclude_id:
            continue
        if overlaps(start_time, end_time, appt.start_time, appt.end_time):
            return appt
    return None


def _is_slot_violation(exc: IntegrityError) -> bool:
    orig = getattr(exc, "orig", None)
    diag = getattr(orig, "diag", None)
    if diag is not None and getattr(diag, "constraint_name", None) == UNIQUE_SLOT_INDEX:
        return True

    # sqlite não expõe o nome do índice, só as colunas
    text = str(orig)
    return UNIQUE_SLOT_INDEX in text or "appointment.staff_id, appointment.appointment_date" in text


class AppointmentLedger:
    def __init__(self, session: Session, catalog: ServiceCatalog):
        self.session = session
        self.catalog = catalog

    # =========================
    # LEITURA
    # =========================

    def get_appointment(self, appointment_id: int) -> Appointment:
        appt = self.session.get(Appointment, appointment_id)
        if not appt:
            raise NotFound("Agendamento", appointment_id)
        return appt

    def lines_for(self, appointment_id: int) -> List[AppointmentServiceLine]:
        return self.session.exec(
            select(AppointmentServiceLine)
            .where(AppointmentServiceLine.appointment_id == appointment_id)
            .order_by(AppointmentServiceLine.id)
        ).all()

    def list_appointments(
        self,
        status: Optional[AppointmentStatus] = None,
        pet_id: Optional[int] = None,
        staff_id: Optional[int] = None,
        day: Optional[date] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> List[Appointment]:
        query = select(Appointment)
        if status:
            query = query.where(Appointment.status == AppointmentStatus(status).value)
        if pet_id:
            query = query.where(Appointment.pet_id == pet_id)
        if staff_id:
            query = query.where(Appointment.staff_id == staff_id)
        if day:
            query = query.where(Appointment.appointment_date == day)

        # período fechado [date_from, date_to]
        if date_from:
            query = query.where(Appointment.appointment_date >= date_from)
        if date_to:
            query = query.where(Appointment.appointment_date <= date_to)

        return self.session.exec(
            query.order_by(Appointment.appointment_date.desc(), Appointment.start_time)
        ).all()

    def active_for_staff_day(self, staff_id: int, day: date) -> List[Appointment]:
        return active_for_staff_day(self.session, staff_id, day)

    def count_by_staff(self, day: date) -> Dict[int, int]:
        rows = self.session.exec(
            select(Appointment.staff_id).where(
                Appointment.appointment_date == day,
                Appointment.status != AppointmentStatus.CANCELLED.value,
            )
        ).all()
        return dict(Counter(rows))

    # =========================
    # CRIAR
    # =========================

    def create_appointment(self, draft: AppointmentCreate) -> Appointment:
        ensure_ordered(draft.start_time, draft.end_time)

        if not draft.services:
            raise NoServicesSpecified()

        # preço congelado agora; mudança futura no catálogo não altera a reserva
        lines: List[AppointmentServiceLine] = []
        total = 0.0
        for item in draft.services:
            service = self.catalog.get_service_by_id(item.service_id)
            lines.append(
                AppointmentServiceLine(
                    service_id=service.id,
                    quantity=item.quantity,
                    unit_price_at_booking=float(service.base_price),
                    notes=item.notes,
                )
            )
            total += float(service.base_price) * item.quantity

        estimated_cost = draft.estimated_cost if draft.estimated_cost is not None else round(total, 2)

        with staff_day_lock(draft.staff_id, draft.appointment_date):
            self._raise_on_conflict(draft.staff_id, draft.appointment_date, draft.start_time, draft.end_time)

            appointment = Appointment(
                pet_id=draft.pet_id,
                staff_id=draft.staff_id,
                appointment_date=draft.appointment_date,
                start_time=draft.start_time,
                end_time=draft.end_time,
                status=AppointmentStatus.PENDING.value,
                notes=draft.notes,
                estimated_cost=estimated_cost,
            )

            try:
                self.session.add(appointment)
                self.session.flush()  # gera o id para os itens

                for line in lines:
                    line.appointment_id = appointment.id
                    self.session.add(line)

                self.session.commit()
            except IntegrityError as exc:
                self.session.rollback()
                if _is_slot_violation(exc):
                    raise self._conflict_after_race(draft) from exc
                raise
            except Exception:
                # nada de cabeçalho sem itens
                self.session.rollback()
                raise

        self.session.refresh(appointment)
        logger.info(
            "✅ Agendamento %s criado: staff=%s %s %s-%s custo=%.2f",
            appointment.id, appointment.staff_id, appointment.appointment_date,
            appointment.start_time, appointment.end_time, estimated_cost,
        )
        return appointment

    def _raise_on_conflict(
        self,
        staff_id: int,
        day: date,
        start_time: str,
        end_time: str,
        exclude_id: Optional[int] = None,
    ) -> None:
        conflict = find_conflict(self.session, staff_id, day, start_time, end_time, exclude_id)
        if conflict:
            logger.warning(
                "⚠️ Conflito para staff=%s em %s: %s-%s bate com %s-%s (agendamento %s)",
                staff_id, day, start_time, end_time,
                conflict.start_time, conflict.end_time, conflict.id,
            )
            raise ScheduleConflict(conflict.start_time, conflict.end_time, conflict.id)

    def _conflict_after_race(self, draft: AppointmentCreate) -> ScheduleConflict:
        winner = find_conflict(
            self.session, draft.staff_id, draft.appointment_date, draft.start_time, draft.end_time
        )
        if winner:
            return ScheduleConflict(winner.start_time, winner.end_time, winner.id)
        return ScheduleConflict(draft.start_time, draft.end_time)

    # =========================
    # ATUALIZAR / REMOVER
    # =========================

    def update_appointment(self, appointment_id: int, patch: AppointmentUpdate) -> Appointment:
        appt = self.get_appointment(appointment_id)

        if is_terminal(appt.status):
            raise InvalidOperationForStatus(f"Agendamento {appt.status} não pode ser alterado")

        staff_id = patch.staff_id if patch.staff_id is not None else appt.staff_id
        day = patch.appointment_date if patch.appointment_date is not None else appt.appointment_date
        start_time = patch.start_time if patch.start_time is not None else appt.start_time
        end_time = patch.end_time if patch.end_time is not None else appt.end_time

        if patch.start_time is not None or patch.end_time is not None:
            ensure_ordered(start_time, end_time)

        moved = (staff_id, day, start_time, end_time) != (
            appt.staff_id, appt.appointment_date, appt.start_time, appt.end_time
        )

        if not moved:
            if patch.notes is not None:
                appt.notes = patch.notes
                appt.updated_at = utcnow()
                self.session.add(appt)
                self.session.commit()
                self.session.refresh(appt)
            return appt

        with staff_day_lock(staff_id, day):
            self._raise_on_conflict(staff_id, day, start_time, end_time, exclude_id=appt.id)

            appt.staff_id = staff_id
            appt.appointment_date = day
            appt.start_time = start_time
            appt.end_time = end_time
            if patch.notes is not None:
                appt.notes = patch.notes
            appt.updated_at = utcnow()

            try:
                self.session.add(appt)
                self.session.commit()
            except IntegrityError as exc:
                self.session.rollback()
                if _is_slot_violation(exc):
                    raise ScheduleConflict(start_time, end_time) from exc
                raise

        self.session.refresh(appt)
        logger.info("✏️ Agendamento %s remarcado para %s %s-%s", appt.id, day, start_time, end_time)
        return appt

    def delete_appointment(self, appointment_id: int) -> None:
        appt = self.get_appointment(appointment_id)

        if appt.status != AppointmentStatus.PENDING.value:
            raise InvalidOperationForStatus(
                f"Só é possível excluir agendamentos PENDING (atual: {appt.status})"
            )

        # itens e cabeçalho na mesma transação; o cabeçalho só sai se ainda
        # estiver PENDING (um confirm concorrente desfaz tudo)
        conn = self.session.connection()
        conn.execute(
            delete(AppointmentServiceLine).where(AppointmentServiceLine.appointment_id == appointment_id)
        )
        result = conn.execute(
            delete(Appointment).where(
                Appointment.id == appointment_id,
                Appointment.status == AppointmentStatus.PENDING.value,
            )
        )

        if result.rowcount == 0:
            self.session.rollback()
            current = self.session.get(Appointment, appointment_id)
            if current is None:
                raise NotFound("Agendamento", appointment_id)
            self.session.refresh(current)
            raise InvalidOperationForStatus(
                f"Só é possível excluir agendamentos PENDING (atual: {current.status})"
            )

        self.session.commit()
        logger.info("🗑️ Agendamento %s excluído", appointment_id)

    # =========================
    # TRANSIÇÕES DE STATUS
    # =========================

    def apply_transition(self, appointment_id: int, decision: Decision, **fields) -> Appointment:
        """
        Grava a transição só se o status no banco ainda é decision.source.

        Duas requisições saindo do mesmo estado: só a primeira atualiza a
        linha; a segunda recebe InvalidStatusTransition.
        """
        values = dict(fields)
        values["status"] = decision.target.value
        values["updated_at"] = utcnow()

        result = self.session.connection().execute(
            update(Appointment)
            .where(
                Appointment.id == appointment_id,
                Appointment.status == decision.source.value,
            )
            .values(**values)
        )

        if result.rowcount == 0:
            self.session.rollback()
            current = self.get_appointment(appointment_id)
            self.session.refresh(current)
            raise InvalidStatusTransition(current.status, decision.target.value)

        self.session.commit()

        appt = self.get_appointment(appointment_id)
        self.session.refresh(appt)
        logger.info(
            "🔄 Agendamento %s: %s -> %s", appointment_id, decision.source.value, decision.target.value
        )
        return appt
