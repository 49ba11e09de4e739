from typing import List, Optional
from datetime import date, datetime
from sqlalchemy import Index, text
from sqlmodel import SQLModel, Field

from petcare.core.time_window import utcnow

_ACTIVE_ONLY = text("status != 'CANCELLED'")


class Appointment(SQLModel, table=True):
    # um horário de início por funcionário/dia entre os não cancelados;
    # o banco barra o perdedor de duas reservas simultâneas
    __table_args__ = (
        Index(
            "uq_appointment_staff_slot_active",
            "staff_id",
            "appointment_date",
            "start_time",
            unique=True,
            sqlite_where=_ACTIVE_ONLY,
            postgresql_where=_ACTIVE_ONLY,
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)

    pet_id: int = Field(foreign_key="pet.id", index=True)
    staff_id: int = Field(foreign_key="staff.id", index=True)

    appointment_date: date = Field(index=True)
    start_time: str = Field(max_length=5)
    end_time: str = Field(max_length=5)

    # STATUS DO AGENDAMENTO
    status: str = Field(default="PENDING", index=True)
    # PENDING | CONFIRMED | IN_PROGRESS | COMPLETED | CANCELLED

    notes: Optional[str] = None

    # CUSTOS (imutáveis depois de definidos)
    estimated_cost: Optional[float] = None
    actual_cost: Optional[float] = None

    created_at: datetime = Field(default_factory=utcnow, index=True)
    updated_at: datetime = Field(default_factory=utcnow)

    cancelled_at: Optional[datetime] = Field(default=None, index=True)
    cancellation_reason: Optional[str] = None


class AppointmentServiceLine(SQLModel, table=True):
    __tablename__ = "appointment_service_line"

    id: Optional[int] = Field(default=None, primary_key=True)

    appointment_id: int = Field(foreign_key="appointment.id", index=True)
    service_id: int = Field(foreign_key="service.id", index=True)

    quantity: int = 1

    # SNAPSHOT FINANCEIRO: preço do catálogo no momento da reserva
    unit_price_at_booking: float

    notes: Optional[str] = None


# =========================
# PAYLOADS
# =========================

class ServiceLineInput(SQLModel):
    service_id: int
    quantity: int = Field(default=1, ge=1)
    notes: Optional[str] = None


class AppointmentCreate(SQLModel):
    pet_id: int
    staff_id: int
    appointment_date: date
    start_time: str
    end_time: str
    services: List[ServiceLineInput] = Field(default_factory=list)
    notes: Optional[str] = None

    # quando informado, substitui a soma do catálogo
    estimated_cost: Optional[float] = Field(default=None, ge=0)


class AppointmentUpdate(SQLModel):
    staff_id: Optional[int] = None
    appointment_date: Optional[date] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    notes: Optional[str] = None


class CompletePayload(SQLModel):
    actual_cost: Optional[float] = Field(default=None, ge=0)


class CancelPayload(SQLModel):
    reason: Optional[str] = None


class ServiceLineRead(SQLModel):
    service_id: int
    quantity: int
    unit_price_at_booking: float
    notes: Optional[str] = None


class AppointmentRead(SQLModel):
    id: int
    pet_id: int
    staff_id: int
    appointment_date: date
    start_time: str
    end_time: str
    status: str
    notes: Optional[str] = None
    estimated_cost: Optional[float] = None
    actual_cost: Optional[float] = None
    created_at: datetime
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    services: List[ServiceLineRead] = Field(default_factory=list)
