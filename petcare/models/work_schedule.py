from typing import Optional
from datetime import date, datetime
from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field

from petcare.core.time_window import utcnow


class WorkScheduleBase(SQLModel):
    staff_id: int = Field(foreign_key="staff.id", index=True)
    work_date: date = Field(index=True)

    # "HH:MM"
    start_time: str = Field(max_length=5)
    end_time: str = Field(max_length=5)

    # opcional: intervalo (almoço)
    break_start: Optional[str] = Field(default=None, max_length=5)
    break_end: Optional[str] = Field(default=None, max_length=5)

    notes: Optional[str] = None


class WorkSchedule(WorkScheduleBase, table=True):
    __tablename__ = "work_schedule"
    # no máximo uma escala por funcionário por dia
    __table_args__ = (UniqueConstraint("staff_id", "work_date", name="uq_work_schedule_staff_day"),)

    id: Optional[int] = Field(default=None, primary_key=True)

    is_available: bool = True

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class WorkScheduleCreate(WorkScheduleBase):
    pass


class WorkScheduleUpdate(SQLModel):
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    break_start: Optional[str] = None
    break_end: Optional[str] = None
    notes: Optional[str] = None


class BreakAssignment(SQLModel):
    break_start: str
    break_end: str


class UnavailablePayload(SQLModel):
    reason: Optional[str] = None
