from typing import Optional
from datetime import date
from sqlmodel import SQLModel, Field


class DayOffBase(SQLModel):
    day: date = Field(index=True, unique=True)
    name: str
    description: Optional[str] = None


class DayOff(DayOffBase, table=True):
    """Dia em que a clínica inteira fecha (feriado, recesso)."""

    __tablename__ = "day_off"

    id: Optional[int] = Field(default=None, primary_key=True)


class DayOffCreate(DayOffBase):
    pass


class DayOffUpdate(SQLModel):
    day: Optional[date] = None
    name: Optional[str] = None
    description: Optional[str] = None
