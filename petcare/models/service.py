from typing import Optional
from sqlmodel import SQLModel, Field


class Service(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    name: str
    duration_minutes: int = 30

    # preço de catálogo; o agendamento guarda a própria cópia
    base_price: float

    active: bool = True
