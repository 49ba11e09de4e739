from typing import Any, Dict, Optional

from sqlalchemy import JSON, Column
from sqlmodel import SQLModel, Field


class StaffBase(SQLModel):
    full_name: str
    email: str = Field(index=True, unique=True)

    # veterinarian | care_staff | manager | receptionist
    role: str = Field(index=True)

    # afastado / de férias: continua cadastrado mas não recebe agenda
    is_available: bool = True


class Staff(StaffBase, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    # dados específicos do cargo (CRMV, especialidades, habilidades...)
    # a agenda nunca lê esse campo
    profile: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
