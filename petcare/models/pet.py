from typing import Optional
from sqlmodel import SQLModel, Field


class PetOwner(SQLModel, table=True):
    __tablename__ = "pet_owner"

    id: Optional[int] = Field(default=None, primary_key=True)

    full_name: str
    email: str = Field(index=True, unique=True)
    phone: Optional[str] = None


class Pet(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    name: str
    species: str = "dog"

    owner_id: int = Field(foreign_key="pet_owner.id", index=True)
