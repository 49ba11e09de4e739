"""Consultas a cadastros que a agenda não gerencia (funcionários, pets, catálogo).

A agenda só depende dos Protocols; as classes Sql* leem direto das tabelas.
"""

from typing import List, Protocol

from sqlmodel import Session, select

from petcare.core.errors import NotFound
from petcare.models.pet import Pet, PetOwner
from petcare.models.service import Service
from petcare.models.staff import Staff


class StaffLookup(Protocol):
    def get_staff_by_id(self, staff_id: int) -> Staff: ...

    def list_staff(self) -> List[Staff]: ...


class PetLookup(Protocol):
    def get_pet_by_id(self, pet_id: int) -> Pet: ...

    def get_owner_by_id(self, owner_id: int) -> PetOwner: ...


class ServiceCatalog(Protocol):
    def get_service_by_id(self, service_id: int) -> Service: ...


class SqlStaffLookup:
    def __init__(self, session: Session):
        self.session = session

    def get_staff_by_id(self, staff_id: int) -> Staff:
        staff = self.session.get(Staff, staff_id)
        if not staff:
            raise NotFound("Funcionário", staff_id)
        return staff

    def list_staff(self) -> List[Staff]:
        return self.session.exec(select(Staff).order_by(Staff.id)).all()


class SqlPetLookup:
    def __init__(self, session: Session):
        self.session = session

    def get_pet_by_id(self, pet_id: int) -> Pet:
        pet = self.session.get(Pet, pet_id)
        if not pet:
            raise NotFound("Pet", pet_id)
        return pet

    def get_owner_by_id(self, owner_id: int) -> PetOwner:
        owner = self.session.get(PetOwner, owner_id)
        if not owner:
            raise NotFound("Tutor", owner_id)
        return owner


class SqlServiceCatalog:
    def __init__(self, session: Session):
        self.session = session

    def get_service_by_id(self, service_id: int) -> Service:
        # serviço inativo não pode ser reservado
        service = self.session.get(Service, service_id)
        if not service or not service.active:
            raise NotFound("Serviço", service_id)
        return service
