"""Fixtures compartilhadas: banco SQLite em memória e uma clínica pronta."""

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Tuple

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from petcare.core.security import Principal
from petcare.domain.lifecycle import NotificationKind
from petcare.models.appointment import AppointmentCreate, ServiceLineInput
from petcare.models.pet import Pet, PetOwner
from petcare.models.service import Service
from petcare.models.staff import Staff
from petcare.models.work_schedule import WorkSchedule
from petcare.services.scheduling import SchedulingService

WORK_DAY = date(2026, 2, 1)


class RecordingNotifier:
    def __init__(self):
        self.sent: List[Tuple[str, NotificationKind, Dict[str, Any]]] = []

    def notify(self, recipient_email, kind, payload):
        self.sent.append((recipient_email, kind, payload))

    @property
    def kinds(self) -> List[NotificationKind]:
        return [kind for _, kind, _ in self.sent]


class FailingNotifier:
    def __init__(self):
        self.calls = 0

    def notify(self, recipient_email, kind, payload):
        self.calls += 1
        raise ConnectionError("SMTP fora do ar")


@dataclass
class Clinic:
    owner: PetOwner
    other_owner: PetOwner
    pet: Pet
    other_pet: Pet
    vet: Staff
    nurse: Staff
    consult: Service
    grooming: Service
    schedule: WorkSchedule

    @property
    def owner_principal(self) -> Principal:
        return Principal(subject=self.owner.email, role="pet_owner", owner_id=self.owner.id)

    @property
    def staff_principal(self) -> Principal:
        return Principal(subject=self.vet.email, role="veterinarian", staff_id=self.vet.id)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


def seed_clinic(session) -> Clinic:
    """Cadastra tutores, pets, equipe, serviços e a escala da veterinária."""
    owner = PetOwner(full_name="Carlos Lima", email="carlos@example.com")
    other_owner = PetOwner(full_name="Marina Reis", email="marina@example.com")
    vet = Staff(full_name="Dra. Ana Souza", email="ana@petcare.com", role="veterinarian",
                profile={"license_number": "CRMV-SP 12345"})
    nurse = Staff(full_name="João Prado", email="joao@petcare.com", role="care_staff")
    consult = Service(name="Consulta", base_price=50.0)
    grooming = Service(name="Banho", base_price=75.0)
    session.add_all([owner, other_owner, vet, nurse, consult, grooming])
    session.flush()

    pet = Pet(name="Thor", owner_id=owner.id)
    other_pet = Pet(name="Mel", species="cat", owner_id=other_owner.id)
    schedule = WorkSchedule(
        staff_id=vet.id,
        work_date=WORK_DAY,
        start_time="09:00",
        end_time="17:00",
        break_start="12:00",
        break_end="13:00",
    )
    session.add_all([pet, other_pet, schedule])
    session.commit()

    for obj in (owner, other_owner, vet, nurse, consult, grooming, pet, other_pet, schedule):
        session.refresh(obj)

    return Clinic(owner, other_owner, pet, other_pet, vet, nurse, consult, grooming, schedule)


@pytest.fixture
def clinic(session) -> Clinic:
    return seed_clinic(session)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def scheduling(session, notifier) -> SchedulingService:
    return SchedulingService(session, notifier=notifier)


def make_booking(
    clinic: Clinic,
    start_time: str = "10:00",
    end_time: str = "10:30",
    services=None,
    **kwargs,
) -> AppointmentCreate:
    """Monta um AppointmentCreate com defaults da clínica de teste."""
    if services is None:
        services = [ServiceLineInput(service_id=clinic.consult.id)]
    data = dict(
        pet_id=clinic.pet.id,
        staff_id=clinic.vet.id,
        appointment_date=WORK_DAY,
        start_time=start_time,
        end_time=end_time,
        services=services,
    )
    data.update(kwargs)
    return AppointmentCreate(**data)
