from datetime import date, timedelta
from sqlmodel import Session, select

from petcare.database import create_db_and_tables, engine
from petcare.core.security import create_access_token
from petcare.models.pet import Pet, PetOwner
from petcare.models.service import Service
from petcare.models.staff import Staff
from petcare.models.work_schedule import WorkSchedule


VET_EMAIL = "veterinaria@petcare.com"
OWNER_EMAIL = "tutor@petcare.com"


def main():
    create_db_and_tables()

    with Session(engine) as session:
        # 1) veterinária (cria se não existir)
        vet = session.exec(select(Staff).where(Staff.email == VET_EMAIL)).first()
        if not vet:
            vet = Staff(
                full_name="Dra. Ana Souza",
                email=VET_EMAIL,
                role="veterinarian",
                profile={"license_number": "CRMV-SP 12345", "specialties": ["clínica geral"]},
            )
            session.add(vet)

        # 2) tutor + pet
        owner = session.exec(select(PetOwner).where(PetOwner.email == OWNER_EMAIL)).first()
        if not owner:
            owner = PetOwner(full_name="Carlos Lima", email=OWNER_EMAIL, phone="11999990000")
            session.add(owner)
            session.flush()
            session.add(Pet(name="Thor", species="dog", owner_id=owner.id))

        # 3) serviços de teste (se não existir)
        if not session.exec(select(Service)).first():
            session.add_all(
                [
                    Service(name="Consulta", duration_minutes=30, base_price=50.0),
                    Service(name="Banho", duration_minutes=30, base_price=75.0),
                    Service(name="Vacina V10", duration_minutes=15, base_price=90.0),
                ]
            )

        session.flush()

        # 4) escala da próxima semana (seg-sex 09-17, intervalo 12-13)
        today = date.today()
        for offset in range(1, 8):
            day = today + timedelta(days=offset)
            if day.weekday() > 4:
                continue

            exists = session.exec(
                select(WorkSchedule).where(
                    WorkSchedule.staff_id == vet.id,
                    WorkSchedule.work_date == day,
                )
            ).first()
            if not exists:
                session.add(
                    WorkSchedule(
                        staff_id=vet.id,
                        work_date=day,
                        start_time="09:00",
                        end_time="17:00",
                        break_start="12:00",
                        break_end="13:00",
                    )
                )

        session.commit()

        print("✅ Seed concluído!")
        print(f"Veterinária: {vet.id} ({vet.email})")
        print(f"Tutor: {owner.id} ({owner.email})")
        print("Escalas: seg-sex 09-17 intervalo 12-13 (próximos 7 dias)")
        print("Token tutor:", create_access_token({"sub": owner.email, "role": "pet_owner", "owner_id": owner.id}))
        print("Token staff:", create_access_token({"sub": vet.email, "role": "veterinarian", "staff_id": vet.id}))


if __name__ == "__main__":
    main()
