from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from petcare.database import get_session
from petcare.models.day_off import DayOff, DayOffCreate, DayOffUpdate
from petcare.core.security import Principal, get_current_principal, require_staff

router = APIRouter(prefix="/day-offs", tags=["day-offs"])


def _get_or_404(session: Session, day_off_id: int) -> DayOff:
    day_off = session.get(DayOff, day_off_id)
    if not day_off:
        raise HTTPException(status_code=404, detail="Fechamento não encontrado")
    return day_off


# =========================
# LISTAR FECHAMENTOS
# GET /day-offs/?start=2026-02-01&end=2026-02-28
# =========================
@router.get("/", response_model=List[DayOff])
def list_day_offs(
    start: Optional[date] = None,
    end: Optional[date] = None,
    session: Session = Depends(get_session),
    caller: Principal = Depends(get_current_principal),
):
    query = select(DayOff)
    if start:
        query = query.where(DayOff.day >= start)
    if end:
        query = query.where(DayOff.day <= end)

    return session.exec(query.order_by(DayOff.day)).all()


@router.get("/{day_off_id}", response_model=DayOff)
def get_day_off(
    day_off_id: int,
    session: Session = Depends(get_session),
    caller: Principal = Depends(get_current_principal),
):
    return _get_or_404(session, day_off_id)


@router.post("/", status_code=status.HTTP_201_CREATED, response_model=DayOff)
def create_day_off(
    payload: DayOffCreate,
    session: Session = Depends(get_session),
    staff: Principal = Depends(require_staff),
):
    day_off = DayOff.model_validate(payload)

    # um fechamento por data
    try:
        session.add(day_off)
        session.commit()
    except IntegrityError:
        session.rollback()
        raise HTTPException(status_code=409, detail="Já existe fechamento nessa data")

    session.refresh(day_off)
    return day_off


@router.patch("/{day_off_id}", response_model=DayOff)
def update_day_off(
    day_off_id: int,
    payload: DayOffUpdate,
    session: Session = Depends(get_session),
    staff: Principal = Depends(require_staff),
):
    day_off = _get_or_404(session, day_off_id)
    day_off.sqlmodel_update(payload.model_dump(exclude_unset=True))

    try:
        session.add(day_off)
        session.commit()
    except IntegrityError:
        session.rollback()
        raise HTTPException(status_code=409, detail="Já existe fechamento nessa data")

    session.refresh(day_off)
    return day_off


@router.delete("/{day_off_id}")
def delete_day_off(
    day_off_id: int,
    session: Session = Depends(get_session),
    staff: Principal = Depends(require_staff),
):
    day_off = _get_or_404(session, day_off_id)

    session.delete(day_off)
    session.commit()
    return {"message": "Fechamento removido"}
