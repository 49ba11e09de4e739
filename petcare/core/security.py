from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt

from petcare.core.config import settings
from petcare.core.time_window import utcnow


PET_OWNER = "pet_owner"
STAFF_ROLES = ("veterinarian", "care_staff", "manager", "receptionist", "staff")


@dataclass(frozen=True)
class Principal:
    """Quem está chamando: tutor (owner_id) ou funcionário (staff_id)."""

    subject: str
    role: str
    owner_id: Optional[int] = None
    staff_id: Optional[int] = None

    @property
    def is_pet_owner(self) -> bool:
        return self.role == PET_OWNER

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES


# =========================
# TOKEN JWT
# =========================

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/login")


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    to_encode = data.copy()

    if expires_delta:
        expire = utcnow() + expires_delta
    else:
        expire = utcnow() + timedelta(minutes=settings.access_token_expire_minutes)

    to_encode.update({"exp": expire})

    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


# =========================
# QUEM ESTÁ CHAMANDO
# =========================

def get_current_principal(token: str = Depends(oauth2_scheme)) -> Principal:

    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Não foi possível validar as credenciais",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
        subject: str = payload.get("sub")
        role: str = payload.get("role")

        if subject is None or role is None:
            raise credentials_exception

    except JWTError:
        raise credentials_exception

    if role == PET_OWNER and payload.get("owner_id") is None:
        raise credentials_exception

    return Principal(
        subject=subject,
        role=role,
        owner_id=payload.get("owner_id"),
        staff_id=payload.get("staff_id"),
    )


# =========================
# SOMENTE FUNCIONÁRIO
# =========================

def require_staff(
    principal: Principal = Depends(get_current_principal),
) -> Principal:

    if not principal.is_staff:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Apenas funcionários podem acessar esta rota"
        )

    return principal
