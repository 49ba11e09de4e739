import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


def _safe_int(env_var: str, default: str) -> int:
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(f"Inteiro inválido em {env_var}: {raw!r}") from None


# =========================
# CONFIGURAÇÕES (.env)
# =========================

@dataclass(frozen=True)
class Settings:
    # lidos a cada Settings(), não no import
    clinic_name: str = field(default_factory=lambda: os.getenv("CLINIC_NAME", "Clínica PetCare"))

    database_url: str = field(default_factory=lambda: os.getenv("DATABASE_URL", "sqlite:///./petcare.db"))

    # JWT (antes ficava fixo no security.py)
    secret_key: str = field(default_factory=lambda: os.getenv("SECRET_KEY", "dev-secret-trocar-em-producao"))
    algorithm: str = field(default_factory=lambda: os.getenv("JWT_ALGORITHM", "HS256"))
    access_token_expire_minutes: int = field(
        default_factory=lambda: _safe_int("ACCESS_TOKEN_EXPIRE_MINUTES", "30")
    )

    # grade de horários exibida no calendário
    slot_step_minutes: int = field(default_factory=lambda: _safe_int("SLOT_STEP_MINUTES", "30"))

    # métrica de carga do dashboard (não decide disponibilidade)
    daily_load_cap: int = field(default_factory=lambda: _safe_int("DAILY_LOAD_CAP", "10"))

    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))


def _validate_settings(config: Settings) -> None:
    if config.slot_step_minutes < 5:
        raise ValueError(f"SLOT_STEP_MINUTES deve ser >= 5, recebido {config.slot_step_minutes}")
    if config.daily_load_cap < 1:
        raise ValueError(f"DAILY_LOAD_CAP deve ser >= 1, recebido {config.daily_load_cap}")
    if config.access_token_expire_minutes < 1:
        raise ValueError(
            f"ACCESS_TOKEN_EXPIRE_MINUTES deve ser >= 1, recebido {config.access_token_expire_minutes}"
        )


def load_settings() -> Settings:
    config = Settings()
    _validate_settings(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger.info("Configuração carregada para '%s'", config.clinic_name)
    return config


settings = load_settings()
