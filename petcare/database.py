import logging

from sqlmodel import SQLModel, Session, create_engine

from petcare.core.config import settings

logger = logging.getLogger(__name__)

connect_args = {}
if settings.database_url.startswith("sqlite"):
    # FastAPI roda rotas síncronas em threads diferentes
    connect_args = {"check_same_thread": False}

engine = create_engine(settings.database_url, connect_args=connect_args)


def create_db_and_tables():
    # importa as tabelas para registrar no metadata
    from petcare.models import appointment, day_off, pet, service, staff, work_schedule  # noqa: F401

    SQLModel.metadata.create_all(engine)
    logger.info("Tabelas criadas/verificadas em %s", engine.url.render_as_string(hide_password=True))


def get_session():
    with Session(engine) as session:
        yield session
