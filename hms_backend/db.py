from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from .config import DATABASE_URL

logger = logging.getLogger(__name__)

engine: Engine = create_engine(
    DATABASE_URL,
    echo=False,              # metti True se vuoi vedere le query
    future=True,
)

SessionLocal = sessionmaker(
    bind=engine,
    autoflush=False,
    autocommit=False,
    future=True,
    expire_on_commit=False
)


class Base(DeclarativeBase):
    """Base ORM per tutti i modelli."""
    pass


class StoreUnavailable(RuntimeError):
    """Lo store non risponde: il processo non deve iniziare a servire."""


def configure_engine(url: str) -> Engine:
    """
    Ricollega engine e sessioni a un altro URL (test, CLI --database-url).
    Le sessioni aperte dopo la chiamata usano il nuovo engine.
    """
    global engine
    engine.dispose()
    engine = create_engine(url, echo=False, future=True)
    SessionLocal.configure(bind=engine)
    return engine


def check_connection() -> None:
    """Verifica che lo store sia raggiungibile (SELECT 1)."""
    logger.info("Connessione allo store: %s", engine.url.render_as_string(hide_password=True))
    try:
        with engine.connect() as c:
            c.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error("Store non raggiungibile: %s", e)
        raise StoreUnavailable(str(e)) from e
    logger.info("Store raggiungibile")


@contextmanager
def db_session() -> Iterator[Session]:
    """
    Context manager per gestire correttamente la sessione:
    - commit se tutto ok
    - rollback su eccezioni
    - close sempre
    """
    session: Session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
