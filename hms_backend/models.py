from __future__ import annotations

import enum
from datetime import datetime, timezone

from sqlalchemy import DateTime, Enum, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .db import Base


class VisitStatus(str, enum.Enum):
    CONFIRMED = "Confirmed"
    CANCELLED = "Cancelled"


def _status_type() -> Enum:
    # salva "Confirmed"/"Cancelled", non i nomi dei membri
    return Enum(VisitStatus, values_callable=lambda e: [m.value for m in e], name="visit_status")


class Practitioner(Base):
    __tablename__ = "practitioners"

    # id applicativo: assegnato dall'allocatore, mai dal database
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    name: Mapped[str | None] = mapped_column(String(120), nullable=True)
    specialization: Mapped[str | None] = mapped_column(String(120), nullable=True)
    contact: Mapped[str | None] = mapped_column(String(40), nullable=True)
    email: Mapped[str | None] = mapped_column(String(120), nullable=True)

    def __repr__(self) -> str:
        return f"Practitioner({self.id}, {self.name}, {self.specialization})"


class Client(Base):
    __tablename__ = "clients"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    name: Mapped[str | None] = mapped_column(String(120), nullable=True)
    age: Mapped[int | None] = mapped_column(Integer, nullable=True)
    contact: Mapped[str | None] = mapped_column(String(40), nullable=True)
    email: Mapped[str | None] = mapped_column(String(120), nullable=True)
    last_visit: Mapped[str | None] = mapped_column(String(10), nullable=True)  # YYYY-MM-DD

    def __repr__(self) -> str:
        return f"Client({self.id}, {self.name})"


class Visit(Base):
    """
    Visita prenotata.
    I nomi di cliente e professionista sono denormalizzati (solo display):
    accanto conserviamo gli id di origine, senza vincolo di foreign key,
    così una cancellazione o un cambio nome non rende orfano lo storico.
    """
    __tablename__ = "visits"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    client_name: Mapped[str | None] = mapped_column(String(120), nullable=True)
    practitioner_name: Mapped[str | None] = mapped_column(String(120), nullable=True)
    client_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    practitioner_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    date: Mapped[str | None] = mapped_column(String(10), nullable=True)
    time: Mapped[str | None] = mapped_column(String(20), nullable=True)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    status: Mapped[VisitStatus] = mapped_column(_status_type(), default=VisitStatus.CONFIRMED, nullable=False)

    def __repr__(self) -> str:
        return f"Visit({self.id}, {self.client_name} -> {self.practitioner_name}, {self.status.value})"


class SessionIdentity(Base):
    """Identità della sessione attiva: un solo record logico."""
    __tablename__ = "session_identity"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    name: Mapped[str | None] = mapped_column(String(120), nullable=True)
    email: Mapped[str | None] = mapped_column(String(120), nullable=True)


class IdCounter(Base):
    """Ultimo id assegnato per collezione (high-water mark)."""
    __tablename__ = "id_counters"

    collection: Mapped[str] = mapped_column(String(40), primary_key=True)
    last_id: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class VisitStatusEvent(Base):
    __tablename__ = "visit_status_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # niente FK: lo storico sopravvive alla cancellazione della visita
    visit_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    from_status: Mapped[VisitStatus | None] = mapped_column(_status_type(), nullable=True)
    to_status: Mapped[VisitStatus] = mapped_column(_status_type(), nullable=False)
    changed_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)
