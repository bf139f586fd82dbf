from __future__ import annotations

from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from . import db
from .db import Base, db_session
from .ids import create_with_next_id
from .models import (
    Client,
    Practitioner,
    SessionIdentity,
    Visit,
    VisitStatus,
    VisitStatusEvent,
)


# =========================
# Bootstrap DB
# =========================
def init_db() -> None:
    """Crea le tabelle se non esistono."""
    Base.metadata.create_all(bind=db.engine)


# =========================
# Errori di dominio
# =========================
class InvalidStatus(ValueError):
    """Stato visita sconosciuto."""


class TransitionNotAllowed(ValueError):
    """Transizione di stato non prevista dalla policy."""


# =========================
# Ciclo di vita visita
# =========================
# Policy esplicita: da Cancelled si può tornare a Confirmed (riapertura),
# riscrivere lo stesso stato è ammesso. Nessuno stato terminale.
ALLOWED_TRANSITIONS: dict[VisitStatus, frozenset[VisitStatus]] = {
    VisitStatus.CONFIRMED: frozenset({VisitStatus.CONFIRMED, VisitStatus.CANCELLED}),
    VisitStatus.CANCELLED: frozenset({VisitStatus.CANCELLED, VisitStatus.CONFIRMED}),
}


def parse_status(value: str | VisitStatus) -> VisitStatus:
    try:
        return VisitStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in VisitStatus)
        raise InvalidStatus(f"Stato non valido: {value!r} (ammessi: {allowed})") from None


def transition_allowed(current: VisitStatus, new: VisitStatus) -> bool:
    return new in ALLOWED_TRANSITIONS.get(current, frozenset())


# =========================
# Serializzazione "flat"
# =========================
def _practitioner_flat(p: Practitioner) -> dict[str, Any]:
    return {
        "id": p.id,
        "name": p.name,
        "specialization": p.specialization,
        "contact": p.contact,
        "email": p.email,
    }


def _client_flat(c: Client) -> dict[str, Any]:
    return {
        "id": c.id,
        "name": c.name,
        "age": c.age,
        "contact": c.contact,
        "email": c.email,
        "lastVisit": c.last_visit,
    }


def _visit_flat(v: Visit) -> dict[str, Any]:
    return {
        "id": v.id,
        "clientName": v.client_name,
        "practitionerName": v.practitioner_name,
        "clientId": v.client_id,
        "practitionerId": v.practitioner_id,
        "date": v.date,
        "time": v.time,
        "reason": v.reason,
        "status": v.status.value,
    }


def _identity_flat(u: SessionIdentity) -> dict[str, Any]:
    return {"id": u.id, "name": u.name, "email": u.email}


def _event_flat(e: VisitStatusEvent) -> dict[str, Any]:
    return {
        "visitId": e.visit_id,
        "fromStatus": e.from_status.value if e.from_status else None,
        "toStatus": e.to_status.value,
        "changedAt": e.changed_at.isoformat(),
    }


# =========================
# Professionisti
# =========================
def list_practitioners() -> list[dict]:
    with db_session() as s:
        return [_practitioner_flat(p) for p in s.scalars(select(Practitioner).order_by(Practitioner.id))]


def create_practitioner(
    name: str | None = None,
    specialization: str | None = None,
    contact: str | None = None,
    email: str | None = None,
) -> dict[str, Any]:
    """Nessun campo è obbligatorio: quelli assenti restano NULL."""
    p = create_with_next_id(
        "practitioners",
        lambda s, new_id: Practitioner(
            id=new_id, name=name, specialization=specialization, contact=contact, email=email
        ),
    )
    return _practitioner_flat(p)


def delete_practitioner(practitioner_id: int) -> None:
    """Idempotente: un id inesistente non è un errore."""
    with db_session() as s:
        s.execute(delete(Practitioner).where(Practitioner.id == practitioner_id))


# =========================
# Clienti
# =========================
def list_clients() -> list[dict]:
    with db_session() as s:
        return [_client_flat(c) for c in s.scalars(select(Client).order_by(Client.id))]


def get_client(client_id: int) -> dict[str, Any]:
    """Ritorna {} se il cliente non esiste."""
    with db_session() as s:
        c = s.get(Client, client_id)
        return _client_flat(c) if c else {}


def create_client(
    name: str | None = None,
    age: int | None = None,
    contact: str | None = None,
    email: str | None = None,
    last_visit: str | None = None,
) -> dict[str, Any]:
    if age is not None and age < 0:
        raise ValueError("L'età non può essere negativa.")

    c = create_with_next_id(
        "clients",
        lambda s, new_id: Client(
            id=new_id, name=name, age=age, contact=contact, email=email, last_visit=last_visit
        ),
    )
    return _client_flat(c)


# =========================
# Visite
# =========================
def _resolve_id(s: Session, model: type[Practitioner] | type[Client], name: str | None) -> int | None:
    # primo record con lo stesso nome (i nomi non sono univoci)
    if not name:
        return None
    return s.scalars(select(model.id).where(model.name == name).order_by(model.id).limit(1)).first()


def list_visits() -> list[dict]:
    with db_session() as s:
        return [_visit_flat(v) for v in s.scalars(select(Visit).order_by(Visit.id))]


def create_visit(
    client_name: str | None = None,
    practitioner_name: str | None = None,
    date: str | None = None,
    time: str | None = None,
    reason: str | None = None,
    status: str | VisitStatus | None = None,
    client_id: int | None = None,
    practitioner_id: int | None = None,
) -> dict[str, Any]:
    """
    Use case: Prenotare una visita.
    - stato di default Confirmed se non indicato
    - nessun controllo di sovrapposizione (doppia prenotazione possibile)
    - gli id di cliente/professionista, se assenti, si ricavano dal nome
    - registra l'evento di stato iniziale
    """
    initial = parse_status(status) if status else VisitStatus.CONFIRMED

    def build(s: Session, new_id: int) -> Visit:
        v = Visit(
            id=new_id,
            client_name=client_name,
            practitioner_name=practitioner_name,
            client_id=client_id if client_id is not None else _resolve_id(s, Client, client_name),
            practitioner_id=(
                practitioner_id if practitioner_id is not None else _resolve_id(s, Practitioner, practitioner_name)
            ),
            date=date,
            time=time,
            reason=reason,
            status=initial,
        )
        s.add(VisitStatusEvent(visit_id=new_id, from_status=None, to_status=initial))
        return v

    return _visit_flat(create_with_next_id("visits", build))


def delete_visit(visit_id: int) -> None:
    """Idempotente come delete_practitioner. Lo storico stati resta."""
    with db_session() as s:
        s.execute(delete(Visit).where(Visit.id == visit_id))


def update_visit_status(visit_id: int, status: str | VisitStatus) -> dict[str, Any]:
    """
    Use case: Cambiare lo stato di una visita (conferma / annullamento).
    - stato sconosciuto -> InvalidStatus
    - transizione fuori policy -> TransitionNotAllowed
    - ritorna {} se la visita non esiste
    """
    new = parse_status(status)

    with db_session() as s:
        v = s.get(Visit, visit_id)
        if not v:
            return {}

        if not transition_allowed(v.status, new):
            raise TransitionNotAllowed(f"Transizione {v.status.value} -> {new.value} non consentita.")

        s.add(VisitStatusEvent(visit_id=v.id, from_status=v.status, to_status=new))
        v.status = new
        s.flush()
        return _visit_flat(v)


def visit_status_history(visit_id: int) -> list[dict]:
    with db_session() as s:
        q = (
            select(VisitStatusEvent)
            .where(VisitStatusEvent.visit_id == visit_id)
            .order_by(VisitStatusEvent.id.asc())
        )
        return [_event_flat(e) for e in s.scalars(q)]


# =========================
# Identità di sessione (singleton)
# =========================
def get_session_identity() -> dict[str, Any]:
    with db_session() as s:
        u = s.scalars(select(SessionIdentity).order_by(SessionIdentity.id).limit(1)).first()
        return _identity_flat(u) if u else {}


def set_session_identity(**fields: Any) -> dict[str, Any]:
    """
    Merge dei soli campi passati nell'unico record; se manca lo crea (upsert).
    L'id del singleton non cambia una volta creato.
    """
    with db_session() as s:
        u = s.scalars(select(SessionIdentity).order_by(SessionIdentity.id).limit(1)).first()
        if u is None:
            u = SessionIdentity(id=fields["id"] if fields.get("id") is not None else 1)
            s.add(u)

        for key in ("name", "email"):
            if key in fields:
                setattr(u, key, fields[key])

        s.flush()
        return _identity_flat(u)

