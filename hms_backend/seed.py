from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .db import Base, db_session
from .models import Client, IdCounter, Practitioner, SessionIdentity

logger = logging.getLogger(__name__)

# Id letterali 1..N: il seed non passa dall'allocatore
PRACTITIONERS = [
    (1, "Dr. Sarah Smith", "Cardiologist", "+1 (123) 456-7890", "sarah.smith@hospital.com"),
    (2, "Dr. Michael Johnson", "Neurologist", "+1 (987) 654-3210", "michael.johnson@hospital.com"),
    (3, "Dr. Emily Williams", "Pediatrician", "+1 (555) 123-4567", "emily.williams@hospital.com"),
    (4, "Dr. James Brown", "Orthopedic", "+1 (555) 987-6543", "james.brown@hospital.com"),
    (5, "Dr. Lisa Davis", "Dermatologist", "+1 (555) 246-8135", "lisa.davis@hospital.com"),
]

CLIENTS = [
    (1, "John Doe", 30, "+1 (123) 456-7890", "johndoe@example.com", "2024-10-10"),
    (2, "Jane Smith", 25, "+1 (555) 555-5555", "janesmith@example.com", "2024-10-12"),
    (3, "Robert Wilson", 45, "+1 (555) 111-2222", "robert.wilson@example.com", "2024-10-08"),
    (4, "Maria Garcia", 35, "+1 (555) 333-4444", "maria.garcia@example.com", "2024-10-14"),
]

IDENTITY = (1, "John Doe", "johndoe@example.com")


def _is_empty(s: Session, model: type[Base]) -> bool:
    return (s.execute(select(func.count()).select_from(model)).scalar() or 0) == 0


def _raise_counter(s: Session, collection: str, last_id: int) -> None:
    # gli id letterali contano come già assegnati: non vanno riemessi
    counter = s.get(IdCounter, collection)
    if counter is None:
        s.add(IdCounter(collection=collection, last_id=last_id))
    elif counter.last_id < last_id:
        counter.last_id = last_id


def seed_if_empty() -> list[str]:
    """
    Popola i dati iniziali (idempotente):
    - professionisti
    - clienti
    - identità di sessione

    Ogni blocco scatta solo se la collezione è vuota (niente upsert).
    Le visite non vengono mai pre-caricate.
    Ritorna i nomi delle collezioni popolate.
    """
    seeded: list[str] = []

    with db_session() as s:
        if _is_empty(s, Practitioner):
            for pid, name, spec, contact, email in PRACTITIONERS:
                s.add(Practitioner(id=pid, name=name, specialization=spec, contact=contact, email=email))
            _raise_counter(s, "practitioners", max(p[0] for p in PRACTITIONERS))
            seeded.append("practitioners")

        if _is_empty(s, Client):
            for cid, name, age, contact, email, last_visit in CLIENTS:
                s.add(Client(id=cid, name=name, age=age, contact=contact, email=email, last_visit=last_visit))
            _raise_counter(s, "clients", max(c[0] for c in CLIENTS))
            seeded.append("clients")

        if _is_empty(s, SessionIdentity):
            uid, name, email = IDENTITY
            s.add(SessionIdentity(id=uid, name=name, email=email))
            _raise_counter(s, "session_identity", uid)
            seeded.append("session_identity")

    for collection in seeded:
        logger.info("Seed completato: %s", collection)
    return seeded
