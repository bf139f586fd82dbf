from __future__ import annotations

import logging
from typing import Callable, TypeVar

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .db import Base, db_session
from .models import Client, IdCounter, Practitioner, SessionIdentity, Visit

logger = logging.getLogger(__name__)

T = TypeVar("T")

COLLECTIONS: dict[str, type[Base]] = {
    "practitioners": Practitioner,
    "clients": Client,
    "visits": Visit,
    "session_identity": SessionIdentity,
}

MAX_ALLOCATION_ATTEMPTS = 5


class IdAllocationError(RuntimeError):
    """Tentativi di allocazione esauriti (collisioni ripetute)."""


def next_id(s: Session, collection: str) -> int:
    """
    Prossimo id intero per la collezione.

    max(id attuale, ultimo id assegnato) + 1; collezione vuota = 0.
    Aggiorna il contatore nella stessa transazione, quindi un id cancellato
    non viene mai riassegnato. Da solo NON protegge da due allocazioni
    concorrenti: ci pensa la primary key + il retry di create_with_next_id.
    """
    model = COLLECTIONS[collection]

    counter = s.execute(
        select(IdCounter).where(IdCounter.collection == collection).with_for_update()
    ).scalar_one_or_none()
    current_max = s.execute(select(func.max(model.id))).scalar() or 0

    new_id = max(current_max, counter.last_id if counter else 0) + 1
    if counter is None:
        s.add(IdCounter(collection=collection, last_id=new_id))
    else:
        counter.last_id = new_id
    return new_id


def create_with_next_id(collection: str, build: Callable[[Session, int], T]) -> T:
    """
    Alloca l'id e inserisce il record in un'unica transazione.

    `build(session, new_id)` costruisce il record ORM con l'id assegnato;
    il record viene aggiunto, scritto e restituito (resta leggibile dopo la
    chiusura grazie a expire_on_commit=False). Se due richieste calcolano
    lo stesso id, la seconda fallisce sulla primary key e si riprova da capo.
    """
    for attempt in range(1, MAX_ALLOCATION_ATTEMPTS + 1):
        try:
            with db_session() as s:
                new_id = next_id(s, collection)
                obj = build(s, new_id)
                s.add(obj)
                s.flush()
            return obj
        except IntegrityError:
            logger.warning("Collisione id su %s (tentativo %d/%d)", collection, attempt, MAX_ALLOCATION_ATTEMPTS)

    raise IdAllocationError(f"Impossibile allocare un id per {collection} dopo {MAX_ALLOCATION_ATTEMPTS} tentativi")
