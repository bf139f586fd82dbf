from __future__ import annotations

from hms_backend.seed import seed_if_empty
from hms_backend.services import (
    delete_practitioner,
    get_session_identity,
    list_clients,
    list_practitioners,
    list_visits,
)


def _snapshot():
    return list_practitioners(), list_clients(), get_session_identity(), list_visits()


def test_seed_populates_empty_collections(store):
    seeded = seed_if_empty()

    assert seeded == ["practitioners", "clients", "session_identity"]
    practitioners, clients, identity, visits = _snapshot()
    assert [p["id"] for p in practitioners] == [1, 2, 3, 4, 5]
    assert practitioners[0]["name"] == "Dr. Sarah Smith"
    assert [c["id"] for c in clients] == [1, 2, 3, 4]
    assert clients[3] == {
        "id": 4,
        "name": "Maria Garcia",
        "age": 35,
        "contact": "+1 (555) 333-4444",
        "email": "maria.garcia@example.com",
        "lastVisit": "2024-10-14",
    }
    assert identity == {"id": 1, "name": "John Doe", "email": "johndoe@example.com"}
    assert visits == []


def test_seed_twice_is_same_as_once(store):
    seed_if_empty()
    first = _snapshot()

    assert seed_if_empty() == []
    assert _snapshot() == first
    assert list_visits() == []


def test_non_empty_collection_is_not_reseeded(seeded):
    delete_practitioner(3)

    assert seed_if_empty() == []
    assert [p["id"] for p in list_practitioners()] == [1, 2, 4, 5]
