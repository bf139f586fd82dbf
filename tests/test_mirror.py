from __future__ import annotations

from unittest.mock import Mock

import pytest
import requests
from sqlalchemy.exc import OperationalError

from hms_backend import api_main
from hms_backend.mirror import ApiError, ClientMirror, MirrorState

VISIT = {
    "clientName": "John Doe",
    "practitionerName": "Dr. Sarah Smith",
    "date": "2025-01-10",
    "time": "09:00 AM",
    "reason": "checkup",
}


class FailingPath:
    """Inoltra al TestClient, ma simula la rete giù per un solo endpoint."""

    def __init__(self, inner, failing_suffix: str) -> None:
        self.inner = inner
        self.failing_suffix = failing_suffix

    def request(self, method, url, **kwargs):
        if url.endswith(self.failing_suffix):
            raise requests.ConnectionError("connection refused")
        return self.inner.request(method, url, **kwargs)


def test_reads_before_init_are_empty(mirror):
    assert mirror.state is MirrorState.UNINITIALIZED
    assert not mirror.populated
    assert mirror.get_practitioners() == []
    assert mirror.get_clients() == []
    assert mirror.get_visits() == []
    assert mirror.get_session_identity() == {}


def test_init_loads_snapshot(mirror):
    errors = mirror.init()

    assert errors == {}
    assert mirror.populated
    assert [p["id"] for p in mirror.get_practitioners()] == [1, 2, 3, 4, 5]
    assert len(mirror.get_clients()) == 4
    assert mirror.get_visits() == []
    assert mirror.get_session_identity()["name"] == "John Doe"


def test_returned_values_are_copies(mirror):
    mirror.init()

    practitioners = mirror.get_practitioners()
    practitioners.pop()
    identity = mirror.get_session_identity()
    identity["name"] = "Mallory"

    assert len(mirror.get_practitioners()) == 5
    assert mirror.get_session_identity()["name"] == "John Doe"


def test_add_visit_is_readable_immediately(mirror):
    created = mirror.add_visit(VISIT)

    visits = mirror.get_visits()
    assert len(visits) == 1
    assert visits[0] == created
    assert isinstance(created["id"], int)
    assert created["status"] == "Confirmed"
    assert {k: visits[0][k] for k in VISIT} == VISIT


def test_add_and_delete_practitioner(mirror, client):
    mirror.init()

    created = mirror.add_practitioner({"name": "Dr. House", "specialization": "Diagnostics"})
    assert created["id"] == 6
    assert mirror.get_practitioners()[-1] == created

    mirror.delete_practitioner(2)
    assert [p["id"] for p in mirror.get_practitioners()] == [1, 3, 4, 5, 6]
    assert [p["id"] for p in client.get("/api/practitioners").json()] == [1, 3, 4, 5, 6]


def test_update_and_delete_visit(mirror):
    first = mirror.add_visit(VISIT)
    second = mirror.add_visit({**VISIT, "time": "10:00 AM"})

    updated = mirror.update_visit_status(first["id"], "Cancelled")

    assert updated["status"] == "Cancelled"
    assert [v["status"] for v in mirror.get_visits()] == ["Cancelled", "Confirmed"]

    mirror.delete_visit(first["id"])
    assert mirror.get_visits() == [second]


def test_update_status_of_unknown_visit_keeps_snapshot(mirror):
    mirror.add_visit(VISIT)
    before = mirror.get_visits()

    assert mirror.update_visit_status(404, "Cancelled") == {}
    assert mirror.get_visits() == before


def test_failed_mutation_leaves_snapshot_unchanged(mirror, monkeypatch):
    mirror.init()

    def broken(**fields):
        raise OperationalError("INSERT", {}, Exception("database is locked"))

    monkeypatch.setattr(api_main, "create_visit", broken)

    with pytest.raises(ApiError) as exc_info:
        mirror.add_visit(VISIT)

    assert exc_info.value.status_code == 500
    assert mirror.get_visits() == []


def test_rejected_status_leaves_snapshot_unchanged(mirror):
    created = mirror.add_visit(VISIT)

    with pytest.raises(ApiError) as exc_info:
        mirror.update_visit_status(created["id"], "Archived")

    assert exc_info.value.status_code == 422
    assert mirror.get_visits() == [created]


def test_network_failure_on_init_keeps_empty_slices():
    session = Mock()
    session.request.side_effect = requests.ConnectionError("connection refused")
    mirror = ClientMirror(base_url="http://unreachable", session=session)

    errors = mirror.init()

    assert set(errors) == {"practitioners", "clients", "visits", "identity"}
    assert all(isinstance(e, ApiError) for e in errors.values())
    assert mirror.populated
    assert mirror.get_practitioners() == []
    assert mirror.get_session_identity() == {}


def test_partial_init_failure_keeps_previous_slice(client):
    mirror = ClientMirror(base_url=str(client.base_url), session=client)
    mirror.add_visit(VISIT)
    mirror.init()
    assert len(mirror.get_visits()) == 1

    client.post("/api/visits", json=VISIT)
    mirror._http = FailingPath(client, "/api/visits")
    client.post("/api/practitioners", json={"name": "Dr. Late"})

    errors = mirror.init()

    assert list(errors) == ["visits"]
    assert len(mirror.get_visits()) == 1
    assert len(mirror.get_practitioners()) == 6


def test_network_failure_on_mutation():
    session = Mock()
    session.request.side_effect = requests.Timeout("timed out")
    mirror = ClientMirror(base_url="http://unreachable", session=session, timeout=0.1)

    with pytest.raises(ApiError):
        mirror.delete_practitioner(1)

    session.request.assert_called_once_with(
        "DELETE", "http://unreachable/api/practitioners/1", json=None, timeout=0.1
    )


def test_mirrors_are_independent(client):
    a = ClientMirror(base_url=str(client.base_url), session=client)
    b = ClientMirror(base_url=str(client.base_url), session=client)
    a.init()
    b.init()

    a.add_visit(VISIT)

    assert len(a.get_visits()) == 1
    assert b.get_visits() == []
    b.init()
    assert len(b.get_visits()) == 1


def test_update_session_identity(mirror):
    mirror.init()

    merged = mirror.update_session_identity({"name": "Reception"})

    assert merged == {"id": 1, "name": "Reception", "email": "johndoe@example.com"}
    assert mirror.get_session_identity() == merged


def test_dashboard_queries(mirror):
    mirror.init()
    mirror.add_visit(VISIT)
    mirror.add_visit({**VISIT, "clientName": "Jane Smith", "practitionerName": "Dr. Lisa Davis", "date": "2025-01-11"})

    stats = mirror.overview("2025-01-10")
    assert (stats["practitioners"], stats["clients"], stats["visits"], stats["today"]) == (5, 4, 2, 1)
    assert stats["todayVisits"][0]["clientName"] == "John Doe"

    assert [c["name"] for c in mirror.search_clients("SMITH")] == ["Jane Smith"]
    assert [v["date"] for v in mirror.filter_visits(practitioner_name="Dr. Lisa Davis")] == ["2025-01-11"]
    assert len(mirror.filter_visits()) == 2
    assert len(mirror.visits_for_client("John Doe")) == 1
    assert mirror.find_client(3)["name"] == "Robert Wilson"
    assert mirror.find_client(99) is None
