"""
Fixture comuni: un file SQLite temporaneo per test, l'app FastAPI
dietro TestClient e un mirror collegato al TestClient.
"""
from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from hms_backend import db
from hms_backend.api_main import app
from hms_backend.mirror import ClientMirror
from hms_backend.seed import seed_if_empty
from hms_backend.services import init_db


@pytest.fixture
def store(tmp_path):
    """Store vuoto (tabelle create, nessun seed)."""
    db.configure_engine(f"sqlite:///{tmp_path / 'test.sqlite'}")
    init_db()
    yield
    db.engine.dispose()


@pytest.fixture
def seeded(store):
    seed_if_empty()


@pytest.fixture
def client(store):
    # il context manager esegue lo startup: check store, tabelle, seed
    with TestClient(app) as c:
        yield c


@pytest.fixture
def mirror(client) -> ClientMirror:
    return ClientMirror(base_url=str(client.base_url), session=client)
