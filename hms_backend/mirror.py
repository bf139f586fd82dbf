from __future__ import annotations

import enum
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any

import requests

from .config import API_BASE, API_TIMEOUT

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Chiamata all'API fallita (rete o risposta HTTP >= 400)."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class MirrorState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    POPULATED = "populated"


class ClientMirror:
    """
    Copia in memoria dei dati dell'API, letta in modo sincrono.

    - init(): scarica le quattro collezioni in parallelo
    - get_*(): copie superficiali, il chiamante non può alterare lo stato
    - mutazioni: prima l'API, poi (solo se ok) la copia locale

    Una istanza per sessione: nessuna garanzia di coerenza tra istanze diverse.
    """

    def __init__(
        self,
        base_url: str | None = None,
        session: Any | None = None,
        timeout: float | None = None,
    ) -> None:
        self.base_url = (base_url or API_BASE).rstrip("/")
        # qualunque oggetto con .request(method, url, json=..., timeout=...)
        self._http = session if session is not None else requests.Session()
        self.timeout = timeout if timeout is not None else API_TIMEOUT

        self.state = MirrorState.UNINITIALIZED
        self._practitioners: list[dict] = []
        self._clients: list[dict] = []
        self._visits: list[dict] = []
        self._identity: dict[str, Any] = {}

    # =========================
    # HTTP
    # =========================
    def _request(self, method: str, path: str, payload: dict | None = None) -> Any:
        url = f"{self.base_url}/api{path}"
        try:
            r = self._http.request(method, url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise ApiError(f"{method} {path}: {e}") from e

        if r.status_code >= 400:
            raise ApiError(f"{method} {path}: HTTP {r.status_code}", status_code=r.status_code)
        try:
            return r.json()
        except ValueError as e:
            raise ApiError(f"{method} {path}: risposta non JSON") from e

    # =========================
    # Caricamento iniziale
    # =========================
    def init(self) -> dict[str, ApiError]:
        """
        Carica lo snapshot completo.
        Una fetch fallita lascia la sua fetta com'era (vuota al primo avvio)
        e finisce nella mappa degli errori ritornata; le altre si applicano.
        """
        fetches = {
            "practitioners": "/practitioners",
            "clients": "/clients",
            "visits": "/visits",
            "identity": "/sessionIdentity",
        }

        with ThreadPoolExecutor(max_workers=len(fetches)) as pool:
            futures = {name: pool.submit(self._request, "GET", path) for name, path in fetches.items()}

        errors: dict[str, ApiError] = {}
        for name, future in futures.items():
            try:
                data = future.result()
            except ApiError as e:
                logger.error("Caricamento %s fallito: %s", name, e)
                errors[name] = e
                continue

            if name == "identity":
                # {} = identità assente: si tiene quella precedente
                if data:
                    self._identity = dict(data)
            else:
                setattr(self, f"_{name}", list(data))

        self.state = MirrorState.POPULATED
        return errors

    @property
    def populated(self) -> bool:
        return self.state is MirrorState.POPULATED

    # =========================
    # Letture sincrone
    # =========================
    def get_practitioners(self) -> list[dict]:
        return list(self._practitioners)

    def get_clients(self) -> list[dict]:
        return list(self._clients)

    def get_visits(self) -> list[dict]:
        return list(self._visits)

    def get_session_identity(self) -> dict[str, Any]:
        return dict(self._identity)

    def find_client(self, client_id: int) -> dict | None:
        return next((c for c in self._clients if c.get("id") == client_id), None)

    def search_clients(self, term: str) -> list[dict]:
        term = term.strip().lower()
        return [c for c in self._clients if term in (c.get("name") or "").lower()]

    def filter_visits(self, date: str | None = None, practitioner_name: str | None = None) -> list[dict]:
        visits = self._visits
        if date:
            visits = [v for v in visits if v.get("date") == date]
        if practitioner_name:
            visits = [v for v in visits if v.get("practitionerName") == practitioner_name]
        return list(visits)

    def visits_for_client(self, client_name: str) -> list[dict]:
        return [v for v in self._visits if v.get("clientName") == client_name]

    def overview(self, today: str) -> dict[str, Any]:
        """Contatori del cruscotto + visite del giorno (today = YYYY-MM-DD)."""
        todays = self.filter_visits(date=today)
        return {
            "practitioners": len(self._practitioners),
            "clients": len(self._clients),
            "visits": len(self._visits),
            "today": len(todays),
            "todayVisits": todays,
        }

    # =========================
    # Mutazioni
    # =========================
    def _mutate(self, what: str, method: str, path: str, payload: dict | None = None) -> Any:
        try:
            return self._request(method, path, payload)
        except ApiError as e:
            logger.error("%s fallito: %s", what, e)
            raise

    def add_practitioner(self, practitioner: dict[str, Any]) -> dict[str, Any]:
        created = self._mutate("Aggiunta professionista", "POST", "/practitioners", practitioner)
        self._practitioners = [*self._practitioners, created]
        return created

    def delete_practitioner(self, practitioner_id: int) -> None:
        self._mutate("Cancellazione professionista", "DELETE", f"/practitioners/{practitioner_id}")
        self._practitioners = [p for p in self._practitioners if p.get("id") != practitioner_id]

    def add_visit(self, visit: dict[str, Any]) -> dict[str, Any]:
        created = self._mutate("Prenotazione visita", "POST", "/visits", visit)
        self._visits = [*self._visits, created]
        return created

    def delete_visit(self, visit_id: int) -> None:
        self._mutate("Cancellazione visita", "DELETE", f"/visits/{visit_id}")
        self._visits = [v for v in self._visits if v.get("id") != visit_id]

    def update_visit_status(self, visit_id: int, status: str) -> dict[str, Any]:
        """Ritorna la visita aggiornata, {} se l'API non la conosce (copia locale invariata)."""
        updated = self._mutate("Cambio stato visita", "PUT", f"/visits/{visit_id}/status", {"status": status})
        if updated:
            self._visits = [updated if v.get("id") == visit_id else v for v in self._visits]
        return updated

    def update_session_identity(self, fields: dict[str, Any]) -> dict[str, Any]:
        merged = self._mutate("Aggiornamento identità", "PUT", "/sessionIdentity", fields)
        self._identity = {**self._identity, **merged}
        return dict(self._identity)
