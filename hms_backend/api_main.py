from __future__ import annotations

import logging
from typing import Any

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.exc import SQLAlchemyError

from hms_backend.config import HOST, LOG_LEVEL, PORT
from hms_backend.db import check_connection
from hms_backend.ids import IdAllocationError
from hms_backend.seed import seed_if_empty
from hms_backend.services import (
    InvalidStatus,
    TransitionNotAllowed,
    create_client,
    create_practitioner,
    create_visit,
    delete_practitioner,
    delete_visit,
    get_client,
    get_session_identity,
    init_db,
    list_clients,
    list_practitioners,
    list_visits,
    set_session_identity,
    update_visit_status,
    visit_status_history,
)

logger = logging.getLogger(__name__)

app = FastAPI(title="HMS Records API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)



# Startup

@app.on_event("startup")
def startup() -> None:
    # Store irraggiungibile -> StoreUnavailable, l'avvio si interrompe
    check_connection()
    init_db()
    seed_if_empty()



# Gestione errori

@app.exception_handler(SQLAlchemyError)
def store_fault(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Errore store su %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Errore di accesso ai dati"})


@app.exception_handler(IdAllocationError)
def allocation_fault(request: Request, exc: IdAllocationError) -> JSONResponse:
    logger.error("%s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"error": str(exc)})


@app.exception_handler(InvalidStatus)
def invalid_status(request: Request, exc: InvalidStatus) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content={"error": str(exc)})


@app.exception_handler(TransitionNotAllowed)
def transition_not_allowed(request: Request, exc: TransitionNotAllowed) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"error": str(exc)})



# Schemi
# Nessun campo obbligatorio; un eventuale "id" nel body viene ignorato.

class PractitionerIn(BaseModel):
    name: str | None = None
    specialization: str | None = None
    contact: str | None = None
    email: str | None = None


class ClientIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str | None = None
    age: int | None = Field(default=None, ge=0)
    contact: str | None = None
    email: str | None = None
    last_visit: str | None = Field(default=None, alias="lastVisit")


class VisitIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    client_name: str | None = Field(default=None, alias="clientName")
    practitioner_name: str | None = Field(default=None, alias="practitionerName")
    client_id: int | None = Field(default=None, alias="clientId")
    practitioner_id: int | None = Field(default=None, alias="practitionerId")
    date: str | None = None
    time: str | None = None
    reason: str | None = None
    status: str | None = None


class StatusIn(BaseModel):
    status: str


class SessionIdentityIn(BaseModel):
    id: int | None = None
    name: str | None = None
    email: str | None = None



# Professionisti

@app.get("/api/practitioners")
def api_practitioners() -> list[dict]:
    return list_practitioners()


@app.post("/api/practitioners")
def api_create_practitioner(payload: PractitionerIn) -> dict[str, Any]:
    return create_practitioner(**payload.model_dump())


@app.delete("/api/practitioners/{practitioner_id}")
def api_delete_practitioner(practitioner_id: int) -> dict[str, Any]:
    delete_practitioner(practitioner_id)
    return {"success": True}



# Clienti

@app.get("/api/clients")
def api_clients() -> list[dict]:
    return list_clients()


@app.get("/api/clients/{client_id}")
def api_client(client_id: int) -> dict[str, Any]:
    return get_client(client_id)


@app.post("/api/clients")
def api_create_client(payload: ClientIn) -> dict[str, Any]:
    return create_client(**payload.model_dump())



# Visite

@app.get("/api/visits")
def api_visits() -> list[dict]:
    return list_visits()


@app.post("/api/visits")
def api_create_visit(payload: VisitIn) -> dict[str, Any]:
    return create_visit(**payload.model_dump())


@app.delete("/api/visits/{visit_id}")
def api_delete_visit(visit_id: int) -> dict[str, Any]:
    delete_visit(visit_id)
    return {"success": True}


@app.put("/api/visits/{visit_id}/status")
def api_update_visit_status(visit_id: int, payload: StatusIn) -> dict[str, Any]:
    return update_visit_status(visit_id, payload.status)


@app.get("/api/visits/{visit_id}/history")
def api_visit_history(visit_id: int) -> list[dict]:
    return visit_status_history(visit_id)



# Identità di sessione

@app.get("/api/sessionIdentity")
def api_session_identity() -> dict[str, Any]:
    return get_session_identity()


@app.put("/api/sessionIdentity")
def api_set_session_identity(payload: SessionIdentityIn) -> dict[str, Any]:
    # merge dei soli campi presenti nel body
    return set_session_identity(**payload.model_dump(exclude_unset=True))



def main() -> None:
    logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logger.info("API in ascolto su http://%s:%d", HOST, PORT)
    uvicorn.run(app, host=HOST, port=PORT)


if __name__ == "__main__":
    main()
