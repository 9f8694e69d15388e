"""Client, pipeline and interaction endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from clientpulse.core.dependencies import get_db_session
from clientpulse.core.enums import ClientStatus, PipelineStage
from clientpulse.core.exceptions import ValidationError
from clientpulse.schemas.clients import (
    ClientAssignmentRequest,
    ClientCreateRequest,
    ClientResponse,
    ClientStageUpdateRequest,
    ClientStatusUpdateRequest,
    RecencyResponse,
)
from clientpulse.schemas.interactions import InteractionCreateRequest, InteractionResponse
from clientpulse.services.agent_service import AgentService
from clientpulse.services.client_service import ClientService
from clientpulse.services.interaction_service import InteractionService
from clientpulse.services.pipeline_service import PipelineService

router = APIRouter(prefix="/clients", tags=["clients"])


def _choice(enum_cls, value: str | None, field: str):
    if value is None:
        return None
    try:
        return enum_cls(value)
    except ValueError as exc:
        raise ValidationError({field: f"Unsupported {field}: {value}"}) from exc


@router.get("", response_model=list[ClientResponse])
def list_clients(
    agent_id: str | None = Query(default=None, max_length=36),
    status: str | None = Query(default=None),
    stage: str | None = Query(default=None),
    search: str | None = Query(default=None, max_length=255),
    db: Session = Depends(get_db_session),
) -> list[ClientResponse]:
    clients = ClientService(db).list_clients(
        agent_id=agent_id,
        status=_choice(ClientStatus, status, "status"),
        stage=_choice(PipelineStage, stage, "stage"),
        search=search,
    )
    return [ClientResponse.model_validate(client) for client in clients]


@router.post("", response_model=ClientResponse, status_code=201)
def create_client(payload: ClientCreateRequest, db: Session = Depends(get_db_session)) -> ClientResponse:
    client = ClientService(db).create_client(payload.model_dump(exclude_none=True))
    return ClientResponse.model_validate(client)


@router.get("/{client_id}", response_model=ClientResponse)
def get_client(client_id: str, db: Session = Depends(get_db_session)) -> ClientResponse:
    return ClientResponse.model_validate(ClientService(db).get_client(client_id))


@router.put("/{client_id}/stage", response_model=ClientResponse)
def transition_stage(
    client_id: str,
    payload: ClientStageUpdateRequest,
    db: Session = Depends(get_db_session),
) -> ClientResponse:
    client = PipelineService(db).transition_stage(
        client_id,
        payload.stage,
        note=payload.note,
        agent_id=payload.agent_id,
    )
    return ClientResponse.model_validate(client)


@router.get("/{client_id}/dwell")
def stage_dwell(client_id: str, db: Session = Depends(get_db_session)) -> dict:
    elapsed = PipelineService(db).dwell_time(client_id)
    return {
        "client_id": client_id,
        "dwell_seconds": None if elapsed is None else int(elapsed.total_seconds()),
        "dwell_days": None if elapsed is None else elapsed.days,
    }


@router.put("/{client_id}/status", response_model=ClientResponse)
def set_client_status(
    client_id: str,
    payload: ClientStatusUpdateRequest,
    db: Session = Depends(get_db_session),
) -> ClientResponse:
    return ClientResponse.model_validate(AgentService(db).set_client_status(client_id, payload.status))


@router.put("/{client_id}/assignment", response_model=ClientResponse)
def assign_client(
    client_id: str,
    payload: ClientAssignmentRequest,
    db: Session = Depends(get_db_session),
) -> ClientResponse:
    return ClientResponse.model_validate(AgentService(db).assign_client(client_id, payload.agent_id))


@router.get("/{client_id}/recency", response_model=RecencyResponse)
def client_recency(client_id: str, db: Session = Depends(get_db_session)) -> RecencyResponse:
    return RecencyResponse.model_validate(ClientService(db).recency(client_id))


@router.get("/{client_id}/interactions", response_model=list[InteractionResponse])
def list_client_interactions(
    client_id: str,
    limit: int = Query(default=100, ge=1, le=500),
    db: Session = Depends(get_db_session),
) -> list[InteractionResponse]:
    ClientService(db).get_client(client_id)
    interactions = InteractionService(db).list_interactions(client_id=client_id, limit=limit)
    return [InteractionResponse.model_validate(row) for row in interactions]


@router.post("/{client_id}/interactions", response_model=InteractionResponse, status_code=201)
def log_interaction(
    client_id: str,
    payload: InteractionCreateRequest,
    db: Session = Depends(get_db_session),
) -> InteractionResponse:
    body = payload.model_dump(exclude_none=True)
    body["client_id"] = client_id
    return InteractionResponse.model_validate(InteractionService(db).log_interaction(body))
