"""Agent roster and deactivation endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from clientpulse.core.dependencies import get_db_session
from clientpulse.core.enums import AgentStatus
from clientpulse.core.exceptions import ValidationError
from clientpulse.schemas.agents import AgentCreateRequest, AgentResponse, AgentStatusUpdateRequest, AgentUpdateRequest
from clientpulse.schemas.clients import ClientResponse
from clientpulse.schemas.reassignment import DeactivationRequest, ReassignmentCandidatesResponse
from clientpulse.services.agent_service import AgentService
from clientpulse.services.client_service import ClientService
from clientpulse.services.reassignment_service import ReassignmentPlan, ReassignmentService

router = APIRouter(prefix="/agents", tags=["agents"])


def _status_filter(value: str | None) -> AgentStatus | None:
    if value is None:
        return None
    try:
        return AgentStatus(value)
    except ValueError as exc:
        raise ValidationError({"status": f"Unsupported status: {value}"}) from exc


@router.get("", response_model=list[AgentResponse])
def list_agents(
    status: str | None = Query(default=None),
    search: str | None = Query(default=None, max_length=255),
    db: Session = Depends(get_db_session),
) -> list[AgentResponse]:
    agents = AgentService(db).list_agents(status=_status_filter(status), search=search)
    return [AgentResponse.model_validate(agent) for agent in agents]


@router.get("/available", response_model=list[AgentResponse])
def list_available_agents(
    exclude: str | None = Query(default=None, max_length=36),
    db: Session = Depends(get_db_session),
) -> list[AgentResponse]:
    agents = AgentService(db).list_available_agents(exclude_agent_id=exclude)
    return [AgentResponse.model_validate(agent) for agent in agents]


@router.post("", response_model=AgentResponse, status_code=201)
def create_agent(payload: AgentCreateRequest, db: Session = Depends(get_db_session)) -> AgentResponse:
    agent = AgentService(db).create_agent(payload.model_dump(exclude_none=True))
    return AgentResponse.model_validate(agent)


@router.get("/{agent_id}", response_model=AgentResponse)
def get_agent(agent_id: str, db: Session = Depends(get_db_session)) -> AgentResponse:
    return AgentResponse.model_validate(AgentService(db).get_agent(agent_id))


@router.patch("/{agent_id}", response_model=AgentResponse)
def update_agent(agent_id: str, payload: AgentUpdateRequest, db: Session = Depends(get_db_session)) -> AgentResponse:
    agent = AgentService(db).update_agent(agent_id, payload.model_dump(exclude_unset=True))
    return AgentResponse.model_validate(agent)


@router.put("/{agent_id}/status", response_model=AgentResponse)
def set_agent_status(
    agent_id: str,
    payload: AgentStatusUpdateRequest,
    db: Session = Depends(get_db_session),
) -> AgentResponse:
    return AgentResponse.model_validate(AgentService(db).set_status(agent_id, payload.status))


@router.get("/{agent_id}/clients", response_model=list[ClientResponse])
def list_agent_clients(agent_id: str, db: Session = Depends(get_db_session)) -> list[ClientResponse]:
    AgentService(db).get_agent(agent_id)
    clients = ClientService(db).list_clients(agent_id=agent_id)
    return [ClientResponse.model_validate(client) for client in clients]


@router.get("/{agent_id}/reassignment-plan", response_model=ReassignmentCandidatesResponse)
def plan_reassignment(agent_id: str, db: Session = Depends(get_db_session)) -> ReassignmentCandidatesResponse:
    candidates = ReassignmentService(db).plan_reassignment(agent_id)
    return ReassignmentCandidatesResponse(
        agent=AgentResponse.model_validate(candidates.agent),
        active_clients=[ClientResponse.model_validate(client) for client in candidates.active_clients],
        other_clients=[ClientResponse.model_validate(client) for client in candidates.other_clients],
        available_agents=[AgentResponse.model_validate(agent) for agent in candidates.available_agents],
        snapshot=sorted(candidates.snapshot),
    )


@router.post("/{agent_id}/deactivate", response_model=AgentResponse)
def deactivate_agent(
    agent_id: str,
    payload: DeactivationRequest,
    db: Session = Depends(get_db_session),
) -> AgentResponse:
    plan = ReassignmentPlan(
        assignments=payload.assignments,
        snapshot=frozenset(payload.snapshot) if payload.snapshot is not None else None,
    )
    agent = ReassignmentService(db).commit_deactivation_with_retry(
        agent_id,
        reason=payload.reason,
        details=payload.details,
        effective_date=payload.effective_date,
        plan=plan,
        actor_id=payload.actor_id,
    )
    return AgentResponse.model_validate(agent)
