"""Reassignment plan and deactivation request schemas."""

from __future__ import annotations

from pydantic import BaseModel, Field

from clientpulse.schemas.agents import AgentResponse
from clientpulse.schemas.clients import ClientResponse


class ReassignmentCandidatesResponse(BaseModel):
    agent: AgentResponse
    active_clients: list[ClientResponse]
    other_clients: list[ClientResponse]
    available_agents: list[AgentResponse]
    snapshot: list[str]


class DeactivationRequest(BaseModel):
    reason: str = Field(min_length=1, max_length=32)
    details: str = Field(default="", max_length=2000)
    effective_date: str = Field(min_length=1, max_length=32)
    assignments: dict[str, str] = Field(default_factory=dict)
    snapshot: list[str] | None = None
    actor_id: str | None = Field(default=None, max_length=36)
