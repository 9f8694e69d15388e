"""Client request/response schemas for API contracts."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from clientpulse.core.enums import AlertLevel, ClientStatus, PipelineStage, Tier


class ClientCreateRequest(BaseModel):
    name: str | None = Field(default=None, max_length=255)
    company: str | None = Field(default=None, max_length=255)
    email: str | None = Field(default=None, max_length=320)
    phone: str | None = Field(default=None, max_length=40)
    assigned_agent_id: str | None = Field(default=None, max_length=36)


class ClientStageUpdateRequest(BaseModel):
    stage: str = Field(min_length=1, max_length=40)
    note: str | None = Field(default=None, max_length=10000)
    agent_id: str | None = Field(default=None, max_length=36)


class ClientStatusUpdateRequest(BaseModel):
    status: str = Field(min_length=1, max_length=32)


class ClientAssignmentRequest(BaseModel):
    agent_id: str | None = Field(default=None, max_length=36)


class ClientResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    company: str | None = None
    email: str | None = None
    phone: str | None = None
    status: ClientStatus
    current_stage: PipelineStage | None = None
    stage_start_date: datetime | None = None
    assigned_agent_id: str | None = None
    last_interaction_date: datetime | None = None
    next_action: str | None = None
    next_action_date: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class RecencyRequest(BaseModel):
    last_interaction_date: str | None = None
    now: datetime | None = None


class RecencyResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    tier: Tier
    alert_level: AlertLevel
    days: int | None = None
