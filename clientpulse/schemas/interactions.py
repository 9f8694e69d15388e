"""Interaction request/response schemas for API contracts."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from clientpulse.core.enums import InteractionPriority, InteractionStatus, InteractionType


class InteractionCreateRequest(BaseModel):
    type: str | None = None
    agent_id: str | None = Field(default=None, max_length=36)
    date: str | None = None
    notes: str | None = Field(default=None, max_length=20000)
    priority: str | None = None
    status: str | None = None
    next_action: str | None = Field(default=None, max_length=10000)
    next_action_date: str | None = None


class InteractionUpdateRequest(BaseModel):
    notes: str | None = Field(default=None, max_length=20000)
    priority: str | None = None
    status: str | None = None
    next_action: str | None = Field(default=None, max_length=10000)
    next_action_date: str | None = None


class InteractionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    client_id: str
    agent_id: str
    type: InteractionType
    date: datetime
    notes: str
    priority: InteractionPriority
    status: InteractionStatus
    next_action: str | None = None
    next_action_date: datetime | None = None
    created_at: datetime | None = None
