"""Agent request/response schemas for API contracts."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from clientpulse.core.enums import AgentRole, AgentStatus


class AgentCreateRequest(BaseModel):
    # Field formats are checked by the roster service so every error is reported at once.
    name: str | None = Field(default=None, max_length=255)
    email: str | None = Field(default=None, max_length=320)
    whatsapp_number: str | None = Field(default=None, max_length=40)
    avatar: str | None = Field(default=None, max_length=500)
    role: str | None = None
    status: str | None = None


class AgentUpdateRequest(BaseModel):
    name: str | None = Field(default=None, max_length=255)
    email: str | None = Field(default=None, max_length=320)
    whatsapp_number: str | None = Field(default=None, max_length=40)
    avatar: str | None = Field(default=None, max_length=500)
    role: str | None = None
    status: str | None = None


class AgentStatusUpdateRequest(BaseModel):
    status: str = Field(min_length=1, max_length=32)


class AgentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    whatsapp_number: str
    avatar: str | None = None
    role: AgentRole
    status: AgentStatus
    deactivation_reason: str | None = None
    deactivation_date: date | None = None
    last_active: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
