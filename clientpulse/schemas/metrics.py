"""Metrics response schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from clientpulse.core.enums import AgentStatus, PipelineStage, Tier


class TierBucketResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    count: int
    percentage: float


class AgentMetricsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    agent_id: str
    agent_name: str
    agent_status: AgentStatus
    active_clients: int
    inactive_clients: int
    at_risk_clients: int
    total_clients: int
    active_percentage: float
    at_risk_percentage: float
    needs_attention: bool
    high_risk: bool
    tiers: dict[Tier, int]


class MetricsSnapshotResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    summary: dict[Tier, TierBucketResponse]
    by_agent: list[AgentMetricsResponse]
    generated_at: datetime


class StageDwellResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    stage: PipelineStage
    client_count: int
    average_days: float
    max_days: int


class MonthlyPerformanceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    month: str
    agent_id: str
    agent_name: str
    clients_contacted: int
    interactions: int
