"""Pydantic schema package for API contracts."""

from clientpulse.schemas.agents import AgentCreateRequest, AgentResponse, AgentStatusUpdateRequest, AgentUpdateRequest
from clientpulse.schemas.alerts import AlertResponse, MarkReadResponse, PendingCountResponse, ScanResponse
from clientpulse.schemas.clients import (
    ClientAssignmentRequest,
    ClientCreateRequest,
    ClientResponse,
    ClientStageUpdateRequest,
    ClientStatusUpdateRequest,
    RecencyRequest,
    RecencyResponse,
)
from clientpulse.schemas.common import APIEnvelope, ErrorEnvelope, ValidationErrorEnvelope
from clientpulse.schemas.interactions import InteractionCreateRequest, InteractionResponse, InteractionUpdateRequest
from clientpulse.schemas.metrics import (
    AgentMetricsResponse,
    MetricsSnapshotResponse,
    MonthlyPerformanceResponse,
    StageDwellResponse,
    TierBucketResponse,
)
from clientpulse.schemas.reassignment import DeactivationRequest, ReassignmentCandidatesResponse

__all__ = [
    "APIEnvelope",
    "AgentCreateRequest",
    "AgentMetricsResponse",
    "AgentResponse",
    "AgentStatusUpdateRequest",
    "AgentUpdateRequest",
    "AlertResponse",
    "ClientAssignmentRequest",
    "ClientCreateRequest",
    "ClientResponse",
    "ClientStageUpdateRequest",
    "ClientStatusUpdateRequest",
    "DeactivationRequest",
    "ErrorEnvelope",
    "InteractionCreateRequest",
    "InteractionResponse",
    "InteractionUpdateRequest",
    "MarkReadResponse",
    "MetricsSnapshotResponse",
    "MonthlyPerformanceResponse",
    "PendingCountResponse",
    "ReassignmentCandidatesResponse",
    "RecencyRequest",
    "RecencyResponse",
    "ScanResponse",
    "StageDwellResponse",
    "TierBucketResponse",
    "ValidationErrorEnvelope",
]
