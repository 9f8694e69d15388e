"""Canonical enum values for clients, agents, interactions and alerts."""

from __future__ import annotations

import enum


class ClientStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    AT_RISK = "at_risk"


class AgentStatus(str, enum.Enum):
    ONLINE = "online"
    BUSY = "busy"
    OFFLINE = "offline"
    INACTIVE = "inactive"


class AgentRole(str, enum.Enum):
    AGENT = "agent"
    ADMIN = "admin"


class PipelineStage(str, enum.Enum):
    """Sales pipeline stages in their advisory order."""

    COMMUNICATION = "communication"
    QUOTATION = "quotation"
    DEPOSIT = "deposit"
    APPROVAL = "approval"
    SHIPPING = "shipping"
    POST_SALE = "post_sale"


class InteractionType(str, enum.Enum):
    CALL = "call"
    EMAIL = "email"
    VISIT = "visit"
    CONSULTATION = "consultation"
    STAGE_CHANGE = "stage_change"


class InteractionPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class InteractionStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Tier(str, enum.Enum):
    """Buckets of whole days since the last interaction."""

    DAYS_0_30 = "0-30"
    DAYS_31_60 = "31-60"
    DAYS_61_90 = "61-90"
    DAYS_90_PLUS = "90+"


class AlertLevel(str, enum.Enum):
    NORMAL = "normal"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def severity(self) -> int:
        return _ALERT_SEVERITY[self]


_ALERT_SEVERITY = {
    AlertLevel.NORMAL: 0,
    AlertLevel.MEDIUM: 1,
    AlertLevel.HIGH: 2,
    AlertLevel.CRITICAL: 3,
}


class NotificationStatus(str, enum.Enum):
    PENDING = "pending"
    SENT = "sent"
    READ = "read"


class DeactivationReason(str, enum.Enum):
    RESIGNATION = "resignation"
    TERMINATION = "termination"
    LEAVE = "leave"
    OTHER = "other"


PIPELINE_ORDER: tuple[PipelineStage, ...] = tuple(PipelineStage)
TIER_ORDER: tuple[Tier, ...] = tuple(Tier)

TIER_ALERT_LEVELS: dict[Tier, AlertLevel] = {
    Tier.DAYS_0_30: AlertLevel.NORMAL,
    Tier.DAYS_31_60: AlertLevel.MEDIUM,
    Tier.DAYS_61_90: AlertLevel.HIGH,
    Tier.DAYS_90_PLUS: AlertLevel.CRITICAL,
}
