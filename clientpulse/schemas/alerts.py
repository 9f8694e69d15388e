"""Alert response schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from clientpulse.core.enums import AlertLevel, NotificationStatus, Tier


class AlertResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str | None = None
    client_id: str
    client_name: str | None = None
    client_company: str | None = None
    days_without_interaction: int
    alert_level: AlertLevel
    tier: Tier | None = None
    notification_status: NotificationStatus
    created_at: datetime | None = None


class PendingCountResponse(BaseModel):
    pending: int


class ScanResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    scanned: int
    created: int
    refreshed: int


class MarkReadResponse(BaseModel):
    client_id: str
    marked_read: int
