"""Raw staleness alert rows produced by detection passes."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from clientpulse.core.enums import AlertLevel, NotificationStatus, Tier
from clientpulse.models.base import AuditMixin, Base, enum_column, new_id


class Alert(Base, AuditMixin):
    __tablename__ = "client_alerts"
    __table_args__ = (Index("idx_alerts_client_open", "client_id", "closed_at"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    client_id: Mapped[str] = mapped_column(ForeignKey("clients.id", ondelete="RESTRICT"), nullable=False)
    days_without_interaction: Mapped[int] = mapped_column(Integer, nullable=False)
    tier: Mapped[Tier] = mapped_column(enum_column(Tier), nullable=False)
    alert_level: Mapped[AlertLevel] = mapped_column(enum_column(AlertLevel), nullable=False)
    notification_status: Mapped[NotificationStatus] = mapped_column(
        enum_column(NotificationStatus), default=NotificationStatus.PENDING, nullable=False
    )
    closed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
