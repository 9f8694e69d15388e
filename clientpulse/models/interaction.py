"""Interaction model module."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from clientpulse.core.enums import InteractionPriority, InteractionStatus, InteractionType
from clientpulse.models.base import AuditMixin, Base, enum_column, new_id


class Interaction(Base, AuditMixin):
    __tablename__ = "client_interactions"
    __table_args__ = (
        Index("idx_interactions_client_date", "client_id", "date"),
        Index("idx_interactions_agent_date", "agent_id", "date"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    client_id: Mapped[str] = mapped_column(ForeignKey("clients.id", ondelete="RESTRICT"), nullable=False)
    agent_id: Mapped[str] = mapped_column(ForeignKey("agents.id", ondelete="RESTRICT"), nullable=False)
    type: Mapped[InteractionType] = mapped_column(enum_column(InteractionType), nullable=False)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")
    priority: Mapped[InteractionPriority] = mapped_column(
        enum_column(InteractionPriority), default=InteractionPriority.MEDIUM, nullable=False
    )
    status: Mapped[InteractionStatus] = mapped_column(
        enum_column(InteractionStatus), default=InteractionStatus.PENDING, nullable=False
    )
    next_action: Mapped[str | None] = mapped_column(Text)
    next_action_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    client = relationship("Client", back_populates="interactions")
    agent = relationship("Agent")
