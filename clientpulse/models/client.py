"""Client model module."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from clientpulse.core.enums import ClientStatus, PipelineStage
from clientpulse.models.base import AuditMixin, Base, enum_column, new_id


class Client(Base, AuditMixin):
    __tablename__ = "clients"
    __table_args__ = (
        Index("idx_clients_agent_status", "assigned_agent_id", "status"),
        Index("idx_clients_stage", "current_stage"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    company: Mapped[str | None] = mapped_column(String(255))
    email: Mapped[str | None] = mapped_column(String(320))
    phone: Mapped[str | None] = mapped_column(String(40))
    status: Mapped[ClientStatus] = mapped_column(enum_column(ClientStatus), default=ClientStatus.ACTIVE, nullable=False)
    current_stage: Mapped[PipelineStage | None] = mapped_column(enum_column(PipelineStage))
    stage_start_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    assigned_agent_id: Mapped[str | None] = mapped_column(ForeignKey("agents.id", ondelete="RESTRICT"))
    last_interaction_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    next_action: Mapped[str | None] = mapped_column(Text)
    next_action_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    assigned_agent = relationship("Agent", back_populates="clients")
    interactions = relationship("Interaction", back_populates="client", order_by="Interaction.date.desc()")
