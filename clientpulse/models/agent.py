"""Agent model module."""

from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import Date, DateTime, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from clientpulse.core.enums import AgentRole, AgentStatus
from clientpulse.models.base import AuditMixin, Base, enum_column, new_id


class Agent(Base, AuditMixin):
    __tablename__ = "agents"
    __table_args__ = (
        UniqueConstraint("email", name="uq_agents_email"),
        Index("idx_agents_status", "status"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    whatsapp_number: Mapped[str] = mapped_column(String(40), nullable=False)
    avatar: Mapped[str | None] = mapped_column(String(500))
    role: Mapped[AgentRole] = mapped_column(enum_column(AgentRole), default=AgentRole.AGENT, nullable=False)
    status: Mapped[AgentStatus] = mapped_column(enum_column(AgentStatus), default=AgentStatus.OFFLINE, nullable=False)
    deactivation_reason: Mapped[str | None] = mapped_column(Text)
    deactivation_date: Mapped[date | None] = mapped_column(Date)
    last_active: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    clients = relationship("Client", back_populates="assigned_agent")

    @property
    def is_inactive(self) -> bool:
        return self.status == AgentStatus.INACTIVE
