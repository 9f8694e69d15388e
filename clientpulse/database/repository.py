"""Persistence boundary consumed by the engine services.

Services depend on the `EngagementRepository` protocol; `SQLAlchemyRepository`
is the shipped implementation over a single session (one unit of work).
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import date, datetime
from typing import Protocol

from sqlalchemy import func, or_, select, update
from sqlalchemy.orm import Session

from clientpulse.core.enums import AgentStatus, ClientStatus, PipelineStage
from clientpulse.models import Agent, Alert, Client, Interaction
from clientpulse.models.base import ensure_utc, utcnow


class EngagementRepository(Protocol):
    session: Session

    def get_client(self, client_id: str, for_update: bool = False) -> Client | None: ...

    def get_agent(self, agent_id: str, for_update: bool = False) -> Agent | None: ...

    def list_clients(
        self,
        agent_id: str | None = None,
        statuses: Iterable[ClientStatus] | None = None,
        stage: PipelineStage | None = None,
        search: str | None = None,
        for_update: bool = False,
    ) -> list[Client]: ...

    def list_agents(
        self,
        statuses: Iterable[AgentStatus] | None = None,
        exclude_statuses: Iterable[AgentStatus] | None = None,
        search: str | None = None,
        ids: Iterable[str] | None = None,
        for_update: bool = False,
    ) -> list[Agent]: ...

    def find_agent_by_email(self, email: str) -> Agent | None: ...

    def add(self, row: object) -> None: ...

    def append_interaction(self, interaction: Interaction) -> Interaction: ...

    def list_interactions(
        self,
        client_id: str | None = None,
        agent_id: str | None = None,
        since: datetime | None = None,
        limit: int | None = None,
    ) -> list[Interaction]: ...

    def get_interaction(self, interaction_id: str) -> Interaction | None: ...

    def list_open_alerts(self, client_id: str | None = None) -> list[Alert]: ...

    def close_open_alerts(self, client_id: str) -> None: ...

    def get_alert(self, alert_id: str) -> Alert | None: ...

    def reassign_and_deactivate(
        self,
        agent_id: str,
        assignments: Mapping[str, str],
        deactivation_reason: str,
        deactivation_date: date,
    ) -> bool: ...

    def refresh(self, row: object) -> None: ...

    def flush(self) -> None: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...

    def close(self) -> None: ...


class SQLAlchemyRepository:
    """Repository over one SQLAlchemy session."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def _locked(self, stmt):
        # Locked reads reload rows from the store; pending edits must be flushed first.
        self.session.flush()
        return stmt.with_for_update().execution_options(populate_existing=True)

    def get_client(self, client_id: str, for_update: bool = False) -> Client | None:
        stmt = select(Client).where(Client.id == client_id)
        if for_update:
            stmt = self._locked(stmt)
        return self.session.scalars(stmt).first()

    def get_agent(self, agent_id: str, for_update: bool = False) -> Agent | None:
        stmt = select(Agent).where(Agent.id == agent_id)
        if for_update:
            stmt = self._locked(stmt)
        return self.session.scalars(stmt).first()

    def list_clients(
        self,
        agent_id: str | None = None,
        statuses: Iterable[ClientStatus] | None = None,
        stage: PipelineStage | None = None,
        search: str | None = None,
        for_update: bool = False,
    ) -> list[Client]:
        stmt = select(Client)
        if agent_id is not None:
            stmt = stmt.where(Client.assigned_agent_id == agent_id)
        if statuses is not None:
            stmt = stmt.where(Client.status.in_(list(statuses)))
        if stage is not None:
            stmt = stmt.where(Client.current_stage == stage)
        if search:
            pattern = f"%{search.strip()}%"
            stmt = stmt.where(
                or_(Client.name.ilike(pattern), Client.company.ilike(pattern), Client.email.ilike(pattern))
            )
        stmt = stmt.order_by(Client.created_at.desc(), Client.id)
        if for_update:
            stmt = self._locked(stmt)
        return list(self.session.scalars(stmt))

    def list_agents(
        self,
        statuses: Iterable[AgentStatus] | None = None,
        exclude_statuses: Iterable[AgentStatus] | None = None,
        search: str | None = None,
        ids: Iterable[str] | None = None,
        for_update: bool = False,
    ) -> list[Agent]:
        stmt = select(Agent)
        if statuses is not None:
            stmt = stmt.where(Agent.status.in_(list(statuses)))
        if exclude_statuses is not None:
            stmt = stmt.where(Agent.status.not_in(list(exclude_statuses)))
        if search:
            pattern = f"%{search.strip()}%"
            stmt = stmt.where(or_(Agent.name.ilike(pattern), Agent.email.ilike(pattern)))
        if ids is not None:
            stmt = stmt.where(Agent.id.in_(list(ids)))
        stmt = stmt.order_by(Agent.name, Agent.id)
        if for_update:
            stmt = self._locked(stmt)
        return list(self.session.scalars(stmt))

    def find_agent_by_email(self, email: str) -> Agent | None:
        stmt = select(Agent).where(func.lower(Agent.email) == email.strip().lower())
        return self.session.scalars(stmt).first()

    def add(self, row: object) -> None:
        self.session.add(row)

    def append_interaction(self, interaction: Interaction) -> Interaction:
        """Insert the interaction, refresh the client's recency fields and close its alerts."""
        self.session.add(interaction)
        client = self.get_client(interaction.client_id, for_update=True)
        if client is not None:
            occurred_at = ensure_utc(interaction.date)
            previous = ensure_utc(client.last_interaction_date)
            if previous is None or occurred_at >= previous:
                client.last_interaction_date = occurred_at
                client.next_action = interaction.next_action
                client.next_action_date = interaction.next_action_date
            client.updated_at = utcnow()
        self.close_open_alerts(interaction.client_id)
        self.session.flush()
        return interaction

    def list_interactions(
        self,
        client_id: str | None = None,
        agent_id: str | None = None,
        since: datetime | None = None,
        limit: int | None = None,
    ) -> list[Interaction]:
        stmt = select(Interaction)
        if client_id is not None:
            stmt = stmt.where(Interaction.client_id == client_id)
        if agent_id is not None:
            stmt = stmt.where(Interaction.agent_id == agent_id)
        if since is not None:
            stmt = stmt.where(Interaction.date >= since)
        stmt = stmt.order_by(Interaction.date.desc(), Interaction.created_at.desc())
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self.session.scalars(stmt))

    def get_interaction(self, interaction_id: str) -> Interaction | None:
        return self.session.get(Interaction, interaction_id)

    def list_open_alerts(self, client_id: str | None = None) -> list[Alert]:
        stmt = select(Alert).where(Alert.closed_at.is_(None))
        if client_id is not None:
            stmt = stmt.where(Alert.client_id == client_id)
        stmt = stmt.order_by(Alert.created_at, Alert.id)
        return list(self.session.scalars(stmt))

    def close_open_alerts(self, client_id: str) -> None:
        self.session.execute(
            update(Alert)
            .where(Alert.client_id == client_id, Alert.closed_at.is_(None))
            .values(closed_at=utcnow())
            .execution_options(synchronize_session="fetch")
        )

    def get_alert(self, alert_id: str) -> Alert | None:
        return self.session.get(Alert, alert_id)

    def reassign_and_deactivate(
        self,
        agent_id: str,
        assignments: Mapping[str, str],
        deactivation_reason: str,
        deactivation_date: date,
    ) -> bool:
        """Apply every reassignment and deactivate the agent in the open transaction.

        Returns False (and writes nothing to the agent) when the agent was already
        inactive; the caller must then roll back the client updates.
        """
        now = utcnow()
        for client_id, new_agent_id in assignments.items():
            self.session.execute(
                update(Client)
                .where(Client.id == client_id)
                .values(assigned_agent_id=new_agent_id, updated_at=now)
                .execution_options(synchronize_session="fetch")
            )
        result = self.session.execute(
            update(Agent)
            .where(Agent.id == agent_id, Agent.status != AgentStatus.INACTIVE)
            .values(
                status=AgentStatus.INACTIVE,
                deactivation_reason=deactivation_reason,
                deactivation_date=deactivation_date,
                updated_at=now,
            )
            .execution_options(synchronize_session="fetch")
        )
        self.session.flush()
        return result.rowcount == 1

    def refresh(self, row: object) -> None:
        self.session.refresh(row)

    def flush(self) -> None:
        self.session.flush()

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

    def close(self) -> None:
        self.session.close()
