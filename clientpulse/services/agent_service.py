"""Agent roster service: agent lifecycle and the client ownership writes that go with it."""

from __future__ import annotations

import logging
from typing import Any

from clientpulse.core.enums import AgentRole, AgentStatus, ClientStatus
from clientpulse.core.exceptions import (
    AlreadyInactive,
    DeactivationRequiresReassignment,
    InvalidTarget,
    NotFoundError,
    PersistenceUnavailable,
    ValidationError,
)
from clientpulse.models import Agent, Client
from clientpulse.services.base_service import BaseService
from clientpulse.utils.validators import agent_field_errors, optional_text, sanitize_text

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = {"name", "email", "whatsapp_number", "avatar", "role", "status"}
_OWNER_LOCK_ATTEMPTS = 3


class AgentService(BaseService):
    """Roster Manager. `inactive` is never reachable from here; see `ReassignmentService`."""

    def _require_agent(self, agent_id: str, for_update: bool = False) -> Agent:
        agent = self.repository.get_agent(agent_id, for_update=for_update)
        if agent is None:
            raise NotFoundError("Agent", agent_id)
        return agent

    def _require_client(self, client_id: str, for_update: bool = False) -> Client:
        client = self.repository.get_client(client_id, for_update=for_update)
        if client is None:
            raise NotFoundError("Client", client_id)
        return client

    def _check_email_available(self, email: str, errors: dict[str, str], exclude_id: str | None = None) -> None:
        if "email" in errors:
            return
        existing = self.repository.find_agent_by_email(email)
        if existing is not None and existing.id != exclude_id:
            errors["email"] = "Email is already registered."

    @staticmethod
    def _coerce_choice(enum_cls, value: Any, field: str, errors: dict[str, str]):
        try:
            return enum_cls(value)
        except ValueError:
            errors[field] = f"Unsupported {field}: {value}"
            return None

    def create_agent(self, payload: dict[str, Any]) -> Agent:
        """Register a new agent; every invalid field is reported in one `ValidationError`."""
        with self.unit_of_work("agents.create") as repo:
            errors = agent_field_errors(payload)
            if "email" in payload and not errors.get("email"):
                self._check_email_available(payload["email"], errors)
            role = self._coerce_choice(AgentRole, payload.get("role", AgentRole.AGENT), "role", errors)
            status = self._coerce_choice(AgentStatus, payload.get("status", AgentStatus.OFFLINE), "status", errors)
            if status == AgentStatus.INACTIVE:
                errors["status"] = "New agents cannot be created inactive."
            if errors:
                raise ValidationError(errors)

            agent = Agent(
                name=sanitize_text(payload["name"], max_len=255),
                email=sanitize_text(payload["email"], max_len=320).lower(),
                whatsapp_number=sanitize_text(payload["whatsapp_number"], max_len=40),
                avatar=optional_text(payload.get("avatar"), max_len=500),
                role=role,
                status=status,
            )
            repo.add(agent)
            repo.flush()

        logger.info("agent.created", extra={"event": "agent.created", "agent_id": agent.id})
        return agent

    def get_agent(self, agent_id: str) -> Agent:
        with self.read("agents.get"):
            return self._require_agent(agent_id)

    def list_agents(self, status: AgentStatus | None = None, search: str | None = None) -> list[Agent]:
        with self.read("agents.list") as repo:
            statuses = [status] if status is not None else None
            return repo.list_agents(statuses=statuses, search=search)

    def list_available_agents(self, exclude_agent_id: str | None = None) -> list[Agent]:
        """Agents that may receive clients (anyone not inactive)."""
        with self.read("agents.list_available") as repo:
            agents = repo.list_agents(exclude_statuses=[AgentStatus.INACTIVE])
            return [agent for agent in agents if agent.id != exclude_agent_id]

    def update_agent(self, agent_id: str, partial: dict[str, Any]) -> Agent:
        unknown = set(partial) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError({field: "Field cannot be updated." for field in unknown})

        with self.unit_of_work("agents.update"):
            agent = self._require_agent(agent_id, for_update=True)
            errors = agent_field_errors(partial, partial=True)
            if "email" in partial:
                self._check_email_available(partial["email"], errors, exclude_id=agent.id)
            role = None
            if "role" in partial:
                role = self._coerce_choice(AgentRole, partial["role"], "role", errors)
            status = None
            if "status" in partial:
                status = self._coerce_choice(AgentStatus, partial["status"], "status", errors)
            if errors:
                raise ValidationError(errors)

            if status is not None:
                self._apply_status(agent, status)
            if "name" in partial:
                agent.name = sanitize_text(partial["name"], max_len=255)
            if "email" in partial:
                agent.email = sanitize_text(partial["email"], max_len=320).lower()
            if "whatsapp_number" in partial:
                agent.whatsapp_number = sanitize_text(partial["whatsapp_number"], max_len=40)
            if "avatar" in partial:
                agent.avatar = optional_text(partial["avatar"], max_len=500)
            if role is not None:
                agent.role = role

        logger.info(
            "agent.updated",
            extra={"event": "agent.updated", "agent_id": agent.id, "fields": sorted(partial)},
        )
        return agent

    def set_status(self, agent_id: str, status: AgentStatus | str) -> Agent:
        try:
            target = AgentStatus(status)
        except ValueError as exc:
            raise ValidationError({"status": f"Unsupported status: {status}"}) from exc

        with self.unit_of_work("agents.set_status"):
            agent = self._require_agent(agent_id, for_update=True)
            previous = agent.status
            self._apply_status(agent, target)

        logger.info(
            "agent.status_changed",
            extra={
                "event": "agent.status_changed",
                "agent_id": agent.id,
                "from_status": AgentStatus(previous).value,
                "to_status": target.value,
            },
        )
        return agent

    @staticmethod
    def _apply_status(agent: Agent, target: AgentStatus) -> None:
        if target == AgentStatus.INACTIVE:
            if agent.status == AgentStatus.INACTIVE:
                raise AlreadyInactive(agent.id)
            raise DeactivationRequiresReassignment(agent.id)
        if agent.status == AgentStatus.INACTIVE:
            # Reactivation clears the deactivation pair together.
            agent.deactivation_reason = None
            agent.deactivation_date = None
        agent.status = target

    def _lock_client_after_agents(self, client_id: str, agent_ids: set[str | None]) -> tuple[Client, dict[str, Agent]]:
        """Lock the client's owner and `agent_ids` first, then the client row.

        Agents before clients is the order the deactivation commit takes, so the
        two paths queue behind each other instead of deadlocking.
        """
        for _ in range(_OWNER_LOCK_ATTEMPTS):
            owner_id = self._require_client(client_id).assigned_agent_id
            wanted = {agent_id for agent_id in agent_ids | {owner_id} if agent_id is not None}
            agents = {agent.id: agent for agent in self.repository.list_agents(ids=wanted, for_update=True)}
            client = self._require_client(client_id, for_update=True)
            if client.assigned_agent_id == owner_id:
                return client, agents
        raise PersistenceUnavailable(f"Client {client_id} changed owner while being locked.")

    def assign_client(self, client_id: str, agent_id: str | None) -> Client:
        """Point a client at a new owner; an active client may not land on an inactive agent."""
        with self.unit_of_work("clients.assign"):
            client, agents = self._lock_client_after_agents(client_id, {agent_id})
            if agent_id is not None:
                agent = agents.get(agent_id)
                if agent is None:
                    raise NotFoundError("Agent", agent_id)
                if agent.status == AgentStatus.INACTIVE and client.status == ClientStatus.ACTIVE:
                    raise InvalidTarget(agent_id, "agent is inactive")
            client.assigned_agent_id = agent_id

        logger.info(
            "client.assigned",
            extra={"event": "client.assigned", "client_id": client.id, "agent_id": agent_id},
        )
        return client

    def set_client_status(self, client_id: str, status: ClientStatus | str) -> Client:
        try:
            target = ClientStatus(status)
        except ValueError as exc:
            raise ValidationError({"status": f"Unsupported status: {status}"}) from exc

        with self.unit_of_work("clients.set_status") as repo:
            # The owner lock makes a concurrent deactivation see this client.
            client, agents = self._lock_client_after_agents(client_id, set())
            owner = agents.get(client.assigned_agent_id)
            if target == ClientStatus.ACTIVE and owner is not None and owner.status == AgentStatus.INACTIVE:
                raise InvalidTarget(owner.id, "assigned agent is inactive; reassign the client first")
            client.status = target
            if target == ClientStatus.INACTIVE:
                repo.close_open_alerts(client.id)

        logger.info(
            "client.status_changed",
            extra={"event": "client.status_changed", "client_id": client.id, "status": target.value},
        )
        return client
