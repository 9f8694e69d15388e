"""Client intake and read paths, including on-read recency classification."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from clientpulse.core.enums import AgentStatus, ClientStatus, PipelineStage
from clientpulse.core.exceptions import NotFoundError, ValidationError
from clientpulse.models import Client
from clientpulse.services.base_service import BaseService
from clientpulse.tracking.recency import Recency, classify
from clientpulse.utils.validators import is_valid_email, is_valid_phone, optional_text, sanitize_text

logger = logging.getLogger(__name__)


class ClientService(BaseService):
    def _require_client(self, client_id: str) -> Client:
        client = self.repository.get_client(client_id)
        if client is None:
            raise NotFoundError("Client", client_id)
        return client

    @staticmethod
    def _client_field_errors(payload: dict[str, Any]) -> dict[str, str]:
        errors: dict[str, str] = {}
        if not sanitize_text(payload.get("name")):
            errors["name"] = "Name is required."
        email = optional_text(payload.get("email"))
        if email is not None and not is_valid_email(email):
            errors["email"] = "Email is not valid."
        phone = optional_text(payload.get("phone"))
        if phone is not None and not is_valid_phone(phone):
            errors["phone"] = "Phone must contain at least 10 digits."
        return errors

    def create_client(self, payload: dict[str, Any], now: datetime | None = None) -> Client:
        """Register a client; new clients enter the pipeline at `communication`."""
        timestamp = self._now(now)
        with self.unit_of_work("clients.create") as repo:
            errors = self._client_field_errors(payload)
            agent_id = payload.get("assigned_agent_id")
            if agent_id is not None and "assigned_agent_id" not in errors:
                agent = repo.get_agent(agent_id, for_update=True)
                if agent is None:
                    errors["assigned_agent_id"] = "Agent does not exist."
                elif agent.status == AgentStatus.INACTIVE:
                    errors["assigned_agent_id"] = "Agent is inactive."
            if errors:
                raise ValidationError(errors)

            client = Client(
                name=sanitize_text(payload["name"], max_len=255),
                company=optional_text(payload.get("company"), max_len=255),
                email=optional_text(payload.get("email"), max_len=320),
                phone=optional_text(payload.get("phone"), max_len=40),
                status=ClientStatus.ACTIVE,
                current_stage=PipelineStage.COMMUNICATION,
                stage_start_date=timestamp,
                assigned_agent_id=agent_id,
            )
            repo.add(client)
            repo.flush()

        logger.info(
            "client.created",
            extra={"event": "client.created", "client_id": client.id, "agent_id": agent_id},
        )
        return client

    def get_client(self, client_id: str) -> Client:
        with self.read("clients.get"):
            return self._require_client(client_id)

    def list_clients(
        self,
        agent_id: str | None = None,
        status: ClientStatus | None = None,
        stage: PipelineStage | None = None,
        search: str | None = None,
    ) -> list[Client]:
        with self.read("clients.list") as repo:
            statuses = [status] if status is not None else None
            return repo.list_clients(agent_id=agent_id, statuses=statuses, stage=stage, search=search)

    def recency(self, client_id: str, now: datetime | None = None) -> Recency:
        with self.read("clients.recency"):
            client = self._require_client(client_id)
            return classify(client.last_interaction_date, now=self._now(now))
