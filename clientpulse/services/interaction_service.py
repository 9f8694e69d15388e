"""Interaction logging; each insert refreshes client recency and closes its alerts."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from clientpulse.core.enums import InteractionPriority, InteractionStatus, InteractionType
from clientpulse.core.exceptions import NotFoundError, ValidationError
from clientpulse.models import Interaction
from clientpulse.models.base import ensure_utc
from clientpulse.services.base_service import BaseService
from clientpulse.utils.validators import optional_text, sanitize_text

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = {"notes", "priority", "status", "next_action", "next_action_date"}


def _parse_timestamp(value: Any, field: str, errors: dict[str, str]) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    try:
        return ensure_utc(datetime.fromisoformat(str(value).replace("Z", "+00:00")))
    except ValueError:
        errors[field] = "Must be an ISO-8601 timestamp."
        return None


def _parse_choice(enum_cls, value: Any, default, field: str, errors: dict[str, str]):
    if value is None:
        return default
    try:
        return enum_cls(value)
    except ValueError:
        errors[field] = f"Unsupported {field}: {value}"
        return default


class InteractionService(BaseService):
    def log_interaction(self, payload: dict[str, Any], now: datetime | None = None) -> Interaction:
        """Append an interaction for a client.

        The agent defaults to the client's assigned agent. This write is never
        retried automatically: a lost acknowledgment must not double-insert.
        """
        timestamp = self._now(now)
        errors: dict[str, str] = {}
        interaction_type = _parse_choice(InteractionType, payload.get("type"), None, "type", errors)
        if payload.get("type") is None:
            errors["type"] = "Type is required."
        priority = _parse_choice(
            InteractionPriority, payload.get("priority"), InteractionPriority.MEDIUM, "priority", errors
        )
        status = _parse_choice(InteractionStatus, payload.get("status"), InteractionStatus.PENDING, "status", errors)
        occurred_at = _parse_timestamp(payload.get("date"), "date", errors) or timestamp
        next_action_date = _parse_timestamp(payload.get("next_action_date"), "next_action_date", errors)

        with self.unit_of_work("interactions.log") as repo:
            client_id = payload.get("client_id")
            client = repo.get_client(client_id) if client_id else None
            if client is None:
                raise NotFoundError("Client", str(client_id))
            agent_id = payload.get("agent_id") or client.assigned_agent_id
            if agent_id is None:
                errors["agent_id"] = "Client has no assigned agent; agent_id is required."
            elif repo.get_agent(agent_id) is None:
                errors["agent_id"] = "Agent does not exist."
            if errors:
                raise ValidationError(errors)

            interaction = Interaction(
                client_id=client.id,
                agent_id=agent_id,
                type=interaction_type,
                date=occurred_at,
                notes=sanitize_text(payload.get("notes")),
                priority=priority,
                status=status,
                next_action=optional_text(payload.get("next_action")),
                next_action_date=next_action_date,
            )
            repo.append_interaction(interaction)

        logger.info(
            "interaction.logged",
            extra={
                "event": "interaction.logged",
                "interaction_id": interaction.id,
                "client_id": interaction.client_id,
                "agent_id": interaction.agent_id,
                "type": interaction.type.value,
            },
        )
        return interaction

    def update_interaction(self, interaction_id: str, partial: dict[str, Any]) -> Interaction:
        unknown = set(partial) - EDITABLE_FIELDS
        if unknown:
            raise ValidationError({field: "Field cannot be updated." for field in unknown})

        errors: dict[str, str] = {}
        with self.unit_of_work("interactions.update") as repo:
            interaction = repo.get_interaction(interaction_id)
            if interaction is None:
                raise NotFoundError("Interaction", interaction_id)
            if "priority" in partial:
                interaction.priority = _parse_choice(
                    InteractionPriority, partial["priority"], interaction.priority, "priority", errors
                )
            if "status" in partial:
                interaction.status = _parse_choice(
                    InteractionStatus, partial["status"], interaction.status, "status", errors
                )
            if "next_action_date" in partial:
                interaction.next_action_date = _parse_timestamp(
                    partial["next_action_date"], "next_action_date", errors
                )
            if errors:
                raise ValidationError(errors)
            if "notes" in partial:
                interaction.notes = sanitize_text(partial["notes"])
            if "next_action" in partial:
                interaction.next_action = optional_text(partial["next_action"])

        logger.info(
            "interaction.updated",
            extra={"event": "interaction.updated", "interaction_id": interaction.id, "fields": sorted(partial)},
        )
        return interaction

    def list_interactions(
        self,
        client_id: str | None = None,
        agent_id: str | None = None,
        since: datetime | None = None,
        limit: int | None = None,
    ) -> list[Interaction]:
        with self.read("interactions.list") as repo:
            return repo.list_interactions(client_id=client_id, agent_id=agent_id, since=ensure_utc(since), limit=limit)

    def recent_activity(self, limit: int = 10) -> list[Interaction]:
        """Latest interactions across all clients, newest first."""
        return self.list_interactions(limit=max(1, limit))
