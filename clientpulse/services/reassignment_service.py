"""Agent deactivation with atomic reassignment of every active client.

Planning is read-only; `commit_deactivation` re-validates the plan under row
locks and applies every reassignment plus the deactivation in one transaction.
Nothing is written when any precondition fails.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime

from clientpulse.core.config import get_config
from clientpulse.core.enums import AgentStatus, ClientStatus, DeactivationReason
from clientpulse.core.exceptions import (
    AlreadyInactive,
    IncompleteReassignment,
    InvalidTarget,
    NotFoundError,
    PreconditionFailure,
    StaleReassignmentPlan,
    ValidationError,
)
from clientpulse.core.logging import LogContext, build_log_event
from clientpulse.database.repository import EngagementRepository
from clientpulse.models import Agent, Client
from clientpulse.services.base_service import BaseService
from clientpulse.utils.retry import retry_on_unavailable
from clientpulse.utils.validators import parse_effective_date, sanitize_text

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReassignmentCandidates:
    """What an operator needs to build a plan for one agent."""

    agent: Agent
    active_clients: list[Client]
    other_clients: list[Client]
    available_agents: list[Agent]

    @property
    def snapshot(self) -> frozenset[str]:
        return frozenset(client.id for client in self.active_clients)


@dataclass(frozen=True)
class ReassignmentPlan:
    """Operator-built `client_id -> agent_id` map.

    `snapshot` holds the active client ids seen when the plan was built; when
    present, the commit refuses to run if the agent's active set has changed.
    """

    assignments: Mapping[str, str] = field(default_factory=dict)
    snapshot: frozenset[str] | None = None

    @classmethod
    def for_candidates(cls, candidates: ReassignmentCandidates, assignments: Mapping[str, str]) -> "ReassignmentPlan":
        return cls(assignments=dict(assignments), snapshot=candidates.snapshot)

    @classmethod
    def assign_all(cls, candidates: ReassignmentCandidates, agent_id: str) -> "ReassignmentPlan":
        """Bulk action: hand every active client to one agent."""
        return cls.for_candidates(candidates, {client.id: agent_id for client in candidates.active_clients})


def compose_deactivation_reason(reason: DeactivationReason | str, details: str) -> str:
    return f"{DeactivationReason(reason).value}: {sanitize_text(details)}"


class ReassignmentService(BaseService):
    def plan_reassignment(self, agent_id: str) -> ReassignmentCandidates:
        with self.read("reassignment.plan") as repo:
            agent = repo.get_agent(agent_id)
            if agent is None:
                raise NotFoundError("Agent", agent_id)
            if agent.status == AgentStatus.INACTIVE:
                raise AlreadyInactive(agent_id)
            clients = repo.list_clients(agent_id=agent_id)
            available = [
                candidate
                for candidate in repo.list_agents(exclude_statuses=[AgentStatus.INACTIVE])
                if candidate.id != agent_id
            ]

        active = [client for client in clients if client.status == ClientStatus.ACTIVE]
        others = [client for client in clients if client.status != ClientStatus.ACTIVE]
        logger.info(
            "reassignment.planned",
            extra={
                "event": "reassignment.planned",
                "agent_id": agent_id,
                "active_clients": len(active),
                "other_clients": len(others),
            },
        )
        return ReassignmentCandidates(
            agent=agent,
            active_clients=active,
            other_clients=others,
            available_agents=available,
        )

    @staticmethod
    def _validate_input(
        reason: DeactivationReason | str,
        details: str | None,
        effective_date: date | datetime | str | None,
    ) -> tuple[str, date]:
        errors: dict[str, str] = {}
        try:
            DeactivationReason(reason)
        except ValueError:
            errors["reason"] = f"Unsupported reason: {reason}"
        if not sanitize_text(details):
            errors["details"] = "Details are required."
        parsed_date = parse_effective_date(effective_date)
        if parsed_date is None:
            errors["effective_date"] = "Effective date must be a valid date."
        if errors:
            raise ValidationError(errors)
        return compose_deactivation_reason(reason, details), parsed_date

    @staticmethod
    def _is_replay(
        repo: EngagementRepository,
        agent: Agent,
        assignments: Mapping[str, str],
        composed_reason: str,
        effective_date: date,
    ) -> bool:
        if agent.deactivation_reason != composed_reason or agent.deactivation_date != effective_date:
            return False
        for client_id, target_id in assignments.items():
            client = repo.get_client(client_id)
            if client is None or client.assigned_agent_id != target_id:
                return False
        return True

    @staticmethod
    def _check_plan(active_ids: set[str], plan: ReassignmentPlan) -> None:
        for target_id in plan.assignments.values():
            if not isinstance(target_id, str) or not target_id.strip():
                raise InvalidTarget(repr(target_id), "target agent id must be a non-empty string")
        planned = set(plan.assignments)
        if plan.snapshot is not None and set(plan.snapshot) != active_ids:
            raise StaleReassignmentPlan(
                added=active_ids - set(plan.snapshot),
                removed=set(plan.snapshot) - active_ids,
            )
        missing = active_ids - planned
        if missing:
            raise IncompleteReassignment(missing)
        unexpected = planned - active_ids
        if unexpected:
            raise StaleReassignmentPlan(removed=unexpected)

    @staticmethod
    def _check_targets(agent_id: str, target_ids: Iterable[str], targets: Mapping[str, Agent]) -> None:
        for target_id in sorted(target_ids):
            if target_id == agent_id:
                raise InvalidTarget(target_id, "an agent cannot receive its own clients")
            target = targets.get(target_id)
            if target is None:
                raise InvalidTarget(target_id, "agent does not exist")
            if target.status == AgentStatus.INACTIVE:
                raise InvalidTarget(target_id, "agent is inactive")

    def commit_deactivation(
        self,
        agent_id: str,
        reason: DeactivationReason | str,
        details: str,
        effective_date: date | datetime | str,
        plan: ReassignmentPlan | Mapping[str, str],
        actor_id: str | None = None,
    ) -> Agent:
        """Reassign every active client of `agent_id` and deactivate it atomically.

        Retrying an already-applied commit with the same plan, reason and date
        returns the agent unchanged.
        """
        if not isinstance(plan, ReassignmentPlan):
            plan = ReassignmentPlan(assignments=dict(plan))
        composed_reason, parsed_date = self._validate_input(reason, details, effective_date)
        context = LogContext(actor_id=actor_id, agent_id=agent_id)
        replayed = False

        try:
            with self.unit_of_work("reassignment.commit") as repo:
                agent = repo.get_agent(agent_id, for_update=True)
                if agent is None:
                    raise NotFoundError("Agent", agent_id)
                if agent.status == AgentStatus.INACTIVE:
                    if not self._is_replay(repo, agent, plan.assignments, composed_reason, parsed_date):
                        raise AlreadyInactive(agent_id)
                    replayed = True
                else:
                    active = repo.list_clients(agent_id=agent_id, statuses=[ClientStatus.ACTIVE], for_update=True)
                    self._check_plan({client.id for client in active}, plan)

                    target_ids = set(plan.assignments.values())
                    targets = {
                        target.id: target
                        for target in repo.list_agents(ids=target_ids, for_update=True)
                    }
                    self._check_targets(agent_id, target_ids, targets)

                    if not repo.reassign_and_deactivate(agent_id, plan.assignments, composed_reason, parsed_date):
                        # Another operator deactivated the agent after our read.
                        raise AlreadyInactive(agent_id)
                    repo.refresh(agent)
        except PreconditionFailure as exc:
            logger.warning(
                "reassignment.rejected",
                extra=build_log_event("reassignment.rejected", context, error_code=exc.error_code, detail=str(exc)),
            )
            raise

        event = "reassignment.replayed" if replayed else "reassignment.committed"
        logger.info(
            event,
            extra=build_log_event(
                event,
                context,
                reassigned_clients=len(plan.assignments),
                target_agent_ids=sorted(set(plan.assignments.values())),
                deactivation_reason=composed_reason,
                deactivation_date=parsed_date.isoformat(),
            ),
        )
        return agent

    def commit_deactivation_with_retry(self, *args, sleep=None, **kwargs) -> Agent:
        """`commit_deactivation` retried on `PersistenceUnavailable`; safe because the commit replays."""
        config = get_config()
        options = {"sleep": sleep} if sleep is not None else {}
        return retry_on_unavailable(
            lambda: self.commit_deactivation(*args, **kwargs),
            operation_name="reassignment.commit",
            max_retries=config.PERSISTENCE_MAX_RETRIES,
            base_backoff_seconds=config.PERSISTENCE_BACKOFF_SECONDS,
            **options,
        )
