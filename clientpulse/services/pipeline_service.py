"""Pipeline stage tracking: transitions, stage-entry timestamps and dwell time."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from clientpulse.core.enums import PIPELINE_ORDER, ClientStatus, InteractionStatus, InteractionType, PipelineStage
from clientpulse.core.exceptions import NotFoundError, ValidationError
from clientpulse.models import Client, Interaction
from clientpulse.models.base import ensure_utc
from clientpulse.orchestration.state_machine import PIPELINE, InvalidTransitionError
from clientpulse.services.base_service import BaseService
from clientpulse.utils.validators import optional_text

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StageDwell:
    stage: PipelineStage
    client_count: int
    average_days: float
    max_days: int


def dwell_time(client: Client, now: datetime) -> timedelta | None:
    """Time spent in the current stage; None before the client enters the pipeline."""
    started = ensure_utc(client.stage_start_date)
    if client.current_stage is None or started is None:
        return None
    return max(timedelta(0), ensure_utc(now) - started)


class PipelineService(BaseService):
    def transition_stage(
        self,
        client_id: str,
        new_stage: PipelineStage | str,
        note: str | None = None,
        agent_id: str | None = None,
        now: datetime | None = None,
    ) -> Client:
        """Move a client to `new_stage` and restart its stage clock.

        Re-entering the current stage also restarts the clock. A non-blank note
        is recorded as a `stage_change` interaction.
        """
        try:
            target = PipelineStage(new_stage)
        except ValueError as exc:
            raise ValidationError({"stage": f"Unsupported stage: {new_stage}"}) from exc

        timestamp = self._now(now)
        note_text = optional_text(note)
        with self.unit_of_work("pipeline.transition") as repo:
            client = repo.get_client(client_id, for_update=True)
            if client is None:
                raise NotFoundError("Client", client_id)
            previous = PipelineStage(client.current_stage) if client.current_stage is not None else None
            try:
                PIPELINE.assert_transition(previous.value if previous else None, target.value)
            except InvalidTransitionError as exc:
                raise ValidationError({"stage": str(exc)}) from exc

            client.current_stage = target
            client.stage_start_date = timestamp

            if note_text is not None:
                author_id = agent_id or client.assigned_agent_id
                if author_id is None:
                    raise ValidationError({"agent_id": "Client has no assigned agent; agent_id is required."})
                if repo.get_agent(author_id) is None:
                    raise ValidationError({"agent_id": "Agent does not exist."})
                origin = previous.value if previous else "none"
                repo.append_interaction(
                    Interaction(
                        client_id=client.id,
                        agent_id=author_id,
                        type=InteractionType.STAGE_CHANGE,
                        date=timestamp,
                        notes=f"Stage {origin} -> {target.value}: {note_text}",
                        status=InteractionStatus.COMPLETED,
                    )
                )

        logger.info(
            "pipeline.stage_changed",
            extra={
                "event": "pipeline.stage_changed",
                "client_id": client.id,
                "from_stage": previous.value if previous else None,
                "to_stage": target.value,
            },
        )
        return client

    def dwell_time(self, client_id: str, now: datetime | None = None) -> timedelta | None:
        with self.read("pipeline.dwell_time") as repo:
            client = repo.get_client(client_id)
            if client is None:
                raise NotFoundError("Client", client_id)
            return dwell_time(client, self._now(now))

    def stage_dwell_report(self, now: datetime | None = None) -> list[StageDwell]:
        """Per-stage client count with average and maximum dwell in whole days."""
        timestamp = self._now(now)
        with self.read("pipeline.stage_dwell_report") as repo:
            clients = repo.list_clients(statuses=[ClientStatus.ACTIVE, ClientStatus.AT_RISK])

        days_by_stage: dict[PipelineStage, list[int]] = {stage: [] for stage in PIPELINE_ORDER}
        for client in clients:
            elapsed = dwell_time(client, timestamp)
            if elapsed is None:
                continue
            days_by_stage[PipelineStage(client.current_stage)].append(elapsed.days)

        report = []
        for stage in PIPELINE_ORDER:
            days = days_by_stage[stage]
            report.append(
                StageDwell(
                    stage=stage,
                    client_count=len(days),
                    average_days=round(sum(days) / len(days), 2) if days else 0.0,
                    max_days=max(days, default=0),
                )
            )
        return report
