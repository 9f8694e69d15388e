"""Fleet and per-agent engagement metrics, served from a short-lived cache."""

from __future__ import annotations

import logging
import time
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from threading import Lock

from clientpulse.core.config import get_config
from clientpulse.models.base import ensure_utc
from clientpulse.services.base_service import BaseService
from clientpulse.tracking.metrics import MetricsSnapshot, aggregate

logger = logging.getLogger(__name__)

_CACHE_LOCK = Lock()
_SNAPSHOT_CACHE: dict[bool, tuple[float, MetricsSnapshot]] = {}


def clear_metrics_cache() -> None:
    with _CACHE_LOCK:
        _SNAPSHOT_CACHE.clear()


@dataclass(frozen=True)
class MonthlyPerformance:
    month: str
    agent_id: str
    agent_name: str
    clients_contacted: int
    interactions: int


def _month_floor(moment: datetime, months_back: int) -> datetime:
    index = moment.year * 12 + (moment.month - 1) - months_back
    return moment.replace(year=index // 12, month=index % 12 + 1, day=1, hour=0, minute=0, second=0, microsecond=0)


class MetricsService(BaseService):
    def aggregate_metrics(
        self,
        now: datetime | None = None,
        include_inactive: bool = False,
        use_cache: bool = True,
    ) -> MetricsSnapshot:
        """Tier summary plus per-agent roll-ups.

        An explicit `now` always recomputes; cached snapshots are only served for
        wall-clock requests younger than METRICS_CACHE_TTL_SECONDS.
        """
        ttl = get_config().METRICS_CACHE_TTL_SECONDS
        cacheable = use_cache and now is None and ttl > 0
        if cacheable:
            with _CACHE_LOCK:
                cached = _SNAPSHOT_CACHE.get(include_inactive)
            if cached is not None and time.monotonic() - cached[0] < ttl:
                return cached[1]

        snapshot = self._compute(self._now(now), include_inactive)
        if cacheable:
            with _CACHE_LOCK:
                _SNAPSHOT_CACHE[include_inactive] = (time.monotonic(), snapshot)
        return snapshot

    def refresh(self) -> MetricsSnapshot:
        """Recompute the wall-clock snapshot and replace the cached one."""
        clear_metrics_cache()
        return self.aggregate_metrics()

    def _compute(self, now: datetime, include_inactive: bool) -> MetricsSnapshot:
        with self.read("metrics.aggregate") as repo:
            agents = repo.list_agents()
            clients = repo.list_clients()
        snapshot = aggregate(agents, clients, now=now, include_inactive=include_inactive)
        logger.info(
            "metrics.aggregated",
            extra={
                "event": "metrics.aggregated",
                "agents": len(snapshot.by_agent),
                "clients": len(clients),
            },
        )
        return snapshot

    def agent_performance(self, months: int = 12, now: datetime | None = None) -> list[MonthlyPerformance]:
        """Per calendar month and agent: distinct clients contacted and interaction count."""
        timestamp = self._now(now)
        since = _month_floor(timestamp, max(1, months) - 1)
        with self.read("metrics.agent_performance") as repo:
            agents = {agent.id: agent for agent in repo.list_agents()}
            interactions = repo.list_interactions(since=since)

        counts: dict[tuple[str, str], int] = defaultdict(int)
        contacted: dict[tuple[str, str], set[str]] = defaultdict(set)
        for interaction in interactions:
            occurred = ensure_utc(interaction.date)
            if occurred > timestamp:
                continue
            key = (occurred.strftime("%Y-%m"), interaction.agent_id)
            counts[key] += 1
            contacted[key].add(interaction.client_id)

        rows = []
        for (month, agent_id), total in counts.items():
            agent = agents.get(agent_id)
            if agent is None:
                continue
            rows.append(
                MonthlyPerformance(
                    month=month,
                    agent_id=agent_id,
                    agent_name=agent.name,
                    clients_contacted=len(contacted[(month, agent_id)]),
                    interactions=total,
                )
            )
        rows.sort(key=lambda row: (row.month, row.agent_name.lower(), row.agent_id))
        return rows
