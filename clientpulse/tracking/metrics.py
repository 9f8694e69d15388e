"""Pure roll-ups of client engagement for fleet and per-agent reporting."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol

from clientpulse.core.enums import TIER_ORDER, AgentStatus, ClientStatus, Tier
from clientpulse.tracking.recency import classify

NEEDS_ATTENTION_ACTIVE_PCT = 50.0
HIGH_RISK_AT_RISK_PCT = 30.0


class ClientLike(Protocol):
    id: str
    status: ClientStatus
    assigned_agent_id: str | None
    last_interaction_date: datetime | None


class AgentLike(Protocol):
    id: str
    name: str
    status: AgentStatus


@dataclass(frozen=True)
class TierBucket:
    count: int
    percentage: float


@dataclass(frozen=True)
class AgentMetrics:
    agent_id: str
    agent_name: str
    agent_status: AgentStatus
    active_clients: int
    inactive_clients: int
    at_risk_clients: int
    total_clients: int
    active_percentage: float
    at_risk_percentage: float
    needs_attention: bool
    high_risk: bool
    tiers: dict[Tier, int] = field(default_factory=dict)


@dataclass(frozen=True)
class MetricsSnapshot:
    summary: dict[Tier, TierBucket]
    by_agent: list[AgentMetrics]
    generated_at: datetime


def percentage(part: int, whole: int) -> float:
    """Percentage rounded to two decimals; 0.0 when there is nothing to divide."""
    if whole <= 0:
        return 0.0
    return round(part * 100.0 / whole, 2)


def tier_summary(clients: Iterable[ClientLike], now: datetime) -> dict[Tier, TierBucket]:
    """Count and share of non-inactive clients per staleness tier."""
    counts: Counter[Tier] = Counter()
    for client in clients:
        if client.status == ClientStatus.INACTIVE:
            continue
        counts[classify(client.last_interaction_date, now=now).tier] += 1
    total = sum(counts.values())
    return {tier: TierBucket(count=counts[tier], percentage=percentage(counts[tier], total)) for tier in TIER_ORDER}


def agent_metrics(agent: AgentLike, clients: Iterable[ClientLike], now: datetime) -> AgentMetrics:
    statuses: Counter[ClientStatus] = Counter()
    tiers: Counter[Tier] = Counter()
    for client in clients:
        statuses[ClientStatus(client.status)] += 1
        if client.status != ClientStatus.INACTIVE:
            tiers[classify(client.last_interaction_date, now=now).tier] += 1

    active = statuses[ClientStatus.ACTIVE]
    inactive = statuses[ClientStatus.INACTIVE]
    at_risk = statuses[ClientStatus.AT_RISK]
    total = active + inactive + at_risk
    active_pct = percentage(active, active + inactive)
    at_risk_pct = percentage(at_risk, total)
    return AgentMetrics(
        agent_id=agent.id,
        agent_name=agent.name,
        agent_status=AgentStatus(agent.status),
        active_clients=active,
        inactive_clients=inactive,
        at_risk_clients=at_risk,
        total_clients=total,
        active_percentage=active_pct,
        at_risk_percentage=at_risk_pct,
        needs_attention=total > 0 and active_pct < NEEDS_ATTENTION_ACTIVE_PCT,
        high_risk=at_risk_pct > HIGH_RISK_AT_RISK_PCT,
        tiers={tier: tiers[tier] for tier in TIER_ORDER},
    )


def aggregate(
    agents: Iterable[AgentLike],
    clients: Iterable[ClientLike],
    now: datetime,
    include_inactive: bool = False,
) -> MetricsSnapshot:
    """Reduce current client/agent state to a metrics snapshot."""
    client_list = list(clients)
    by_owner: dict[str, list[ClientLike]] = {}
    for client in client_list:
        if client.assigned_agent_id:
            by_owner.setdefault(client.assigned_agent_id, []).append(client)

    per_agent = [
        agent_metrics(agent, by_owner.get(agent.id, []), now=now)
        for agent in agents
        if include_inactive or agent.status != AgentStatus.INACTIVE
    ]
    per_agent.sort(key=lambda item: (item.agent_name.lower(), item.agent_id))
    return MetricsSnapshot(
        summary=tier_summary(client_list, now=now),
        by_agent=per_agent,
        generated_at=now,
    )
