from __future__ import annotations

from datetime import datetime, timedelta, timezone

from clientpulse.core.enums import ClientStatus, Tier
from clientpulse.services.interaction_service import InteractionService
from clientpulse.services.metrics_service import MetricsService

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def test_aggregate_metrics_includes_agent_without_clients(session, make_agent, make_client):
    alice = make_agent(name="Alice")
    make_agent(name="Bob")
    make_client(agent=alice, last_interaction_date=NOW - timedelta(days=10))
    make_client(agent=alice, status=ClientStatus.AT_RISK, last_interaction_date=NOW - timedelta(days=65))

    snapshot = MetricsService(db=session).aggregate_metrics(now=NOW)

    assert snapshot.summary[Tier.DAYS_0_30].count == 1
    assert snapshot.summary[Tier.DAYS_61_90].percentage == 50.0
    rows = {row.agent_name: row for row in snapshot.by_agent}
    assert rows["Alice"].at_risk_percentage == 50.0
    assert rows["Alice"].high_risk is True
    assert rows["Bob"].total_clients == 0
    assert rows["Bob"].active_percentage == 0.0


def test_wall_clock_snapshot_is_cached(session, make_agent, make_client):
    agent = make_agent(name="Alice")
    service = MetricsService(db=session)
    first = service.aggregate_metrics()

    make_client(agent=agent)

    assert service.aggregate_metrics() is first
    refreshed = service.refresh()
    assert refreshed is not first
    assert refreshed.by_agent[0].total_clients == 1


def test_agent_performance_groups_by_month(session, make_agent, make_client):
    agent = make_agent(name="Alice")
    first = make_client(agent=agent)
    second = make_client(agent=agent)
    interactions = InteractionService(db=session)
    interactions.log_interaction({"client_id": first.id, "type": "call"}, now=NOW - timedelta(days=1))
    interactions.log_interaction({"client_id": first.id, "type": "email"}, now=NOW - timedelta(days=2))
    interactions.log_interaction({"client_id": second.id, "type": "visit"}, now=NOW - timedelta(days=3))
    interactions.log_interaction({"client_id": second.id, "type": "call"}, now=NOW - timedelta(days=400))

    rows = MetricsService(db=session).agent_performance(months=12, now=NOW)

    assert [(row.month, row.clients_contacted, row.interactions) for row in rows] == [("2026-02", 2, 3)]
