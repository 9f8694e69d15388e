from __future__ import annotations

from datetime import datetime, timedelta, timezone

from clientpulse.core.enums import AlertLevel, ClientStatus, NotificationStatus
from clientpulse.models import Alert
from clientpulse.services.agent_service import AgentService
from clientpulse.services.alert_service import AlertService
from clientpulse.services.interaction_service import InteractionService

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def test_scan_creates_one_pending_alert_per_stale_client(session, make_agent, make_client):
    agent = make_agent()
    make_client(name="Fresh", agent=agent, last_interaction_date=NOW - timedelta(days=3))
    stale = make_client(name="Stale", company="Acme", agent=agent, last_interaction_date=NOW - timedelta(days=45))
    make_client(name="Dormant", agent=agent, status=ClientStatus.INACTIVE, last_interaction_date=None)
    service = AlertService(db=session)

    result = service.scan(now=NOW)

    assert result.created == 1
    alerts = service.list_alerts()
    assert len(alerts) == 1
    assert alerts[0].client_id == stale.id
    assert alerts[0].client_company == "Acme"
    assert alerts[0].alert_level == AlertLevel.MEDIUM
    assert service.pending_count() == 1


def test_rescan_refreshes_days_without_duplicating(session, make_agent, make_client):
    make_client(agent=make_agent(), last_interaction_date=NOW - timedelta(days=40))
    service = AlertService(db=session)
    service.scan(now=NOW)

    result = service.scan(now=NOW + timedelta(days=2))

    assert result.created == 0
    assert result.refreshed == 1
    assert session.query(Alert).count() == 1
    assert service.list_alerts()[0].days_without_interaction == 42


def test_mark_read_is_not_resurrected_by_next_scan(session, make_agent, make_client):
    client = make_client(agent=make_agent(), last_interaction_date=NOW - timedelta(days=40))
    service = AlertService(db=session)
    service.scan(now=NOW)

    assert service.mark_read(client.id) == 1
    service.scan(now=NOW + timedelta(days=1))

    assert service.pending_count() == 0
    assert service.list_alerts()[0].notification_status == NotificationStatus.READ


def test_escalation_creates_new_pending_alert(session, make_agent, make_client):
    client = make_client(agent=make_agent(), last_interaction_date=NOW - timedelta(days=55))
    service = AlertService(db=session)
    service.scan(now=NOW)
    service.mark_read(client.id)

    service.scan(now=NOW + timedelta(days=10))

    alerts = service.list_alerts()
    assert len(alerts) == 1
    assert alerts[0].alert_level == AlertLevel.HIGH
    assert alerts[0].notification_status == NotificationStatus.PENDING


def test_mark_read_by_alert_id_acknowledges_all_client_rows(session, make_agent, make_client):
    client = make_client(agent=make_agent(), last_interaction_date=NOW - timedelta(days=55))
    service = AlertService(db=session)
    service.scan(now=NOW)
    service.scan(now=NOW + timedelta(days=10))
    alert_id = service.list_alerts()[0].id

    client_id, count = service.mark_alert_read(alert_id)

    assert client_id == client.id
    assert count == 2


def test_interaction_clears_alerts(session, make_agent, make_client):
    client = make_client(agent=make_agent(), last_interaction_date=NOW - timedelta(days=100))
    service = AlertService(db=session)
    service.scan(now=NOW)
    assert service.list_alerts("critical")

    InteractionService(db=session).log_interaction({"client_id": client.id, "type": "call"}, now=NOW)

    assert service.list_alerts() == []


def test_never_contacted_client_counts_from_registration(session, make_agent, make_client):
    client = make_client(agent=make_agent(), last_interaction_date=None, created_at=NOW - timedelta(days=12))
    service = AlertService(db=session)
    service.scan(now=NOW)

    alert = service.recent(limit=5)[0]
    assert alert.client_id == client.id
    assert alert.alert_level == AlertLevel.CRITICAL
    assert alert.days_without_interaction == 12


def test_deactivated_client_drops_out_of_pending_alerts(session, make_agent, make_client):
    client = make_client(agent=make_agent(), last_interaction_date=NOW - timedelta(days=100))
    service = AlertService(db=session)
    service.scan(now=NOW)
    assert service.pending_count() == 1

    AgentService(db=session).set_client_status(client.id, ClientStatus.INACTIVE)
    service.scan(now=NOW + timedelta(days=30))

    assert service.pending_count() == 0
    assert service.list_alerts() == []


def test_scan_closes_open_rows_of_clients_no_longer_tracked(session, make_agent, make_client):
    client = make_client(agent=make_agent(), last_interaction_date=NOW - timedelta(days=70))
    service = AlertService(db=session)
    service.scan(now=NOW)
    client.status = ClientStatus.INACTIVE
    session.commit()

    service.scan(now=NOW + timedelta(days=1))

    assert service.list_alerts() == []
    assert session.query(Alert).filter(Alert.closed_at.is_(None)).count() == 0
