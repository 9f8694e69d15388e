from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from clientpulse.core.enums import AgentStatus, ClientStatus, PipelineStage, Tier
from clientpulse.core.exceptions import NotFoundError, ValidationError
from clientpulse.services.client_service import ClientService

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def test_new_clients_enter_communication_stage(session, make_agent):
    agent = make_agent()
    client = ClientService(db=session).create_client(
        {"name": "Northwind", "email": "ops@northwind.test", "assigned_agent_id": agent.id},
        now=NOW,
    )

    assert client.status == ClientStatus.ACTIVE
    assert client.current_stage == PipelineStage.COMMUNICATION
    assert client.stage_start_date == NOW


def test_create_client_rejects_inactive_owner(session, make_agent):
    gone = make_agent(status=AgentStatus.INACTIVE)
    with pytest.raises(ValidationError) as exc:
        ClientService(db=session).create_client({"name": "Northwind", "assigned_agent_id": gone.id})
    assert "assigned_agent_id" in exc.value.errors


def test_create_client_validates_contact_fields(session):
    with pytest.raises(ValidationError) as exc:
        ClientService(db=session).create_client({"name": "", "email": "nope", "phone": "123"})
    assert set(exc.value.errors) == {"name", "email", "phone"}


def test_list_clients_filters(session, make_agent, make_client):
    agent = make_agent()
    make_client(name="Alpha", agent=agent)
    make_client(name="Beta", agent=agent, status=ClientStatus.AT_RISK, current_stage=PipelineStage.SHIPPING)
    service = ClientService(db=session)

    assert [client.name for client in service.list_clients(status=ClientStatus.AT_RISK)] == ["Beta"]
    assert [client.name for client in service.list_clients(stage=PipelineStage.SHIPPING)] == ["Beta"]
    assert [client.name for client in service.list_clients(search="alp")] == ["Alpha"]
    assert len(service.list_clients(agent_id=agent.id)) == 2


def test_recency_is_derived_on_read(session, make_client):
    client = make_client(last_interaction_date=NOW - timedelta(days=70))
    assert ClientService(db=session).recency(client.id, now=NOW).tier == Tier.DAYS_61_90


def test_get_unknown_client(session):
    with pytest.raises(NotFoundError):
        ClientService(db=session).get_client("missing")
