from __future__ import annotations

import uuid
from datetime import datetime, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from clientpulse.core.enums import AgentStatus, ClientStatus, PipelineStage
from clientpulse.models import Agent, Base, Client
from clientpulse.services.metrics_service import clear_metrics_cache

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)
    yield TestingSessionLocal
    engine.dispose()


@pytest.fixture
def session(session_factory):
    db = session_factory()
    yield db
    db.close()


@pytest.fixture(autouse=True)
def _clear_metrics_cache():
    clear_metrics_cache()
    yield
    clear_metrics_cache()


@pytest.fixture
def make_agent(session):
    def _make_agent(name: str = "Agent", status: AgentStatus = AgentStatus.ONLINE, **fields) -> Agent:
        agent = Agent(
            name=name,
            email=fields.pop("email", f"{uuid.uuid4().hex[:8]}@example.com"),
            whatsapp_number=fields.pop("whatsapp_number", "+1 555 010 0000"),
            status=status,
            **fields,
        )
        session.add(agent)
        session.commit()
        return agent

    return _make_agent


@pytest.fixture
def make_client(session):
    def _make_client(
        name: str = "Client",
        agent: Agent | None = None,
        status: ClientStatus = ClientStatus.ACTIVE,
        **fields,
    ) -> Client:
        client = Client(
            name=name,
            status=status,
            assigned_agent_id=agent.id if agent is not None else None,
            current_stage=fields.pop("current_stage", PipelineStage.COMMUNICATION),
            stage_start_date=fields.pop("stage_start_date", NOW),
            **fields,
        )
        session.add(client)
        session.commit()
        return client

    return _make_client
