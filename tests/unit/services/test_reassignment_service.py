from __future__ import annotations

from datetime import date

import pytest
from sqlalchemy import update
from sqlalchemy.exc import OperationalError

from clientpulse.core.enums import AgentStatus, ClientStatus
from clientpulse.core.exceptions import (
    AlreadyInactive,
    IncompleteReassignment,
    InvalidTarget,
    PersistenceUnavailable,
    StaleReassignmentPlan,
    ValidationError,
)
from clientpulse.database.repository import SQLAlchemyRepository
from clientpulse.models import Agent, Client
from clientpulse.services.reassignment_service import ReassignmentPlan, ReassignmentService

EFFECTIVE = date(2026, 3, 1)


@pytest.fixture
def roster(make_agent, make_client):
    agent_a = make_agent(name="Agent A")
    agent_b = make_agent(name="Agent B")
    c1 = make_client(name="c1", agent=agent_a)
    c2 = make_client(name="c2", agent=agent_a)
    c3 = make_client(name="c3", agent=agent_a, status=ClientStatus.INACTIVE)
    return agent_a, agent_b, c1, c2, c3


def _reread(session_factory, model, row_id):
    fresh = session_factory()
    try:
        return fresh.get(model, row_id)
    finally:
        fresh.close()


def _commit(service, agent_id, plan, **overrides):
    kwargs = {"reason": "resignation", "details": "Moved abroad", "effective_date": EFFECTIVE}
    kwargs.update(overrides)
    return service.commit_deactivation(agent_id, plan=plan, **kwargs)


def test_plan_lists_active_and_other_clients(session, roster):
    agent_a, agent_b, c1, c2, c3 = roster

    candidates = ReassignmentService(db=session).plan_reassignment(agent_a.id)

    assert {client.id for client in candidates.active_clients} == {c1.id, c2.id}
    assert [client.id for client in candidates.other_clients] == [c3.id]
    assert [agent.id for agent in candidates.available_agents] == [agent_b.id]
    assert candidates.snapshot == frozenset({c1.id, c2.id})


def test_complete_plan_reassigns_and_deactivates(session, session_factory, roster):
    agent_a, agent_b, c1, c2, c3 = roster
    service = ReassignmentService(db=session)
    plan = ReassignmentPlan.assign_all(service.plan_reassignment(agent_a.id), agent_b.id)

    agent = _commit(service, agent_a.id, plan)

    assert agent.status == AgentStatus.INACTIVE
    assert agent.deactivation_reason == "resignation: Moved abroad"
    assert agent.deactivation_date == EFFECTIVE
    assert _reread(session_factory, Client, c1.id).assigned_agent_id == agent_b.id
    assert _reread(session_factory, Client, c2.id).assigned_agent_id == agent_b.id
    assert _reread(session_factory, Client, c3.id).assigned_agent_id == agent_a.id
    assert _reread(session_factory, Agent, agent_a.id).status == AgentStatus.INACTIVE


def test_no_active_client_points_at_deactivated_agent(session, session_factory, roster):
    agent_a, agent_b, c1, c2, _ = roster
    _commit(ReassignmentService(db=session), agent_a.id, {c1.id: agent_b.id, c2.id: agent_b.id})

    fresh = session_factory()
    remaining = (
        fresh.query(Client)
        .filter(Client.assigned_agent_id == agent_a.id, Client.status == ClientStatus.ACTIVE)
        .count()
    )
    fresh.close()
    assert remaining == 0


def test_incomplete_plan_is_rejected_without_writes(session, session_factory, roster):
    agent_a, agent_b, c1, c2, _ = roster

    with pytest.raises(IncompleteReassignment) as exc:
        _commit(ReassignmentService(db=session), agent_a.id, {c1.id: agent_b.id})

    assert exc.value.missing_client_ids == [c2.id]
    assert str(exc.value) == "1 active client still unassigned"
    assert _reread(session_factory, Client, c1.id).assigned_agent_id == agent_a.id
    assert _reread(session_factory, Client, c2.id).assigned_agent_id == agent_a.id
    assert _reread(session_factory, Agent, agent_a.id).status == AgentStatus.ONLINE


def test_inactive_or_self_target_is_rejected(session, make_agent, roster):
    agent_a, _, c1, c2, _ = roster
    gone = make_agent(name="Gone", status=AgentStatus.INACTIVE)
    service = ReassignmentService(db=session)

    with pytest.raises(InvalidTarget) as exc:
        _commit(service, agent_a.id, {c1.id: gone.id, c2.id: gone.id})
    assert exc.value.agent_id == gone.id

    with pytest.raises(InvalidTarget):
        _commit(service, agent_a.id, {c1.id: agent_a.id, c2.id: agent_a.id})

    with pytest.raises(InvalidTarget):
        _commit(service, agent_a.id, {c1.id: "missing", c2.id: "missing"})


def test_plan_with_changed_active_set_is_stale(session, make_client, roster):
    agent_a, agent_b, _, _, _ = roster
    service = ReassignmentService(db=session)
    candidates = service.plan_reassignment(agent_a.id)
    plan = ReassignmentPlan.assign_all(candidates, agent_b.id)
    newcomer = make_client(name="c4", agent=agent_a)

    with pytest.raises(StaleReassignmentPlan) as exc:
        _commit(service, agent_a.id, plan)
    assert exc.value.added == [newcomer.id]


def test_plan_naming_non_active_client_is_stale(session, roster):
    agent_a, agent_b, c1, c2, c3 = roster
    with pytest.raises(StaleReassignmentPlan) as exc:
        _commit(
            ReassignmentService(db=session),
            agent_a.id,
            {c1.id: agent_b.id, c2.id: agent_b.id, c3.id: agent_b.id},
        )
    assert exc.value.removed == [c3.id]


def test_invalid_reason_details_and_date(session, roster):
    agent_a, agent_b, c1, c2, _ = roster
    with pytest.raises(ValidationError) as exc:
        _commit(
            ReassignmentService(db=session),
            agent_a.id,
            {c1.id: agent_b.id, c2.id: agent_b.id},
            reason="vacation",
            details="  ",
            effective_date="2026-13-40",
        )
    assert set(exc.value.errors) == {"reason", "details", "effective_date"}


def test_agent_without_active_clients_deactivates_with_empty_plan(session, make_agent):
    lonely = make_agent(name="Lonely")
    agent = _commit(ReassignmentService(db=session), lonely.id, {})
    assert agent.status == AgentStatus.INACTIVE


def test_second_deactivation_with_different_details_is_already_inactive(session, roster):
    agent_a, agent_b, c1, c2, _ = roster
    service = ReassignmentService(db=session)
    plan = {c1.id: agent_b.id, c2.id: agent_b.id}
    _commit(service, agent_a.id, plan)

    with pytest.raises(AlreadyInactive):
        _commit(service, agent_a.id, plan, details="Different story")


def test_lost_race_rolls_back_client_updates(session, session_factory, roster, monkeypatch):
    agent_a, agent_b, c1, c2, _ = roster
    original = SQLAlchemyRepository.reassign_and_deactivate

    def _racing(self, agent_id, assignments, deactivation_reason, deactivation_date):
        # Another operator commits the deactivation between our checks and our write.
        self.session.execute(update(Agent).where(Agent.id == agent_id).values(status=AgentStatus.INACTIVE))
        return original(self, agent_id, assignments, deactivation_reason, deactivation_date)

    monkeypatch.setattr(SQLAlchemyRepository, "reassign_and_deactivate", _racing)

    with pytest.raises(AlreadyInactive):
        _commit(ReassignmentService(db=session), agent_a.id, {c1.id: agent_b.id, c2.id: agent_b.id})

    assert _reread(session_factory, Client, c1.id).assigned_agent_id == agent_a.id
    assert _reread(session_factory, Agent, agent_a.id).status == AgentStatus.ONLINE


def test_retry_after_lost_acknowledgment_is_idempotent(session, session_factory, roster, monkeypatch):
    agent_a, agent_b, c1, c2, c3 = roster
    original_commit = SQLAlchemyRepository.commit
    calls = {"count": 0}

    def _commit_then_drop_ack(self):
        original_commit(self)
        calls["count"] += 1
        if calls["count"] == 1:
            raise OperationalError("COMMIT", {}, Exception("connection reset"))

    monkeypatch.setattr(SQLAlchemyRepository, "commit", _commit_then_drop_ack)
    service = ReassignmentService(db=session)
    plan = {c1.id: agent_b.id, c2.id: agent_b.id}

    with pytest.raises(PersistenceUnavailable):
        _commit(service, agent_a.id, plan)
    agent = _commit(service, agent_a.id, plan)

    assert agent.status == AgentStatus.INACTIVE
    assert agent.deactivation_reason == "resignation: Moved abroad"
    assert _reread(session_factory, Client, c1.id).assigned_agent_id == agent_b.id
    assert _reread(session_factory, Client, c2.id).assigned_agent_id == agent_b.id
    assert _reread(session_factory, Client, c3.id).assigned_agent_id == agent_a.id


def test_commit_with_retry_recovers_from_transient_failure(session, session_factory, roster, monkeypatch):
    agent_a, agent_b, c1, c2, _ = roster
    original_commit = SQLAlchemyRepository.commit
    calls = {"count": 0}

    def _flaky_commit(self):
        calls["count"] += 1
        if calls["count"] == 1:
            raise OperationalError("COMMIT", {}, Exception("timeout"))
        original_commit(self)

    monkeypatch.setattr(SQLAlchemyRepository, "commit", _flaky_commit)
    delays = []

    agent = ReassignmentService(db=session).commit_deactivation_with_retry(
        agent_a.id,
        reason="leave",
        details="Sabbatical",
        effective_date="2026-03-01",
        plan={c1.id: agent_b.id, c2.id: agent_b.id},
        sleep=delays.append,
    )

    assert agent.status == AgentStatus.INACTIVE
    assert delays == [0.25]
    assert _reread(session_factory, Agent, agent_a.id).deactivation_reason == "leave: Sabbatical"


def test_non_string_target_is_invalid_without_writes(session, session_factory, roster):
    agent_a, agent_b, c1, c2, _ = roster

    with pytest.raises(InvalidTarget) as exc:
        _commit(ReassignmentService(db=session), agent_a.id, {c1.id: None, c2.id: agent_b.id})

    assert exc.value.agent_id == "None"
    assert _reread(session_factory, Client, c2.id).assigned_agent_id == agent_a.id
    assert _reread(session_factory, Agent, agent_a.id).status == AgentStatus.ONLINE
