from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from clientpulse.core.enums import InteractionType, PipelineStage
from clientpulse.core.exceptions import NotFoundError, ValidationError
from clientpulse.services.interaction_service import InteractionService
from clientpulse.services.pipeline_service import PipelineService

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def test_transition_sets_stage_and_resets_clock(session, make_agent, make_client):
    agent = make_agent()
    client = make_client(agent=agent, stage_start_date=NOW - timedelta(days=20))
    service = PipelineService(db=session)

    moved = service.transition_stage(client.id, PipelineStage.DEPOSIT, now=NOW)

    assert moved.current_stage == PipelineStage.DEPOSIT
    assert moved.stage_start_date == NOW
    assert service.dwell_time(client.id, now=NOW) == timedelta(0)


def test_reentering_same_stage_resets_dwell(session, make_agent, make_client):
    agent = make_agent()
    client = make_client(agent=agent, current_stage=PipelineStage.QUOTATION, stage_start_date=NOW - timedelta(days=9))
    service = PipelineService(db=session)
    assert service.dwell_time(client.id, now=NOW).days == 9

    service.transition_stage(client.id, "quotation", now=NOW)

    assert service.dwell_time(client.id, now=NOW + timedelta(seconds=1)) == timedelta(seconds=1)


def test_backward_transition_is_allowed(session, make_agent, make_client):
    client = make_client(agent=make_agent(), current_stage=PipelineStage.SHIPPING)
    moved = PipelineService(db=session).transition_stage(client.id, PipelineStage.COMMUNICATION, now=NOW)
    assert moved.current_stage == PipelineStage.COMMUNICATION


def test_transition_with_note_records_stage_change_interaction(session, make_agent, make_client):
    agent = make_agent()
    client = make_client(agent=agent)

    PipelineService(db=session).transition_stage(client.id, "approval", note="Deposit received", now=NOW)

    interactions = InteractionService(db=session).list_interactions(client_id=client.id)
    assert len(interactions) == 1
    assert interactions[0].type == InteractionType.STAGE_CHANGE
    assert interactions[0].agent_id == agent.id
    assert "Deposit received" in interactions[0].notes
    session.refresh(client)
    assert client.current_stage == PipelineStage.APPROVAL


def test_transition_rejects_unknown_stage(session, make_agent, make_client):
    client = make_client(agent=make_agent())
    with pytest.raises(ValidationError):
        PipelineService(db=session).transition_stage(client.id, "negotiation")


def test_transition_unknown_client(session):
    with pytest.raises(NotFoundError):
        PipelineService(db=session).transition_stage("missing", "deposit")


def test_pre_pipeline_client_has_no_dwell(session, make_client):
    client = make_client(current_stage=None, stage_start_date=None)
    assert PipelineService(db=session).dwell_time(client.id, now=NOW) is None


def test_stage_dwell_report(session, make_agent, make_client):
    agent = make_agent()
    make_client(agent=agent, current_stage=PipelineStage.DEPOSIT, stage_start_date=NOW - timedelta(days=4))
    make_client(agent=agent, current_stage=PipelineStage.DEPOSIT, stage_start_date=NOW - timedelta(days=10))
    make_client(agent=agent, current_stage=None, stage_start_date=None)

    report = {row.stage: row for row in PipelineService(db=session).stage_dwell_report(now=NOW)}

    assert report[PipelineStage.DEPOSIT].client_count == 2
    assert report[PipelineStage.DEPOSIT].average_days == 7.0
    assert report[PipelineStage.DEPOSIT].max_days == 10
    assert report[PipelineStage.SHIPPING].client_count == 0
