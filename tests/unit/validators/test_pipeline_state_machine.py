from __future__ import annotations

import pytest

from clientpulse.core.enums import PIPELINE_ORDER
from clientpulse.orchestration.state_machine import PIPELINE, InvalidTransitionError, StateMachine


def test_state_machine_rejects_transition_outside_table():
    sm = StateMachine({"new": {"running"}})
    with pytest.raises(InvalidTransitionError):
        sm.assert_transition("new", "completed")


def test_pipeline_allows_any_stage_to_any_stage():
    for current in PIPELINE_ORDER:
        for target in PIPELINE_ORDER:
            assert PIPELINE.can_transition(current.value, target.value) is True


def test_pipeline_entry_from_no_stage():
    PIPELINE.assert_transition(None, "communication")
    assert PIPELINE.can_transition(None, "negotiation") is False


def test_pipeline_states_match_stage_enum():
    assert PIPELINE.states == {stage.value for stage in PIPELINE_ORDER}
