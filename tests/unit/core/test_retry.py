from __future__ import annotations

import pytest

from clientpulse.core.exceptions import IncompleteReassignment, PersistenceUnavailable
from clientpulse.utils.retry import retry_on_unavailable


def test_retries_unavailable_then_succeeds():
    state = {"calls": 0}
    delays = []

    def flaky():
        state["calls"] += 1
        if state["calls"] < 3:
            raise PersistenceUnavailable("store down")
        return "ok"

    result = retry_on_unavailable(flaky, "test.flaky", max_retries=2, base_backoff_seconds=0.5, sleep=delays.append)

    assert result == "ok"
    assert delays == [0.5, 1.0]


def test_gives_up_after_max_retries():
    def down():
        raise PersistenceUnavailable("store down")

    with pytest.raises(PersistenceUnavailable):
        retry_on_unavailable(down, "test.down", max_retries=1, base_backoff_seconds=0.0)


def test_precondition_failures_are_not_retried():
    state = {"calls": 0}

    def rejected():
        state["calls"] += 1
        raise IncompleteReassignment(["c1"])

    with pytest.raises(IncompleteReassignment):
        retry_on_unavailable(rejected, "test.rejected", max_retries=3, base_backoff_seconds=0.0)
    assert state["calls"] == 1
