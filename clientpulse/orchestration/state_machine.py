"""Canonical state transition helpers for pipeline entities."""

from __future__ import annotations

from collections.abc import Iterable

from clientpulse.core.enums import PIPELINE_ORDER


class InvalidTransitionError(ValueError):
    """Raised when a disallowed state transition is attempted."""


class StateMachine:
    """Small transition table; states outside the table are rejected."""

    def __init__(self, transitions: dict[str, set[str]]) -> None:
        self._transitions = transitions

    @classmethod
    def permissive(cls, states: Iterable[str]) -> "StateMachine":
        """Every state may move to every state, itself included."""
        names = [str(state) for state in states]
        return cls({name: set(names) for name in names})

    @property
    def states(self) -> set[str]:
        return set(self._transitions)

    def can_transition(self, current: str | None, target: str) -> bool:
        # A record with no state yet may enter any known state.
        if current is None:
            return target in self._transitions
        return target in self._transitions.get(current, set())

    def assert_transition(self, current: str | None, target: str) -> None:
        if not self.can_transition(current=current, target=target):
            raise InvalidTransitionError(f"Transition not allowed: {current} -> {target}")


PIPELINE = StateMachine.permissive(stage.value for stage in PIPELINE_ORDER)
