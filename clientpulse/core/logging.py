"""Structured audit-log helpers."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any


@dataclass(frozen=True)
class LogContext:
    """Normalized context fields expected in structured logs."""

    actor_id: str | None = None
    agent_id: str | None = None
    client_id: str | None = None
    trace_id: str | None = None


def build_log_event(event: str, context: LogContext, **fields: Any) -> dict[str, Any]:
    """Build a normalized structured log payload."""
    payload: dict[str, Any] = {
        "logged_at": datetime.now(timezone.utc).isoformat(),
        "event": event,
        "actor_id": context.actor_id,
        "agent_id": context.agent_id,
        "client_id": context.client_id,
        "trace_id": context.trace_id,
    }
    payload.update(fields)
    return payload
