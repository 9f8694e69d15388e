"""Lifecycle hooks for queue task execution."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from clientpulse.core.logging import LogContext, build_log_event


def before_task(task_key: str, trace_id: str | None) -> dict[str, Any]:
    """Build pre-task log payload."""
    return build_log_event(event="task.start", context=LogContext(trace_id=trace_id), task_key=task_key)


def after_task(task_key: str, trace_id: str | None, status: str, **fields: Any) -> dict[str, Any]:
    """Build post-task log payload."""
    return build_log_event(
        event="task.finish",
        context=LogContext(trace_id=trace_id),
        task_key=task_key,
        status=status,
        finished_at=datetime.now(timezone.utc).isoformat(),
        **fields,
    )
