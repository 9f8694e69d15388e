"""Periodic engagement-tracking jobs: alert detection and metrics refresh."""

from __future__ import annotations

import logging
from typing import Any

from clientpulse.core.exceptions import PersistenceUnavailable
from clientpulse.database.db import get_db_session
from clientpulse.services.alert_service import AlertService
from clientpulse.services.metrics_service import MetricsService
from clientpulse.tasks.celery_app import celery_app
from clientpulse.tasks.hooks import after_task, before_task

logger = logging.getLogger(__name__)

RETRY_OPTIONS = {
    "autoretry_for": (PersistenceUnavailable,),
    "retry_backoff": True,
    "retry_backoff_max": 60,
    "retry_jitter": False,
    "max_retries": 3,
}


def _trace_id(task) -> str | None:
    return getattr(task.request, "id", None)


@celery_app.task(bind=True, name="tracking.scan_alerts", **RETRY_OPTIONS)
def scan_alerts_task(self) -> dict[str, Any]:
    trace_id = _trace_id(self)
    logger.info("task.start", extra=before_task("tracking.scan_alerts", trace_id))
    with get_db_session() as session:
        result = AlertService(session).scan()
    summary = {"scanned": result.scanned, "alerts_created": result.created, "alerts_refreshed": result.refreshed}
    logger.info("task.finish", extra=after_task("tracking.scan_alerts", trace_id, "succeeded", **summary))
    return {"status": "succeeded", **summary}


@celery_app.task(bind=True, name="tracking.refresh_metrics", **RETRY_OPTIONS)
def refresh_metrics_task(self) -> dict[str, Any]:
    trace_id = _trace_id(self)
    logger.info("task.start", extra=before_task("tracking.refresh_metrics", trace_id))
    with get_db_session() as session:
        snapshot = MetricsService(session).refresh()
    summary = {
        "agents": len(snapshot.by_agent),
        "generated_at": snapshot.generated_at.isoformat(),
    }
    logger.info("task.finish", extra=after_task("tracking.refresh_metrics", trace_id, "succeeded", **summary))
    return {"status": "succeeded", **summary}
